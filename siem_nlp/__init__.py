import json
import time

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db
from .repositories.event_store import EventStore
from .services.chat_service import ChatService

API_LOG_LINE_MAX = 80


def _register_api_logging(app):
    @app.before_request
    def _start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def _log_api_request(response):
        if not request.path.startswith("/api"):
            return response

        started = g.get("request_started")
        duration_ms = int((time.perf_counter() - started) * 1000) if started else 0
        line = f"{request.method} {request.path} {response.status_code} in {duration_ms}ms"

        if response.is_json:
            body = response.get_json(silent=True)
            if body is not None:
                line += " :: " + json.dumps(body, ensure_ascii=False)

        if len(line) > API_LOG_LINE_MAX:
            line = line[:API_LOG_LINE_MAX - 1] + "…"
        app.logger.info(line)
        return response


def _register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def _http_error(e):
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def _unhandled(e):
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Internal Server Error"}), 500


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    app.config["SECRET_KEY"] = app.config.get("SECRET_KEY") or "dev-secret-key"

    db.init_app(app)

    # dataset is read once; failures leave an empty, usable store
    store = EventStore.load(app.config["SIEM_DATASET_PATH"], logger=app.logger)
    app.extensions["siem_nlp.event_store"] = store
    app.extensions["siem_nlp.chat_service"] = ChatService(
        store,
        display_limit=app.config["EVENTS_DISPLAY_LIMIT"],
        follow_up_word_limit=app.config["FOLLOW_UP_WORD_LIMIT"],
        clock=app.config.get("CLOCK"),
    )

    # Blueprints
    from .controllers.chat_controller import chat_bp
    from .controllers.logs_controller import logs_bp

    app.register_blueprint(chat_bp)
    app.register_blueprint(logs_bp)

    _register_api_logging(app)
    _register_error_handlers(app)

    with app.app_context():
        db.create_all()

    return app
