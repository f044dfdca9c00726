import uuid

from flask import Blueprint, request, jsonify, current_app, session
from pydantic import ValidationError

from ..repositories.conversation_repository import ConversationRepository, turn_to_dict
from ..schemas.chat_schema import ChatRequestIn

chat_bp = Blueprint("chat", __name__, url_prefix="/api")
repo = ConversationRepository()


def _session_id() -> str:
    sid = session.get("sid")
    if not sid:
        sid = uuid.uuid4().hex
        session["sid"] = sid
        session.permanent = True
    return sid


def _chat_service():
    return current_app.extensions["siem_nlp.chat_service"]


@chat_bp.get("/conversations")
def conversations():
    sid = _session_id()
    try:
        turns = repo.list_turns(sid)
    except Exception:
        current_app.logger.exception("CONVERSATIONS fetch failed sid=%s", sid)
        return jsonify({"error": "Failed to fetch conversations"}), 500

    return jsonify([turn_to_dict(t) for t in turns])


@chat_bp.post("/chat")
def chat():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}

    try:
        payload = ChatRequestIn(**body)
    except ValidationError as e:
        return jsonify({
            "error": "Invalid request data",
            "details": e.errors(include_url=False, include_context=False),
        }), 400

    sid = _session_id()

    try:
        prior = repo.last_descriptor(sid)
        outcome = _chat_service().handle(payload.message, [prior] if prior else [])

        repo.append_turn(
            session_id=sid,
            user_query=outcome.turn.user_query,
            descriptor=outcome.turn.descriptor,
            rendered_query=outcome.turn.rendered_query,
            result_count=outcome.turn.result_count,
        )
    except Exception:
        current_app.logger.exception("CHAT request failed sid=%s", sid)
        return jsonify({"error": "Failed to process query"}), 500

    return jsonify({
        "message": payload.message,
        "parsed_query": outcome.descriptor.to_dict(),
        "results": outcome.result.to_dict(),
    })
