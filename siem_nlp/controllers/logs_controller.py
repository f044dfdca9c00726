from flask import Blueprint, jsonify, current_app

logs_bp = Blueprint("logs", __name__, url_prefix="/api/logs")


@logs_bp.get("")
def list_logs():
    """
    Debug view of the loaded event store.
    Returns the first LOGS_PAGE_LIMIT events in load order.
    """
    store = current_app.extensions["siem_nlp.event_store"]
    limit = current_app.config.get("LOGS_PAGE_LIMIT", 50)

    return jsonify({
        "total": len(store),
        "logs": [ev.to_dict() for ev in store.head(limit)],
    })
