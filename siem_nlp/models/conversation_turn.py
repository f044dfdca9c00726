from datetime import datetime, timezone
from ..extensions import db


def _utcnow():
    return datetime.now(timezone.utc)


class ConversationTurn(db.Model):
    __tablename__ = "conversation_turns"

    # autoincrement id is the per-session ordering key
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    session_id = db.Column(db.String(64), nullable=False, index=True)

    user_query = db.Column(db.Text, nullable=False)
    parsed_query = db.Column(db.Text, nullable=False)     # QueryDescriptor as JSON
    rendered_query = db.Column(db.Text, nullable=False)
    result_count = db.Column(db.Integer, nullable=False, default=0)

    timestamp = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
