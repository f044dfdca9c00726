import json
from typing import List, Optional

from ..extensions import db
from ..models.conversation_turn import ConversationTurn
from ..models.query import QueryDescriptor


class ConversationRepository:
    def list_turns(self, session_id: str) -> List[ConversationTurn]:
        return (
            ConversationTurn.query
            .filter_by(session_id=session_id)
            .order_by(ConversationTurn.id.asc())
            .all()
        )

    def last_turn(self, session_id: str) -> Optional[ConversationTurn]:
        return (
            ConversationTurn.query
            .filter_by(session_id=session_id)
            .order_by(ConversationTurn.id.desc())
            .first()
        )

    def last_descriptor(self, session_id: str) -> Optional[QueryDescriptor]:
        turn = self.last_turn(session_id)
        if not turn:
            return None
        return descriptor_of(turn)

    def append_turn(self, *, session_id: str, user_query: str, descriptor: QueryDescriptor,
                    rendered_query: str, result_count: int) -> ConversationTurn:
        # single-row insert: the append is atomic per session
        turn = ConversationTurn(
            session_id=session_id,
            user_query=user_query,
            parsed_query=json.dumps(descriptor.to_dict(), ensure_ascii=False),
            rendered_query=rendered_query,
            result_count=result_count,
        )
        db.session.add(turn)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return turn


def descriptor_of(turn: ConversationTurn) -> Optional[QueryDescriptor]:
    try:
        data = json.loads(turn.parsed_query) if turn.parsed_query else None
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    return QueryDescriptor.from_dict(data)


def turn_to_dict(turn: ConversationTurn) -> dict:
    descriptor = descriptor_of(turn)
    return {
        "id": turn.id,
        "session_id": turn.session_id,
        "user_query": turn.user_query,
        "parsed_query": descriptor.to_dict() if descriptor else None,
        "rendered_query": turn.rendered_query,
        "result_count": turn.result_count,
        "timestamp": turn.timestamp.isoformat() if turn.timestamp else None,
    }
