from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..models.query import QueryDescriptor
from ..models.query_result import QueryResult
from ..repositories.event_store import EventStore
from . import filter_engine, query_renderer, result_aggregator
from .query_interpreter import interpret, merge_context


@dataclass(frozen=True)
class TurnRecord:
    """What the caller appends to the session log once the request is answered."""
    user_query: str
    descriptor: QueryDescriptor
    rendered_query: str
    result_count: int


@dataclass(frozen=True)
class ChatOutcome:
    descriptor: QueryDescriptor
    rendered_query: str
    result: QueryResult
    turn: TurnRecord


class ChatService:
    def __init__(self, store: EventStore, *, display_limit: int = result_aggregator.DISPLAY_LIMIT,
                 follow_up_word_limit: int = 6, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.display_limit = display_limit
        self.follow_up_word_limit = follow_up_word_limit
        self.clock = clock

    def handle(self, text: str, history: Sequence[QueryDescriptor] = ()) -> ChatOutcome:
        """
        text + read-only prior descriptors (oldest first) -> answer.
        Text must already be validated non-empty by the caller.
        """
        prior = history[-1] if history else None
        now = self.clock() if self.clock else None

        descriptor = interpret(text, prior, now=now)
        descriptor = merge_context(descriptor, prior, self.follow_up_word_limit)

        chain = filter_engine.build_filter_chain(descriptor)
        rendered = query_renderer.render(descriptor)
        matched = filter_engine.apply(chain, self.store)

        result = result_aggregator.aggregate(
            matched, descriptor, rendered_query=rendered, display_limit=self.display_limit
        )

        return ChatOutcome(
            descriptor=descriptor,
            rendered_query=rendered,
            result=result,
            turn=TurnRecord(
                user_query=text,
                descriptor=descriptor,
                rendered_query=rendered,
                result_count=result.stats.total_events,
            ),
        )
