import logging
from collections import Counter
from datetime import timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from ..models.query import QueryDescriptor
from ..models.query_result import ChartSeries, QueryResult, QueryStats
from ..models.security_event import SecurityEvent

log = logging.getLogger(__name__)

TOP_N = 5
DISPLAY_LIMIT = 20

NO_EVENTS_NARRATIVE = "No events found matching the specified criteria."


def top_n(values: Iterable[str], n: int = TOP_N) -> List[Tuple[str, int]]:
    """Descending count; ties keep first-encounter order (stable sort)."""
    counts = Counter(values)
    return sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:n]


def hourly_timeline(events: Iterable[SecurityEvent]) -> List[Tuple[str, int]]:
    counts = Counter()
    for ev in events:
        if ev.timestamp is None:
            log.debug("timeline skip: event %s has no usable timestamp", ev.id)
            continue
        counts[ev.timestamp.astimezone(timezone.utc).strftime("%H:00")] += 1
    return [(hour, counts[hour]) for hour in sorted(counts)]


def _series(pairs: List[Tuple[str, int]]) -> ChartSeries:
    return ChartSeries(labels=tuple(k for k, _ in pairs), values=tuple(v for _, v in pairs))


def narrative_for(total: int, high_risk: int, unique_sources: int) -> str:
    if total == 0:
        return NO_EVENTS_NARRATIVE
    return (
        f"Found {total} matching security events. "
        f"Analysis shows {high_risk} high-risk events from {unique_sources} unique source IPs."
    )


def time_range_label(descriptor: Optional[QueryDescriptor]) -> str:
    if descriptor is None or descriptor.time_range is None:
        return "All time"
    return f"{descriptor.time_range.start} to {descriptor.time_range.end}"


def aggregate(events: Sequence[SecurityEvent], descriptor: Optional[QueryDescriptor] = None,
              rendered_query: str = "", display_limit: int = DISPLAY_LIMIT) -> QueryResult:
    events = list(events)

    total = len(events)
    unique_sources = len({ev.source_address for ev in events})
    usernames = [ev.username for ev in events if ev.username]
    high_risk = sum(1 for ev in events if ev.risk_level == "high")

    return QueryResult(
        narrative=narrative_for(total, high_risk, unique_sources),
        rendered_query=rendered_query,
        events=tuple(events[:display_limit]),
        stats=QueryStats(
            total_events=total,
            unique_source_addresses=unique_sources,
            unique_usernames=len(set(usernames)),
            high_risk_count=high_risk,
            time_range=time_range_label(descriptor),
        ),
        source_ip=_series(top_n(ev.source_address for ev in events)),
        timeline=_series(hourly_timeline(events)),
        users=_series(top_n(usernames)),
    )
