from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional, Tuple

from ..models.query import QueryDescriptor, TimeRange
from ..models.security_event import SecurityEvent

# Filter kinds, in chain order. The query renderer walks the same chain.
TIME = "time"
EVENT_CATEGORY = "event_category"
VPN = "vpn"
MFA = "mfa"
SUSPICIOUS = "suspicious"
USERNAME = "username"
SOURCE_ADDRESSES = "source_addresses"
EXCLUDED_ADDRESSES = "excluded_addresses"

FilterChain = List[Tuple[str, Any]]


def _parse_bound(value: str) -> datetime:
    value = value.strip()
    if "T" in value:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    d = date.fromisoformat(value)
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


def adjusted_end(time_range: TimeRange) -> str:
    """
    Exclusive upper bound as text. Date-only end -> next day (whole end day
    included); full timestamp end -> unchanged (half-open as given).
    """
    if time_range.end_is_date_only:
        return (date.fromisoformat(time_range.end.strip()) + timedelta(days=1)).isoformat()
    return time_range.end


def resolve_time_bounds(time_range: TimeRange) -> Tuple[datetime, datetime]:
    """[start, end) as aware datetimes."""
    return _parse_bound(time_range.start), _parse_bound(adjusted_end(time_range))


def build_filter_chain(descriptor: QueryDescriptor) -> FilterChain:
    chain: FilterChain = []
    f = descriptor.filters

    if descriptor.time_range:
        chain.append((TIME, descriptor.time_range))
    if f.event_category:
        chain.append((EVENT_CATEGORY, f.event_category))
    if f.vpn:
        chain.append((VPN, True))
    if f.mfa:
        chain.append((MFA, True))
    if f.suspicious:
        chain.append((SUSPICIOUS, True))
    if f.username:
        chain.append((USERNAME, f.username))
    if f.source_addresses:
        chain.append((SOURCE_ADDRESSES, f.source_addresses))
    if f.excluded_addresses:
        chain.append((EXCLUDED_ADDRESSES, f.excluded_addresses))

    return chain


def _time_predicate(time_range: TimeRange):
    start, end = resolve_time_bounds(time_range)

    def _match(ev: SecurityEvent) -> bool:
        # events without a usable timestamp can't fall inside any range
        return ev.timestamp is not None and start <= ev.timestamp < end
    return _match


def _touches(ev: SecurityEvent, addresses) -> bool:
    return ev.source_address in addresses or ev.destination_address in addresses


def predicate_for(kind: str, value: Any):
    if kind == TIME:
        return _time_predicate(value)
    if kind == EVENT_CATEGORY:
        return lambda ev: ev.event_category == value
    if kind == VPN:
        return lambda ev: ev.source_service == "vpn" or ev.destination_service == "vpn"
    if kind == MFA:
        return lambda ev: ev.auth_method == "mfa"
    if kind == SUSPICIOUS:
        return lambda ev: ev.label == "suspicious"
    if kind == USERNAME:
        return lambda ev: ev.username == value
    if kind == SOURCE_ADDRESSES:
        addresses = frozenset(value)
        return lambda ev: _touches(ev, addresses)
    if kind == EXCLUDED_ADDRESSES:
        addresses = frozenset(value)
        return lambda ev: not _touches(ev, addresses)
    raise ValueError(f"unknown filter kind: {kind}")


def apply(chain: FilterChain, events: Iterable[SecurityEvent]) -> List[SecurityEvent]:
    """Sequential narrowing (logical AND), input order preserved."""
    results = list(events)
    for kind, value in chain:
        match = predicate_for(kind, value)
        results = [ev for ev in results if match(ev)]
    return results


def filter_events(descriptor: QueryDescriptor, events: Iterable[SecurityEvent],
                  chain: Optional[FilterChain] = None) -> List[SecurityEvent]:
    return apply(chain if chain is not None else build_filter_chain(descriptor), events)
