"""
Natural-language question -> QueryDescriptor.

Not a grammar: an ordered rule table of lowercase phrase sets evaluated
in a fixed order over the lowercased text. Later rules overwrite earlier
single-valued fields (category detection: malware is checked after the
login phrases and wins).
"""
import re
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

from ..models.query import (
    INTENT_INVESTIGATE,
    INTENT_REPORT,
    QueryDescriptor,
    QueryFilters,
    TimeRange,
)

REPORT_PHRASES = ("summary", "report", "generate a summary", "chart", "graphs", "monthly report")
QUANTITY_PHRASES = ("how many", "count", "number of", "total", "statistics", "stats")

FAILED_LOGIN_PHRASES = (
    "failed login", "failed logins", "authentication failure", "auth failure",
    "login failure", "failed authentication", "invalid credentials", "bad password",
)
SUCCESSFUL_LOGIN_PHRASES = (
    "successful login", "successful logins", "login success",
    "successful authentication", "valid login", "authenticated user",
)
MALWARE_PHRASES = (
    "malware", "malicious", "virus", "trojan", "ransomware", "threat",
    "infection", "malware detection", "malware alert",
)

VPN_PHRASES = ("vpn", "remote access", "vpn connection", "vpn session")
MFA_PHRASES = ("mfa", "multi-factor", "two-factor", "2fa")
SUSPICIOUS_PHRASES = ("suspicious", "unusual", "anomaly", "anomalous")

# order matters: the last matching category wins
CATEGORY_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (FAILED_LOGIN_PHRASES, "failed_login"),
    (SUCCESSFUL_LOGIN_PHRASES, "successful_login"),
    (MALWARE_PHRASES, "malware"),
]

FLAG_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (VPN_PHRASES, "vpn"),
    (MFA_PHRASES, "mfa"),
    (SUSPICIOUS_PHRASES, "suspicious"),
]

IPV4_LIKE_RE = re.compile(r"\b(\d{1,3}(?:\.\d{1,3}){3})\b")
IPV4_FULL_RE = re.compile(r"^\d{1,3}(?:\.\d{1,3}){3}$")
EXCLUDE_RE = re.compile(r"exclude\s+(\d{1,3}(?:\.\d{1,3}){3})")
USER_RE = re.compile(r"(?:user(?:name)?\s*[:=]?\s*)([A-Za-z][\w.\-]+)", re.IGNORECASE)
FOR_USER_RE = re.compile(r"\bfor\s+([A-Za-z][\w.\-]+)\b", re.IGNORECASE)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _contains_any(text: str, phrases) -> bool:
    return any(p in text for p in phrases)


def _day(d: date) -> str:
    return d.isoformat()


def _stamp(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _first_of_month(d: date) -> date:
    return d.replace(day=1)


# ----------------------------
# Time triggers
# ----------------------------
def _yesterday(now: datetime) -> TimeRange:
    d = now.date() - timedelta(days=1)
    return TimeRange(_day(d), _day(d))


def _today(now: datetime) -> TimeRange:
    return TimeRange(_day(now.date()), _day(now.date()))


def _rolling(delta: timedelta) -> Callable[[datetime], TimeRange]:
    def _range(now: datetime) -> TimeRange:
        return TimeRange(_stamp(now - delta), _stamp(now))
    return _range


def _last_week(now: datetime) -> TimeRange:
    # previous calendar week, Monday..Sunday
    today = now.date()
    monday = today - timedelta(days=today.weekday() + 7)
    return TimeRange(_day(monday), _day(monday + timedelta(days=6)))


def _this_week(now: datetime) -> TimeRange:
    today = now.date()
    return TimeRange(_day(today - timedelta(days=today.weekday())), _day(today))


def _last_month(now: datetime) -> TimeRange:
    last_day = _first_of_month(now.date()) - timedelta(days=1)
    return TimeRange(_day(_first_of_month(last_day)), _day(last_day))


def _this_month(now: datetime) -> TimeRange:
    today = now.date()
    return TimeRange(_day(_first_of_month(today)), _day(today))


# mutually exclusive, first match wins
TIME_RULES: List[Tuple[Tuple[str, ...], Callable[[datetime], TimeRange]]] = [
    (("yesterday",), _yesterday),
    (("today",), _today),
    (("past week",), _rolling(timedelta(days=7))),
    (("last week",), _last_week),
    (("this week",), _this_week),
    (("past month",), _last_month),
    (("last month",), _last_month),
    (("this month",), _this_month),
    (("last 24 hours", "past 24 hours"), _rolling(timedelta(hours=24))),
]


# ----------------------------
# Extraction steps
# ----------------------------
def detect_intent(text: str) -> str:
    if _contains_any(text, REPORT_PHRASES):
        return INTENT_REPORT
    return INTENT_INVESTIGATE


def resolve_time_range(text: str, now: Optional[datetime] = None) -> Optional[TimeRange]:
    now = now or _utcnow()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)

    for phrases, build in TIME_RULES:
        if _contains_any(text, phrases):
            return build(now)
    return None


def detect_category(text: str) -> Optional[str]:
    category = None
    for phrases, value in CATEGORY_RULES:
        if _contains_any(text, phrases):
            category = value
    return category


def detect_flags(text: str) -> Dict[str, bool]:
    return {name: True for phrases, name in FLAG_RULES if _contains_any(text, phrases)}


def _unique(values) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(values))


def extract_addresses(text: str) -> Optional[Tuple[str, ...]]:
    found = IPV4_LIKE_RE.findall(text)
    return _unique(found) if found else None


def extract_excluded_addresses(text: str) -> Optional[Tuple[str, ...]]:
    found = EXCLUDE_RE.findall(text)
    return _unique(found) if found else None


def extract_username(text: str) -> Optional[str]:
    m = USER_RE.search(text) or FOR_USER_RE.search(text)
    if not m:
        return None
    candidate = m.group(1)
    if IPV4_FULL_RE.match(candidate):
        return None
    return candidate


def interpret(text: str, prior: Optional[QueryDescriptor] = None, now: Optional[datetime] = None) -> QueryDescriptor:
    lowered = (text or "").lower()

    intent = detect_intent(lowered)
    time_range = resolve_time_range(lowered, now)

    flags = detect_flags(lowered)
    filters = QueryFilters(
        event_category=detect_category(lowered),
        vpn=flags.get("vpn"),
        mfa=flags.get("mfa"),
        suspicious=flags.get("suspicious"),
        username=extract_username(lowered),
        source_addresses=extract_addresses(lowered),
        excluded_addresses=extract_excluded_addresses(lowered),
    )

    # quantity questions are a second, independent trigger for report
    if _contains_any(lowered, QUANTITY_PHRASES):
        intent = INTENT_REPORT

    return QueryDescriptor(
        intent=intent,
        raw_text=text,
        filters=filters,
        time_range=time_range,
        context=prior,
    )


def is_follow_up(text: str, word_limit: int = 6) -> bool:
    return len((text or "").split()) < word_limit


def merge_context(descriptor: QueryDescriptor, prior: Optional[QueryDescriptor],
                  word_limit: int = 6) -> QueryDescriptor:
    """
    Short follow-up questions ("now show vpn ones") continue the prior turn:
    prior filters persist unless overridden, prior time range is inherited
    when the new question has none.
    """
    if prior is None or not is_follow_up(descriptor.raw_text, word_limit):
        return descriptor

    return replace(
        descriptor,
        filters=prior.filters.overlay(descriptor.filters),
        time_range=descriptor.time_range or prior.time_range,
    )
