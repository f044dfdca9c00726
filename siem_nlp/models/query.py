from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional, Tuple

INTENT_INVESTIGATE = "investigate"
INTENT_REPORT = "report"


@dataclass(frozen=True)
class TimeRange:
    """
    ISO bounds. A bound without "T" is date-only (YYYY-MM-DD) and the end
    covers the whole day; a bound with "T" is a full UTC timestamp.
    """
    start: str
    end: str

    @property
    def end_is_date_only(self) -> bool:
        return "T" not in self.end

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start, "end": self.end}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["TimeRange"]:
        if not isinstance(data, dict) or not data.get("start") or not data.get("end"):
            return None
        return cls(start=str(data["start"]), end=str(data["end"]))


@dataclass(frozen=True)
class QueryFilters:
    # None means "not requested"
    event_category: Optional[str] = None
    vpn: Optional[bool] = None
    mfa: Optional[bool] = None
    suspicious: Optional[bool] = None
    username: Optional[str] = None
    source_addresses: Optional[Tuple[str, ...]] = None
    excluded_addresses: Optional[Tuple[str, ...]] = None

    def overlay(self, newer: "QueryFilters") -> "QueryFilters":
        """Return a copy of self with every field present in `newer` taking precedence."""
        changes = {}
        for f in fields(self):
            value = getattr(newer, f.name)
            if value is not None:
                changes[f.name] = value
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            out[f.name] = list(value) if isinstance(value, tuple) else value
        return out

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "QueryFilters":
        data = data if isinstance(data, dict) else {}

        def _addresses(key):
            v = data.get(key)
            if not v:
                return None
            return tuple(str(x) for x in v)

        def _flag(key):
            return True if data.get(key) else None

        return cls(
            event_category=data.get("event_category") or None,
            vpn=_flag("vpn"),
            mfa=_flag("mfa"),
            suspicious=_flag("suspicious"),
            username=data.get("username") or None,
            source_addresses=_addresses("source_addresses"),
            excluded_addresses=_addresses("excluded_addresses"),
        )


@dataclass(frozen=True)
class QueryDescriptor:
    intent: str
    raw_text: str
    filters: QueryFilters = field(default_factory=QueryFilters)
    time_range: Optional[TimeRange] = None
    context: Optional["QueryDescriptor"] = None

    def to_dict(self, include_context: bool = True) -> Dict[str, Any]:
        out = {
            "intent": self.intent,
            "time_range": self.time_range.to_dict() if self.time_range else None,
            "filters": self.filters.to_dict(),
            "raw_text": self.raw_text,
        }
        if include_context and self.context is not None:
            # one level only, older turns stay in the conversation log
            out["context"] = self.context.to_dict(include_context=False)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueryDescriptor":
        context = data.get("context")
        return cls(
            intent=data.get("intent") or INTENT_INVESTIGATE,
            raw_text=data.get("raw_text") or "",
            filters=QueryFilters.from_dict(data.get("filters")),
            time_range=TimeRange.from_dict(data.get("time_range")),
            context=cls.from_dict(context) if isinstance(context, dict) else None,
        )
