from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .security_event import SecurityEvent


@dataclass(frozen=True)
class ChartSeries:
    labels: Tuple[str, ...] = ()
    values: Tuple[int, ...] = ()

    def to_dict(self) -> Dict[str, List[Any]]:
        return {"labels": list(self.labels), "values": list(self.values)}


@dataclass(frozen=True)
class QueryStats:
    total_events: int
    unique_source_addresses: int
    unique_usernames: int
    high_risk_count: int
    time_range: str


@dataclass(frozen=True)
class QueryResult:
    narrative: str
    rendered_query: str
    events: Tuple[SecurityEvent, ...]
    stats: QueryStats
    source_ip: ChartSeries = field(default_factory=ChartSeries)
    timeline: ChartSeries = field(default_factory=ChartSeries)
    users: ChartSeries = field(default_factory=ChartSeries)

    @property
    def chart_data(self) -> Dict[str, ChartSeries]:
        return {"source_ip": self.source_ip, "timeline": self.timeline, "users": self.users}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "narrative": self.narrative,
            "rendered_query": self.rendered_query,
            "events": [e.to_dict() for e in self.events],
            "chart_data": {k: v.to_dict() for k, v in self.chart_data.items()},
            "stats": {
                "total_events": self.stats.total_events,
                "unique_source_addresses": self.stats.unique_source_addresses,
                "unique_usernames": self.stats.unique_usernames,
                "high_risk_count": self.stats.high_risk_count,
                "time_range": self.stats.time_range,
            },
        }
