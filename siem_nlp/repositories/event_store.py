import json
import logging
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from ..models.security_event import SecurityEvent
from ..schemas.dataset_schema import RawSecurityRecord
from ..services.normalize_service import normalize


class DatasetLoadError(Exception):
    pass


class EventStore:
    """Read-only, in-memory event collection. Populated once, never mutated."""

    def __init__(self, events: Iterable[SecurityEvent] = ()):
        self._events: Tuple[SecurityEvent, ...] = tuple(events)

    def __iter__(self) -> Iterator[SecurityEvent]:
        return iter(self._events)

    def __len__(self) -> int:
        return len(self._events)

    @property
    def events(self) -> Sequence[SecurityEvent]:
        return self._events

    def head(self, n: int) -> List[SecurityEvent]:
        return list(self._events[:max(0, n)])

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> "EventStore":
        """Validate + normalize raw records. Raises DatasetLoadError on the first bad record."""
        events = []
        for idx, raw in enumerate(records):
            try:
                rec = RawSecurityRecord.model_validate(raw)
            except ValidationError as e:
                raise DatasetLoadError(f"record #{idx} invalid: {e.errors()}") from e
            events.append(normalize(rec))
        return cls(events)

    @classmethod
    def load(cls, path, logger: Optional[logging.Logger] = None) -> "EventStore":
        """
        Dataset file -> store. Missing or malformed file is not fatal:
        the store starts empty and a warning is logged.
        """
        logger = logger or logging.getLogger(__name__)
        p = Path(path)

        if not p.exists():
            logger.warning("DATASET not found path=%s, starting with empty event store", p)
            return cls()

        try:
            with p.open("r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, list):
                raise DatasetLoadError(f"expected a JSON array, got {type(data).__name__}")
            store = cls.from_records(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, DatasetLoadError) as e:
            logger.warning("DATASET load failed path=%s: %s, starting with empty event store", p, e)
            return cls()

        logger.info("DATASET loaded path=%s events=%s", p, len(store))
        return store
