import json
import logging
from datetime import datetime, timezone

import pytest

from siem_nlp.repositories.event_store import DatasetLoadError, EventStore
from siem_nlp.schemas.dataset_schema import RawSecurityRecord
from siem_nlp.services.normalize_service import derive_risk_level, normalize, normalize_category

LOGGER = "tests.dataset"


def _normalized(**raw):
    base = {"@timestamp": "2024-03-14T08:15:00Z", "source_ip": "10.0.0.1", "event_type": "login_failed", "details": ""}
    base.update(raw)
    return normalize(RawSecurityRecord.model_validate(base))


@pytest.mark.parametrize("raw,expected", [
    ("login_failed", "failed_login"),
    ("login_success", "successful_login"),
    ("malware_detected", "malware"),
    ("vpn_access", "vpn_connection"),
    ("suspicious_activity", "suspicious"),
    ("port_scan", "port_scan"),
])
def test_category_normalization_table(raw, expected):
    assert normalize_category(raw) == expected
    assert _normalized(event_type=raw).event_category == expected


@pytest.mark.parametrize("label,expected", [
    ("high_risk", "high"),
    ("suspicious", "medium"),
    ("benign", "low"),
    (None, "low"),
    ("", "low"),
])
def test_risk_level_depends_only_on_label(label, expected):
    assert derive_risk_level(label) == expected
    assert _normalized(label=label, event_type="malware_detected").risk_level == expected
    assert _normalized(label=label, event_type="vpn_access").risk_level == expected


def test_vpn_access_sets_both_services():
    ev = _normalized(event_type="vpn_access")
    assert ev.source_service == "vpn"
    assert ev.destination_service == "vpn"

    other = _normalized(event_type="login_success")
    assert other.source_service is None and other.destination_service is None


def test_mfa_detected_from_signature_or_message():
    assert _normalized(signature="Okta MFA push").auth_method == "mfa"
    assert _normalized(details="Passed Multi-Factor challenge").auth_method == "mfa"
    assert _normalized(details="password only").auth_method is None


def test_timestamp_parsed_as_utc():
    ev = _normalized(**{"@timestamp": "2024-03-14T08:15:00Z"})
    assert ev.timestamp == datetime(2024, 3, 14, 8, 15, tzinfo=timezone.utc)

    naive = _normalized(**{"@timestamp": "2024-03-14T08:15:00"})
    assert naive.timestamp.tzinfo is not None


def test_unparseable_timestamp_kept_as_none():
    ev = _normalized(**{"@timestamp": "yesterday-ish"})
    assert ev.timestamp is None
    assert ev.to_dict()["timestamp"] is None


def test_load_preserves_file_order(dataset_path, raw_records):
    store = EventStore.load(dataset_path, logger=logging.getLogger(LOGGER))

    assert len(store) == len(raw_records)
    assert [e.source_address for e in store] == [r["source_ip"] for r in raw_records]
    assert len({e.id for e in store}) == len(raw_records)
    assert store.head(2) == list(store.events[:2])


def test_missing_file_gives_empty_store(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger=LOGGER):
        store = EventStore.load(tmp_path / "nope.json", logger=logging.getLogger(LOGGER))

    assert len(store) == 0
    assert "not found" in caplog.text


@pytest.mark.parametrize("content", [
    "{not json",
    json.dumps({"records": []}),
    json.dumps([{"source_ip": "10.0.0.1"}]),
])
def test_malformed_file_gives_empty_store(tmp_path, caplog, content):
    p = tmp_path / "bad.json"
    p.write_text(content, encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger=LOGGER):
        store = EventStore.load(p, logger=logging.getLogger(LOGGER))

    assert len(store) == 0
    assert "load failed" in caplog.text


def test_from_records_rejects_invalid_record():
    with pytest.raises(DatasetLoadError):
        EventStore.from_records([{"@timestamp": "2024-03-14T08:15:00Z"}])


GOOD_RECORD = {
    "@timestamp": "2024-03-14T08:15:00Z",
    "source_ip": "10.0.0.1",
    "event_type": "login_failed",
    "details": "Invalid password",
}


def test_null_details_keeps_record():
    store = EventStore.from_records([GOOD_RECORD, dict(GOOD_RECORD, details=None)])

    assert len(store) == 2
    assert store.events[1].message == ""
    assert store.events[1].auth_method is None


def test_epoch_millisecond_timestamp_accepted():
    store = EventStore.from_records([GOOD_RECORD, dict(GOOD_RECORD, **{"@timestamp": 1710404100000})])

    assert len(store) == 2
    assert store.events[1].timestamp == datetime(2024, 3, 14, 8, 15, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", [None, "", float("nan"), 1e30])
def test_unusable_timestamp_values_keep_record_without_timestamp(value):
    store = EventStore.from_records([dict(GOOD_RECORD, **{"@timestamp": value})])

    assert len(store) == 1
    assert store.events[0].timestamp is None


def test_short_fractional_seconds_parse():
    ev = _normalized(**{"@timestamp": "2024-03-14T08:15:00.5Z"})
    assert ev.timestamp == datetime(2024, 3, 14, 8, 15, 0, 500000, tzinfo=timezone.utc)
