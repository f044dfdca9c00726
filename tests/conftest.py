import json

import pytest

from factories import FIXED_NOW
from siem_nlp import create_app

RAW_RECORDS = [
    {
        "@timestamp": "2024-03-14T08:15:00Z",
        "source_ip": "10.0.0.5",
        "destination_ip": "192.168.1.10",
        "event_type": "login_failed",
        "details": "Invalid password for jdoe",
        "username": "jdoe",
        "label": "high_risk",
    },
    {
        "@timestamp": "2024-03-14T09:20:00Z",
        "source_ip": "10.0.0.5",
        "destination_ip": "192.168.1.10",
        "event_type": "login_failed",
        "details": "Bad password",
        "username": "alice",
        "label": "suspicious",
    },
    {
        "@timestamp": "2024-03-14T23:59:59Z",
        "source_ip": "10.0.0.7",
        "destination_ip": "192.168.1.20",
        "event_type": "malware_detected",
        "details": "Trojan quarantined",
        "signature": "Trojan.Generic",
        "username": "jdoe",
        "label": "high_risk",
    },
    {
        "@timestamp": "2024-03-15T00:00:00Z",
        "source_ip": "10.0.0.8",
        "destination_ip": "192.168.1.1",
        "event_type": "vpn_access",
        "details": "VPN session established",
        "signature": "VPN login with MFA",
        "username": "bob",
    },
    {
        "@timestamp": "2024-03-13T12:00:00Z",
        "source_ip": "10.0.0.9",
        "event_type": "login_success",
        "details": "User authenticated via multi-factor push",
        "username": "alice",
    },
    {
        "@timestamp": "2024-03-15T09:30:00Z",
        "source_ip": "172.16.0.3",
        "destination_ip": "192.168.1.20",
        "event_type": "suspicious_activity",
        "details": "Unusual outbound volume",
        "label": "suspicious",
    },
    {
        "@timestamp": "not-a-timestamp",
        "source_ip": "10.0.0.5",
        "event_type": "port_scan",
        "details": "Sequential port sweep",
    },
]


@pytest.fixture
def raw_records():
    return [dict(r) for r in RAW_RECORDS]


@pytest.fixture
def dataset_path(tmp_path, raw_records):
    p = tmp_path / "mock_data.json"
    p.write_text(json.dumps(raw_records), encoding="utf-8")
    return p


def _make_app(dataset_path):
    return create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SIEM_DATASET_PATH": str(dataset_path),
        "CLOCK": lambda: FIXED_NOW,
    })


@pytest.fixture
def app(dataset_path):
    return _make_app(dataset_path)


@pytest.fixture
def empty_app(tmp_path):
    return _make_app(tmp_path / "missing.json")


@pytest.fixture
def client(app):
    return app.test_client()
