import uuid
from datetime import datetime, timezone
from typing import Optional

from ..models.security_event import SecurityEvent
from ..schemas.dataset_schema import RawSecurityRecord

# raw ingestion label -> normalized category, unknown labels pass through
CATEGORY_MAP = {
    "login_failed": "failed_login",
    "login_success": "successful_login",
    "malware_detected": "malware",
    "vpn_access": "vpn_connection",
    "suspicious_activity": "suspicious",
}

RISK_BY_LABEL = {
    "high_risk": "high",
    "suspicious": "medium",
}

MFA_MARKERS = ("mfa", "multi-factor")


def parse_timestamp(v) -> Optional[datetime]:
    """ISO string / epoch milliseconds / datetime -> aware UTC datetime, None when unparseable."""
    if v is None or v == "" or isinstance(v, bool):
        return None
    if isinstance(v, datetime):
        dt = v
    elif isinstance(v, (int, float)):
        try:
            return datetime.fromtimestamp(v / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(v, str):
        try:
            dt = datetime.fromisoformat(v.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def normalize_category(raw_category: str) -> str:
    return CATEGORY_MAP.get(raw_category, raw_category)


def derive_risk_level(label: Optional[str]) -> str:
    return RISK_BY_LABEL.get(label or "", "low")


def detect_auth_method(signature: Optional[str], message: Optional[str]) -> Optional[str]:
    for text in (signature, message):
        if not text:
            continue
        lowered = text.lower()
        if any(marker in lowered for marker in MFA_MARKERS):
            return "mfa"
    return None


def normalize(record: RawSecurityRecord) -> SecurityEvent:
    """
    Single schema:
      id, timestamp, source/destination address, event_category,
      message, signature, source/destination service, auth_method,
      username, label, risk_level
    """
    service = "vpn" if record.event_type == "vpn_access" else None

    return SecurityEvent(
        id=str(uuid.uuid4()),
        timestamp=parse_timestamp(record.timestamp),

        source_address=record.source_ip,
        destination_address=record.destination_ip,

        event_category=normalize_category(record.event_type),
        message=record.details or "",
        signature=record.signature,

        source_service=service,
        destination_service=service,
        auth_method=detect_auth_method(record.signature, record.details or ""),

        username=record.username or None,
        label=record.label,
        risk_level=derive_risk_level(record.label),
    )
