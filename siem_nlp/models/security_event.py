from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class SecurityEvent:
    id: str

    timestamp: Optional[datetime]          # aware UTC, None if the raw value was unparseable

    source_address: str
    destination_address: Optional[str]

    event_category: str                    # failed_login/successful_login/malware/vpn_connection/...
    message: str
    signature: Optional[str] = None

    source_service: Optional[str] = None   # "vpn" for vpn_access records
    destination_service: Optional[str] = None
    auth_method: Optional[str] = None      # "mfa" or None

    username: Optional[str] = None
    label: Optional[str] = None            # raw: high_risk/suspicious/...
    risk_level: str = "low"                # high/medium/low

    def to_dict(self) -> Dict[str, Any]:
        ts = None
        if self.timestamp is not None:
            ts = self.timestamp.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

        return {
            "id": self.id,
            "timestamp": ts,

            "source_address": self.source_address,
            "destination_address": self.destination_address,

            "event_category": self.event_category,
            "message": self.message,
            "signature": self.signature,

            "source_service": self.source_service,
            "destination_service": self.destination_service,
            "auth_method": self.auth_method,

            "username": self.username,
            "label": self.label,
            "risk_level": self.risk_level,
        }
