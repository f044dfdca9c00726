from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union


class RawSecurityRecord(BaseModel):
    """One record of the external SIEM dataset, before normalization."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    timestamp: Union[str, int, float, None] = Field(..., alias="@timestamp", description="ISO 8601 string or epoch milliseconds")
    source_ip: str = Field(..., description="source address")
    destination_ip: Optional[str] = None
    event_type: str = Field(..., description="raw category e.g. login_failed, vpn_access")
    details: Optional[str] = Field(None, description="free-text message")
    signature: Optional[str] = None
    username: Optional[str] = None
    label: Optional[str] = Field(None, description="high_risk/suspicious/...")
