from pydantic import BaseModel, ConfigDict, Field


class ChatRequestIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    message: str = Field(..., min_length=1, description="natural-language question e.g. 'show failed logins from yesterday'")
