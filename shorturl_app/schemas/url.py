from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime


class ShortenRequest(BaseModel):
    url: str = Field(..., min_length=1, description="The original URL to be shortened")
    custom_code: Optional[str] = Field(
        None,
        max_length=16,
        pattern=r"^[A-Za-z0-9]+$",
        description="Optional alphanumeric short code chosen by the user",
    )

    @field_validator("custom_code", mode="before")
    @classmethod
    def empty_code_means_generated(cls, value):
        # Frontends send "" when the custom code box is left blank
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ShortenResponse(BaseModel):
    """Result of POST /api/shorten"""
    short_url: str
    original_url: str
    short_code: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
