# leadflow/schemas/landing.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

SLUG_PATTERN = r"^[a-z0-9-]+$"
URL_PATTERN = r"^https?://\S+$"


class LandingCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    slug: str = Field(..., min_length=2, max_length=50, pattern=SLUG_PATTERN)
    url: Optional[str] = Field(None, max_length=500, pattern=URL_PATTERN)
    description: Optional[str] = Field(None, max_length=2000)
    notify_email: bool = True
    notify_push: bool = True


class LandingUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    url: Optional[str] = Field(None, max_length=500, pattern=URL_PATTERN)
    description: Optional[str] = Field(None, max_length=2000)
    active: Optional[bool] = None
    notify_email: Optional[bool] = None
    notify_push: Optional[bool] = None


class LandingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    url: Optional[str] = None
    description: Optional[str] = None
    api_key: str
    active: bool
    notify_email: bool
    notify_push: bool
    created_at: datetime
    updated_at: datetime


class LandingListItem(LandingResponse):
    lead_count: int = 0


class ApiKeyResponse(BaseModel):
    api_key: str
