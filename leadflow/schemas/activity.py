# leadflow/schemas/activity.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from leadflow.models.enums import MANUAL_ACTIVITY_TYPES, ActivityType, LeadState


class ActivityCreate(BaseModel):
    type: ActivityType
    description: str = Field(..., min_length=1, max_length=5000)
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("type")
    def manual_type_only(cls, v):
        if v not in MANUAL_ACTIVITY_TYPES:
            allowed = sorted(t.value for t in MANUAL_ACTIVITY_TYPES)
            raise ValueError(f"type must be one of {allowed}")
        return v


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lead_id: int
    type: ActivityType
    description: str
    previous_state: Optional[LeadState] = None
    new_state: Optional[LeadState] = None
    metadata: Optional[Dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("meta", "metadata")
    )
    created_at: datetime
