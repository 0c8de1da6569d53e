# leadflow/schemas/lead.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from leadflow.models.enums import LeadPriority, LeadSource, LeadState
from leadflow.schemas.activity import ActivityResponse
from leadflow.services.normalization import normalize_email, normalize_phone

Money = Optional[Decimal]


def _money_field(**kwargs):
    return Field(None, ge=0, max_digits=12, decimal_places=2, **kwargs)


class LeadBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=255, description="Contact name")
    phone: str = Field(..., min_length=9, max_length=20, description="Contact phone")
    email: Optional[EmailStr] = Field(None, description="Contact email")
    locality: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = Field(None, max_length=2000)
    services: List[str] = Field(default_factory=list, description="Requested services")
    notes: Optional[str] = Field(None, max_length=5000)

    @field_validator("phone", mode="before")
    def strip_phone(cls, v):
        return normalize_phone(v)

    @field_validator("email", mode="before")
    def empty_email(cls, v):
        return normalize_email(v)


class LeadCreate(LeadBase):
    """Manually entered lead. Landing leads only arrive through public ingestion."""

    model_config = ConfigDict(extra="forbid")

    source: LeadSource = LeadSource.DIRECT
    priority: LeadPriority = LeadPriority.MEDIUM
    quoted_amount: Money = _money_field()

    @field_validator("source")
    def reject_landing_source(cls, v):
        if v is LeadSource.LANDING:
            raise ValueError("source 'landing' is reserved for public ingestion")
        return v


class LeadUpdate(BaseModel):
    """Partial edit. Pipeline state changes go through the state endpoint."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=2, max_length=255)
    phone: Optional[str] = Field(None, min_length=9, max_length=20)
    email: Optional[EmailStr] = None
    locality: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = Field(None, max_length=2000)
    services: Optional[List[str]] = None
    notes: Optional[str] = Field(None, max_length=5000)
    source: Optional[LeadSource] = None
    priority: Optional[LeadPriority] = None
    quoted_amount: Money = _money_field()
    sale_amount: Money = _money_field()
    commission_paid: Optional[bool] = None

    @field_validator("phone", mode="before")
    def strip_phone(cls, v):
        return normalize_phone(v)

    @field_validator("email", mode="before")
    def empty_email(cls, v):
        return normalize_email(v)

    @field_validator("name", "phone", "source", "priority", "services", "commission_paid")
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("source")
    def reject_landing_source(cls, v):
        if v is LeadSource.LANDING:
            raise ValueError("source 'landing' is reserved for public ingestion")
        return v


class LeadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: str
    email: Optional[str] = None
    locality: Optional[str] = None
    address: Optional[str] = None
    services: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    state: LeadState
    source: LeadSource
    priority: LeadPriority
    quoted_amount: Money = None
    quote_date: Optional[datetime] = None
    sale_amount: Money = None
    sale_date: Optional[datetime] = None
    commission_amount: Money = None
    commission_paid: bool = False
    landing_id: Optional[int] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_term: Optional[str] = None
    utm_content: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class LeadDetailResponse(LeadResponse):
    activities: List[ActivityResponse] = Field(default_factory=list)


class StateChangeRequest(BaseModel):
    """Body of ``PUT /leads/{id}/state`` as sent by the pipeline board."""

    model_config = ConfigDict(populate_by_name=True)

    state: LeadState = Field(..., alias="estado")
    note: Optional[str] = Field(None, alias="nota", max_length=2000)
    sale_amount: Money = _money_field(alias="importeVenta")


class BulkActionRequest(BaseModel):
    # action and value are checked by the bulk service so that unknown
    # actions surface as invalid_argument rather than validation_error
    ids: List[int]
    action: str
    value: Optional[str] = None


class BulkActionResponse(BaseModel):
    success: bool = True
    message: str
    count: int
    missing_ids: List[int] = Field(default_factory=list)
