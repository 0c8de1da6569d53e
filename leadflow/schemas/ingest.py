# leadflow/schemas/ingest.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from leadflow.services.normalization import blank_to_none, normalize_email, normalize_phone


class PublicLeadIn(BaseModel):
    """Lead submitted by a landing page form.

    Keys on the wire are the ones the landing pages already send
    (``nombre``, ``telefono``, ...). Unknown keys are ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)

    name: str = Field(..., alias="nombre", min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    phone: str = Field(..., alias="telefono", min_length=9, max_length=20)
    locality: Optional[str] = Field(None, alias="localidad", max_length=255)
    address: Optional[str] = Field(None, alias="direccion", max_length=2000)
    services: List[str] = Field(default_factory=list, alias="servicios")
    notes: Optional[str] = Field(None, alias="notas", max_length=5000)

    utm_source: Optional[str] = Field(None, max_length=255)
    utm_medium: Optional[str] = Field(None, max_length=255)
    utm_campaign: Optional[str] = Field(None, max_length=255)
    utm_term: Optional[str] = Field(None, max_length=255)
    utm_content: Optional[str] = Field(None, max_length=255)

    @field_validator("phone", mode="before")
    def strip_phone(cls, v):
        return normalize_phone(v)

    @field_validator("email", mode="before")
    def clean_email(cls, v):
        return normalize_email(v)

    @field_validator(
        "locality",
        "address",
        "notes",
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        mode="before",
    )
    def empty_to_none(cls, v):
        return blank_to_none(v)

    @field_validator("services", mode="before")
    def null_services(cls, v):
        return [] if v is None else v

    def utm(self) -> dict:
        return {
            "source": self.utm_source,
            "medium": self.utm_medium,
            "campaign": self.utm_campaign,
            "term": self.utm_term,
            "content": self.utm_content,
        }


class IngestResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    lead_id: int = Field(..., alias="leadId")
    message: str = "Lead received"
