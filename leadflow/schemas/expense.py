# leadflow/schemas/expense.py
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from leadflow.models.enums import ExpenseType


class ExpenseCreate(BaseModel):
    type: ExpenseType
    concept: str = Field(..., min_length=2, max_length=255)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    date: Optional[dt.date] = Field(None, description="Defaults to today")
    notes: Optional[str] = Field(None, max_length=5000)
    landing_id: Optional[int] = Field(None, ge=1)


class ExpenseUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Optional[ExpenseType] = None
    concept: Optional[str] = Field(None, min_length=2, max_length=255)
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    date: Optional[dt.date] = None
    notes: Optional[str] = Field(None, max_length=5000)
    landing_id: Optional[int] = Field(None, ge=1)

    @field_validator("type", "concept", "amount", "date")
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class ExpenseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: ExpenseType
    concept: str
    amount: Decimal
    date: dt.date
    notes: Optional[str] = None
    landing_id: Optional[int] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class ExpenseSummaryResponse(BaseModel):
    total: Decimal
    by_type: Dict[str, Decimal]


class ExpenseListResponse(BaseModel):
    items: List[ExpenseResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    summary: ExpenseSummaryResponse
