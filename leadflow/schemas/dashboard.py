# leadflow/schemas/dashboard.py
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field

from leadflow.models.enums import LeadSource, LeadState


class DashboardKpis(BaseModel):
    total_leads: int
    new_leads: int
    won_count: int
    total_sales: Decimal
    total_commissions: Decimal
    pipeline_value: Decimal
    conversion_rate: float = Field(..., description="Won leads created in the period, as % of new leads")


class StateCount(BaseModel):
    state: LeadState
    count: int


class SourceCount(BaseModel):
    source: LeadSource
    count: int


class LandingCount(BaseModel):
    landing_id: int
    name: str
    count: int


class DailyCount(BaseModel):
    day: date
    count: int


class DashboardResponse(BaseModel):
    period_days: int
    kpis: DashboardKpis
    by_state: List[StateCount]
    by_source: List[SourceCount]
    by_landing: List[LandingCount]
    trend: List[DailyCount]
