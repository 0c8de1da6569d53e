# leadflow/schemas/balance.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class BalanceTotals(BaseModel):
    total_sales: Decimal
    total_commissions: Decimal
    commissions_paid: Decimal
    commissions_pending: Decimal
    total_expenses: Decimal
    balance: Decimal
    net_balance: Decimal


class MonthlySales(BaseModel):
    month: str
    sales: Decimal
    commission: Decimal
    count: int


class MonthlyExpenses(BaseModel):
    total: Decimal
    by_type: Dict[str, Decimal] = Field(default_factory=dict)


class WonLead(BaseModel):
    id: int
    name: str
    sale_amount: Decimal
    commission_amount: Optional[Decimal] = None
    sale_date: Optional[datetime] = None
    commission_paid: bool
    landing_id: Optional[int] = None


class BalanceResponse(BaseModel):
    summary: BalanceTotals
    expenses_by_type: Dict[str, Decimal]
    sales_by_month: List[MonthlySales]
    expenses_by_month: Dict[str, MonthlyExpenses]
    won_leads: List[WonLead]
