# leadflow/services/balance.py
"""
Income (commissions on won sales) against expenses.

Commissions are read from what was recorded on each sale, so a change of the
configured rate never rewrites past income.
"""
from __future__ import annotations

import datetime as dt
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.models.enums import LeadState
from leadflow.models.expense import Expense
from leadflow.models.lead import Lead
from leadflow.schemas.balance import (
    BalanceResponse,
    BalanceTotals,
    MonthlyExpenses,
    MonthlySales,
    WonLead,
)
from leadflow.services.commission import quantize_money
from leadflow.utils.dates import end_of_day, month_key, start_of_day

ZERO = Decimal("0.00")


async def _won_leads(session: AsyncSession, date_from, date_to):
    stmt = select(Lead).where(Lead.state == LeadState.WON, Lead.sale_amount.is_not(None))

    lower = start_of_day(date_from)
    if lower is not None:
        stmt = stmt.where(Lead.sale_date >= lower)
    upper = end_of_day(date_to)
    if upper is not None:
        stmt = stmt.where(Lead.sale_date < upper)

    result = await session.execute(stmt.order_by(Lead.sale_date.desc(), Lead.id.desc()))
    return list(result.scalars().all())


async def _expenses(session: AsyncSession, date_from, date_to):
    stmt = select(Expense)
    if date_from is not None:
        stmt = stmt.where(Expense.date >= date_from)
    if date_to is not None:
        stmt = stmt.where(Expense.date <= date_to)

    result = await session.execute(stmt)
    return list(result.scalars().all())


async def balance_summary(
    session: AsyncSession,
    date_from: Optional[dt.date] = None,
    date_to: Optional[dt.date] = None,
) -> BalanceResponse:
    won = await _won_leads(session, date_from, date_to)
    expenses = await _expenses(session, date_from, date_to)

    total_sales = ZERO
    total_commissions = ZERO
    commissions_paid = ZERO
    monthly_sales: Dict[str, Dict[str, Decimal]] = defaultdict(
        lambda: {"sales": ZERO, "commission": ZERO, "count": Decimal(0)}
    )

    for lead in won:
        sale = quantize_money(lead.sale_amount)
        commission = quantize_money(lead.commission_amount or 0)
        total_sales += sale
        total_commissions += commission
        if lead.commission_paid:
            commissions_paid += commission

        if lead.sale_date is not None:
            bucket = monthly_sales[month_key(lead.sale_date)]
            bucket["sales"] += sale
            bucket["commission"] += commission
            bucket["count"] += 1

    expenses_by_type: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    expenses_by_month: Dict[str, MonthlyExpenses] = {}
    total_expenses = ZERO

    for expense in expenses:
        amount = quantize_money(expense.amount)
        kind = expense.type.value
        total_expenses += amount
        expenses_by_type[kind] += amount

        month = expenses_by_month.setdefault(month_key(expense.date), MonthlyExpenses(total=ZERO))
        month.total += amount
        month.by_type[kind] = month.by_type.get(kind, ZERO) + amount

    commissions_pending = total_commissions - commissions_paid

    return BalanceResponse(
        summary=BalanceTotals(
            total_sales=total_sales,
            total_commissions=total_commissions,
            commissions_paid=commissions_paid,
            commissions_pending=commissions_pending,
            total_expenses=total_expenses,
            balance=total_commissions - total_expenses,
            net_balance=commissions_pending - total_expenses,
        ),
        expenses_by_type=dict(expenses_by_type),
        sales_by_month=[
            MonthlySales(
                month=month,
                sales=values["sales"],
                commission=values["commission"],
                count=int(values["count"]),
            )
            for month, values in sorted(monthly_sales.items(), reverse=True)
        ],
        expenses_by_month=dict(sorted(expenses_by_month.items(), reverse=True)),
        won_leads=[
            WonLead(
                id=lead.id,
                name=lead.name,
                sale_amount=quantize_money(lead.sale_amount),
                commission_amount=lead.commission_amount,
                sale_date=lead.sale_date,
                commission_paid=lead.commission_paid,
                landing_id=lead.landing_id,
            )
            for lead in won
        ],
    )
