# leadflow/services/expenses.py
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.config import settings
from leadflow.core.exceptions import NotFoundError
from leadflow.core.logging import get_structlog_logger
from leadflow.db.session import atomic
from leadflow.models.enums import ExpenseType
from leadflow.models.expense import Expense
from leadflow.models.landing import Landing
from leadflow.schemas.common import total_pages
from leadflow.schemas.expense import ExpenseCreate, ExpenseUpdate
from leadflow.services.commission import quantize_money

logger = get_structlog_logger(__name__)

ZERO = Decimal("0.00")


@dataclass
class ExpenseFilters:
    type: Optional[ExpenseType] = None
    landing_id: Optional[int] = None
    date_from: Optional[dt.date] = None
    date_to: Optional[dt.date] = None


@dataclass
class ExpenseSummary:
    total: Decimal = ZERO
    by_type: Dict[str, Decimal] = field(default_factory=dict)


@dataclass
class ExpensePage:
    items: List[Expense]
    total: int
    page: int
    page_size: int
    summary: ExpenseSummary

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.page_size)


def _apply_filters(stmt, filters: ExpenseFilters):
    if filters.type is not None:
        stmt = stmt.where(Expense.type == filters.type)
    if filters.landing_id is not None:
        stmt = stmt.where(Expense.landing_id == filters.landing_id)
    if filters.date_from is not None:
        stmt = stmt.where(Expense.date >= filters.date_from)
    if filters.date_to is not None:
        stmt = stmt.where(Expense.date <= filters.date_to)
    return stmt


async def _check_landing(session: AsyncSession, landing_id: Optional[int]) -> None:
    if landing_id is not None and await session.get(Landing, landing_id) is None:
        raise NotFoundError(message="Landing not found", details={"landing_id": landing_id})


async def get_expense(session: AsyncSession, expense_id: int) -> Expense:
    expense = await session.get(Expense, expense_id)
    if expense is None:
        raise NotFoundError(message="Expense not found", details={"expense_id": expense_id})
    return expense


async def create_expense(session: AsyncSession, data: ExpenseCreate) -> Expense:
    fields = data.model_dump()
    fields["amount"] = quantize_money(fields["amount"])
    fields["date"] = fields.get("date") or dt.date.today()

    async with atomic(session):
        await _check_landing(session, fields.get("landing_id"))
        expense = Expense(**fields)
        session.add(expense)
        await session.flush()

    logger.info("expense.created", expense_id=expense.id, type=expense.type.value, amount=str(expense.amount))
    return expense


async def update_expense(session: AsyncSession, expense_id: int, data: ExpenseUpdate) -> Expense:
    changes = data.model_dump(exclude_unset=True)
    if changes.get("amount") is not None:
        changes["amount"] = quantize_money(changes["amount"])

    async with atomic(session):
        expense = await get_expense(session, expense_id)
        await _check_landing(session, changes.get("landing_id"))
        expense.update(**changes)
        await session.flush()

    logger.info("expense.updated", expense_id=expense_id, fields=sorted(changes))
    return expense


async def delete_expense(session: AsyncSession, expense_id: int) -> None:
    async with atomic(session):
        expense = await get_expense(session, expense_id)
        await session.delete(expense)
        await session.flush()

    logger.info("expense.deleted", expense_id=expense_id)


async def summarize_expenses(session: AsyncSession, filters: Optional[ExpenseFilters] = None) -> ExpenseSummary:
    filters = filters or ExpenseFilters()
    stmt = _apply_filters(
        select(Expense.type, func.sum(Expense.amount)).group_by(Expense.type),
        filters,
    )
    result = await session.execute(stmt)

    summary = ExpenseSummary()
    for expense_type, amount in result.all():
        value = quantize_money(amount or 0)
        summary.by_type[ExpenseType(expense_type).value] = value
        summary.total += value
    return summary


async def list_expenses(
    session: AsyncSession,
    filters: Optional[ExpenseFilters] = None,
    page: int = 1,
    page_size: Optional[int] = None,
) -> ExpensePage:
    """Newest expenses first, plus totals over every row matching the filters."""
    filters = filters or ExpenseFilters()
    page = max(page or 1, 1)
    page_size = settings.clamp_page_size(page_size, default=settings.expense_page_size)

    stmt = _apply_filters(select(Expense), filters)
    total = (await session.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

    stmt = stmt.order_by(Expense.date.desc(), Expense.id.desc()).offset((page - 1) * page_size).limit(page_size)
    items = list((await session.execute(stmt)).scalars().all())

    return ExpensePage(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        summary=await summarize_expenses(session, filters),
    )
