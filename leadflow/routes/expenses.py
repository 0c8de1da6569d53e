# leadflow/routes/expenses.py
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.db.session import get_session
from leadflow.models.enums import ExpenseType
from leadflow.schemas.common import SuccessResponse
from leadflow.schemas.expense import (
    ExpenseCreate,
    ExpenseListResponse,
    ExpenseResponse,
    ExpenseSummaryResponse,
    ExpenseUpdate,
)
from leadflow.services import expenses
from leadflow.services.expenses import ExpenseFilters

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.get("", response_model=ExpenseListResponse)
async def list_expenses(
    session: AsyncSession = Depends(get_session),
    type: Optional[ExpenseType] = Query(None),
    landing_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
):
    filters = ExpenseFilters(type=type, landing_id=landing_id, date_from=date_from, date_to=date_to)
    result = await expenses.list_expenses(session, filters, page=page, page_size=page_size)

    return ExpenseListResponse(
        items=[ExpenseResponse.model_validate(expense) for expense in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        summary=ExpenseSummaryResponse(total=result.summary.total, by_type=result.summary.by_type),
    )


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(data: ExpenseCreate, session: AsyncSession = Depends(get_session)):
    expense = await expenses.create_expense(session, data)
    return ExpenseResponse.model_validate(expense)


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(expense_id: int, session: AsyncSession = Depends(get_session)):
    expense = await expenses.get_expense(session, expense_id)
    return ExpenseResponse.model_validate(expense)


@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: int,
    data: ExpenseUpdate,
    session: AsyncSession = Depends(get_session),
):
    expense = await expenses.update_expense(session, expense_id, data)
    return ExpenseResponse.model_validate(expense)


@router.delete("/{expense_id}", response_model=SuccessResponse)
async def delete_expense(expense_id: int, session: AsyncSession = Depends(get_session)):
    await expenses.delete_expense(session, expense_id)
    return SuccessResponse(message="Expense deleted")
