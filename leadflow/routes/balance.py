# leadflow/routes/balance.py
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.exceptions import ValidationError
from leadflow.db.session import get_session
from leadflow.schemas.balance import BalanceResponse
from leadflow.services.balance import balance_summary

router = APIRouter(tags=["balance"])


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    session: AsyncSession = Depends(get_session),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
):
    """Commissions earned against expenses over an optional date range."""
    if date_from and date_to and date_to < date_from:
        raise ValidationError.for_field("date_to", "must not be before date_from")

    return await balance_summary(session, date_from, date_to)
