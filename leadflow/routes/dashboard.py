# leadflow/routes/dashboard.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.db.session import get_session
from leadflow.schemas.dashboard import DashboardResponse
from leadflow.services.dashboard import DEFAULT_PERIOD_DAYS, dashboard_metrics

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    session: AsyncSession = Depends(get_session),
    period: int = Query(DEFAULT_PERIOD_DAYS, alias="periodo", ge=1, le=365, description="Trailing window in days"),
):
    return await dashboard_metrics(session, period)
