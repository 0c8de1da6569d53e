# leadflow/services/dashboard.py
"""
Headline metrics for the back office: lead volume over a trailing period,
distribution by state, source and landing, closed sales and the value of
open quotes.
"""
from __future__ import annotations

import datetime as dt
from collections import Counter
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.db.base import utcnow
from leadflow.models.enums import LeadState
from leadflow.models.landing import Landing
from leadflow.models.lead import Lead
from leadflow.schemas.dashboard import (
    DailyCount,
    DashboardKpis,
    DashboardResponse,
    LandingCount,
    SourceCount,
    StateCount,
)
from leadflow.services.commission import quantize_money
from leadflow.utils.dates import start_of_day

DEFAULT_PERIOD_DAYS = 30


async def _scalar(session: AsyncSession, stmt):
    result = await session.execute(stmt)
    return result.scalar_one()


async def dashboard_metrics(
    session: AsyncSession,
    period_days: int = DEFAULT_PERIOD_DAYS,
    now: Optional[dt.datetime] = None,
) -> DashboardResponse:
    """Metrics for the last ``period_days`` calendar days, today included.

    State counts and sales totals cover every lead; new leads, source and
    landing counts, the daily trend and the conversion rate only the period.
    """
    if period_days < 1:
        raise ValueError("period_days must be at least 1")

    today = (now or utcnow()).date()
    first_day = today - dt.timedelta(days=period_days - 1)
    since = start_of_day(first_day)
    in_period = Lead.created_at >= since

    total_leads = await _scalar(session, select(func.count()).select_from(Lead))
    new_leads = await _scalar(session, select(func.count(Lead.id)).where(in_period))
    won_in_period = await _scalar(
        session, select(func.count(Lead.id)).where(in_period, Lead.state == LeadState.WON)
    )

    won_count, total_sales, total_commissions = (
        await session.execute(
            select(
                func.count(Lead.id),
                func.coalesce(func.sum(Lead.sale_amount), 0),
                func.coalesce(func.sum(Lead.commission_amount), 0),
            ).where(Lead.state == LeadState.WON)
        )
    ).one()

    pipeline_value = await _scalar(
        session,
        select(func.coalesce(func.sum(Lead.quoted_amount), 0)).where(
            Lead.state.not_in([LeadState.WON, LeadState.LOST]),
            Lead.quoted_amount.is_not(None),
        ),
    )

    by_state = await session.execute(
        select(Lead.state, func.count(Lead.id)).group_by(Lead.state).order_by(func.count(Lead.id).desc())
    )
    by_source = await session.execute(
        select(Lead.source, func.count(Lead.id))
        .where(in_period)
        .group_by(Lead.source)
        .order_by(func.count(Lead.id).desc())
    )
    by_landing = await session.execute(
        select(Lead.landing_id, Landing.name, func.count(Lead.id))
        .join(Landing, Landing.id == Lead.landing_id)
        .where(in_period)
        .group_by(Lead.landing_id, Landing.name)
        .order_by(func.count(Lead.id).desc(), Lead.landing_id)
    )

    # SQL date() yields str on SQLite and date on PostgreSQL
    created = await session.execute(select(Lead.created_at).where(in_period))
    per_day = Counter(value.date() for value in created.scalars())

    conversion_rate = round(won_in_period / new_leads * 100, 2) if new_leads else 0.0

    return DashboardResponse(
        period_days=period_days,
        kpis=DashboardKpis(
            total_leads=total_leads,
            new_leads=new_leads,
            won_count=won_count,
            total_sales=quantize_money(total_sales),
            total_commissions=quantize_money(total_commissions),
            pipeline_value=quantize_money(pipeline_value),
            conversion_rate=conversion_rate,
        ),
        by_state=[StateCount(state=state, count=count) for state, count in by_state.all()],
        by_source=[SourceCount(source=source, count=count) for source, count in by_source.all()],
        by_landing=[
            LandingCount(landing_id=landing_id, name=name, count=count)
            for landing_id, name, count in by_landing.all()
        ],
        trend=[
            DailyCount(day=day, count=per_day.get(day, 0))
            for day in (first_day + dt.timedelta(days=offset) for offset in range(period_days))
        ],
    )
