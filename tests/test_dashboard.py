from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import update

from leadflow.db.base import utcnow
from leadflow.models.enums import LeadSource, LeadState
from leadflow.models.lead import Lead
from leadflow.services import pipeline
from leadflow.services.dashboard import dashboard_metrics


@pytest.mark.asyncio
async def test_metrics_over_period(db_session, make_lead, landing):
    old = utcnow() - timedelta(days=40)

    async def make_old_lead(**fields):
        lead = await make_lead(**fields)
        await db_session.execute(update(Lead).where(Lead.id == lead.id).values(created_at=old))
        await db_session.commit()
        return lead

    await make_lead(quoted_amount=Decimal("1000.00"))
    from_landing = await make_lead(name="Bruno Diaz", source=LeadSource.LANDING, landing_id=landing.id)
    await pipeline.transition(db_session, from_landing.id, LeadState.WON, sale_amount=2000)
    await make_old_lead(
        name="Carla Ruiz", source=LeadSource.REFERRAL, state=LeadState.LOST, quoted_amount=Decimal("500.00")
    )
    await make_old_lead(name="Dario Gil", state=LeadState.NEGOTIATING, quoted_amount=Decimal("300.00"))

    metrics = await dashboard_metrics(db_session, 30)

    kpis = metrics.kpis
    assert kpis.total_leads == 4
    assert kpis.new_leads == 2
    assert kpis.won_count == 1
    assert kpis.total_sales == Decimal("2000.00")
    assert kpis.total_commissions == Decimal("200.00")
    assert kpis.pipeline_value == Decimal("1300.00")
    assert kpis.conversion_rate == 50.0

    assert {row.state: row.count for row in metrics.by_state} == {
        LeadState.NEW: 1,
        LeadState.WON: 1,
        LeadState.LOST: 1,
        LeadState.NEGOTIATING: 1,
    }
    assert {row.source: row.count for row in metrics.by_source} == {
        LeadSource.DIRECT: 1,
        LeadSource.LANDING: 1,
    }
    assert [(row.landing_id, row.name, row.count) for row in metrics.by_landing] == [
        (landing.id, "Reformas Madrid", 1)
    ]

    assert len(metrics.trend) == 30
    assert metrics.trend[-1].day == utcnow().date()
    assert sum(row.count for row in metrics.trend) == 2


@pytest.mark.asyncio
async def test_empty_database(db_session):
    metrics = await dashboard_metrics(db_session, 7)

    assert metrics.kpis.total_leads == 0
    assert metrics.kpis.conversion_rate == 0.0
    assert metrics.kpis.pipeline_value == Decimal("0.00")
    assert metrics.by_state == []
    assert [row.count for row in metrics.trend] == [0] * 7


@pytest.mark.asyncio
async def test_period_must_be_positive(db_session):
    with pytest.raises(ValueError):
        await dashboard_metrics(db_session, 0)


@pytest.mark.asyncio
async def test_dashboard_route(client):
    response = await client.post("/api/leads", json={"name": "Ana Garcia", "phone": "600123456"})
    assert response.status_code == 201

    response = await client.get("/api/dashboard", params={"periodo": 7})
    assert response.status_code == 200
    body = response.json()
    assert body["period_days"] == 7
    assert body["kpis"]["new_leads"] == 1
    assert len(body["trend"]) == 7
    assert body["by_source"] == [{"source": "directo", "count": 1}]

    response = await client.get("/api/dashboard")
    assert response.json()["period_days"] == 30

    response = await client.get("/api/dashboard", params={"periodo": 0})
    assert response.status_code == 400
    assert response.json()["details"]["errors"][0]["field"] == "periodo"
