from datetime import datetime, timedelta, timezone

import pytest

from leadflow.core.exceptions import InvalidArgumentError, NotFoundError, ValidationError
from leadflow.models.enums import LeadPriority, LeadSource, LeadState
from leadflow.services import lead_repository
from leadflow.services.lead_repository import LeadFilters


@pytest.mark.asyncio
async def test_create_defaults_to_new(db_session, make_lead):
    lead = await make_lead()
    assert lead.id is not None
    assert lead.state is LeadState.NEW
    assert lead.priority is LeadPriority.MEDIUM
    assert lead.services == []
    assert lead.sale_amount is None and lead.sale_date is None


@pytest.mark.asyncio
async def test_create_rejects_unknown_fields(db_session):
    with pytest.raises(InvalidArgumentError):
        await lead_repository.create_lead(db_session, name="Ana", phone="600123456", colour="red")


@pytest.mark.asyncio
async def test_get_missing_lead(db_session):
    with pytest.raises(NotFoundError):
        await lead_repository.get_lead(db_session, 999)


@pytest.mark.asyncio
async def test_filters_combine(db_session, make_lead):
    await make_lead(name="Ana Garcia", state=LeadState.NEW, priority=LeadPriority.HIGH)
    await make_lead(name="Bruno Diaz", state=LeadState.CONTACTED, source=LeadSource.REFERRAL)
    await make_lead(name="Carla Ruiz", state=LeadState.LOST, locality="Valencia")

    page = await lead_repository.list_leads(
        db_session, LeadFilters(states=[LeadState.NEW, LeadState.CONTACTED])
    )
    assert page.total == 2

    page = await lead_repository.list_leads(db_session, LeadFilters(sources=[LeadSource.REFERRAL]))
    assert [lead.name for lead in page.items] == ["Bruno Diaz"]

    page = await lead_repository.list_leads(db_session, LeadFilters(priority=LeadPriority.HIGH))
    assert [lead.name for lead in page.items] == ["Ana Garcia"]

    page = await lead_repository.list_leads(db_session, LeadFilters(search="valen"))
    assert [lead.name for lead in page.items] == ["Carla Ruiz"]


@pytest.mark.asyncio
async def test_search_matches_phone_and_email(db_session, make_lead):
    await make_lead(name="Ana Garcia", phone="611222333", email="ana@example.com")
    await make_lead(name="Bruno Diaz", phone="699888777")

    page = await lead_repository.list_leads(db_session, LeadFilters(search="222"))
    assert page.total == 1
    page = await lead_repository.list_leads(db_session, LeadFilters(search="EXAMPLE"))
    assert page.total == 1


@pytest.mark.asyncio
async def test_date_range_is_inclusive_of_whole_days(db_session, make_lead):
    await make_lead()
    today = datetime.now(timezone.utc).date()

    page = await lead_repository.list_leads(db_session, LeadFilters(date_from=today, date_to=today))
    assert page.total == 1

    page = await lead_repository.list_leads(db_session, LeadFilters(date_to=today - timedelta(days=1)))
    assert page.total == 0


@pytest.mark.asyncio
async def test_sort_and_order(db_session, make_lead):
    for name in ("Carla Ruiz", "Ana Garcia", "Bruno Diaz"):
        await make_lead(name=name)

    page = await lead_repository.list_leads(db_session, sort="name", order="asc")
    assert [lead.name for lead in page.items] == ["Ana Garcia", "Bruno Diaz", "Carla Ruiz"]

    page = await lead_repository.list_leads(db_session, sort="name", order="DESC")
    assert [lead.name for lead in page.items] == ["Carla Ruiz", "Bruno Diaz", "Ana Garcia"]


@pytest.mark.asyncio
async def test_unknown_sort_is_a_validation_error(db_session):
    with pytest.raises(ValidationError) as excinfo:
        await lead_repository.list_leads(db_session, sort="password")
    assert excinfo.value.errors[0]["field"] == "sort"

    with pytest.raises(ValidationError):
        await lead_repository.list_leads(db_session, order="sideways")


@pytest.mark.asyncio
async def test_pagination(db_session, make_lead):
    for i in range(5):
        await make_lead(name=f"Lead {i:02d}")

    page = await lead_repository.list_leads(db_session, sort="name", order="asc", page=2, page_size=2)
    assert [lead.name for lead in page.items] == ["Lead 02", "Lead 03"]
    assert page.total == 5
    assert page.total_pages == 3

    page = await lead_repository.list_leads(db_session, page=9, page_size=2)
    assert page.items == []
    assert page.total == 5


@pytest.mark.asyncio
async def test_page_size_is_clamped(db_session, make_lead):
    await make_lead()
    page = await lead_repository.list_leads(db_session, page_size=10_000)
    assert page.page_size == 100

    page = await lead_repository.list_leads(db_session, page=0, page_size=0)
    assert page.page == 1
    assert page.page_size == 20


@pytest.mark.asyncio
async def test_count_and_delete(db_session, make_lead):
    lead = await make_lead()
    assert await lead_repository.count_leads(db_session) == 1

    await lead_repository.delete_lead(db_session, lead.id)
    await db_session.commit()
    assert await lead_repository.count_leads(db_session) == 0
