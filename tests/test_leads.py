from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from leadflow.core.exceptions import NotFoundError, ValidationError
from leadflow.models.enums import ActivityType, LeadSource, LeadState
from leadflow.schemas.activity import ActivityCreate
from leadflow.schemas.lead import LeadCreate, LeadUpdate
from leadflow.services import activity_log, leads, pipeline
from leadflow.services.bulk import bulk_apply


@pytest.mark.asyncio
async def test_manual_lead_with_quote(db_session):
    lead = await leads.create_manual_lead(
        db_session,
        LeadCreate(name="Ana Garcia", phone="600 123 456", quoted_amount=Decimal("900"), source=LeadSource.REFERRAL),
    )

    assert lead.phone == "600123456"
    assert lead.state is LeadState.NEW
    assert lead.quoted_amount == Decimal("900.00")
    assert lead.quote_date is not None

    entries = await activity_log.list_for_lead(db_session, lead.id)
    assert [entry.type for entry in entries] == [ActivityType.CREATION]


def test_manual_lead_cannot_claim_landing_source():
    with pytest.raises(PydanticValidationError):
        LeadCreate(name="Ana Garcia", phone="600123456", source=LeadSource.LANDING)


def test_edit_cannot_relabel_lead_as_landing():
    with pytest.raises(PydanticValidationError):
        LeadUpdate(source=LeadSource.LANDING)


@pytest.mark.asyncio
async def test_landing_lead_keeps_its_source(db_session, make_lead, landing):
    lead = await make_lead(source=LeadSource.LANDING, landing_id=landing.id)

    with pytest.raises(ValidationError) as excinfo:
        await leads.edit_lead(db_session, lead.id, LeadUpdate(source=LeadSource.REFERRAL))
    assert excinfo.value.errors[0]["field"] == "source"

    await db_session.refresh(lead)
    assert lead.source is LeadSource.LANDING

    lead = await leads.edit_lead(db_session, lead.id, LeadUpdate(notes="Asked for a visit"))
    assert lead.source is LeadSource.LANDING


@pytest.mark.asyncio
async def test_edit_quote_logs_and_dates(db_session, make_lead):
    lead = await make_lead()

    lead = await leads.edit_lead(db_session, lead.id, LeadUpdate(quoted_amount=Decimal("1200")))
    assert lead.quoted_amount == Decimal("1200.00")
    assert lead.quote_date is not None

    entries = await activity_log.list_for_lead(db_session, lead.id)
    assert entries[0].type is ActivityType.QUOTE_UPDATED

    lead = await leads.edit_lead(db_session, lead.id, LeadUpdate(quoted_amount=None))
    assert lead.quoted_amount is None
    assert lead.quote_date is None


@pytest.mark.asyncio
async def test_edit_plain_fields_writes_no_activity(db_session, make_lead):
    lead = await make_lead()
    lead = await leads.edit_lead(db_session, lead.id, LeadUpdate(locality="Sevilla", notes="Call after 5"))
    assert lead.locality == "Sevilla"
    assert await activity_log.list_for_lead(db_session, lead.id) == []


@pytest.mark.asyncio
async def test_sale_correction_recomputes_commission(db_session, make_lead):
    lead = await make_lead()
    await pipeline.transition(db_session, lead.id, LeadState.WON, sale_amount=1000)

    lead = await leads.edit_lead(
        db_session, lead.id, LeadUpdate(sale_amount=Decimal("1500")), Decimal("10")
    )
    assert lead.sale_amount == Decimal("1500.00")
    assert lead.commission_amount == Decimal("150.00")
    assert lead.sale_date is not None

    entries = await activity_log.list_for_lead(db_session, lead.id)
    assert entries[0].type is ActivityType.NOTE
    assert entries[0].meta["commission_amount"] == "150.00"


@pytest.mark.asyncio
async def test_sale_entered_on_bulk_won_lead_gets_commission(db_session, make_lead):
    lead = await make_lead()
    await bulk_apply(db_session, [lead.id], "updateState", "ganado")
    await db_session.refresh(lead)
    assert lead.state is LeadState.WON
    assert lead.sale_amount is None

    lead = await leads.edit_lead(
        db_session, lead.id, LeadUpdate(sale_amount=Decimal("1000")), Decimal("10")
    )

    assert lead.sale_amount == Decimal("1000.00")
    assert lead.sale_date is not None
    assert lead.commission_amount == Decimal("100.00")


@pytest.mark.asyncio
async def test_sale_entered_on_open_lead_has_no_commission(db_session, make_lead):
    lead = await make_lead(state=LeadState.NEGOTIATING)

    lead = await leads.edit_lead(db_session, lead.id, LeadUpdate(sale_amount=Decimal("800")))

    assert lead.sale_amount == Decimal("800.00")
    assert lead.commission_amount is None


@pytest.mark.asyncio
async def test_clearing_sale_clears_date_and_commission(db_session, make_lead):
    lead = await make_lead()
    await pipeline.transition(db_session, lead.id, LeadState.WON, sale_amount=1000)

    lead = await leads.edit_lead(db_session, lead.id, LeadUpdate(sale_amount=None))
    assert lead.sale_amount is None
    assert lead.sale_record is None
    assert lead.sale_date is None
    assert lead.commission_amount is None


def test_edit_rejects_nulling_required_fields():
    with pytest.raises(PydanticValidationError):
        LeadUpdate(name=None)
    with pytest.raises(PydanticValidationError):
        LeadUpdate(state="ganado")


@pytest.mark.asyncio
async def test_sent_quote_updates_current_quote(db_session, make_lead):
    lead = await make_lead()

    activity = await leads.record_activity(
        db_session,
        lead.id,
        ActivityCreate(type=ActivityType.QUOTE_SENT, description="PDF sent", metadata={"importe": "2350.5"}),
    )

    assert activity.type is ActivityType.QUOTE_SENT
    await db_session.refresh(lead)
    assert lead.quoted_amount == Decimal("2350.50")
    assert lead.quote_date is not None


@pytest.mark.asyncio
async def test_sent_quote_with_bad_amount(db_session, make_lead):
    lead = await make_lead()
    with pytest.raises(ValidationError) as excinfo:
        await leads.record_activity(
            db_session,
            lead.id,
            ActivityCreate(type=ActivityType.QUOTE_SENT, description="PDF sent", metadata={"importe": "mucho"}),
        )
    assert excinfo.value.errors[0]["field"] == "metadata.importe"


def test_system_activity_types_cannot_be_recorded_by_hand():
    with pytest.raises(PydanticValidationError):
        ActivityCreate(type=ActivityType.SALE_WON, description="fake win")


@pytest.mark.asyncio
async def test_remove_lead(db_session, make_lead):
    lead = await make_lead()
    await leads.remove_lead(db_session, lead.id)
    with pytest.raises(NotFoundError):
        await leads.remove_lead(db_session, lead.id)
