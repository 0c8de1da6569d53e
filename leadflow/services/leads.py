# leadflow/services/leads.py
"""
Lead operations used by the HTTP layer: manual creation, edits, removal and
hand-recorded activities. Each runs in its own transaction.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.exceptions import ValidationError
from leadflow.core.logging import get_structlog_logger
from leadflow.db.base import utcnow
from leadflow.db.session import atomic
from leadflow.models.activity import Activity
from leadflow.models.enums import ActivityType, LeadSource, LeadState
from leadflow.models.lead import Lead, SaleRecord
from leadflow.schemas.activity import ActivityCreate
from leadflow.schemas.lead import LeadCreate, LeadUpdate
from leadflow.services import activity_log, lead_repository
from leadflow.services.commission import (
    DEFAULT_COMMISSION_RATE,
    Number,
    calculate_commission,
    quantize_money,
)

logger = get_structlog_logger(__name__)


def _money(value: Optional[Decimal]) -> Optional[Decimal]:
    return None if value is None else quantize_money(value)


def _fmt(value: Optional[Decimal]) -> str:
    return "none" if value is None else str(value)


async def create_manual_lead(session: AsyncSession, data: LeadCreate) -> Lead:
    fields = data.model_dump()
    fields["quoted_amount"] = _money(fields.get("quoted_amount"))
    if fields["quoted_amount"] is not None:
        fields["quote_date"] = utcnow()

    async with atomic(session):
        lead = await lead_repository.create_lead(session, state=LeadState.NEW, **fields)
        await activity_log.append(
            session,
            lead_id=lead.id,
            type=ActivityType.CREATION,
            description="Lead created manually",
            new_state=LeadState.NEW,
        )

    logger.info("lead.created", lead_id=lead.id, source=lead.source.value)
    return lead


def _sale_correction(
    lead: Lead,
    new_amount: Optional[Decimal],
    commission_rate: Number,
) -> Optional[SaleRecord]:
    """Sale of record after a manual correction of its amount.

    The sale date only exists alongside an amount. A won lead, or one with a
    commission already on record, gets the commission of the corrected amount.
    """
    if new_amount is None:
        return None

    current = lead.sale_record
    commission = None
    if lead.state is LeadState.WON or (current is not None and current.commission is not None):
        commission = calculate_commission(new_amount, commission_rate)

    sold_at = current.sold_at if current is not None and current.sold_at else utcnow()
    return SaleRecord(amount=new_amount, sold_at=sold_at, commission=commission)


async def edit_lead(
    session: AsyncSession,
    lead_id: int,
    data: LeadUpdate,
    commission_rate: Number = DEFAULT_COMMISSION_RATE,
) -> Lead:
    changes: Dict[str, Any] = data.model_dump(exclude_unset=True)
    entries: List[Tuple[ActivityType, str, Optional[Dict[str, Any]]]] = []

    async with atomic(session):
        lead = await lead_repository.get_lead(session, lead_id)

        if lead.source is LeadSource.LANDING and changes.get("source", lead.source) is not lead.source:
            raise ValidationError.for_field("source", "landing leads keep their source")

        if "quoted_amount" in changes:
            new_quote = _money(changes["quoted_amount"])
            changes["quoted_amount"] = new_quote
            if new_quote != lead.quoted_amount:
                changes["quote_date"] = utcnow() if new_quote is not None else None
                entries.append(
                    (
                        ActivityType.QUOTE_UPDATED,
                        f"Quote changed from {_fmt(lead.quoted_amount)} to {_fmt(new_quote)}",
                        {"previous": _fmt(lead.quoted_amount), "quoted_amount": _fmt(new_quote)},
                    )
                )

        if "sale_amount" in changes:
            new_sale = _money(changes.pop("sale_amount"))
            if new_sale != lead.sale_amount:
                previous_sale = lead.sale_amount
                lead.record_sale(_sale_correction(lead, new_sale, commission_rate))
                entries.append(
                    (
                        ActivityType.NOTE,
                        f"Sale amount corrected from {_fmt(previous_sale)} to {_fmt(new_sale)}",
                        {
                            "previous": _fmt(previous_sale),
                            "sale_amount": _fmt(new_sale),
                            "commission_amount": _fmt(lead.commission_amount),
                        },
                    )
                )

        lead = await lead_repository.update_lead(session, lead_id, changes)

        for activity_type, description, metadata in entries:
            await activity_log.append(
                session,
                lead_id=lead_id,
                type=activity_type,
                description=description,
                metadata=metadata,
            )

    logger.info("lead.updated", lead_id=lead_id, fields=sorted(data.model_fields_set))
    return lead


async def remove_lead(session: AsyncSession, lead_id: int) -> None:
    async with atomic(session):
        await lead_repository.delete_lead(session, lead_id)

    logger.info("lead.deleted", lead_id=lead_id)


def _quote_from_metadata(metadata: Optional[Dict[str, Any]]) -> Optional[Decimal]:
    if not metadata or metadata.get("importe") is None:
        return None
    try:
        amount = quantize_money(metadata["importe"])
    except ValueError:
        raise ValidationError.for_field("metadata.importe", "must be a number")
    if amount < 0:
        raise ValidationError.for_field("metadata.importe", "must not be negative")
    return amount


async def record_activity(session: AsyncSession, lead_id: int, data: ActivityCreate) -> Activity:
    """Hand-recorded activity. A sent quote carrying ``metadata.importe``
    also becomes the lead's current quote."""
    quote = None
    if data.type is ActivityType.QUOTE_SENT:
        quote = _quote_from_metadata(data.metadata)

    async with atomic(session):
        activity = await activity_log.append(
            session,
            lead_id=lead_id,
            type=data.type,
            description=data.description,
            metadata=data.metadata,
        )
        if quote is not None:
            await lead_repository.update_lead(
                session, lead_id, {"quoted_amount": quote, "quote_date": utcnow()}
            )

    logger.info("lead.activity_recorded", lead_id=lead_id, type=data.type.value)
    return activity
