# leadflow/services/pipeline.py
"""
Sales pipeline transitions.

Any state may move to any other state. Closing as won needs a sale amount
and records the sale together with its commission; the lead update and its
activity entry are committed as one unit.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.exceptions import InvalidArgumentError, InvalidTransitionError, ValidationError
from leadflow.core.logging import get_structlog_logger
from leadflow.db.base import utcnow
from leadflow.db.session import atomic
from leadflow.models.enums import ActivityType, LeadState
from leadflow.models.lead import Lead, SaleRecord
from leadflow.services import activity_log, lead_repository
from leadflow.services.commission import (
    DEFAULT_COMMISSION_RATE,
    Number,
    calculate_commission,
    quantize_money,
)

logger = get_structlog_logger(__name__)

_ACTIVITY_FOR_TARGET = {
    LeadState.WON: ActivityType.SALE_WON,
    LeadState.LOST: ActivityType.SALE_LOST,
}


def coerce_state(value: Union[LeadState, str]) -> LeadState:
    try:
        return LeadState(value)
    except ValueError:
        raise InvalidArgumentError(
            message=f"Unknown state: {value}",
            details={"allowed": [state.value for state in LeadState]},
        )


def _checked_amount(sale_amount: Optional[Number]) -> Optional[Decimal]:
    if sale_amount is None:
        return None
    try:
        amount = quantize_money(sale_amount)
    except ValueError:
        raise ValidationError.for_field("sale_amount", "must be a number")
    if amount < 0:
        raise ValidationError.for_field("sale_amount", "must not be negative")
    return amount


def resolve_sale_amount(lead: Lead, sale_amount: Optional[Decimal]) -> Optional[Decimal]:
    """Explicit amount, else the recorded sale, else the quote."""
    for candidate in (sale_amount, lead.sale_amount, lead.quoted_amount):
        if candidate is not None:
            return candidate
    return None


async def transition(
    session: AsyncSession,
    lead_id: int,
    target: Union[LeadState, str],
    *,
    sale_amount: Optional[Number] = None,
    note: Optional[str] = None,
    commission_rate: Number = DEFAULT_COMMISSION_RATE,
) -> Lead:
    target = coerce_state(target)
    amount = _checked_amount(sale_amount)

    async with atomic(session):
        lead = await lead_repository.get_lead(session, lead_id)
        previous = lead.state
        metadata: Optional[Dict[str, Any]] = None

        if target is LeadState.WON:
            resolved = resolve_sale_amount(lead, amount)
            if resolved is None:
                raise InvalidTransitionError(
                    message="missing sale amount",
                    details={"lead_id": lead_id, "target": target.value},
                )
            commission = calculate_commission(resolved, commission_rate)
            lead.record_sale(SaleRecord(amount=resolved, sold_at=utcnow(), commission=commission))
            metadata = {
                "sale_amount": str(resolved),
                "commission_amount": str(commission),
                "commission_rate": str(commission_rate),
            }
        elif amount is not None:
            metadata = {"sale_amount": str(amount)}

        lead.state = target
        await session.flush()

        await activity_log.append(
            session,
            lead_id=lead.id,
            type=_ACTIVITY_FOR_TARGET.get(target, ActivityType.STATE_CHANGE),
            description=note or f"State changed from {previous.value} to {target.value}",
            previous_state=previous,
            new_state=target,
            metadata=metadata,
        )

    logger.info(
        "pipeline.transitioned",
        lead_id=lead.id,
        previous_state=previous.value,
        new_state=target.value,
        sale_amount=str(lead.sale_amount) if target is LeadState.WON else None,
    )
    return lead
