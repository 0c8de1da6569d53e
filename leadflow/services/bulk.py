# leadflow/services/bulk.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.exceptions import InvalidArgumentError
from leadflow.core.logging import get_structlog_logger
from leadflow.db.base import utcnow
from leadflow.db.session import atomic
from leadflow.models.activity import Activity
from leadflow.models.enums import ActivityType, LeadPriority, LeadState
from leadflow.models.lead import Lead
from leadflow.services import activity_log

logger = get_structlog_logger(__name__)


class BulkAction(str, Enum):
    DELETE = "delete"
    UPDATE_STATE = "updateState"
    UPDATE_PRIORITY = "updatePriority"

    @classmethod
    def _missing_(cls, value):
        # Older dashboard builds still send "updateStatus"
        if value == "updateStatus":
            return cls.UPDATE_STATE
        return None


@dataclass(frozen=True)
class BulkResult:
    action: BulkAction
    count: int
    missing_ids: List[int] = field(default_factory=list)

    @property
    def message(self) -> str:
        verb = "deleted" if self.action is BulkAction.DELETE else "updated"
        return f"{self.count} leads {verb}"


def _parse_action(action) -> BulkAction:
    try:
        return BulkAction(action)
    except ValueError:
        raise InvalidArgumentError(
            message=f"Unknown bulk action: {action}",
            details={"field": "action", "allowed": [a.value for a in BulkAction]},
        )


def _parse_value(enum_cls, value: Optional[str], label: str):
    if value is None or value == "":
        raise InvalidArgumentError(
            message=f"A {label} is required",
            details={"field": "value"},
        )
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidArgumentError(
            message=f"Invalid {label}: {value}",
            details={"field": "value", "allowed": [member.value for member in enum_cls]},
        )


def _unique(ids: Iterable[int]) -> List[int]:
    return list(dict.fromkeys(ids))


async def bulk_apply(
    session: AsyncSession,
    ids: Iterable[int],
    action,
    value: Optional[str] = None,
) -> BulkResult:
    """Apply one action to many leads in a single transaction.

    Ids that do not exist are skipped and reported in ``missing_ids``; the
    returned count only covers leads that were actually affected.
    """
    requested = _unique(ids or [])
    if not requested:
        raise InvalidArgumentError(message="No lead ids given", details={"field": "ids"})

    action = _parse_action(action)
    target_state: Optional[LeadState] = None
    target_priority: Optional[LeadPriority] = None
    if action is BulkAction.UPDATE_STATE:
        target_state = _parse_value(LeadState, value, "state")
    elif action is BulkAction.UPDATE_PRIORITY:
        target_priority = _parse_value(LeadPriority, value, "priority")

    async with atomic(session):
        rows = await session.execute(select(Lead.id, Lead.state).where(Lead.id.in_(requested)))
        existing: Dict[int, LeadState] = {row.id: row.state for row in rows}
        affected = [lead_id for lead_id in requested if lead_id in existing]
        missing = [lead_id for lead_id in requested if lead_id not in existing]

        if affected and action is BulkAction.DELETE:
            await session.execute(delete(Activity).where(Activity.lead_id.in_(affected)))
            await session.execute(delete(Lead).where(Lead.id.in_(affected)))

        elif affected and action is BulkAction.UPDATE_STATE:
            await session.execute(
                update(Lead)
                .where(Lead.id.in_(affected))
                .values(state=target_state, updated_at=utcnow())
            )
            for lead_id in affected:
                previous = existing[lead_id]
                await activity_log.append(
                    session,
                    lead_id=lead_id,
                    type=ActivityType.STATE_CHANGE,
                    description=f"State changed from {previous.value} to {target_state.value} (bulk action)",
                    previous_state=previous,
                    new_state=target_state,
                )

        elif affected and action is BulkAction.UPDATE_PRIORITY:
            await session.execute(
                update(Lead)
                .where(Lead.id.in_(affected))
                .values(priority=target_priority, updated_at=utcnow())
            )

    result = BulkResult(action=action, count=len(affected), missing_ids=missing)
    logger.info(
        "leads.bulk_applied",
        action=action.value,
        requested=len(requested),
        count=result.count,
        missing=len(missing),
    )
    return result
