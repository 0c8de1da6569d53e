# leadflow/services/activity_log.py
"""
Append-only audit trail of what happened to each lead.

Entries are never updated or deleted on their own; they disappear only
together with their lead.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.config import settings
from leadflow.core.exceptions import NotFoundError
from leadflow.models.activity import Activity
from leadflow.models.enums import ActivityType, LeadState
from leadflow.models.lead import Lead


async def _ensure_lead(session: AsyncSession, lead_id: int) -> None:
    if await session.get(Lead, lead_id) is None:
        raise NotFoundError(message="Lead not found", details={"lead_id": lead_id})


async def append(
    session: AsyncSession,
    *,
    lead_id: int,
    type: ActivityType,
    description: str,
    previous_state: Optional[LeadState] = None,
    new_state: Optional[LeadState] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Activity:
    await _ensure_lead(session, lead_id)

    activity = Activity(
        lead_id=lead_id,
        type=ActivityType(type),
        description=description,
        previous_state=previous_state,
        new_state=new_state,
        meta=metadata,
    )
    session.add(activity)
    await session.flush()
    return activity


async def list_for_lead(
    session: AsyncSession,
    lead_id: int,
    limit: Optional[int] = None,
) -> List[Activity]:
    """Newest first; entries written in the same instant come back by id, descending."""
    await _ensure_lead(session, lead_id)

    if limit is None or limit < 1:
        limit = settings.activity_list_limit
    limit = min(limit, settings.max_activity_limit)

    stmt = (
        select(Activity)
        .where(Activity.lead_id == lead_id)
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
