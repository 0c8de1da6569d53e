# leadflow/services/landings.py
from __future__ import annotations

import secrets
from typing import List, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.config import settings
from leadflow.core.exceptions import ConflictError, NotFoundError
from leadflow.core.logging import get_structlog_logger, mask_api_key
from leadflow.db.base import utcnow
from leadflow.db.session import atomic
from leadflow.models.expense import Expense
from leadflow.models.landing import Landing
from leadflow.models.lead import Lead
from leadflow.schemas.landing import LandingCreate, LandingUpdate

logger = get_structlog_logger(__name__)


def generate_api_key() -> str:
    return f"{settings.api_key_prefix}{secrets.token_hex(settings.api_key_bytes)}"


async def _unique_api_key(session: AsyncSession) -> str:
    attempts = settings.api_key_generation_attempts
    for attempt in range(1, attempts + 1):
        candidate = generate_api_key()
        taken = await session.scalar(select(Landing.id).where(Landing.api_key == candidate))
        if taken is None:
            return candidate
        logger.warning("landing.api_key_collision", attempt=attempt)

    raise ConflictError(
        message="Could not generate a unique API key",
        details={"attempts": attempts},
    )


async def get_landing(session: AsyncSession, landing_id: int) -> Landing:
    landing = await session.get(Landing, landing_id)
    if landing is None:
        raise NotFoundError(message="Landing not found", details={"landing_id": landing_id})
    return landing


async def create_landing(session: AsyncSession, data: LandingCreate) -> Landing:
    async with atomic(session):
        existing = await session.scalar(select(Landing.id).where(Landing.slug == data.slug))
        if existing is not None:
            raise ConflictError(
                message="A landing with that slug already exists",
                details={"slug": data.slug},
            )

        landing = Landing(**data.model_dump(), api_key=await _unique_api_key(session))
        session.add(landing)
        await session.flush()

    logger.info("landing.created", landing_id=landing.id, slug=landing.slug)
    return landing


async def list_landings(session: AsyncSession) -> List[Tuple[Landing, int]]:
    """Every landing, newest first, with the number of leads attributed to it."""
    lead_count = func.count(Lead.id)
    stmt = (
        select(Landing, lead_count)
        .outerjoin(Lead, Lead.landing_id == Landing.id)
        .group_by(Landing.id)
        .order_by(Landing.created_at.desc(), Landing.id.desc())
    )
    result = await session.execute(stmt)
    return [(landing, count) for landing, count in result.all()]


async def update_landing(session: AsyncSession, landing_id: int, data: LandingUpdate) -> Landing:
    async with atomic(session):
        landing = await get_landing(session, landing_id)
        landing.update(**data.model_dump(exclude_unset=True))
        await session.flush()

    logger.info("landing.updated", landing_id=landing_id, fields=sorted(data.model_fields_set))
    return landing


async def regenerate_api_key(session: AsyncSession, landing_id: int) -> Landing:
    """Swap the landing's key. The old key stops authenticating at commit."""
    async with atomic(session):
        landing = await get_landing(session, landing_id)
        landing.api_key = await _unique_api_key(session)
        await session.flush()

    logger.info("landing.api_key_regenerated", landing_id=landing_id, api_key=mask_api_key(landing.api_key))
    return landing


async def delete_landing(session: AsyncSession, landing_id: int) -> None:
    """Remove a landing; its leads and expenses stay, unattributed."""
    async with atomic(session):
        landing = await get_landing(session, landing_id)
        now = utcnow()
        await session.execute(
            update(Lead).where(Lead.landing_id == landing_id).values(landing_id=None, updated_at=now)
        )
        await session.execute(
            update(Expense).where(Expense.landing_id == landing_id).values(landing_id=None, updated_at=now)
        )
        await session.delete(landing)
        await session.flush()

    logger.info("landing.deleted", landing_id=landing_id)
