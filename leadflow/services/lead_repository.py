# leadflow/services/lead_repository.py
"""
Lead persistence.

Every function here only flushes; callers decide where the transaction
ends (see ``leadflow.db.session.atomic``).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, List, Mapping, Optional, Sequence, Union

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.config import settings
from leadflow.core.exceptions import InvalidArgumentError, NotFoundError, ValidationError
from leadflow.core.logging import get_structlog_logger
from leadflow.models.activity import Activity
from leadflow.models.enums import LeadPriority, LeadSource, LeadState
from leadflow.models.lead import Lead
from leadflow.schemas.common import total_pages
from leadflow.utils.dates import end_of_day, start_of_day

logger = get_structlog_logger(__name__)

SORTABLE_FIELDS = frozenset(
    {
        "id",
        "name",
        "email",
        "phone",
        "locality",
        "state",
        "source",
        "priority",
        "quoted_amount",
        "quote_date",
        "sale_amount",
        "sale_date",
        "commission_amount",
        "created_at",
        "updated_at",
    }
)

# Columns callers may write through create_lead / update_lead
WRITABLE_FIELDS = frozenset(
    column.key for column in Lead.__table__.columns if column.key not in {"id", "created_at", "updated_at"}
)

DateBound = Union[date, datetime]


@dataclass
class LeadFilters:
    states: Sequence[LeadState] = ()
    sources: Sequence[LeadSource] = ()
    priority: Optional[LeadPriority] = None
    landing_id: Optional[int] = None
    search: Optional[str] = None
    date_from: Optional[DateBound] = None
    date_to: Optional[DateBound] = None


@dataclass
class LeadPage:
    items: List[Lead] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.page_size)


def _check_fields(fields: Mapping[str, Any]) -> None:
    unknown = sorted(set(fields) - WRITABLE_FIELDS)
    if unknown:
        raise InvalidArgumentError(
            message="Unknown lead fields",
            details={"fields": unknown},
        )


async def create_lead(session: AsyncSession, **fields: Any) -> Lead:
    _check_fields(fields)
    fields.setdefault("state", LeadState.NEW)

    lead = Lead(**fields)
    session.add(lead)
    await session.flush()

    logger.debug("lead.inserted", lead_id=lead.id, source=lead.source.value)
    return lead


async def get_lead(session: AsyncSession, lead_id: int) -> Lead:
    lead = await session.get(Lead, lead_id)
    if lead is None:
        raise NotFoundError(message="Lead not found", details={"lead_id": lead_id})
    return lead


async def update_lead(session: AsyncSession, lead_id: int, changes: Mapping[str, Any]) -> Lead:
    _check_fields(changes)
    lead = await get_lead(session, lead_id)

    lead.update(**changes)
    await session.flush()
    return lead


async def delete_lead(session: AsyncSession, lead_id: int) -> None:
    lead = await get_lead(session, lead_id)

    # Explicit so the log goes even where ON DELETE CASCADE is not enforced
    await session.execute(delete(Activity).where(Activity.lead_id == lead_id))
    await session.delete(lead)
    await session.flush()


async def count_leads(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(Lead))
    return result.scalar_one()


def _apply_filters(stmt, filters: LeadFilters):
    if filters.states:
        stmt = stmt.where(Lead.state.in_(list(filters.states)))

    if filters.sources:
        stmt = stmt.where(Lead.source.in_(list(filters.sources)))

    if filters.priority is not None:
        stmt = stmt.where(Lead.priority == filters.priority)

    if filters.landing_id is not None:
        stmt = stmt.where(Lead.landing_id == filters.landing_id)

    if filters.search and filters.search.strip():
        search_term = f"%{filters.search.strip()}%"
        stmt = stmt.where(
            or_(
                Lead.name.ilike(search_term),
                Lead.email.ilike(search_term),
                Lead.phone.ilike(search_term),
                Lead.locality.ilike(search_term),
            )
        )

    lower = start_of_day(filters.date_from)
    if lower is not None:
        stmt = stmt.where(Lead.created_at >= lower)

    upper = end_of_day(filters.date_to)
    if upper is not None:
        stmt = stmt.where(Lead.created_at < upper)

    return stmt


def _order_by(sort: str, order: str):
    if sort not in SORTABLE_FIELDS:
        raise ValidationError.for_field(
            "sort", f"must be one of {sorted(SORTABLE_FIELDS)}"
        )

    direction = (order or "desc").lower()
    if direction not in ("asc", "desc"):
        raise ValidationError.for_field("order", "must be 'asc' or 'desc'")

    column = getattr(Lead, sort)
    if direction == "asc":
        return column.asc(), Lead.id.asc()
    return column.desc(), Lead.id.desc()


async def list_leads(
    session: AsyncSession,
    filters: Optional[LeadFilters] = None,
    sort: str = "created_at",
    order: str = "desc",
    page: int = 1,
    page_size: Optional[int] = None,
) -> LeadPage:
    """Filtered, sorted, offset-paginated lead listing.

    ``page_size`` is clamped to ``settings.max_page_size``; pages below 1 are
    read as page 1.
    """
    filters = filters or LeadFilters()
    ordering = _order_by(sort, order)
    page = max(page or 1, 1)
    page_size = settings.clamp_page_size(page_size)

    stmt = _apply_filters(select(Lead), filters)

    total_stmt = select(func.count()).select_from(stmt.subquery())
    total = (await session.execute(total_stmt)).scalar_one()

    stmt = stmt.order_by(*ordering).offset((page - 1) * page_size).limit(page_size)
    result = await session.execute(stmt)
    items = list(result.scalars().all())

    return LeadPage(items=items, total=total, page=page, page_size=page_size)
