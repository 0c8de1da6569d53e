# leadflow/routes/leads.py
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional, Type

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.exceptions import ValidationError
from leadflow.core.logging import get_structlog_logger
from leadflow.db.session import get_session
from leadflow.dependencies import get_commission_rate
from leadflow.models.enums import LeadPriority, LeadSource, LeadState
from leadflow.schemas.activity import ActivityCreate, ActivityResponse
from leadflow.schemas.common import PaginatedResponse, SuccessResponse
from leadflow.schemas.lead import (
    BulkActionRequest,
    BulkActionResponse,
    LeadCreate,
    LeadDetailResponse,
    LeadResponse,
    LeadUpdate,
    StateChangeRequest,
)
from leadflow.services import activity_log, bulk, lead_repository, leads, pipeline
from leadflow.services.lead_repository import LeadFilters

logger = get_structlog_logger(__name__)

router = APIRouter(prefix="/leads", tags=["leads"])


def _enum_list(raw: Optional[str], enum_cls: Type, field: str) -> list:
    """Parse a comma separated query value such as ``nuevo,contactado``."""
    if not raw:
        return []
    values = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            values.append(enum_cls(item))
        except ValueError:
            raise ValidationError.for_field(
                field, f"unknown value '{item}', expected one of {[m.value for m in enum_cls]}"
            )
    return values


@router.get("", response_model=PaginatedResponse[LeadResponse])
async def list_leads(
    session: AsyncSession = Depends(get_session),
    state: Optional[str] = Query(None, description="Comma separated states"),
    source: Optional[str] = Query(None, description="Comma separated sources"),
    priority: Optional[LeadPriority] = Query(None),
    landing_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    sort: str = Query("created_at"),
    order: str = Query("desc"),
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
):
    """List leads with filtering, sorting and pagination."""
    filters = LeadFilters(
        states=_enum_list(state, LeadState, "state"),
        sources=_enum_list(source, LeadSource, "source"),
        priority=priority,
        landing_id=landing_id,
        search=search,
        date_from=date_from,
        date_to=date_to,
    )
    result = await lead_repository.list_leads(
        session, filters, sort=sort, order=order, page=page, page_size=page_size
    )

    return PaginatedResponse[LeadResponse](
        items=[LeadResponse.model_validate(lead) for lead in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.post("", response_model=LeadResponse, status_code=status.HTTP_201_CREATED)
async def create_lead(
    data: LeadCreate,
    session: AsyncSession = Depends(get_session),
):
    """Create a lead by hand."""
    lead = await leads.create_manual_lead(session, data)
    return LeadResponse.model_validate(lead)


@router.post("/bulk", response_model=BulkActionResponse)
async def bulk_action(
    data: BulkActionRequest,
    session: AsyncSession = Depends(get_session),
):
    result = await bulk.bulk_apply(session, data.ids, data.action, data.value)
    return BulkActionResponse(
        success=True,
        message=result.message,
        count=result.count,
        missing_ids=result.missing_ids,
    )


@router.get("/{lead_id}", response_model=LeadDetailResponse)
async def get_lead(
    lead_id: int,
    session: AsyncSession = Depends(get_session),
):
    """Lead detail with its most recent activity."""
    lead = await lead_repository.get_lead(session, lead_id)
    activities = await activity_log.list_for_lead(session, lead_id)

    detail = LeadDetailResponse.model_validate(lead)
    detail.activities = [ActivityResponse.model_validate(activity) for activity in activities]
    return detail


@router.put("/{lead_id}", response_model=LeadResponse)
async def update_lead(
    lead_id: int,
    data: LeadUpdate,
    session: AsyncSession = Depends(get_session),
    commission_rate: Decimal = Depends(get_commission_rate),
):
    lead = await leads.edit_lead(session, lead_id, data, commission_rate)
    return LeadResponse.model_validate(lead)


@router.delete("/{lead_id}", response_model=SuccessResponse)
async def delete_lead(
    lead_id: int,
    session: AsyncSession = Depends(get_session),
):
    await leads.remove_lead(session, lead_id)
    return SuccessResponse(message="Lead deleted")


@router.put("/{lead_id}/state", response_model=LeadResponse)
async def change_state(
    lead_id: int,
    data: StateChangeRequest,
    session: AsyncSession = Depends(get_session),
    commission_rate: Decimal = Depends(get_commission_rate),
):
    """Move a lead through the pipeline."""
    lead = await pipeline.transition(
        session,
        lead_id,
        data.state,
        sale_amount=data.sale_amount,
        note=data.note,
        commission_rate=commission_rate,
    )
    return LeadResponse.model_validate(lead)


@router.get("/{lead_id}/activities", response_model=List[ActivityResponse])
async def list_activities(
    lead_id: int,
    limit: Optional[int] = Query(None, ge=1),
    session: AsyncSession = Depends(get_session),
):
    activities = await activity_log.list_for_lead(session, lead_id, limit)
    return [ActivityResponse.model_validate(activity) for activity in activities]


@router.post("/{lead_id}/activities", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def create_activity(
    lead_id: int,
    data: ActivityCreate,
    session: AsyncSession = Depends(get_session),
):
    activity = await leads.record_activity(session, lead_id, data)
    return ActivityResponse.model_validate(activity)
