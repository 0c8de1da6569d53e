# leadflow/routes/landings.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.db.session import get_session
from leadflow.schemas.common import SuccessResponse
from leadflow.schemas.landing import (
    ApiKeyResponse,
    LandingCreate,
    LandingListItem,
    LandingResponse,
    LandingUpdate,
)
from leadflow.services import landings

router = APIRouter(prefix="/landings", tags=["landings"])


@router.get("", response_model=List[LandingListItem])
async def list_landings(session: AsyncSession = Depends(get_session)):
    """All landings with their API keys and lead counts."""
    rows = await landings.list_landings(session)
    return [
        LandingListItem(**LandingResponse.model_validate(landing).model_dump(), lead_count=count)
        for landing, count in rows
    ]


@router.post("", response_model=LandingResponse, status_code=status.HTTP_201_CREATED)
async def create_landing(data: LandingCreate, session: AsyncSession = Depends(get_session)):
    landing = await landings.create_landing(session, data)
    return LandingResponse.model_validate(landing)


@router.get("/{landing_id}", response_model=LandingResponse)
async def get_landing(landing_id: int, session: AsyncSession = Depends(get_session)):
    landing = await landings.get_landing(session, landing_id)
    return LandingResponse.model_validate(landing)


@router.put("/{landing_id}", response_model=LandingResponse)
async def update_landing(
    landing_id: int,
    data: LandingUpdate,
    session: AsyncSession = Depends(get_session),
):
    landing = await landings.update_landing(session, landing_id, data)
    return LandingResponse.model_validate(landing)


@router.delete("/{landing_id}", response_model=SuccessResponse)
async def delete_landing(landing_id: int, session: AsyncSession = Depends(get_session)):
    await landings.delete_landing(session, landing_id)
    return SuccessResponse(message="Landing deleted")


@router.post("/{landing_id}/regenerate-key", response_model=ApiKeyResponse)
async def regenerate_key(landing_id: int, session: AsyncSession = Depends(get_session)):
    landing = await landings.regenerate_api_key(session, landing_id)
    return ApiKeyResponse(api_key=landing.api_key)
