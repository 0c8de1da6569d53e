# leadflow/routes/public.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.config import settings
from leadflow.db.session import get_session
from leadflow.schemas.ingest import IngestResponse
from leadflow.services.ingestion import ingest_lead
from leadflow.services.normalization import extract_client_ip

router = APIRouter(prefix="/public", tags=["public"])


@router.post(
    "/leads",
    response_model=IngestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Receive a lead from a landing page",
)
async def receive_lead(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> IngestResponse:
    # The body is read raw: the API key has to be checked before validation
    try:
        payload = await request.json()
    except ValueError:
        payload = None

    result = await ingest_lead(
        session,
        api_key=request.headers.get(settings.api_key_header),
        payload=payload,
        client_ip=extract_client_ip(request.headers),
        user_agent=request.headers.get("user-agent"),
    )
    return IngestResponse(lead_id=result.lead_id, message="Lead received")
