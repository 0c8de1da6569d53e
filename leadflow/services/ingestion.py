# leadflow/services/ingestion.py
"""
Public lead ingestion from landing pages.

The API key is checked before the payload is looked at: a bad key yields
401 whatever the body contains.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.exceptions import AuthenticationError, ValidationError
from leadflow.core.logging import get_structlog_logger, mask_api_key
from leadflow.db.session import atomic
from leadflow.models.enums import ActivityType, LeadSource, LeadState
from leadflow.models.landing import Landing
from leadflow.schemas.common import collect_field_errors
from leadflow.schemas.ingest import PublicLeadIn
from leadflow.services import activity_log, lead_repository

logger = get_structlog_logger(__name__)

# One message for missing, unknown and inactive keys alike
INVALID_API_KEY_MESSAGE = "Invalid API key or inactive landing"


@dataclass(frozen=True)
class IngestResult:
    lead_id: int
    landing_id: int
    landing_slug: str


async def authenticate_landing(session: AsyncSession, api_key: Optional[str]) -> Landing:
    if not api_key:
        logger.warning("ingestion.rejected", reason="missing_api_key")
        raise AuthenticationError(message=INVALID_API_KEY_MESSAGE)

    result = await session.execute(
        select(Landing).where(Landing.api_key == api_key, Landing.active.is_(True))
    )
    landing = result.scalar_one_or_none()

    if landing is None:
        logger.warning("ingestion.rejected", reason="invalid_api_key", api_key=mask_api_key(api_key))
        raise AuthenticationError(message=INVALID_API_KEY_MESSAGE)

    return landing


def parse_public_lead(payload: Any) -> PublicLeadIn:
    if not isinstance(payload, dict):
        raise ValidationError(
            message="Invalid lead data",
            errors=[{"field": "body", "message": "Expected a JSON object"}],
        )

    try:
        return PublicLeadIn.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(message="Invalid lead data", errors=collect_field_errors(e)) from e


async def ingest_lead(
    session: AsyncSession,
    *,
    api_key: Optional[str],
    payload: Any,
    client_ip: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> IngestResult:
    landing = await authenticate_landing(session, api_key)

    try:
        data = parse_public_lead(payload)
    except ValidationError as e:
        logger.info("ingestion.invalid_payload", landing=landing.slug, errors=e.errors)
        raise

    async with atomic(session):
        lead = await lead_repository.create_lead(
            session,
            name=data.name,
            phone=data.phone,
            email=data.email,
            locality=data.locality,
            address=data.address,
            services=list(data.services),
            notes=data.notes,
            source=LeadSource.LANDING,
            state=LeadState.NEW,
            landing_id=landing.id,
            utm_source=data.utm_source,
            utm_medium=data.utm_medium,
            utm_campaign=data.utm_campaign,
            utm_term=data.utm_term,
            utm_content=data.utm_content,
            ip_address=client_ip[:45] if client_ip else None,
            user_agent=user_agent,
        )

        await activity_log.append(
            session,
            lead_id=lead.id,
            type=ActivityType.CREATION,
            description=f"Lead received from landing: {landing.name}",
            new_state=LeadState.NEW,
            metadata={"landing": landing.slug, "utm": data.utm()},
        )

    logger.info(
        "ingestion.accepted",
        lead_id=lead.id,
        landing=landing.slug,
        utm_source=data.utm_source,
    )
    return IngestResult(lead_id=lead.id, landing_id=landing.id, landing_slug=landing.slug)
