# leadflow/schemas/__init__.py
"""
Pydantic schemas for request/response validation and serialization.
"""

from leadflow.schemas.ingest import IngestResponse, PublicLeadIn
from leadflow.schemas.lead import (
    BulkActionRequest,
    BulkActionResponse,
    LeadCreate,
    LeadDetailResponse,
    LeadResponse,
    LeadUpdate,
    StateChangeRequest,
)

__all__ = [
    "BulkActionRequest",
    "BulkActionResponse",
    "IngestResponse",
    "LeadCreate",
    "LeadDetailResponse",
    "LeadResponse",
    "LeadUpdate",
    "PublicLeadIn",
    "StateChangeRequest",
]
