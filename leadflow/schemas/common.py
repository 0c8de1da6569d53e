# leadflow/schemas/common.py
from __future__ import annotations

from typing import Any, Dict, Generic, Iterable, List, Sequence, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

T = TypeVar("T")

# Location prefixes FastAPI adds in front of the offending field name
_REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie"}


class PaginatedResponse(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    page_size: int
    total_pages: int


class SuccessResponse(BaseModel):
    success: bool = True
    message: str


def total_pages(total: int, page_size: int) -> int:
    if page_size <= 0:
        return 0
    return (total + page_size - 1) // page_size


def _field_name(loc: Sequence[Any]) -> str:
    parts = list(loc)
    if parts and parts[0] in _REQUEST_LOCATIONS:
        parts = parts[1:]
    return ".".join(str(part) for part in parts) or "body"


def field_errors(errors: Iterable[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into ``[{"field", "message"}]``, one per field."""
    collected: Dict[str, str] = {}
    for error in errors:
        name = _field_name(error.get("loc", ()))
        if name not in collected:
            collected[name] = error.get("msg", "Invalid value")
    return [{"field": name, "message": message} for name, message in collected.items()]


def collect_field_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    return field_errors(exc.errors())
