from __future__ import annotations

from typing import Any, Dict, List, Optional


class BaseAPIException(Exception):
    """Base exception for all LeadFlow errors."""

    default_code = "error"

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Tagged failure body returned to API callers."""
        return {
            "success": False,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class APIError(BaseAPIException):
    """Generic API error."""
    default_code = "internal_error"

    def __init__(self, message: str = "An error occurred", **kwargs):
        super().__init__(message, status_code=500, **kwargs)


class AuthenticationError(BaseAPIException):
    """Authentication failed."""
    default_code = "unauthorized"

    def __init__(self, message: str = "Authentication failed", **kwargs):
        super().__init__(message, status_code=401, **kwargs)


class NotFoundError(BaseAPIException):
    """Resource not found."""
    default_code = "not_found"

    def __init__(self, message: str = "Resource not found", **kwargs):
        super().__init__(message, status_code=404, **kwargs)


class ValidationError(BaseAPIException):
    """Malformed or out-of-range input.

    ``details["errors"]`` holds one ``{"field", "message"}`` entry per
    offending field.
    """
    default_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation error",
        errors: Optional[List[Dict[str, str]]] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", None) or {}
        if errors is not None:
            details["errors"] = errors
        super().__init__(message, status_code=400, details=details, **kwargs)

    @property
    def errors(self) -> List[Dict[str, str]]:
        return self.details.get("errors", [])

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(f"Invalid value for '{field}'", errors=[{"field": field, "message": message}])


class ConflictError(BaseAPIException):
    """Resource conflict."""
    default_code = "conflict"

    def __init__(self, message: str = "Resource conflict", **kwargs):
        super().__init__(message, status_code=409, **kwargs)


class BusinessRuleError(BaseAPIException):
    """Business rule violation."""
    default_code = "business_rule_violation"

    def __init__(self, message: str = "Business rule violation", **kwargs):
        super().__init__(message, status_code=400, **kwargs)


class InvalidTransitionError(BusinessRuleError):
    """Pipeline precondition violated."""
    default_code = "invalid_transition"

    def __init__(self, message: str = "Invalid state transition", **kwargs):
        super().__init__(message, **kwargs)


class InvalidArgumentError(BaseAPIException):
    """Unrecognised action or enum value."""
    default_code = "invalid_argument"

    def __init__(self, message: str = "Invalid argument", **kwargs):
        super().__init__(message, status_code=400, **kwargs)


class RateLimitError(BaseAPIException):
    """Rate limit exceeded."""
    default_code = "rate_limited"

    def __init__(self, message: str = "Rate limit exceeded", retry_after: Optional[int] = None, **kwargs):
        super().__init__(message, status_code=429, **kwargs)
        self.retry_after = retry_after


class DatabaseError(BaseAPIException):
    """Database error."""
    default_code = "database_error"

    def __init__(self, message: str = "Database error", **kwargs):
        super().__init__(message, status_code=500, **kwargs)


class ServiceUnavailableError(BaseAPIException):
    """Service unavailable."""
    default_code = "service_unavailable"

    def __init__(self, message: str = "Service unavailable", **kwargs):
        super().__init__(message, status_code=503, **kwargs)
