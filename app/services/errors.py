# app/services/errors.py
"""
Typed error conditions raised by the service layer.

Every error carries the HTTP status it maps to and a message that is safe to
show to the caller. Internal details (exception text, ids) belong in logs, not
in `message`.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class NutritionPlanError(Exception):
    """Base class for all service errors."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, **context: Any) -> None:
        self.message = message or self.default_message
        self.context: Dict[str, Any] = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": False, "status": self.status_code, "error": self.message}


class ValidationError(NutritionPlanError):
    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(NutritionPlanError):
    status_code = 401
    default_message = "Authentication required"


class AccessDeniedError(NutritionPlanError):
    status_code = 403
    default_message = "Access denied"


class StateConflictError(NutritionPlanError):
    """The record exists but its state does not allow the operation (e.g. draft)."""

    status_code = 403
    default_message = "Not available for updates"


class NotFoundError(NutritionPlanError):
    status_code = 404
    default_message = "Not found"


class ConcurrentModificationError(NutritionPlanError):
    status_code = 409
    default_message = "The document was modified by someone else. Reload and try again."


class ExternalServiceError(NutritionPlanError):
    status_code = 502
    default_message = "External service error"


class ServiceUnavailableError(NutritionPlanError):
    status_code = 503
    default_message = "Service is not configured"


class PersistenceError(NutritionPlanError):
    status_code = 500
    default_message = "Failed to save changes. Please try again."


class TokenGenerationError(NutritionPlanError):
    """Secure random source unavailable. Fatal; never retried at this layer."""

    status_code = 500
    default_message = "Failed to generate share token"
