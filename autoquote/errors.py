"""
Error taxonomy for the quote and binding services.

Services raise these; the exception handler in autoquote.main renders
them as structured JSON bodies.
"""

from typing import Dict, Any, Optional


class QuoteServiceError(Exception):
    """Base error carrying an HTTP status, a stable code and structured details."""

    status_code = 500
    error_code = "internal_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(QuoteServiceError):
    """Malformed or missing required input."""

    status_code = 400
    error_code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, details)
        self.field = field


class NotFoundError(QuoteServiceError):
    """Quote, policy, claim, document or signature reference does not resolve."""

    status_code = 404
    error_code = "not_found"

    def __init__(self, resource: str, reference: str):
        super().__init__(f"{resource} {reference} not found", {"resource": resource, "reference": reference})
        self.resource = resource
        self.reference = reference


class ConflictError(QuoteServiceError):
    """Status guard violated."""

    status_code = 409
    error_code = "status_conflict"

    def __init__(self, current_status: str, attempted: str, message: Optional[str] = None):
        super().__init__(
            message or f"Cannot {attempted} while status is {current_status}",
            {"current_status": current_status, "attempted": attempted},
        )
        self.current_status = current_status
        self.attempted = attempted


class PaymentDeclinedError(QuoteServiceError):
    """Payment simulator returned a decline."""

    status_code = 402
    error_code = "payment_declined"

    def __init__(self, reason: str):
        super().__init__(f"Payment declined: {reason}", {"reason": reason})
        self.reason = reason


class InternalError(QuoteServiceError):
    """Unexpected persistence or generation failure."""

    status_code = 500
    error_code = "internal_error"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)


class IdempotencyKeyReusedError(QuoteServiceError):
    """Idempotency key replayed with a different request."""

    status_code = 422
    error_code = "idempotency_key_reused"

    def __init__(self, idempotency_key: str):
        super().__init__(
            f"Idempotency key {idempotency_key} was already used for a different request",
            {"idempotency_key": idempotency_key},
        )
        self.idempotency_key = idempotency_key


class DuplicateError(QuoteServiceError):
    """Record that may exist only once already exists."""

    status_code = 409
    error_code = "duplicate"

    def __init__(self, resource: str, reference: str):
        super().__init__(f"{resource} already exists for {reference}", {"resource": resource, "reference": reference})
        self.resource = resource
        self.reference = reference
