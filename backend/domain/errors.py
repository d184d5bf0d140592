"""
Custom domain exceptions for consistent error handling.

These exceptions are mapped to HTTP status codes by the global exception handler
in main.py.
"""
from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict | None = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.details = details or {}


class NotFoundError(DomainError):
    """Resource not found (404)."""
    def __init__(self, resource_type: str, identifier: str, details: dict | None = None):
        message = f"{resource_type} not found: {identifier}"
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, details=details)


class ValidationError(DomainError):
    """Validation error (400)."""
    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        if field:
            message = f"Validation error on {field}: {message}"
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class PermissionDeniedError(DomainError):
    """Permission denied (403)."""
    def __init__(self, message: str = "Permission denied", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN, details=details)


class UnauthorizedError(DomainError):
    """Unauthorized access (401)."""
    def __init__(self, message: str = "Unauthorized", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED, details=details)


class ConflictError(DomainError):
    """Resource conflict (409)."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, details=details)


class InvalidStatusTransitionError(ValidationError):
    """Order status change not present in the transition table (400)."""
    def __init__(self, current: str, requested: str, allowed: list[str] | None = None):
        allowed = allowed or []
        message = f"Invalid order status transition: {current} → {requested}"
        if allowed:
            message += f" (allowed: {', '.join(allowed)})"
        super().__init__(
            message,
            details={"from": current, "to": requested, "allowed": allowed},
        )
        self.current = current
        self.requested = requested


class PaymentStatusLockedError(ValidationError):
    """Payment status cannot be edited for this order (400)."""
    def __init__(self, reason: str):
        super().__init__(reason, details={"reason": reason})
        self.reason = reason


class QueryTimeoutError(DomainError):
    """List query exceeded the configured time bound (504)."""
    def __init__(self, timeout_seconds: float, model_name: str | None = None):
        target = f" on {model_name}" if model_name else ""
        message = f"Query timeout{target}: exceeded {timeout_seconds:g}s"
        super().__init__(
            message,
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            details={"timeout_seconds": timeout_seconds},
        )
