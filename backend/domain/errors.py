"""
Custom domain exceptions for consistent error handling.

These exceptions are mapped to HTTP status codes by the global exception handler
in main.py. Local validation errors (IllegalTransition, Forbidden, MissingReason)
are always raised before any repository or directory call.
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


class IllegalTransitionError(DomainError):
    """Target status is not reachable from the current status (409)."""
    def __init__(self, from_status: str, to_status: str):
        super().__init__(
            f"Cannot move order from {from_status} to {to_status}",
            status_code=status.HTTP_409_CONFLICT,
            details={"from_status": from_status, "to_status": to_status},
        )


class ForbiddenError(DomainError):
    """Role lacks the privilege for this edge (403)."""
    def __init__(self, message: str = "Admin role required", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN, details=details)


class MissingReasonError(DomainError):
    """Administrative action attempted without a justification (400)."""
    def __init__(self, action: str):
        super().__init__(
            f"A reason is required to {action} an order",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"action": action},
        )


class InvalidEmployeeCodeError(DomainError):
    """Employee directory could not resolve the supplied code (400)."""
    def __init__(self, message: str = "Invalid employee code"):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class ConflictError(DomainError):
    """Resource conflict (409)."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, details=details)


class UnavailableError(DomainError):
    """Storage or directory unreachable (503)."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_503_SERVICE_UNAVAILABLE, details=details)
