"""Domain exceptions raised by the service layer.

Each exception carries the HTTP status code the API layer maps it to, so
services stay free of FastAPI imports.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

from typing import Optional


class IjazahError(Exception):
    """Base class for all platform errors."""
    
    status_code: int = 400
    error: str = "Bad request"
    
    def __init__(self, detail: str, error: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        if error:
            self.error = error


class NotFoundError(IjazahError):
    status_code = 404
    error = "Not found"


class PermissionDeniedError(IjazahError):
    status_code = 403
    error = "Forbidden"


class ConflictError(IjazahError):
    status_code = 409
    error = "Conflict"


class InvalidTransitionError(ConflictError):
    """Raised when a status change is not allowed from the current status."""
    
    error = "Invalid status transition"
    
    def __init__(self, entity: str, current: str, target: str, allowed=()):
        allowed_text = ", ".join(sorted(allowed)) if allowed else "none"
        super().__init__(
            f"Cannot move {entity} from '{current}' to '{target}' (allowed: {allowed_text})"
        )
        self.current = current
        self.target = target
        self.allowed = tuple(allowed)


class ConcurrencyError(ConflictError):
    """Raised when a record changed since the caller last read it."""
    
    error = "Version conflict"


class ValidationFailedError(IjazahError):
    status_code = 422
    error = "Validation failed"


class PlatformConfigError(IjazahError):
    status_code = 500
    error = "Invalid platform configuration"
