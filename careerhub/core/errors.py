"""
Custom Exceptions for CareerHub
===============================

Every error a service or store raises on purpose is a CareerHubError.
Each subclass carries the HTTP status the API layer answers with, so
routes never translate errors themselves.

Usage:
    from careerhub.core.errors import NotFoundError, ConflictError

    if not application:
        raise NotFoundError("Application", application_id)
"""

from typing import Optional, Any, Dict


class CareerHubError(Exception):
    """Base exception for all CareerHub errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Resource Errors
# ============================================

class NotFoundError(CareerHubError):
    """Entity absent"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class ConflictError(CareerHubError):
    """Duplicate entity or a concurrent write that lost the race"""

    status_code = 409

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFLICT", details=details)


class InvalidStateError(CareerHubError):
    """Lifecycle transition attempted from a non-eligible state"""

    status_code = 409

    def __init__(self, message: str, current_state: Optional[str] = None):
        details = {"current_state": current_state} if current_state else {}
        super().__init__(message, code="INVALID_STATE", details=details)


class ValidationError(CareerHubError):
    """Malformed entity"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthError(CareerHubError):
    """Identity provider rejected the credentials"""

    status_code = 401

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, code="AUTH_FAILED")


class UnauthenticatedError(CareerHubError):
    """Missing, expired or invalid token"""

    status_code = 401

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message, code="UNAUTHENTICATED")


class ForbiddenError(CareerHubError):
    """Authenticated, but not the party allowed to act"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="FORBIDDEN")


# ============================================
# Backend Errors
# ============================================

class RemoteUnavailableError(CareerHubError):
    """Backend store or identity provider timed out or is down"""

    status_code = 503

    def __init__(self, service: str, reason: str = ""):
        super().__init__(
            f"{service} unavailable" + (f": {reason}" if reason else ""),
            code="REMOTE_UNAVAILABLE",
            details={"service": service}
        )
