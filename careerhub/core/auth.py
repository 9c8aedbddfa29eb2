"""
Authentication Utility - bearer tokens to principals.

Provides:
- Bearer token extraction
- FastAPI dependencies for protected routes (principal, admin)

Tokens are issued by the identity provider; this module only verifies them.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from careerhub.core.errors import ForbiddenError, UnauthenticatedError
from careerhub.schemas.schemas import Principal, UserRole
from careerhub.services.identity import IdentityProvider, get_identity_provider

# Bearer token extractor (missing header handled below, as a 401)
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> Principal:
    """
    FastAPI dependency - Get the verified principal behind the request.

    Usage:
        @router.put("/protected")
        def route(principal: Principal = Depends(get_current_principal)):
            return principal
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError("Missing bearer token")
    return identity.verify(credentials.credentials)


def get_optional_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> Optional[Principal]:
    """
    Principal if a token was sent, else None (open endpoints).
    A token that fails verification is still a 401.
    """
    if credentials is None or not credentials.credentials:
        return None
    return identity.verify(credentials.credentials)


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Dependency - Require the admin role."""
    if principal.role != UserRole.admin.value:
        raise ForbiddenError("Admins only")
    return principal
