"""
Identity provider - delegated authentication.

CareerHub never stores passwords or signs tokens. Sign-in, sign-up and
sign-out go to Supabase GoTrue over HTTP; access tokens issued by GoTrue
are verified locally with the project's shared JWT secret.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
from jose import JWTError, jwt

from careerhub.core.config import Settings, get_settings
from careerhub.core.errors import (
    AuthError, ConflictError, RemoteUnavailableError, UnauthenticatedError, ValidationError,
)
from careerhub.schemas.schemas import Principal, Session, SessionUser, UserRole

logger = logging.getLogger(__name__)


def role_from_claims(claims: Dict[str, Any]) -> Optional[str]:
    """Admin comes from app_metadata (server-controlled); otherwise the sign-up user_type."""
    app_metadata = claims.get("app_metadata") or {}
    if app_metadata.get("role") == UserRole.admin.value:
        return UserRole.admin.value
    user_metadata = claims.get("user_metadata") or {}
    return user_metadata.get("user_type")


class IdentityProvider(ABC):

    @abstractmethod
    def sign_in(self, email: str, password: str) -> Session:
        ...

    @abstractmethod
    def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> SessionUser:
        """Create an identity; returns the provider's user (its id becomes profile_id)."""

    @abstractmethod
    def sign_out(self, access_token: str) -> None:
        ...

    @abstractmethod
    def verify(self, access_token: str) -> Principal:
        ...


class SupabaseIdentityProvider(IdentityProvider):
    """GoTrue REST client (sync httpx) plus local HS256 verification."""

    def __init__(self, settings: Settings, client: Optional[httpx.Client] = None):
        self.settings = settings
        self.client = client or httpx.Client(
            base_url=f"{settings.supabase_url.rstrip('/')}/auth/v1",
            timeout=settings.backend_timeout_seconds,
        )

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        headers = {"apikey": self.settings.supabase_anon_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    def _post(self, path: str, **kwargs) -> httpx.Response:
        try:
            response = self.client.post(path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"[Identity] Timeout calling {path}: {e}")
            raise RemoteUnavailableError("Identity provider", "timeout") from e
        except httpx.RequestError as e:
            logger.error(f"[Identity] Request error calling {path}: {e}")
            raise RemoteUnavailableError("Identity provider", str(e)) from e

        if response.status_code >= 500:
            logger.error(f"[Identity] {path} returned {response.status_code}: {response.text}")
            raise RemoteUnavailableError("Identity provider", f"HTTP {response.status_code}")
        return response

    @staticmethod
    def _error_body(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    @staticmethod
    def _user(payload: Dict[str, Any]) -> SessionUser:
        return SessionUser(id=payload["id"], email=payload.get("email"), role=role_from_claims(payload))

    def sign_in(self, email: str, password: str) -> Session:
        response = self._post(
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            headers=self._headers(),
        )
        if response.status_code != 200:
            body = self._error_body(response)
            logger.info(f"[Identity] Sign-in rejected ({response.status_code}): {body.get('error_code') or body.get('error')}")
            raise AuthError()

        body = response.json()
        return Session(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token"),
            token_type=body.get("token_type", "bearer"),
            expires_in=body.get("expires_in"),
            user=self._user(body["user"]),
        )

    def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> SessionUser:
        response = self._post(
            "/signup",
            json={"email": email, "password": password, "data": metadata},
            headers=self._headers(),
        )
        if response.status_code not in (200, 201):
            body = self._error_body(response)
            message = body.get("msg") or body.get("error_description") or body.get("message") or "Sign-up rejected"
            if body.get("error_code") == "user_already_exists" or "already registered" in message.lower():
                raise ConflictError("Email already registered", details={"email": email})
            raise ValidationError(message)

        body = response.json()
        # Auto-confirm projects return a session, others just the user
        return self._user(body.get("user") or body)

    def sign_out(self, access_token: str) -> None:
        response = self._post("/logout", headers=self._headers(access_token))
        if response.status_code == 401:
            raise UnauthenticatedError()

    def verify(self, access_token: str) -> Principal:
        try:
            claims = jwt.decode(
                access_token,
                self.settings.supabase_jwt_secret,
                algorithms=[self.settings.jwt_algorithm],
                audience=self.settings.jwt_audience,
            )
        except JWTError as e:
            logger.debug(f"[Identity] Token rejected: {e}")
            raise UnauthenticatedError() from e

        if not claims.get("sub"):
            raise UnauthenticatedError()
        return Principal(profile_id=claims["sub"], email=claims.get("email"), role=role_from_claims(claims))


_provider: Optional[IdentityProvider] = None


def get_identity_provider() -> IdentityProvider:
    """Shared provider (one pooled httpx client per process)."""
    global _provider
    if _provider is None:
        _provider = SupabaseIdentityProvider(get_settings())
    return _provider
