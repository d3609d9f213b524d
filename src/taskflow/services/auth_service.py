"""Bearer token verification against the Supabase auth API."""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """The token could not be verified."""


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str | None = None


class TokenVerifier(Protocol):
    async def verify(self, token: str) -> AuthUser: ...


class SupabaseVerifier:
    """Resolves an access token to its user via ``GET /auth/v1/user``."""

    def __init__(self, url: str, anon_key: str, timeout: float = 10.0) -> None:
        self._url = url.rstrip("/")
        self._anon_key = anon_key
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "SupabaseVerifier":
        return cls(settings.supabase_url, settings.supabase_anon_key, settings.auth_timeout)

    @property
    def configured(self) -> bool:
        return bool(self._url and self._anon_key)

    async def verify(self, token: str) -> AuthUser:
        if not self.configured:
            raise AuthError("Auth provider is not configured")
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(
                    f"{self._url}/auth/v1/user",
                    headers={
                        "apikey": self._anon_key,
                        "Authorization": f"Bearer {token}",
                    },
                )
        except httpx.HTTPError as e:
            logger.warning("Auth provider unreachable: %s", e)
            raise AuthError("Authentication failed") from e

        if resp.status_code != 200:
            raise AuthError("Invalid token")
        data = resp.json()
        user_id = data.get("id")
        if not user_id:
            raise AuthError("Invalid token: missing user")
        return AuthUser(id=user_id, email=data.get("email"))


def extract_bearer(authorization: str | None) -> str | None:
    """Token from an ``Authorization: Bearer <token>`` header, or None."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None
