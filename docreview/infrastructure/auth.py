"""Access tokens for the Drive API."""
from __future__ import annotations

import asyncio
import json
from typing import Any, Iterable, Protocol

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from .store import StoreRequestError

DRIVE_SCOPES = ("https://www.googleapis.com/auth/drive",)


class TokenSource(Protocol):
    async def token(self) -> str: ...


class StaticToken:
    """A pre-minted bearer token; it is never refreshed."""

    def __init__(self, token: str) -> None:
        self._token = token

    async def token(self) -> str:
        return self._token


class ServiceAccountToken:
    """Mints access tokens from a service-account key and refreshes them on expiry.

    ``google-auth`` refreshes synchronously, so the refresh runs in a worker
    thread; concurrent callers wait for the same refresh.
    """

    def __init__(self, credentials: Any) -> None:
        self._credentials = credentials
        self._lock = asyncio.Lock()

    @classmethod
    def from_info(cls, info: dict[str, Any], scopes: Iterable[str] = DRIVE_SCOPES) -> "ServiceAccountToken":
        return cls(service_account.Credentials.from_service_account_info(info, scopes=list(scopes)))

    @property
    def credentials(self) -> Any:
        return self._credentials

    async def token(self) -> str:
        async with self._lock:
            if not self._credentials.valid:
                try:
                    await asyncio.to_thread(self._credentials.refresh, Request())
                except GoogleAuthError as exc:
                    raise StoreRequestError(f"token refresh failed: {exc}") from exc
            return str(self._credentials.token)


def token_source_from_credentials(blob: str) -> TokenSource:
    """Build a token source from ``GOOGLE_CLOUD_CREDENTIALS``.

    Accepts a service-account key (``client_email`` and ``private_key``), a
    JSON object carrying ``access_token`` or ``token``, or the bare token.
    """

    blob = blob.strip()
    if not blob:
        raise ValueError("credentials are empty")
    if not blob.startswith("{"):
        return StaticToken(blob)

    info = json.loads(blob)
    if info.get("type") == "service_account" or {"client_email", "private_key"} <= info.keys():
        return ServiceAccountToken.from_info(info)
    token = info.get("access_token") or info.get("token")
    if not token:
        raise ValueError("credentials must be a service-account key or include access_token")
    return StaticToken(str(token))


__all__ = ["DRIVE_SCOPES", "ServiceAccountToken", "StaticToken", "TokenSource", "token_source_from_credentials"]
