"""Ephemeral credential providers.

A realtime session is authorised by a short-lived key fetched from a
credential endpoint right before negotiation.  Providers are async so the
ConnectionManager can await them as the first step of ``connect()``.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import httpx
from loguru import logger

from mentarie.realtime.errors import CredentialError


@runtime_checkable
class CredentialProvider(Protocol):
    async def fetch(self) -> str:
        """Return a credential.  Raises ``CredentialError`` on failure."""
        ...


class EphemeralKeyProvider:
    """Fetch ``client_secret.value`` from a credential endpoint via GET.

    Pass ``client`` to share a connection pool (or a mock transport in tests);
    otherwise a short-lived client is created per fetch.
    """

    def __init__(self, url: str, *, client: httpx.AsyncClient | None = None, timeout: float = 10.0) -> None:
        self.url = url
        self._client = client
        self._timeout = timeout

    async def fetch(self) -> str:
        try:
            if self._client is not None:
                response = await self._client.get(self.url)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(self.url)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            msg = f"Credential request to {self.url} failed: {e}"
            raise CredentialError(msg) from e

        value = extract_client_secret(data)
        if not value:
            logger.error("No ephemeral key provided by {}", self.url)
            msg = "No ephemeral key provided by the server"
            raise CredentialError(msg)
        return value


class StaticKeyProvider:
    """Return a fixed key (server-to-server sockets authorised by an API key)."""

    def __init__(self, key: str) -> None:
        self._key = key

    async def fetch(self) -> str:
        if not self._key:
            msg = "No API key configured"
            raise CredentialError(msg)
        return self._key


def extract_client_secret(data: object) -> str | None:
    """Pull ``client_secret.value`` out of a session-mint response."""
    if not isinstance(data, dict):
        return None
    secret = data.get("client_secret")
    if not isinstance(secret, dict):
        return None
    value = secret.get("value")
    return value if isinstance(value, str) and value else None
