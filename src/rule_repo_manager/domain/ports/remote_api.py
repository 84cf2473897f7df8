"""Port: remote API: defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Any, Protocol

import httpx


class RemoteApi(Protocol):
    """Abstract contract for sending authenticated JSON requests to GitHub.

    Implementations never raise on non-2xx; callers inspect the response.
    """

    async def send(
        self,
        method: str,
        path: str,
        json: Any | None = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send one request and return the raw response."""
        ...

    async def get(self, path: str, params: dict[str, str] | None = None) -> httpx.Response:
        ...

    async def post(self, path: str, json: Any | None = None) -> httpx.Response:
        ...

    async def put(self, path: str, json: Any | None = None) -> httpx.Response:
        ...

    async def patch(self, path: str, json: Any | None = None) -> httpx.Response:
        ...

    async def delete(self, path: str, json: Any | None = None) -> httpx.Response:
        ...
