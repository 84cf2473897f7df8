"""GitHub REST API adapter: implements the RemoteApi port."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from rule_repo_manager.domain.exceptions import TransportError

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"
API_VERSION = "2022-11-28"


class GitHubClient:
    """Concrete RemoteApi backed by the GitHub v3 REST API.

    Only builds and sends requests: no retries, no status interpretation.
    The shared ``httpx.AsyncClient`` is owned by the caller.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: str | None = None,
        base_url: str = GITHUB_API,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._headers: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": "rule-repo-manager/1.0",
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    async def send(
        self,
        method: str,
        path: str,
        json: Any | None = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send one request; transport failures become :class:`TransportError`."""
        url = f"{self._base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            return await self._client.request(
                method, url, headers=self._headers, json=json, params=params
            )
        except httpx.HTTPError as exc:
            raise TransportError(
                f"Network error calling {method} {url}: {exc}"
            ) from exc

    async def get(self, path: str, params: dict[str, str] | None = None) -> httpx.Response:
        return await self.send("GET", path, params=params)

    async def post(self, path: str, json: Any | None = None) -> httpx.Response:
        return await self.send("POST", path, json=json)

    async def put(self, path: str, json: Any | None = None) -> httpx.Response:
        return await self.send("PUT", path, json=json)

    async def patch(self, path: str, json: Any | None = None) -> httpx.Response:
        return await self.send("PATCH", path, json=json)

    async def delete(self, path: str, json: Any | None = None) -> httpx.Response:
        return await self.send("DELETE", path, json=json)


def is_ok(response: httpx.Response) -> bool:
    """Uniform success check for every remote call."""
    return 200 <= response.status_code < 300


def error_text(response: httpx.Response) -> str:
    """Return GitHub's body text, or a status line when the body is empty."""
    text = response.text.strip()
    if text:
        return text
    return f"GitHub API returned HTTP {response.status_code}"


def error_message(response: httpx.Response) -> str:
    """Return the ``message`` field of a JSON error body, else the raw text."""
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return response.text
