from __future__ import annotations

import base64
import json
from typing import Any, Callable, Union

import httpx
import pytest

from rule_repo_manager.infrastructure.github_rest_adapter import GitHubClient
from rule_repo_manager.services.context import RepoConfig, WorkflowContext

Reply = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class FakeGitHub:
    """Scripted GitHub served through ``httpx.MockTransport``.

    Replies are queued per ``(method, path)``; the last queued reply is
    repeated once the others are used up. Unscripted routes answer 404.
    """

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], list[Reply]] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, *replies: Reply) -> FakeGitHub:
        self._routes.setdefault((method, path), []).extend(replies)
        return self

    def set(self, method: str, path: str, *replies: Reply) -> FakeGitHub:
        self._routes[(method, path)] = list(replies)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"message": "Not Found"})
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        return reply

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    # ── Assertions helpers ──────────────────────────────────────────────

    @property
    def calls(self) -> list[tuple[str, str]]:
        return [(r.method, r.url.path) for r in self.requests]

    def calls_to(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


def body(request: httpx.Request) -> dict[str, Any]:
    return json.loads(request.content)


def b64(text: str) -> str:
    return base64.b64encode(text.encode()).decode()


def file_payload(text: str, sha: str = "file-sha", path: str = "file") -> dict[str, Any]:
    return {"type": "file", "path": path, "sha": sha, "encoding": "base64", "content": b64(text)}


def ok(payload: Any = None, status: int = 200) -> httpx.Response:
    return httpx.Response(status, json=payload if payload is not None else {})


def fail(status: int, text: str = "") -> httpx.Response:
    return httpx.Response(status, text=text)


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def repo_config() -> RepoConfig:
    return RepoConfig(
        template_owner="test-owner",
        template_repo="test-repo",
        default_branch="main",
        test_report_path="reports/index.html",
        poll_max_attempts=3,
        poll_delay_ms=0,
    )


@pytest.fixture
def make_context(github: FakeGitHub) -> Callable[..., WorkflowContext]:
    def _make(config: RepoConfig) -> WorkflowContext:
        client = httpx.AsyncClient(transport=github.transport())
        return WorkflowContext(api=GitHubClient(client, token="test-token"), config=config)

    return _make


@pytest.fixture
def context(make_context, repo_config: RepoConfig) -> WorkflowContext:
    return make_context(repo_config)
