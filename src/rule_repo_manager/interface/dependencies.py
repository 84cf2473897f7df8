"""FastAPI dependency injection wiring."""

from __future__ import annotations

import logging

import httpx
from fastapi import Depends, Header

from rule_repo_manager.infrastructure.config import Settings, get_settings
from rule_repo_manager.infrastructure.github_rest_adapter import GitHubClient
from rule_repo_manager.interface.auth import resolve_credential
from rule_repo_manager.services.bootstrap_repo import BootstrapRepoUseCase
from rule_repo_manager.services.context import RepoConfig, WorkflowContext
from rule_repo_manager.services.populate_repo import PopulateRepoUseCase
from rule_repo_manager.services.promote_branch import PromoteBranchUseCase
from rule_repo_manager.services.unit_tests import UnitTestUseCase

_http_client: httpx.AsyncClient | None = None


async def startup() -> None:
    """Initialise the shared connection pool; called from the lifespan context manager."""
    global _http_client  # noqa: PLW0603

    settings = get_settings()
    _http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.request_timeout_s))


async def shutdown() -> None:
    """Release shared resources."""
    global _http_client  # noqa: PLW0603

    if _http_client:
        await _http_client.aclose()
        _http_client = None


def get_app_settings() -> Settings:
    return get_settings()


def get_http_client() -> httpx.AsyncClient:
    assert _http_client is not None, "startup() was not called"
    return _http_client


def get_credential(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> str | None:
    return resolve_credential(authorization, settings)


def get_context(
    credential: str | None = Depends(get_credential),
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_app_settings),
) -> WorkflowContext:
    """Build the per-request context every workflow runs against."""
    return WorkflowContext(
        api=GitHubClient(client=client, token=credential, base_url=settings.github_api_url),
        config=RepoConfig.from_settings(settings),
        logger=logging.getLogger("rule_repo_manager.workflows"),
    )


def get_bootstrap_use_case(context: WorkflowContext = Depends(get_context)) -> BootstrapRepoUseCase:
    return BootstrapRepoUseCase(context)


def get_populate_use_case(context: WorkflowContext = Depends(get_context)) -> PopulateRepoUseCase:
    return PopulateRepoUseCase(context)


def get_promote_use_case(context: WorkflowContext = Depends(get_context)) -> PromoteBranchUseCase:
    return PromoteBranchUseCase(context)


def get_unit_test_use_case(context: WorkflowContext = Depends(get_context)) -> UnitTestUseCase:
    return UnitTestUseCase(context)
