"""Read-only GitHub lookups shared by several workflows.

Lookups that answer "does this exist?" return ``None`` on any non-2xx
response; absence is a normal outcome, never an error.
"""

from __future__ import annotations

import logging

from rule_repo_manager.domain.entities import RemoteContent, parse_contents
from rule_repo_manager.domain.exceptions import RemoteRequestError
from rule_repo_manager.domain.ports.remote_api import RemoteApi
from rule_repo_manager.domain.value_objects import RepositoryRef
from rule_repo_manager.infrastructure.github_rest_adapter import error_text, is_ok

logger = logging.getLogger(__name__)


async def get_file_sha(
    api: RemoteApi, repo: RepositoryRef, path: str, branch: str
) -> str | None:
    """GET /repos/{owner}/{repo}/contents/{path}?ref={branch} → sha or None."""
    resp = await api.get(f"{repo.api_path}/contents/{path}", params={"ref": branch})
    if not is_ok(resp):
        logger.debug("No existing %s in %s@%s", path, repo.full_name, branch)
        return None
    data = resp.json()
    if isinstance(data, dict):
        return data.get("sha")
    return None


async def get_branch_sha(api: RemoteApi, repo: RepositoryRef, branch: str) -> str | None:
    """GET /repos/{owner}/{repo}/git/ref/heads/{branch} → tip commit sha or None."""
    resp = await api.get(f"{repo.api_path}/git/ref/heads/{branch}")
    if not is_ok(resp):
        logger.debug("Branch %s not found in %s", branch, repo.full_name)
        return None
    return resp.json()["object"]["sha"]


async def get_contents(
    api: RemoteApi, repo: RepositoryRef, path: str = "", ref: str | None = None
) -> RemoteContent:
    """GET /repos/{owner}/{repo}/contents/{path} → file or directory.

    Raises :class:`RemoteRequestError` on non-2xx, carrying the status code.
    """
    params = {"ref": ref} if ref else None
    resp = await api.get(f"{repo.api_path}/contents/{path}", params=params)
    if not is_ok(resp):
        raise RemoteRequestError(error_text(resp), status_code=resp.status_code)
    return parse_contents(resp.json(), path)
