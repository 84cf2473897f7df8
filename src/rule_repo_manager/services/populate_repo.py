"""Populate-repository use case: writes the rule and its unit test."""

from __future__ import annotations

from rule_repo_manager.domain.entities import FileHandle, PopulateResult
from rule_repo_manager.domain.exceptions import RemoteRequestError
from rule_repo_manager.domain.value_objects import RepositoryRef
from rule_repo_manager.infrastructure.github_rest_adapter import error_text, is_ok
from rule_repo_manager.services.context import WorkflowContext
from rule_repo_manager.services.remote_lookups import get_file_sha


class PopulateRepoUseCase:
    """Create-or-update the rule file, then the test file, on the default branch.

    The order is fixed and the test file is never written when the rule file
    write fails.
    """

    def __init__(self, context: WorkflowContext) -> None:
        self._api = context.api
        self._config = context.config
        self._log = context.logger

    async def execute(
        self, organization: str, rule_id: str, rule_code_b64: str, test_code_b64: str
    ) -> PopulateResult:
        repo = RepositoryRef.for_rule(organization, rule_id)
        branch = self._config.default_branch

        await self._upsert(repo, self._config.rule_file_path, branch, rule_code_b64, "Rule")
        await self._upsert(repo, self._config.test_file_path, branch, test_code_b64, "Test")

        self._log.info("Populated %s on %s", repo.full_name, branch)
        return PopulateResult(message=f"Populated {repo.full_name} on {branch}")

    async def _upsert(
        self, repo: RepositoryRef, path: str, branch: str, content_b64: str, label: str
    ) -> None:
        sha = await get_file_sha(self._api, repo, path, branch)
        handle = FileHandle(path=path, branch=branch, content_b64=content_b64, sha=sha)
        resp = await self._api.put(
            f"{repo.api_path}/contents/{path}",
            json=handle.to_payload(f"Update {path}"),
        )
        if not is_ok(resp):
            raise RemoteRequestError(
                f"{label} update failed: {error_text(resp)}", status_code=resp.status_code
            )
        self._log.debug("%s %s in %s", "Updated" if sha else "Created", path, repo.full_name)
