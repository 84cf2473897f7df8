"""Promote-branch use case.

The base is always the single configured promotion branch (the default
branch unless ``PROMOTION_BASE_BRANCH`` is set). A missing target branch is
created at the base tip; an existing one receives a synchronisation commit
whose tree is the base tree and whose only parent is the branch's own tip,
so the branch history is extended rather than rewritten.
"""

from __future__ import annotations

from rule_repo_manager.domain.entities import PromotionAction, PromotionResult
from rule_repo_manager.domain.exceptions import RemoteRequestError
from rule_repo_manager.domain.value_objects import BranchRef, RepositoryRef
from rule_repo_manager.infrastructure.github_rest_adapter import error_text, is_ok
from rule_repo_manager.services.context import WorkflowContext
from rule_repo_manager.services.remote_lookups import get_branch_sha


class PromoteBranchUseCase:
    def __init__(self, context: WorkflowContext) -> None:
        self._api = context.api
        self._config = context.config
        self._log = context.logger

    async def execute(
        self, organization: str, rule_id: str, branch_name: str
    ) -> PromotionResult:
        repo = RepositoryRef.for_rule(organization, rule_id)
        target = BranchRef(repository=repo, branch=branch_name)
        base_branch = self._config.promotion_base

        base_sha = await get_branch_sha(self._api, repo, base_branch)
        if not base_sha:
            raise RemoteRequestError(
                f"Base branch {base_branch} not found in {repo.full_name}", status_code=404
            )

        existing_sha = await get_branch_sha(self._api, repo, branch_name)

        if existing_sha:
            await self._synchronize(target, base_sha, existing_sha)
            action = PromotionAction.SYNCHRONIZED
            message = f"Synchronized branch {branch_name} with {base_branch} ({base_sha})"
        else:
            await self._create(target, base_sha)
            action = PromotionAction.CREATED
            message = f"Created branch {branch_name} from {base_branch} ({base_sha})"

        self._log.info("%s in %s", message, repo.full_name)
        return PromotionResult(
            action=action, base_branch=base_branch, base_sha=base_sha, message=message
        )

    async def _create(self, target: BranchRef, base_sha: str) -> None:
        """POST /repos/{owner}/{repo}/git/refs."""
        resp = await self._api.post(
            f"{target.repository.api_path}/git/refs",
            json={"ref": target.ref, "sha": base_sha},
        )
        if not is_ok(resp):
            raise RemoteRequestError(
                f"Failed to create branch {target.branch}: {error_text(resp)}",
                status_code=resp.status_code,
            )

    async def _synchronize(self, target: BranchRef, base_sha: str, existing_sha: str) -> None:
        """Base tree → new commit on top of the existing tip → move the ref."""
        repo_path = target.repository.api_path

        commit_resp = await self._api.get(f"{repo_path}/commits/{base_sha}")
        if not is_ok(commit_resp):
            raise RemoteRequestError(
                "Failed to fetch the latest commit from the base branch: "
                f"{error_text(commit_resp)}",
                status_code=commit_resp.status_code,
            )
        tree_sha = commit_resp.json()["commit"]["tree"]["sha"]

        new_commit_resp = await self._api.post(
            f"{repo_path}/git/commits",
            json={
                "message": f"Sync {target.branch} with latest commit from {base_sha}",
                "tree": tree_sha,
                "parents": [existing_sha],
            },
        )
        if not is_ok(new_commit_resp):
            raise RemoteRequestError(
                f"Failed to create commit: {error_text(new_commit_resp)}",
                status_code=new_commit_resp.status_code,
            )
        new_sha = new_commit_resp.json()["sha"]

        update_resp = await self._api.patch(
            f"{repo_path}/git/refs/heads/{target.branch}", json={"sha": new_sha}
        )
        if not is_ok(update_resp):
            raise RemoteRequestError(
                f"Failed to update branch reference: {error_text(update_resp)}",
                status_code=update_resp.status_code,
            )
