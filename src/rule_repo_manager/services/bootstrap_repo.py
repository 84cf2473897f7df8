"""Bootstrap-repository use case.

Creates ``<org>/rule-<ruleId>``, waits for GitHub to finish populating it,
then either rewrites its manifest (``template_generate`` mode) or copies the
template tree file by file (``template_copy`` mode). Copy mode first moves
the auto-initialised ``main`` branch to the default branch and removes the
generated README.

Steps fail fast and nothing is rolled back: a repository created in the
first step is left in place if a later step fails.
"""

from __future__ import annotations

import json

from rule_repo_manager.domain.entities import (
    BootstrapResult,
    FileHandle,
    RemoteFile,
    encode_text,
)
from rule_repo_manager.domain.exceptions import (
    ConcurrencyConflictError,
    ManifestParseError,
    RemoteRequestError,
)
from rule_repo_manager.domain.value_objects import RepositoryRef
from rule_repo_manager.infrastructure.github_rest_adapter import error_text, is_ok
from rule_repo_manager.services.context import WorkflowContext
from rule_repo_manager.services.polling import wait_until_ready
from rule_repo_manager.services.remote_lookups import get_contents, get_file_sha
from rule_repo_manager.services.template_copy import TemplateCopier

MANIFEST_PATH = "package.json"
INITIAL_BRANCH = "main"
INITIAL_README = "README.md"


class BootstrapRepoUseCase:
    """Orchestrates create → poll → manifest update (or template copy)."""

    def __init__(self, context: WorkflowContext) -> None:
        self._api = context.api
        self._config = context.config
        self._log = context.logger
        self._context = context

    async def execute(
        self, rule_id: str, rule_version: str, organization: str
    ) -> BootstrapResult:
        repo = RepositoryRef.for_rule(organization, rule_id)
        copy_mode = self._config.bootstrap_mode == "template_copy"
        self._log.info("Creating %s (%s)", repo.full_name, self._config.bootstrap_mode)

        # 1. Create
        if copy_mode:
            repo_url = await self._create_empty(repo)
        else:
            repo_url = await self._generate_from_template(repo)

        # 2. Wait for the first commit to become visible
        await wait_until_ready(
            lambda: self._has_contents(repo),
            max_attempts=self._config.poll_max_attempts,
            delay_ms=self._config.poll_delay_ms,
        )

        # 3. Populate
        if copy_mode:
            await self._prepare_empty(repo)
            summary = await TemplateCopier(self._context).copy(repo, rule_id, rule_version)
            self._log.info(
                "Copied template into %s: %d copied, %d already present, %d failed",
                repo.full_name,
                len(summary.copied),
                len(summary.already_present),
                len(summary.failed),
            )
        else:
            await self._update_manifest(repo, rule_version)

        self._log.info("Created: %s", repo.full_name)
        return BootstrapResult(
            repo_url=repo_url,
            message=f"Created {repo.full_name} v{rule_version}",
        )

    # ── Creation ────────────────────────────────────────────────────────

    async def _generate_from_template(self, repo: RepositoryRef) -> str:
        """POST /repos/{templateOwner}/{templateRepo}/generate → html_url."""
        resp = await self._api.post(
            f"/repos/{self._config.template_owner}/{self._config.template_repo}/generate",
            json={
                "owner": repo.organization,
                "name": repo.name,
                "private": False,
                "include_all_branches": False,
            },
        )
        if not is_ok(resp):
            raise RemoteRequestError(error_text(resp), status_code=resp.status_code)
        return resp.json().get("html_url") or repo.html_url

    async def _create_empty(self, repo: RepositoryRef) -> str:
        """POST /orgs/{org}/repos with an initial commit → html_url."""
        resp = await self._api.post(
            f"/orgs/{repo.organization}/repos",
            json={"name": repo.name, "private": False, "auto_init": True},
        )
        if not is_ok(resp):
            raise RemoteRequestError(
                f"Failed to create repository: {error_text(resp)}",
                status_code=resp.status_code,
            )
        return resp.json().get("html_url") or repo.html_url

    async def _has_contents(self, repo: RepositoryRef) -> bool:
        resp = await self._api.get(f"{repo.api_path}/contents")
        return is_ok(resp)

    async def _prepare_empty(self, repo: RepositoryRef) -> None:
        """Move the auto-initialised branch to the default branch and drop its README."""
        branch = self._config.default_branch
        if branch != INITIAL_BRANCH:
            resp = await self._api.post(
                f"{repo.api_path}/branches/{INITIAL_BRANCH}/rename", json={"new_name": branch}
            )
            if not is_ok(resp):
                raise RemoteRequestError(
                    f"Failed to rename branch: {error_text(resp)}", status_code=resp.status_code
                )
            self._log.info("Renamed %s to %s in %s", INITIAL_BRANCH, branch, repo.full_name)

        sha = await get_file_sha(self._api, repo, INITIAL_README, branch)
        if sha is None:
            return
        resp = await self._api.delete(
            f"{repo.api_path}/contents/{INITIAL_README}",
            json={"message": "Remove README", "sha": sha, "branch": branch},
        )
        if not is_ok(resp):
            self._log.warning(
                "Could not remove %s from %s: %s", INITIAL_README, repo.full_name, error_text(resp)
            )

    # ── Manifest ────────────────────────────────────────────────────────

    async def _update_manifest(self, repo: RepositoryRef, rule_version: str) -> None:
        """Rewrite name/version in package.json, refetching on conflict if allowed."""
        retries_left = max(0, self._config.manifest_conflict_retries)
        while True:
            manifest, sha = await self._fetch_manifest(repo)
            manifest["name"] = f"@{repo.organization}/{repo.name}"
            manifest["version"] = rule_version
            try:
                await self._put_manifest(repo, manifest, sha)
                break
            except ConcurrencyConflictError:
                if retries_left <= 0:
                    raise
                retries_left -= 1
                self._log.warning(
                    "Stale sha for %s in %s, refetching", MANIFEST_PATH, repo.full_name
                )

        self._log.info("Updated %s for %s", MANIFEST_PATH, repo.full_name)

    async def _fetch_manifest(self, repo: RepositoryRef) -> tuple[dict, str]:
        try:
            content = await get_contents(
                self._api, repo, MANIFEST_PATH, ref=self._config.default_branch
            )
        except RemoteRequestError as exc:
            raise RemoteRequestError(
                f"Failed to fetch {MANIFEST_PATH}: {exc}", status_code=exc.status_code
            ) from exc

        if not isinstance(content, RemoteFile):
            raise ManifestParseError(f"Failed to parse {MANIFEST_PATH}: path is a directory")

        try:
            manifest = json.loads(content.decode())
        except (ValueError, UnicodeDecodeError) as exc:
            raise ManifestParseError(f"Failed to parse {MANIFEST_PATH}: {exc}") from exc
        if not isinstance(manifest, dict):
            raise ManifestParseError(f"Failed to parse {MANIFEST_PATH}: not a JSON object")
        return manifest, content.sha

    async def _put_manifest(self, repo: RepositoryRef, manifest: dict, sha: str) -> None:
        handle = FileHandle(
            path=MANIFEST_PATH,
            branch=self._config.default_branch,
            content_b64=encode_text(json.dumps(manifest, indent=2, ensure_ascii=False)),
            sha=sha,
        )
        resp = await self._api.put(
            f"{repo.api_path}/contents/{MANIFEST_PATH}",
            json=handle.to_payload(f"Update {MANIFEST_PATH} for {repo.name}"),
        )
        if resp.status_code == 409:
            raise ConcurrencyConflictError(
                f"Failed to update {MANIFEST_PATH}: {error_text(resp)}", status_code=409
            )
        if not is_ok(resp):
            raise RemoteRequestError(
                f"Failed to update {MANIFEST_PATH}: {error_text(resp)}",
                status_code=resp.status_code,
            )
