"""Copy a template repository into a freshly created rule repository.

The template tree is walked through the contents API. Sibling directories
are walked concurrently, one task per directory joined with
``asyncio.gather``; files inside one directory are written one after another
so two writes never race through the conflict handling for the same
directory.

A single file that cannot be copied is logged and recorded in the
:class:`CopySummary`; only a failure to list the template root aborts.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass

import httpx

from rule_repo_manager.domain.entities import (
    CopySummary,
    FileHandle,
    RemoteDirectory,
    RemoteFile,
    encode_text,
)
from rule_repo_manager.domain.exceptions import (
    ConcurrencyConflictError,
    InvalidContentResponseError,
    RemoteRequestError,
    RuleRepoError,
)
from rule_repo_manager.domain.value_objects import RepositoryRef
from rule_repo_manager.infrastructure.github_rest_adapter import (
    error_message,
    error_text,
    is_ok,
)
from rule_repo_manager.services.context import WorkflowContext
from rule_repo_manager.services.remote_lookups import get_contents, get_file_sha

_ALREADY_EXISTS = "reference already exists"
_SHA_MISMATCH_RE = re.compile(r"is at \w+ but expected \w+")
_VERSION_RE = re.compile(r'("version"\s*:\s*)"[^"]*"')
_MANIFESTS = ("package.json", "package-lock.json")


def rewrite_placeholders(
    path: str,
    text: str,
    *,
    rule_id: str,
    rule_version: str,
    organization: str,
    sentinel_rule_id: str,
    org_placeholder: str,
) -> str:
    """Replace the template's sentinel rule id and org placeholder in *text*.

    Manifests additionally get their first ``"version"`` set to *rule_version*.
    """
    text = re.sub(rf"\b{re.escape(sentinel_rule_id)}\b", rule_id, text)
    text = text.replace(org_placeholder, organization)
    if path.rsplit("/", 1)[-1] in _MANIFESTS:
        text = _VERSION_RE.sub(
            lambda m: f'{m.group(1)}"{rule_version}"', text, count=1
        )
    return text


class TemplateCopier:
    """Walks the configured template repository and writes each file."""

    def __init__(self, context: WorkflowContext) -> None:
        self._api = context.api
        self._config = context.config
        self._log = context.logger
        self._template = RepositoryRef(
            organization=context.config.template_owner,
            name=context.config.template_repo,
        )

    async def copy(
        self, target: RepositoryRef, rule_id: str, rule_version: str
    ) -> CopySummary:
        summary = CopySummary()
        try:
            root = await get_contents(self._api, self._template, "")
        except RemoteRequestError as exc:
            raise RemoteRequestError(
                f"Failed to fetch template contents: {exc}", status_code=exc.status_code
            ) from exc
        if not isinstance(root, RemoteDirectory):
            raise InvalidContentResponseError("Template root is not a directory")

        job = _CopyJob(target=target, rule_id=rule_id, rule_version=rule_version)
        await self._copy_directory(root, job, summary)
        return summary

    # ── Tree walk ───────────────────────────────────────────────────────

    async def _copy_directory(
        self, listing: RemoteDirectory, job: _CopyJob, summary: CopySummary
    ) -> None:
        subdirs: list[str] = []
        for entry in listing.entries:
            if self._is_skipped(entry.path):
                summary.skipped.append(entry.path)
            elif entry.is_dir:
                subdirs.append(entry.path)
            elif entry.type == "file":
                await self._copy_file(entry.path, job, summary)
            else:
                summary.skipped.append(entry.path)

        if subdirs:
            await asyncio.gather(*(self._walk(path, job, summary) for path in subdirs))

    async def _walk(self, path: str, job: _CopyJob, summary: CopySummary) -> None:
        try:
            listing = await get_contents(self._api, self._template, path)
            if not isinstance(listing, RemoteDirectory):
                raise InvalidContentResponseError(f"{path} is not a directory")
        except RuleRepoError as exc:
            self._log.warning("Failed to list template directory %s: %s", path, exc)
            summary.failed.append(path)
            return
        await self._copy_directory(listing, job, summary)

    def _is_skipped(self, path: str) -> bool:
        return any(
            path == skip or path.startswith(f"{skip}/")
            for skip in self._config.template_skip_paths
        )

    # ── Single file ─────────────────────────────────────────────────────

    async def _copy_file(self, path: str, job: _CopyJob, summary: CopySummary) -> None:
        try:
            source = await get_contents(self._api, self._template, path)
            if not isinstance(source, RemoteFile):
                raise InvalidContentResponseError(f"{path} is not a file")

            if path in self._config.template_rewrite_paths:
                text = rewrite_placeholders(
                    path,
                    source.decode(),
                    rule_id=job.rule_id,
                    rule_version=job.rule_version,
                    organization=job.target.organization,
                    sentinel_rule_id=self._config.template_rule_id,
                    org_placeholder=self._config.template_org_placeholder,
                )
                content_b64 = encode_text(text)
            else:
                content_b64 = "".join(source.content_b64.split())

            created = await self._write(job.target, path, content_b64)
        except (RuleRepoError, ValueError) as exc:
            self._log.warning("Failed to copy %s: %s", path, exc)
            summary.failed.append(path)
            return

        if created:
            self._log.info("Copied: %s", path)
            summary.copied.append(path)
        else:
            self._log.info("Already present: %s", path)
            summary.already_present.append(path)

    async def _write(self, repo: RepositoryRef, path: str, content_b64: str) -> bool:
        """PUT one file; return False when GitHub reports it already exists."""
        branch = self._config.default_branch
        sha = await get_file_sha(self._api, repo, path, branch)
        resp = await self._put(repo, FileHandle(path, branch, content_b64, sha))
        if is_ok(resp):
            return True

        if resp.status_code == 409:
            message = error_message(resp)
            if _ALREADY_EXISTS in message:
                return False
            if _SHA_MISMATCH_RE.search(message):
                fresh_sha = await get_file_sha(self._api, repo, path, branch)
                if fresh_sha is None:
                    raise ConcurrencyConflictError(
                        f"Could not refetch sha for {path}: {message}", status_code=409
                    )
                resp = await self._put(repo, FileHandle(path, branch, content_b64, fresh_sha))
                if is_ok(resp):
                    return True
            raise ConcurrencyConflictError(
                f"Failed to create file {path}: {error_text(resp)}",
                status_code=resp.status_code,
            )

        raise RemoteRequestError(
            f"Failed to create file {path}: {error_text(resp)}",
            status_code=resp.status_code,
        )

    async def _put(self, repo: RepositoryRef, handle: FileHandle) -> httpx.Response:
        return await self._api.put(
            f"{repo.api_path}/contents/{handle.path}",
            json=handle.to_payload(f"Add {handle.path}"),
        )


@dataclass(frozen=True, slots=True)
class _CopyJob:
    target: RepositoryRef
    rule_id: str
    rule_version: str
