"""Unit-test CI status and report retrieval.

Both operations read the most recent run of the unit-test workflow on a
branch and share :func:`classify`. The report fetch turns every distinct
failure into its own exception so the interface layer can give each one a
distinct HTTP status.
"""

from __future__ import annotations

import httpx

from rule_repo_manager.domain.entities import (
    RemoteDirectory,
    StatusClassification,
    UnitTestReport,
    UnitTestStatus,
    UnitTestStatusResult,
    WorkflowRun,
    parse_contents,
)
from rule_repo_manager.domain.exceptions import (
    RemoteRequestError,
    ReportNotFoundError,
    ReportNotReadyError,
    ReportPathIsDirectoryError,
    ReportUnavailableError,
    TransportError,
    WorkflowNotFoundError,
)
from rule_repo_manager.domain.value_objects import RepositoryRef
from rule_repo_manager.infrastructure.github_rest_adapter import error_text, is_ok
from rule_repo_manager.services.context import WorkflowContext
from rule_repo_manager.services.remote_lookups import get_branch_sha

WORKFLOW_DISPLAY_NAME = "Unit Tests"

_CONCLUSIONS: dict[str | None, UnitTestStatus] = {
    "success": UnitTestStatus.COMPLETED,
    "failure": UnitTestStatus.FAILED,
    "cancelled": UnitTestStatus.CANCELLED,
}


def classify(run: WorkflowRun) -> StatusClassification:
    """Map a run's ``(status, conclusion)`` onto :class:`UnitTestStatus`."""
    if run.status == "queued":
        return StatusClassification(UnitTestStatus.QUEUED, report_available=False)
    if run.status == "in_progress":
        return StatusClassification(UnitTestStatus.RUNNING, report_available=False)
    if run.status != "completed":
        return StatusClassification(UnitTestStatus.NOT_FOUND, report_available=False)

    status = _CONCLUSIONS.get(run.conclusion, UnitTestStatus.NOT_FOUND)
    return StatusClassification(status, report_available=status is UnitTestStatus.COMPLETED)


class UnitTestUseCase:
    def __init__(self, context: WorkflowContext) -> None:
        self._api = context.api
        self._config = context.config
        self._log = context.logger

    # ── Status ──────────────────────────────────────────────────────────

    async def get_status(
        self, organization: str, rule_id: str, branch_name: str | None = None
    ) -> UnitTestStatusResult:
        repo = RepositoryRef.for_rule(organization, rule_id)
        branch = branch_name or self._config.default_branch
        workflow = self._config.unit_test_workflow

        resp = await self._runs(repo, branch)
        if resp.status_code == 404:
            raise WorkflowNotFoundError(
                f'Workflow "{workflow}" not found in {repo.full_name}'
            )
        if not is_ok(resp):
            raise RemoteRequestError(error_text(resp), status_code=resp.status_code)

        run = _latest(resp.json())
        if run is None:
            return UnitTestStatusResult(
                status=UnitTestStatus.NOT_FOUND, report_available=False, branch=branch
            )

        self._log.debug(
            "Latest %s run for %s@%s: #%d %s/%s",
            workflow,
            repo.full_name,
            branch,
            run.run_number,
            run.status,
            run.conclusion,
        )
        verdict = classify(run)
        return UnitTestStatusResult(
            status=verdict.status,
            report_available=verdict.report_available,
            branch=branch,
            run=run,
        )

    # ── Report ──────────────────────────────────────────────────────────

    async def fetch_latest_report(
        self, organization: str, rule_id: str, branch_name: str | None = None
    ) -> UnitTestReport:
        repo = RepositoryRef.for_rule(organization, rule_id)
        branch = branch_name or self._config.default_branch
        path = self._config.test_report_path

        resp = await self._runs(repo, branch)
        if not is_ok(resp):
            raise RemoteRequestError(
                f"Failed to fetch unit test workflow status: {error_text(resp)}",
                status_code=resp.status_code,
            )

        run = _latest(resp.json())
        if run is None:
            raise ReportNotFoundError("No unit test workflow run found for this branch")

        status = classify(run).status
        if status in (UnitTestStatus.QUEUED, UnitTestStatus.RUNNING):
            raise ReportNotReadyError(
                f"Unit tests are still {status.value}. Report is not available yet."
            )
        if status in (UnitTestStatus.FAILED, UnitTestStatus.CANCELLED):
            raise ReportUnavailableError(
                f"Unit tests {status.value}. Report cannot be generated."
            )
        if status is not UnitTestStatus.COMPLETED:
            raise ReportNotFoundError("Unit test report is not available")

        sha = await get_branch_sha(self._api, repo, branch)
        if not sha:
            raise ReportNotFoundError(f'Branch "{branch}" was not found in {repo.full_name}')

        try:
            file_resp = await self._api.get(
                f"{repo.api_path}/contents/{path}", params={"ref": sha}
            )
        except TransportError as exc:
            raise TransportError("Failed to communicate with GitHub API") from exc

        if file_resp.status_code == 404:
            raise ReportNotFoundError(
                f'The test report at path "{path}" does not exist in '
                f'{repo.full_name} on branch "{branch}"'
            )
        if not is_ok(file_resp):
            raise RemoteRequestError(
                f"GitHub API returned an unexpected error: {error_text(file_resp)}",
                status_code=file_resp.status_code,
            )

        content = parse_contents(file_resp.json(), path)
        if isinstance(content, RemoteDirectory):
            raise ReportPathIsDirectoryError(
                f'Expected a file but found a directory at "{path}"'
            )

        self._log.info("Serving unit test report from %s (%s)", repo.full_name, branch)
        return UnitTestReport(branch=branch, path=path, html=content.decode())

    # ── Helpers ─────────────────────────────────────────────────────────

    async def _runs(self, repo: RepositoryRef, branch: str) -> httpx.Response:
        """GET .../actions/workflows/{file}/runs?branch={branch}&per_page=1."""
        return await self._api.get(
            f"{repo.api_path}/actions/workflows/{self._config.unit_test_workflow}/runs",
            params={"branch": branch, "per_page": "1"},
        )


def _latest(data: object) -> WorkflowRun | None:
    runs = data.get("workflow_runs") if isinstance(data, dict) else None
    if not runs:
        return None
    return WorkflowRun.from_api(runs[0])
