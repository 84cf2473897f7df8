"""API routes: thin controllers that delegate to the use cases."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse

from rule_repo_manager.interface.dependencies import (
    get_bootstrap_use_case,
    get_populate_use_case,
    get_promote_use_case,
    get_unit_test_use_case,
)
from rule_repo_manager.interface.schemas import (
    BootstrapRequest,
    BootstrapResponse,
    ErrorResponse,
    GitHubRunInfo,
    OperationResponse,
    PopulateRequest,
    PromoteRequest,
    PromoteResponse,
    UnitTestStatusResponse,
)
from rule_repo_manager.services.bootstrap_repo import BootstrapRepoUseCase
from rule_repo_manager.services.populate_repo import PopulateRepoUseCase
from rule_repo_manager.services.promote_branch import PromoteBranchUseCase
from rule_repo_manager.services.unit_tests import WORKFLOW_DISPLAY_NAME, UnitTestUseCase

router = APIRouter(prefix="/v1")

_AUTH_ERRORS = {
    401: {"model": ErrorResponse, "description": "Missing or malformed bearer token"},
    403: {"model": ErrorResponse, "description": "Token not accepted"},
    500: {"model": ErrorResponse, "description": "GitHub request failed"},
}


@router.post(
    "/bootstrap",
    response_model=BootstrapResponse,
    response_model_by_alias=True,
    responses=_AUTH_ERRORS,
)
async def bootstrap(
    body: BootstrapRequest,
    use_case: BootstrapRepoUseCase = Depends(get_bootstrap_use_case),
) -> BootstrapResponse:
    """Create ``<organization>/rule-<ruleId>`` from the template."""
    result = await use_case.execute(body.rule_id, body.rule_version, body.organization)
    return BootstrapResponse(repo_url=result.repo_url, message=result.message)


@router.post(
    "/populate",
    response_model=OperationResponse,
    responses=_AUTH_ERRORS,
)
async def populate(
    body: PopulateRequest,
    use_case: PopulateRepoUseCase = Depends(get_populate_use_case),
) -> OperationResponse:
    """Write the rule source and its unit test to the default branch."""
    result = await use_case.execute(
        body.organization, body.rule_id, body.rule_code, body.test_code
    )
    return OperationResponse(message=result.message)


@router.post(
    "/promote",
    response_model=PromoteResponse,
    response_model_by_alias=True,
    responses=_AUTH_ERRORS,
)
async def promote(
    body: PromoteRequest,
    use_case: PromoteBranchUseCase = Depends(get_promote_use_case),
) -> PromoteResponse:
    """Create ``branchName`` from the base branch, or sync it to the base tip."""
    result = await use_case.execute(body.organization, body.rule_id, body.branch_name)
    return PromoteResponse(
        message=result.message,
        action=result.action.value,
        base_branch=result.base_branch,
        base_sha=result.base_sha,
    )


@router.get(
    "/report",
    response_class=HTMLResponse,
    responses={
        **_AUTH_ERRORS,
        400: {"model": ErrorResponse, "description": "Report path is a directory"},
        404: {"model": ErrorResponse, "description": "No run, branch or report file"},
        409: {"model": ErrorResponse, "description": "Unit tests still running"},
        422: {"model": ErrorResponse, "description": "Unit tests failed or were cancelled"},
    },
)
async def fetch_latest_test_report(
    organization: str = Query(min_length=1),
    rule_id: str = Query(alias="ruleId", min_length=1),
    branch_name: str | None = Query(default=None, alias="branchName"),
    use_case: UnitTestUseCase = Depends(get_unit_test_use_case),
) -> HTMLResponse:
    """Serve the HTML unit-test report of the latest successful run."""
    report = await use_case.fetch_latest_report(organization, rule_id, branch_name)
    return HTMLResponse(content=report.html)


@router.get(
    "/unit-tests/status",
    response_model=UnitTestStatusResponse,
    response_model_by_alias=True,
    response_model_exclude_unset=True,
    responses={
        **_AUTH_ERRORS,
        404: {"model": ErrorResponse, "description": "Workflow not found"},
    },
)
async def get_unit_test_status(
    organization: str = Query(min_length=1),
    rule_id: str = Query(alias="ruleId", min_length=1),
    branch_name: str | None = Query(default=None, alias="branchName"),
    use_case: UnitTestUseCase = Depends(get_unit_test_use_case),
) -> UnitTestStatusResponse:
    """Report the normalised status of the latest unit-test run."""
    result = await use_case.get_status(organization, rule_id, branch_name)
    if result.run is None:
        return UnitTestStatusResponse(
            success=True, status=result.status.value, report_available=result.report_available
        )

    return UnitTestStatusResponse(
        success=True,
        status=result.status.value,
        report_available=result.report_available,
        workflow=WORKFLOW_DISPLAY_NAME,
        branch=result.branch,
        github=GitHubRunInfo(
            run_number=result.run.run_number,
            run_url=result.run.run_url,
            status=result.run.status,
            conclusion=result.run.conclusion,
        ),
    )
