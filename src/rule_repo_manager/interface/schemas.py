"""Pydantic request / response DTOs for the API boundary."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    """Accepts and emits the camelCase field names callers use."""

    model_config = ConfigDict(populate_by_name=True)


# ── Requests ────────────────────────────────────────────────────────────────


class BootstrapRequest(_CamelModel):
    """Request body for ``POST /v1/bootstrap``."""

    rule_id: str = Field(alias="ruleId", min_length=1)
    rule_version: str = Field(alias="ruleVersion", min_length=1)
    organization: str = Field(min_length=1)


class PopulateRequest(_CamelModel):
    """Request body for ``POST /v1/populate``; code fields are base64."""

    organization: str = Field(min_length=1)
    rule_id: str = Field(alias="ruleId", min_length=1)
    rule_code: str = Field(alias="ruleCode", min_length=1)
    test_code: str = Field(alias="testCode", min_length=1)


class PromoteRequest(_CamelModel):
    """Request body for ``POST /v1/promote``."""

    organization: str = Field(min_length=1)
    rule_id: str = Field(alias="ruleId", min_length=1)
    branch_name: str = Field(alias="branchName", min_length=1)


# ── Responses ───────────────────────────────────────────────────────────────


class OperationResponse(_CamelModel):
    """Uniform result envelope."""

    success: bool = True
    message: str


class BootstrapResponse(OperationResponse):
    repo_url: str = Field(alias="repoUrl")


class PromoteResponse(OperationResponse):
    action: str
    base_branch: str = Field(alias="baseBranch")
    base_sha: str = Field(alias="baseSha")


class GitHubRunInfo(_CamelModel):
    run_number: int = Field(alias="runNumber")
    run_url: str = Field(alias="runUrl")
    status: str
    conclusion: str | None = None


class UnitTestStatusResponse(_CamelModel):
    """Response from ``GET /v1/unit-tests/status``.

    ``workflow``, ``branch`` and ``github`` are omitted when no run exists.
    """

    success: bool = True
    status: str
    report_available: bool = Field(alias="reportAvailable")
    workflow: str | None = None
    branch: str | None = None
    github: GitHubRunInfo | None = None


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    success: bool = False
    message: str
