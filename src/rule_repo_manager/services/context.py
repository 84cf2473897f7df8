"""Per-request workflow context.

Every workflow receives a :class:`WorkflowContext` instead of reaching for
module-level configuration or a process-wide client, so tests can build one
around a fake transport without patching anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from rule_repo_manager.domain.ports.remote_api import RemoteApi
from rule_repo_manager.infrastructure.config import Settings


@dataclass(frozen=True, slots=True)
class RepoConfig:
    """The slice of settings the workflows act on."""

    template_owner: str
    template_repo: str
    default_branch: str = "main"
    test_report_path: str = "reports/unit-test-report.html"
    unit_test_workflow: str = "unit-test.yml"
    promotion_base_branch: str | None = None
    rule_file_path: str = "src/rule.ts"
    test_file_path: str = "__tests__/unit/rule.test.ts"
    bootstrap_mode: str = "template_generate"
    poll_max_attempts: int = 15
    poll_delay_ms: int = 1000
    manifest_conflict_retries: int = 0
    template_rule_id: str = "901"
    template_org_placeholder: str = "org_name"
    template_skip_paths: tuple[str, ...] = ("__tests__", "README.md", "src/rule-901.ts")
    template_rewrite_paths: tuple[str, ...] = (
        "package.json",
        "package-lock.json",
        "src/index.ts",
    )

    @property
    def promotion_base(self) -> str:
        return self.promotion_base_branch or self.default_branch

    @classmethod
    def from_settings(cls, settings: Settings) -> RepoConfig:
        return cls(
            template_owner=settings.template_owner,
            template_repo=settings.template_repo,
            default_branch=settings.default_branch,
            test_report_path=settings.test_report_path,
            unit_test_workflow=settings.unit_test_workflow,
            promotion_base_branch=settings.promotion_base_branch,
            rule_file_path=settings.rule_file_path,
            test_file_path=settings.test_file_path,
            bootstrap_mode=settings.bootstrap_mode,
            poll_max_attempts=settings.poll_max_attempts,
            poll_delay_ms=settings.poll_delay_ms,
            manifest_conflict_retries=settings.manifest_conflict_retries,
            template_rule_id=settings.template_rule_id,
            template_org_placeholder=settings.template_org_placeholder,
            template_skip_paths=tuple(settings.template_skip_paths),
            template_rewrite_paths=tuple(settings.template_rewrite_paths),
        )


@dataclass(frozen=True, slots=True)
class WorkflowContext:
    api: RemoteApi
    config: RepoConfig
    logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger("rule_repo_manager.workflows")
    )
