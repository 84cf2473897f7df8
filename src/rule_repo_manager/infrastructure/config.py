"""Application configuration: loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from env vars (or ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # GitHub access
    github_token: SecretStr | None = None
    github_api_url: str = "https://api.github.com"
    credential_source: Literal["config", "header"] = "config"
    api_token: SecretStr | None = None
    request_timeout_s: float = 30.0

    # Repository layout
    default_branch: str = "main"
    template_owner: str
    template_repo: str
    test_report_path: str = "reports/unit-test-report.html"
    unit_test_workflow: str = "unit-test.yml"
    promotion_base_branch: str | None = None
    rule_file_path: str = "src/rule.ts"
    test_file_path: str = "__tests__/unit/rule.test.ts"

    # Bootstrap
    bootstrap_mode: Literal["template_generate", "template_copy"] = "template_generate"
    poll_max_attempts: int = 15
    poll_delay_ms: int = 1000
    manifest_conflict_retries: int = 0
    template_rule_id: str = "901"
    template_org_placeholder: str = "org_name"
    template_skip_paths: list[str] = ["__tests__", "README.md", "src/rule-901.ts"]
    template_rewrite_paths: list[str] = ["package.json", "package-lock.json", "src/index.ts"]

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings (cached after first call)."""
    return Settings()  # type: ignore[call-arg]
