"""Value objects: self-validating domain primitives."""

from __future__ import annotations

from dataclasses import dataclass

from rule_repo_manager.domain.exceptions import InvalidReferenceError

_REPO_PREFIX = "rule-"


def repo_name_for_rule(rule_id: str) -> str:
    """Derive the repository name for *rule_id* (``rule-<ruleId>``)."""
    rule_id = rule_id.strip()
    if not rule_id:
        raise InvalidReferenceError("ruleId must not be empty.")
    return f"{_REPO_PREFIX}{rule_id}"


@dataclass(frozen=True, slots=True)
class RepositoryRef:
    """A repository owned by an organization.

    Rule repositories are always named ``rule-<ruleId>``; use
    :meth:`for_rule` rather than building the name by hand.
    """

    organization: str
    name: str

    @classmethod
    def for_rule(cls, organization: str, rule_id: str) -> RepositoryRef:
        organization = organization.strip()
        if not organization:
            raise InvalidReferenceError("organization must not be empty.")
        return cls(organization=organization, name=repo_name_for_rule(rule_id))

    @property
    def full_name(self) -> str:
        return f"{self.organization}/{self.name}"

    @property
    def api_path(self) -> str:
        return f"/repos/{self.organization}/{self.name}"

    @property
    def html_url(self) -> str:
        return f"https://github.com/{self.full_name}"


@dataclass(frozen=True, slots=True)
class BranchRef:
    """A (possibly non-existent) branch of a repository."""

    repository: RepositoryRef
    branch: str

    def __post_init__(self) -> None:
        if not self.branch.strip():
            raise InvalidReferenceError("branchName must not be empty.")

    @property
    def ref(self) -> str:
        return f"refs/heads/{self.branch}"
