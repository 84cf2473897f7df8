"""Domain entities: pure data structures with no external dependencies."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from rule_repo_manager.domain.exceptions import InvalidContentResponseError


# ── Files & contents ────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class FileHandle:
    """A pending write to ``path`` on ``branch``.

    ``sha`` is present only when the path already has content; GitHub
    rejects an overwrite without it and a create with it.
    """

    path: str
    branch: str
    content_b64: str
    sha: str | None = None

    def to_payload(self, message: str) -> dict[str, str]:
        payload = {
            "message": message,
            "content": self.content_b64,
            "branch": self.branch,
        }
        if self.sha:
            payload["sha"] = self.sha
        return payload


@dataclass(frozen=True, slots=True)
class DirectoryEntry:
    """One item of a contents-API directory listing."""

    name: str
    path: str
    type: str  # "file", "dir", "symlink" or "submodule"
    sha: str | None = None

    @property
    def is_dir(self) -> bool:
        return self.type == "dir"


@dataclass(frozen=True, slots=True)
class RemoteFile:
    """A single base64-encoded file returned by the contents API."""

    path: str
    sha: str
    content_b64: str

    def decode(self) -> str:
        # GitHub wraps base64 at 60 columns; b64decode skips the newlines.
        return base64.b64decode(self.content_b64).decode("utf-8")


@dataclass(frozen=True, slots=True)
class RemoteDirectory:
    """A directory listing returned by the contents API."""

    path: str
    entries: tuple[DirectoryEntry, ...] = ()


RemoteContent = Union[RemoteFile, RemoteDirectory]


def parse_contents(payload: Any, path: str = "") -> RemoteContent:
    """Turn a raw contents-API body into :class:`RemoteFile` or :class:`RemoteDirectory`."""
    if isinstance(payload, list):
        entries = tuple(
            DirectoryEntry(
                name=item.get("name", ""),
                path=item.get("path", ""),
                type=item.get("type", "file"),
                sha=item.get("sha"),
            )
            for item in payload
            if isinstance(item, dict)
        )
        return RemoteDirectory(path=path, entries=entries)

    if (
        isinstance(payload, dict)
        and isinstance(payload.get("content"), str)
        and payload.get("encoding") == "base64"
    ):
        return RemoteFile(
            path=payload.get("path", path),
            sha=payload.get("sha", ""),
            content_b64=payload["content"],
        )

    raise InvalidContentResponseError("Invalid file response received from GitHub API")


def encode_text(text: str) -> str:
    """Base64-encode UTF-8 *text* for a contents-API write."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


# ── CI ──────────────────────────────────────────────────────────────────────


class UnitTestStatus(str, Enum):
    """Normalised state of the latest unit-test workflow run."""

    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class WorkflowRun:
    """A GitHub Actions run, reduced to the fields we act on."""

    id: int
    status: str
    conclusion: str | None
    run_number: int
    run_url: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> WorkflowRun:
        return cls(
            id=int(data.get("id", 0)),
            status=data.get("status") or "",
            conclusion=data.get("conclusion"),
            run_number=int(data.get("run_number", 0)),
            run_url=data.get("html_url", ""),
        )


@dataclass(frozen=True, slots=True)
class StatusClassification:
    status: UnitTestStatus
    report_available: bool


# ── Workflow results ────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class BootstrapResult:
    repo_url: str
    message: str


@dataclass(frozen=True, slots=True)
class PopulateResult:
    message: str


class PromotionAction(str, Enum):
    CREATED = "created"
    SYNCHRONIZED = "synchronized"


@dataclass(frozen=True, slots=True)
class PromotionResult:
    action: PromotionAction
    base_branch: str
    base_sha: str
    message: str


@dataclass(frozen=True, slots=True)
class UnitTestStatusResult:
    """Outcome of a status lookup; ``run`` is ``None`` when no run exists."""

    status: UnitTestStatus
    report_available: bool
    branch: str
    run: WorkflowRun | None = None


@dataclass(frozen=True, slots=True)
class UnitTestReport:
    branch: str
    path: str
    html: str


@dataclass(slots=True)
class CopySummary:
    """Per-file outcomes of a template tree copy."""

    copied: list[str] = field(default_factory=list)
    already_present: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
