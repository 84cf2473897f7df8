"""Domain exception hierarchy.

Each exception maps to a specific HTTP status code at the interface layer.
Inner layers raise these; the outermost error-handler translates them into
the ``{"success": false, "message": "..."}`` envelope.
"""

from __future__ import annotations


class RuleRepoError(Exception):
    """Base exception for the entire application."""


# ── Input / credential validation ───────────────────────────────────────────


class InvalidReferenceError(RuleRepoError):
    """An organization, rule id or branch name is empty or malformed."""


class AuthenticationError(RuleRepoError):
    """The inbound request carries no usable bearer token."""


class AuthorizationError(RuleRepoError):
    """The bearer token is well-formed but not accepted."""


# ── GitHub API errors ───────────────────────────────────────────────────────


class RemoteRequestError(RuleRepoError):
    """GitHub answered with a non-2xx status.

    The message is the remote's body text (optionally prefixed with the step
    that failed) so callers see GitHub's own explanation.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConcurrencyConflictError(RemoteRequestError):
    """A write was rejected because the supplied ``sha`` is stale (409)."""


class TransportError(RuleRepoError):
    """The request never produced a response (DNS, reset, timeout)."""


class InvalidContentResponseError(RuleRepoError):
    """The contents API answered with neither a file nor a directory."""


# ── Workflow errors ─────────────────────────────────────────────────────────


class RepositoryNotReadyError(RuleRepoError):
    """Repository contents did not become available within the poll budget."""


class ManifestParseError(RuleRepoError):
    """The manifest file could not be decoded or parsed as JSON."""


# ── CI status / report errors ───────────────────────────────────────────────


class WorkflowNotFoundError(RuleRepoError):
    """The unit-test workflow file does not exist in the repository (404)."""


class ReportNotFoundError(RuleRepoError):
    """No run, branch or report file exists to serve (404)."""


class ReportNotReadyError(RuleRepoError):
    """The latest run is still queued or running (409)."""


class ReportUnavailableError(RuleRepoError):
    """The latest run failed or was cancelled; no report will appear (422)."""


class ReportPathIsDirectoryError(RuleRepoError):
    """The configured report path resolved to a directory (400)."""
