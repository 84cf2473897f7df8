"""Bearer-token extraction for the ``/v1`` routes."""

from __future__ import annotations

import hmac
import logging

from rule_repo_manager.domain.exceptions import AuthenticationError, AuthorizationError
from rule_repo_manager.infrastructure.config import Settings

logger = logging.getLogger(__name__)

MISSING_HEADER = "Missing Authorization header"
MALFORMED_HEADER = "Malformed Authorization header, expected 'Bearer <token>'"


def parse_bearer(authorization: str | None) -> str:
    """Return the token from ``Bearer <token>``; raise on a missing or bad header."""
    if authorization is None or not authorization.strip():
        raise AuthenticationError(MISSING_HEADER)

    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        raise AuthenticationError(MALFORMED_HEADER)
    return token


def resolve_credential(authorization: str | None, settings: Settings) -> str | None:
    """Validate the inbound header and pick the GitHub credential for this request.

    ``CREDENTIAL_SOURCE=header`` forwards the caller's token to GitHub;
    ``config`` uses ``GITHUB_TOKEN`` and, when ``API_TOKEN`` is set, requires
    the caller's token to match it.
    """
    token = parse_bearer(authorization)

    if settings.credential_source == "header":
        return token

    if settings.api_token is not None:
        expected = settings.api_token.get_secret_value()
        if not hmac.compare_digest(token.encode(), expected.encode()):
            logger.warning("Rejected request with an unknown API token")
            raise AuthorizationError("Invalid API token")

    return settings.github_token.get_secret_value() if settings.github_token else None
