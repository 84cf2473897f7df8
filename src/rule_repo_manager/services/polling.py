"""Fixed-delay polling for GitHub's post-create propagation window."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from rule_repo_manager.domain.exceptions import RepositoryNotReadyError

logger = logging.getLogger(__name__)


async def wait_until_ready(
    check: Callable[[], Awaitable[bool]],
    max_attempts: int = 15,
    delay_ms: int = 1000,
) -> int:
    """Call *check* until it returns ``True``; return the attempt that succeeded.

    Sleeps *delay_ms* between attempts (never after the last one) and raises
    :class:`RepositoryNotReadyError` once *max_attempts* checks have failed.
    """
    attempts = max(1, max_attempts)
    for attempt in range(1, attempts + 1):
        if await check():
            logger.debug("Ready after %d attempt(s)", attempt)
            return attempt
        if attempt < attempts:
            await asyncio.sleep(delay_ms / 1000)

    raise RepositoryNotReadyError("Timed out waiting for repository contents")
