from __future__ import annotations

from typing import Callable

import structlog

logger = structlog.get_logger(__name__)


def retry(fn: Callable[[], bool], attempts: int, *, label: str = "operation") -> bool:
    """Call ``fn`` until it returns True, at most ``attempts`` times, without backoff.

    An exception counts as a failed attempt. Returns whether any attempt succeeded.
    """
    for attempt in range(1, max(attempts, 1) + 1):
        try:
            if fn():
                return True
            logger.warning("retry_attempt_failed", label=label, attempt=attempt, attempts=attempts)
        except Exception as exc:
            logger.warning(
                "retry_attempt_raised",
                label=label,
                attempt=attempt,
                attempts=attempts,
                error=str(exc),
            )
    return False
