from __future__ import annotations

import errno
import logging
import time
from typing import Callable, TypeVar

from ..core.exceptions import BindConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_bind_conflict(exc: BaseException) -> bool:
    if isinstance(exc, BindConflictError):
        return True
    return isinstance(exc, OSError) and exc.errno == errno.EADDRINUSE


def retry_on_bind_conflict(
    attempt_fn: Callable[[int], T],
    *,
    max_attempts: int = 3,
    backoff_seconds: float = 0.1,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``attempt_fn(attempt)`` until it stops failing with a port bind conflict.

    Each attempt must open a brand new socket so the OS hands out a fresh
    ephemeral port. Waits ``backoff_seconds * attempt`` between attempts; any
    other error propagates immediately.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    for attempt in range(1, max_attempts + 1):
        try:
            return attempt_fn(attempt)
        except Exception as e:
            if not is_bind_conflict(e):
                raise
            if attempt == max_attempts:
                if isinstance(e, BindConflictError):
                    raise
                raise BindConflictError("local", f"ephemeral port conflict after {attempt} attempts") from e
            delay = backoff_seconds * attempt
            logger.warning("Local port bind conflict (attempt %d/%d), retrying in %.2fs", attempt, max_attempts, delay)
            sleep(delay)

    raise AssertionError("unreachable")
