"""Bounded retry with a fixed backoff schedule."""

from __future__ import annotations

import time
from typing import Callable, TypeVar

T = TypeVar("T")

# Seconds to wait before each attempt. Its length is the attempt cap.
BACKOFF_SCHEDULE_S: tuple[int, ...] = (0, 2, 4)
MAX_ATTEMPTS = len(BACKOFF_SCHEDULE_S)


def backoff_delay(attempt: int) -> int:
    """Delay before ``attempt`` (1-based)."""
    if attempt < 1 or attempt > MAX_ATTEMPTS:
        raise ValueError(f"attempt must be within 1..{MAX_ATTEMPTS}, got {attempt}")
    return BACKOFF_SCHEDULE_S[attempt - 1]


def retry_call(
    func: Callable[[], T],
    attempts: int = MAX_ATTEMPTS,
    delay_for: Callable[[int], float] = backoff_delay,
    sleep: Callable[[float], None] = time.sleep,
    on_retry: Callable[[int, int, float], None] | None = None,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
) -> T:
    """Call ``func`` until it returns, at most ``attempts`` times.

    The last exception is re-raised once attempts are exhausted.
    ``on_retry(attempt, attempts, delay)`` runs before every sleep.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    attempt = 1
    while True:
        try:
            return func()
        except retry_on:
            if attempt >= attempts:
                raise
        attempt += 1
        delay = delay_for(attempt)
        if on_retry is not None:
            on_retry(attempt, attempts, delay)
        if delay > 0:
            sleep(delay)
