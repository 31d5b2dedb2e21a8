"""Exponential backoff between failed unlock attempts."""

from __future__ import annotations

import logging
import time
from typing import Callable

from jsonvault.errors import RateLimited

logger = logging.getLogger("jsonvault.rate_limit")

MAX_UNLOCK_ATTEMPTS = 5
UNLOCK_DELAY_BASE = 2  # seconds


class RateLimiter:
    """After n consecutive failures the next attempt waits ``delay_base ** n`` seconds.

    Below *max_attempts* failures :meth:`check` sleeps out the delay. From
    *max_attempts* on it refuses with :class:`RateLimited` until the delay
    has elapsed, so a lockout always expires.
    """

    def __init__(
        self,
        max_attempts: int = MAX_UNLOCK_ATTEMPTS,
        delay_base: float = UNLOCK_DELAY_BASE,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._max_attempts = max_attempts
        self._delay_base = delay_base
        self._sleep = sleep
        self._clock = clock
        self.attempts = 0
        self.last_attempt: float = 0

    def check(self) -> None:
        """Wait or refuse before an attempt, depending on recent failures."""
        if self.attempts == 0:
            return
        required = self._delay_base**self.attempts
        wait = required - (self._clock() - self.last_attempt)
        if wait <= 0:
            return
        if self.attempts >= self._max_attempts:
            logger.error("Unlock refused after %d failed attempts", self.attempts)
            raise RateLimited(wait)
        logger.warning("Rate limiting: waiting %.1fs", wait)
        self._sleep(wait)

    def record_failure(self) -> None:
        self.attempts += 1
        self.last_attempt = self._clock()

    def reset(self) -> None:
        self.attempts = 0
        self.last_attempt = 0
