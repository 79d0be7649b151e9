"""Bounded exponential backoff for transient failures."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from nlquery.exceptions import NLQueryError, TurnTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Deadline:
    """Remaining time budget of one turn."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._expires_at = clock() + seconds
        self._seconds = seconds

    def remaining(self) -> float:
        """Seconds left.

        Raises:
            TurnTimeoutError: If the budget is spent
        """
        left = self._expires_at - self._clock()
        if left <= 0:
            raise TurnTimeoutError(f"Turn exceeded its {self._seconds:.1f}s budget")
        return left


@dataclass(frozen=True)
class RetryPolicy:
    """Retry policy shared by the model gateway and the store.

    Only errors whose ``retryable`` attribute is true are retried. Anything
    else propagates on the first attempt.
    """

    max_attempts: int = 3
    initial_wait: float = 0.5
    backoff: float = 2.0
    max_wait: float = 8.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False, compare=False)

    def wait_time(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (0-based)."""
        return min(self.initial_wait * (self.backoff**attempt), self.max_wait)

    def call(
        self,
        func: Callable[[], T],
        operation: str = "call",
        deadline: Deadline | None = None,
    ) -> T:
        """Run ``func`` until it succeeds or retries are exhausted.

        Args:
            func: Zero-argument callable to run
            operation: Name used in log messages
            deadline: Budget the retries must fit in; no attempt starts
                after it is spent

        Returns:
            Whatever ``func`` returns

        Raises:
            TurnTimeoutError: If the next wait would outlast ``deadline``
        """
        attempts = max(1, self.max_attempts)
        for attempt in range(attempts):
            try:
                return func()
            except NLQueryError as e:
                if not e.retryable or attempt >= attempts - 1:
                    raise
                wait = self.wait_time(attempt)
                if deadline is not None and wait >= deadline.remaining():
                    raise TurnTimeoutError(
                        f"{operation} failed with {e.label} and no time is left to retry"
                    ) from e
                logger.warning(
                    "%s failed with %s (attempt %d/%d), retrying in %.1fs",
                    operation,
                    e.label,
                    attempt + 1,
                    attempts,
                    wait,
                )
                self.sleep(wait)
        raise AssertionError("unreachable")
