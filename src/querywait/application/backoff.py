"""Backoff scheduling between poll attempts.

The delay sequence starts at ``min_interval`` after the first unsatisfied
attempt and grows by ``multiplier`` up to ``max_interval``. It never
shrinks or resets within one wait.
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from tenacity import RetryCallState

from querywait.domain.config.backoff import BackoffPolicy

logger = logging.getLogger(__name__)


def advance(current: float, policy: BackoffPolicy) -> float:
    """Return the delay following ``current``: ``min(current * multiplier, max_interval)``"""
    return min(current * policy.multiplier, policy.max_interval)


class BackoffCursor:
    """Stateful position in the delay sequence of one wait

    Instances are also usable as a tenacity ``wait`` strategy.
    """

    def __init__(self, policy: BackoffPolicy):
        self.policy = policy
        self._current: Optional[float] = None

    @property
    def current(self) -> Optional[float]:
        """Last delay handed out (None before the first retry)"""
        return self._current

    def next_delay(self) -> float:
        """Advance the cursor and return the delay before the next attempt"""
        if self._current is None:
            self._current = min(self.policy.min_interval, self.policy.max_interval)
        else:
            self._current = advance(self._current, self.policy)
        logger.debug(f"Next backoff delay: {self._current:.3f}s")
        return self._current

    def delays(self) -> Iterator[float]:
        """Yield successive delays, advancing this cursor"""
        while True:
            yield self.next_delay()

    def __call__(self, retry_state: RetryCallState) -> float:
        return self.next_delay()
