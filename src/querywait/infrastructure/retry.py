"""Transport retry utilities using tenacity.

Retries here only cover a single HTTP exchange (network errors, 429, 5xx).
They never retry on behalf of the wait loop.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests
from tenacity import (
    RetryCallState,
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    initial_delay: float = 1.0
    backoff_multiplier: float = 2.0
    jitter: float = 0.1  # +/-10% by default


def retry_config_from_dict(config: Dict[str, Any]) -> RetryConfig:
    """Parse retry config from dict, clamping out-of-range values."""
    max_attempts = config.get("max_attempts", 3)
    initial_delay = config.get("initial_delay", 1.0)
    backoff_multiplier = config.get("backoff_multiplier", 2.0)
    jitter = config.get("jitter", 0.1)

    try:
        max_attempts_i = int(max_attempts)
    except (TypeError, ValueError):
        max_attempts_i = 3

    try:
        initial_delay_f = float(initial_delay)
    except (TypeError, ValueError):
        initial_delay_f = 1.0

    try:
        backoff_multiplier_f = float(backoff_multiplier)
    except (TypeError, ValueError):
        backoff_multiplier_f = 2.0

    try:
        jitter_f = float(jitter)
    except (TypeError, ValueError):
        jitter_f = 0.1

    if max_attempts_i < 1:
        max_attempts_i = 1
    if initial_delay_f < 0:
        initial_delay_f = 0.0
    if backoff_multiplier_f < 1:
        backoff_multiplier_f = 1.0
    if jitter_f < 0:
        jitter_f = 0.0

    return RetryConfig(
        max_attempts=max_attempts_i,
        initial_delay=initial_delay_f,
        backoff_multiplier=backoff_multiplier_f,
        jitter=jitter_f,
    )


def should_retry_http_error(exception: requests.exceptions.HTTPError) -> bool:
    """Check if HTTPError should be retried."""
    status_code = exception.response.status_code if exception.response is not None else None
    # Don't retry on auth errors or most 4xx (except 429)
    if status_code in (401, 403):
        return False
    if status_code and 400 <= status_code < 500 and status_code != 429:
        return False
    # Retry on 429 and 5xx
    return True


def should_retry_request_error(exception: BaseException) -> bool:
    """Retry network errors and retryable HTTP statuses, nothing else."""
    if isinstance(exception, requests.exceptions.HTTPError):
        return should_retry_http_error(exception)
    return isinstance(exception, requests.exceptions.RequestException)


def stop_at_deadline(deadline: float) -> Callable[[RetryCallState], bool]:
    """Stop retrying once the monotonic deadline has passed."""

    def _stop(retry_state: RetryCallState) -> bool:
        return time.monotonic() >= deadline

    return _stop


def wait_until_deadline(
    wait: Callable[[RetryCallState], float], deadline: float
) -> Callable[[RetryCallState], float]:
    """Clamp a wait strategy so that no sleep runs past the deadline."""

    def _wait(retry_state: RetryCallState) -> float:
        return max(0.0, min(wait(retry_state), deadline - time.monotonic()))

    return _wait


def create_retry_decorator(
    retry_config: RetryConfig,
    retry_condition: Callable[[BaseException], bool] = should_retry_request_error,
    before_sleep: Callable[[RetryCallState], None] | None = None,
    deadline: Optional[float] = None,
) -> Callable[[Callable], Callable]:
    """Create a retry decorator with tenacity.

    Args:
        retry_config: Retry configuration
        retry_condition: Function that returns True if exception should be retried
        before_sleep: Optional callback before sleep (defaults to logging)
        deadline: Optional time.monotonic() value after which no retry is started
            and no sleep extends

    Returns:
        Retry decorator
    """
    # Exponential backoff: initial_delay * (backoff_multiplier ^ attempt)
    wait = wait_exponential(
        multiplier=retry_config.initial_delay,
        exp_base=retry_config.backoff_multiplier,
        min=retry_config.initial_delay,
        max=60.0,
    )

    # Add jitter if configured
    if retry_config.jitter > 0:
        jitter_amount = retry_config.initial_delay * retry_config.jitter
        wait = wait + wait_random(-jitter_amount, jitter_amount)

    stop = stop_after_attempt(retry_config.max_attempts)
    if deadline is not None:
        stop = stop | stop_at_deadline(deadline)
        wait = wait_until_deadline(wait, deadline)

    if before_sleep is None:
        before_sleep = before_sleep_log(logger, logging.WARNING)

    def decorator(func: Callable) -> Callable:
        return retry(
            stop=stop,
            wait=wait,
            retry=retry_if_exception(retry_condition),
            reraise=True,
            before_sleep=before_sleep,
        )(func)

    return decorator
