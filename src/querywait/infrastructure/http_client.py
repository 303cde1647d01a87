"""Shared HTTP client utilities (requests + retry/backoff).

We keep HTTP logic centralized so every executor retries the same way.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import requests

from querywait.infrastructure.retry import RetryConfig, create_retry_decorator

logger = logging.getLogger(__name__)


class DeadlineExceeded(Exception):
    """No time is left before the caller's deadline."""


def _send_with_retries(
    method: str,
    url: str,
    *,
    headers: Dict[str, str],
    timeout: float,
    retry: RetryConfig,
    payload: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
    deadline: Optional[float] = None,
) -> requests.Response:
    @create_retry_decorator(retry, deadline=deadline)
    def _request_with_retry() -> requests.Response:
        request_timeout = timeout
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise DeadlineExceeded(f"deadline exceeded before {method} {url}")
            request_timeout = min(timeout, remaining)

        logger.debug(f"HTTP {method} {url} (timeout={request_timeout:.1f}s)")
        if method == "POST":
            resp = requests.post(url, json=payload, headers=headers, params=params, timeout=request_timeout)
        else:
            resp = requests.get(url, headers=headers, params=params, timeout=request_timeout)
        resp.raise_for_status()
        return resp

    try:
        return _request_with_retry()
    except requests.exceptions.HTTPError:
        raise
    except Exception as e:
        raise RuntimeError(f"HTTP request failed: {e}") from e


def post_json_with_retries(
    url: str,
    *,
    payload: Dict[str, Any],
    headers: Dict[str, str],
    timeout: float,
    retry: RetryConfig,
    deadline: Optional[float] = None,
) -> requests.Response:
    """POST JSON with retry on network errors, 429 and 5xx.

    ``timeout`` caps each request; ``deadline`` (a ``time.monotonic()`` value)
    bounds every request, retry and backoff sleep together.
    """
    return _send_with_retries(
        "POST", url, payload=payload, headers=headers, timeout=timeout, retry=retry, deadline=deadline
    )


def get_json_with_retries(
    url: str,
    *,
    params: Dict[str, Any],
    headers: Dict[str, str],
    timeout: float,
    retry: RetryConfig,
    deadline: Optional[float] = None,
) -> requests.Response:
    """GET with retry on network errors, 429 and 5xx."""
    return _send_with_retries(
        "GET", url, params=params, headers=headers, timeout=timeout, retry=retry, deadline=deadline
    )
