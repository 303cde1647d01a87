"""HTTP query executor for the platform storage query API.

Queries are submitted to ``query:execute``; if the backend answers with a
request token instead of results (202 or state RUNNING), the executor
long-polls ``query:poll`` until the query succeeds or fails.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from typing import Any, Dict, List, Optional

import requests

from querywait import __version__
from querywait.domain.errors import QueryExecutionError
from querywait.domain.models.wait_spec import QueryOptions
from querywait.infrastructure.http_client import get_json_with_retries, post_json_with_retries
from querywait.infrastructure.query.base import QueryExecutor
from querywait.infrastructure.retry import retry_config_from_dict

logger = logging.getLogger(__name__)

EXECUTE_PATH = "/platform/storage/query/v1/query:execute"
POLL_PATH = "/platform/storage/query/v1/query:poll"
SERVER_REQUEST_TIMEOUT_MS = 60000


class HttpQueryExecutor(QueryExecutor):
    """Executes queries over HTTP with a bearer token"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize HTTP executor

        Args:
            config: Optional configuration with:
                - url: Environment base URL (default: QUERYWAIT_URL env)
                - token: Bearer token (default: QUERYWAIT_TOKEN env)
                - request_timeout: Per-request timeout in seconds (default: 360)
                - poll_interval: Pause between polls of a running query (default: 1.0)
                - max_attempts, initial_delay, backoff_multiplier, jitter: transport retries
        """
        if config is None:
            config = {}
        super().__init__(config)
        self.base_url = (config.get("url") or os.getenv("QUERYWAIT_URL", "")).rstrip("/")
        self.token = config.get("token") or os.getenv("QUERYWAIT_TOKEN")
        self.request_timeout = float(config.get("request_timeout", 360))
        self.poll_interval = float(config.get("poll_interval", 1.0))
        self.retry = retry_config_from_dict(config)

    def _validate_config(self, config: Dict[str, Any]) -> None:
        if not (config.get("url") or os.getenv("QUERYWAIT_URL")):
            raise ValueError(
                "Environment URL is required. "
                "Set QUERYWAIT_URL environment variable or provide client.url in config."
            )
        if not (config.get("token") or os.getenv("QUERYWAIT_TOKEN")):
            raise ValueError(
                "API token is required. "
                "Set QUERYWAIT_TOKEN environment variable or provide client.token in config."
            )
        if "request_timeout" in config:
            timeout = config["request_timeout"]
            if not isinstance(timeout, (int, float)) or timeout <= 0:
                raise ValueError("request_timeout must be a positive number")

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.token}",
            "User-Agent": f"querywait/{__version__}",
        }

    def execute(
        self,
        query: str,
        options: QueryOptions,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Dict[str, Any]]:
        deadline = None if timeout is None else time.monotonic() + timeout
        body: Dict[str, Any] = {
            "query": query,
            "requestTimeoutMilliseconds": SERVER_REQUEST_TIMEOUT_MS,
        }
        body.update(options.to_request_fields())

        response = self._call(
            "execute query",
            lambda: post_json_with_retries(
                self.base_url + EXECUTE_PATH,
                payload=body,
                headers=self.headers,
                timeout=self.request_timeout,
                retry=self.retry,
                deadline=deadline,
            ),
            deadline,
        )
        data = self._json(response)

        if response.status_code == 202 or data.get("state") == "RUNNING":
            request_token = data.get("requestToken")
            if not request_token:
                raise QueryExecutionError("query is running but no request token provided")
            data = self._poll(request_token, deadline, cancel_event or threading.Event())

        if data.get("state") == "FAILED":
            raise QueryExecutionError(f"query failed: {data.get('error') or data}")

        self._log_notifications(data)
        return self._records(data)

    def _poll(
        self, request_token: str, deadline: Optional[float], cancel_event: threading.Event
    ) -> Dict[str, Any]:
        while True:
            params = {
                "request-token": request_token,
                "request-timeout-milliseconds": str(self._server_wait_ms(deadline)),
            }
            response = self._call(
                "poll query",
                lambda: get_json_with_retries(
                    self.base_url + POLL_PATH,
                    params=params,
                    headers=self.headers,
                    timeout=self.request_timeout,
                    retry=self.retry,
                    deadline=deadline,
                ),
                deadline,
            )
            data = self._json(response)
            state = data.get("state")
            if state in ("SUCCEEDED", "FAILED"):
                return data
            logger.debug(f"Query still {state or 'running'}, polling again")
            if cancel_event.wait(min(self.poll_interval, self._remaining(deadline))):
                raise QueryExecutionError("query cancelled while running")

    def _call(self, action: str, send, deadline: Optional[float]) -> requests.Response:
        try:
            self._remaining(deadline)  # raises once the deadline has passed
            return send()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            text = e.response.text if e.response is not None else ""
            raise QueryExecutionError(
                f"{action} failed with status {status}: {text}", status_code=status
            ) from e
        except RuntimeError as e:
            raise QueryExecutionError(f"failed to {action}: {e}") from e

    def _remaining(self, deadline: Optional[float]) -> float:
        if deadline is None:
            return self.request_timeout
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise QueryExecutionError("deadline exceeded while executing query")
        return remaining

    def _server_wait_ms(self, deadline: Optional[float]) -> int:
        return max(1, min(SERVER_REQUEST_TIMEOUT_MS, int(self._remaining(deadline) * 1000)))

    @staticmethod
    def _json(response: requests.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise QueryExecutionError(f"Failed to parse query response JSON: {e}") from e
        if not isinstance(data, dict):
            raise QueryExecutionError("Unexpected query response: expected a JSON object")
        return data

    @staticmethod
    def _records(data: Dict[str, Any]) -> List[Dict[str, Any]]:
        result = data.get("result") or {}
        records = result.get("records") or data.get("records") or []
        return list(records)

    @staticmethod
    def _log_notifications(data: Dict[str, Any]) -> None:
        notifications = []
        for holder in (data, data.get("result") or {}):
            grail = (holder.get("metadata") or {}).get("grail") or {}
            notifications = grail.get("notifications") or []
            if notifications:
                break
        for notification in notifications:
            severity = (notification.get("severity") or "INFO").upper()
            message = notification.get("message", "")
            if severity in ("WARNING", "WARN"):
                logger.warning(f"Query notification: {message}")
            elif severity == "ERROR":
                logger.error(f"Query notification: {message}")
            else:
                logger.debug(f"Query notification: {message}")
