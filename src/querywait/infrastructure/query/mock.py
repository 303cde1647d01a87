"""Mock query executor for dry runs and testing"""

import threading
from typing import Any, Dict, List, Optional

from querywait.domain.errors import QueryExecutionError
from querywait.domain.models.wait_spec import QueryOptions
from querywait.infrastructure.query.base import QueryExecutor


class MockQueryExecutor(QueryExecutor):
    """Mock executor that replays scripted responses"""

    def __init__(self, config: Dict[str, Any] = None):
        """Initialize mock executor

        Args:
            config: Optional configuration with:
                - responses: Sequence replayed one per call, the last one repeating.
                  Each item is a list of records, a record count, a mapping
                  ``{"error": message}`` or an exception instance to raise.
                  (default: no records)
                - delay: Simulated query latency in seconds (default: 0)
        """
        if config is None:
            config = {}
        super().__init__(config)
        self.delay = config.get("delay", 0)
        self.responses = list(config.get("responses", [[]])) or [[]]
        self.calls: List[str] = []

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate mock executor configuration"""
        if "delay" in config and not isinstance(config["delay"], (int, float)):
            raise ValueError("delay must be a number")
        if "delay" in config and config["delay"] < 0:
            raise ValueError("delay must be non-negative")

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def execute(
        self,
        query: str,
        options: QueryOptions,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Any]:
        index = min(len(self.calls), len(self.responses) - 1)
        self.calls.append(query)

        if self.delay:
            delay = self.delay if timeout is None else min(self.delay, timeout)
            if (cancel_event or threading.Event()).wait(delay):
                raise QueryExecutionError("query cancelled")

        response = self.responses[index]
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, dict) and "error" in response:
            raise QueryExecutionError(str(response["error"]))
        if isinstance(response, int):
            return [{"index": i} for i in range(response)]
        return list(response)
