"""Base query executor interface"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence

from querywait.domain.models.wait_spec import QueryOptions


class QueryExecutor(ABC):
    """Abstract base class for query executors"""

    def __init__(self, config: Dict[str, Any]):
        """Initialize executor with configuration

        Args:
            config: Executor configuration dictionary

        Raises:
            ValueError: If configuration is invalid
        """
        self.config = config
        self._validate_config(config)

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate executor configuration

        Args:
            config: Configuration dictionary

        Raises:
            ValueError: If configuration is invalid
        """
        # Override in subclasses for specific validation
        pass

    @abstractmethod
    def execute(
        self,
        query: str,
        options: QueryOptions,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Sequence[Any]:
        """Run a query once

        Args:
            query: Query text, already template-rendered
            options: Pass-through execution options
            timeout: Seconds the caller is still willing to wait (None = no limit)
            cancel_event: Set when the caller wants the execution abandoned

        Returns:
            Records returned by the query

        Raises:
            QueryExecutionError: If the query could not be executed
        """
        pass
