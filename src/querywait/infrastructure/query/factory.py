"""Executor selection for ``client.executor`` in .querywait.yml"""

import logging
from typing import Any, Dict, Optional, Type

from querywait.infrastructure.query.base import QueryExecutor
from querywait.infrastructure.query.http import HttpQueryExecutor
from querywait.infrastructure.query.mock import MockQueryExecutor

logger = logging.getLogger(__name__)


class QueryExecutorFactory:
    """Builds the executor that runs every attempt of a wait

    ``http`` talks to the query API of a live environment; ``mock`` replays
    scripted record batches and lets a wait run without any backend.
    """

    EXECUTORS: Dict[str, Type[QueryExecutor]] = {
        "http": HttpQueryExecutor,
        "mock": MockQueryExecutor,
    }

    @classmethod
    def create(cls, executor_type: str, config: Optional[Dict[str, Any]] = None) -> QueryExecutor:
        """Create the executor named by ``client.executor``

        Args:
            executor_type: Executor name (http, mock), case-insensitive
            config: Flat executor settings, usually ``ConfigManager.get_executor_config()``

        Returns:
            Executor ready to run queries

        Raises:
            ValueError: If the name is unknown or the executor rejects its settings
                (e.g. http without an environment URL or token)
        """
        name = executor_type.lower()
        executor_class = cls.EXECUTORS.get(name)
        if executor_class is None:
            raise ValueError(
                f"Unknown query executor: {executor_type}. "
                f"Available executors: {', '.join(sorted(cls.EXECUTORS))}"
            )

        executor = executor_class(dict(config or {}))
        if isinstance(executor, HttpQueryExecutor):
            logger.info(f"Running queries against {executor.base_url}")
        else:
            logger.info(f"Running queries with the {name} executor")
        return executor
