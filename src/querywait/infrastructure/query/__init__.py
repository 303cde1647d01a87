"""Query executors"""

from querywait.infrastructure.query.base import QueryExecutor
from querywait.infrastructure.query.factory import QueryExecutorFactory
from querywait.infrastructure.query.http import HttpQueryExecutor
from querywait.infrastructure.query.mock import MockQueryExecutor

__all__ = ["QueryExecutor", "QueryExecutorFactory", "HttpQueryExecutor", "MockQueryExecutor"]
