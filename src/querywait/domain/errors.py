"""Domain error types"""

from typing import List, Optional


class QueryWaitError(Exception):
    """Base class for querywait errors"""

    pass


class InvalidConditionError(QueryWaitError, ValueError):
    """Condition string could not be parsed"""

    def __init__(self, text: str, reason: Optional[str] = None):
        self.text = text
        self.reason = reason
        message = f"invalid condition: {text!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidBackoffConfigError(QueryWaitError, ValueError):
    """Backoff policy violates its invariants"""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("Invalid backoff configuration:\n" + "\n".join(f"  - {e}" for e in errors))


class QueryExecutionError(QueryWaitError):
    """Query executor failed to run a query"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class TemplateError(QueryWaitError, ValueError):
    """Query template or --set variable is malformed"""

    pass
