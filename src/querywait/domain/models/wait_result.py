"""WaitResult model - terminal outcome of a single wait"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional


class FailureReason(str, Enum):
    """Why a wait did not succeed"""

    NONE = "none"
    TIMEOUT = "timeout"
    MAX_ATTEMPTS_EXCEEDED = "max_attempts_exceeded"
    QUERY_ERROR = "query_error"
    CANCELLED = "cancelled"


class WaitState(str, Enum):
    """States of the polling state machine"""

    PENDING = "pending"
    EXECUTING = "executing"
    EVALUATING = "evaluating"
    SLEEPING = "sleeping"
    SUCCEEDED = "succeeded"
    TIMED_OUT = "timed_out"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"
    ERRORED = "errored"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset(
    {
        WaitState.SUCCEEDED,
        WaitState.TIMED_OUT,
        WaitState.ATTEMPTS_EXHAUSTED,
        WaitState.ERRORED,
        WaitState.CANCELLED,
    }
)

_REASON_STATES = {
    FailureReason.NONE: WaitState.SUCCEEDED,
    FailureReason.TIMEOUT: WaitState.TIMED_OUT,
    FailureReason.MAX_ATTEMPTS_EXCEEDED: WaitState.ATTEMPTS_EXHAUSTED,
    FailureReason.QUERY_ERROR: WaitState.ERRORED,
    FailureReason.CANCELLED: WaitState.CANCELLED,
}


@dataclass(frozen=True)
class WaitResult:
    """Result of waiting for a condition"""

    success: bool
    failure_reason: FailureReason
    attempts: int  # Queries executed
    last_record_count: int
    elapsed: float  # Seconds
    last_payload: Optional[List[Any]] = None  # Records, only on success
    error: Optional[str] = None  # Executor error message on query_error

    def __post_init__(self):
        """Validate result data"""
        if self.success != (self.failure_reason is FailureReason.NONE):
            raise ValueError("success must match failure_reason")
        if self.last_payload is not None and not self.success:
            raise ValueError("last_payload is only kept on success")

    @property
    def state(self) -> WaitState:
        """Terminal state the wait ended in"""
        return _REASON_STATES[self.failure_reason]
