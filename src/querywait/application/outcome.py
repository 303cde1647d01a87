"""Outcome mapping - wait results and setup errors to process exit codes.

The exit codes are consumed by scripts and must stay stable:

    0  condition satisfied
    1  timeout reached (also explicit cancel)
    2  max attempts exceeded
    3  query execution error
    4  invalid condition syntax
    5  invalid arguments or configuration
"""

from enum import IntEnum

from querywait.domain.errors import (
    InvalidConditionError,
    QueryExecutionError,
)
from querywait.domain.models.wait_result import FailureReason, WaitResult


class ExitCode(IntEnum):
    """Process exit codes of ``querywait wait query``"""

    SUCCESS = 0
    TIMEOUT = 1
    MAX_ATTEMPTS_EXCEEDED = 2
    QUERY_ERROR = 3
    INVALID_CONDITION = 4
    INVALID_ARGUMENTS = 5


_REASON_EXIT_CODES = {
    FailureReason.NONE: ExitCode.SUCCESS,
    FailureReason.TIMEOUT: ExitCode.TIMEOUT,
    FailureReason.CANCELLED: ExitCode.TIMEOUT,
    FailureReason.MAX_ATTEMPTS_EXCEEDED: ExitCode.MAX_ATTEMPTS_EXCEEDED,
    FailureReason.QUERY_ERROR: ExitCode.QUERY_ERROR,
}


def exit_code_for_result(result: WaitResult) -> ExitCode:
    """Map a finished wait to its exit code"""
    return _REASON_EXIT_CODES[result.failure_reason]


def exit_code_for_error(error: Exception) -> ExitCode:
    """Map an error raised before or around a wait to its exit code

    Args:
        error: Exception raised while preparing or running the wait

    Returns:
        Exit code for the error
    """
    if isinstance(error, InvalidConditionError):
        return ExitCode.INVALID_CONDITION
    if isinstance(error, QueryExecutionError):
        return ExitCode.QUERY_ERROR
    # InvalidBackoffConfigError, ConfigurationError, TemplateError, bad values
    return ExitCode.INVALID_ARGUMENTS
