"""Tests for exit code mapping"""

import pytest

from querywait.application.outcome import ExitCode, exit_code_for_error, exit_code_for_result
from querywait.domain.errors import (
    InvalidBackoffConfigError,
    InvalidConditionError,
    QueryExecutionError,
    TemplateError,
)
from querywait.domain.models.wait_result import FailureReason, WaitResult
from querywait.infrastructure.config.config_manager import ConfigurationError


def _result(reason: FailureReason) -> WaitResult:
    success = reason is FailureReason.NONE
    return WaitResult(
        success=success,
        failure_reason=reason,
        attempts=1,
        last_record_count=1 if success else 0,
        elapsed=0.1,
        last_payload=[{"a": 1}] if success else None,
    )


class TestExitCodes:
    """Tests for exit code stability"""

    def test_exit_code_values(self):
        assert [int(code) for code in ExitCode] == [0, 1, 2, 3, 4, 5]

    @pytest.mark.parametrize(
        "reason,expected",
        [
            (FailureReason.NONE, 0),
            (FailureReason.TIMEOUT, 1),
            (FailureReason.CANCELLED, 1),
            (FailureReason.MAX_ATTEMPTS_EXCEEDED, 2),
            (FailureReason.QUERY_ERROR, 3),
        ],
    )
    def test_result_exit_codes(self, reason, expected):
        assert exit_code_for_result(_result(reason)) == expected

    @pytest.mark.parametrize(
        "error,expected",
        [
            (InvalidConditionError("count=x"), ExitCode.INVALID_CONDITION),
            (QueryExecutionError("boom", status_code=400), ExitCode.QUERY_ERROR),
            (InvalidBackoffConfigError(["multiplier: too small"]), ExitCode.INVALID_ARGUMENTS),
            (TemplateError("unclosed"), ExitCode.INVALID_ARGUMENTS),
            (ConfigurationError("bad yaml"), ExitCode.INVALID_ARGUMENTS),
            (ValueError("bad value"), ExitCode.INVALID_ARGUMENTS),
        ],
    )
    def test_error_exit_codes(self, error, expected):
        assert exit_code_for_error(error) == expected
