"""Human-readable progress output for a wait"""

from datetime import datetime, timezone
from typing import Callable, Optional

from querywait.domain.duration import format_duration
from querywait.domain.models.wait_result import FailureReason, WaitResult
from querywait.domain.models.wait_spec import WaitSpec


def _records(count: int) -> str:
    return "record" if count == 1 else "records"


class WaitProgress:
    """Writes progress lines through ``echo`` according to quiet/verbose

    Quiet suppresses everything; verbose adds per-attempt detail.
    """

    def __init__(self, echo: Optional[Callable[[str], None]] = None, quiet: bool = False, verbose: bool = False):
        self._echo = echo
        self.quiet = quiet
        self.verbose = verbose and not quiet

    @classmethod
    def for_spec(cls, spec: WaitSpec, echo: Optional[Callable[[str], None]]) -> "WaitProgress":
        return cls(echo, quiet=spec.quiet, verbose=spec.verbose)

    def _write(self, message: str) -> None:
        if self._echo is not None and not self.quiet:
            self._echo(message)

    def _detail(self, message: str) -> None:
        if self.verbose:
            self._write(message)

    @staticmethod
    def _budget(spec: WaitSpec) -> str:
        return str(spec.max_attempts) if spec.max_attempts else "∞"

    def started(self, spec: WaitSpec) -> None:
        self._write(f"Waiting for condition: {spec.condition}")
        self._detail(f"Query: {spec.query}")
        timeout = format_duration(spec.timeout) if spec.timeout else "none"
        attempts = str(spec.max_attempts) if spec.max_attempts else "unlimited"
        self._detail(f"Timeout: {timeout}, Max attempts: {attempts}")
        if spec.backoff.initial_delay:
            self._detail(f"Initial delay: {format_duration(spec.backoff.initial_delay)}")

    def attempt_started(self, spec: WaitSpec, attempt: int) -> None:
        now = datetime.now(timezone.utc).isoformat(timespec="seconds")
        self._detail(f"Attempt {attempt}/{self._budget(spec)} at {now}")

    def attempt_evaluated(self, count: int, duration: float) -> None:
        self._detail(f"  Query executed in {format_duration(duration)}")
        self._detail(f"  Result: {count} {_records(count)}")

    def retrying(self, spec: WaitSpec, attempt: int, count: int, delay: float) -> None:
        if self.verbose:
            self._write(f"  Condition not met, retrying in {format_duration(delay)}...")
        else:
            self._write(
                f"Attempt {attempt}/{self._budget(spec)}: {count} {_records(count)} found, "
                f"retrying in {format_duration(delay)}..."
            )

    def finished(self, spec: WaitSpec, result: WaitResult) -> None:
        elapsed = format_duration(result.elapsed)
        if result.success:
            self._detail("  Condition met!")
            self._write(
                f"Success! Condition '{spec.condition}' satisfied after {result.attempts} attempt(s)"
            )
            self._write(f"Found {result.last_record_count} {_records(result.last_record_count)} in {elapsed}")
            return

        reason = result.failure_reason
        if reason is FailureReason.TIMEOUT:
            self._write("Timeout reached")
        elif reason is FailureReason.MAX_ATTEMPTS_EXCEEDED:
            self._write(f"Max attempts ({spec.max_attempts}) exceeded")
        elif reason is FailureReason.CANCELLED:
            self._write("Wait cancelled")
        else:
            self._write(f"Query failed: {result.error}")
        self._write(f"Elapsed: {elapsed}")
