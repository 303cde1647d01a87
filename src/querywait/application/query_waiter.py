"""Query waiter - polls a query until its record count satisfies a condition.

The loop runs on tenacity's ``Retrying`` engine: an attempt "fails" when the
condition is not yet satisfied, the backoff cursor supplies the wait, and the
sleep is an event wait bounded by the deadline so that neither a long
interval nor an explicit cancel has to be waited out.

Executor errors are never retried: a broken query or missing permission is
indistinguishable from "no data yet" only by looking at the error, which is
outside the waiter's competence.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from tenacity import RetryCallState, Retrying, retry_if_result

from querywait.application.backoff import BackoffCursor
from querywait.application.progress import WaitProgress
from querywait.domain.errors import QueryExecutionError
from querywait.domain.models.wait_result import FailureReason, WaitResult, WaitState
from querywait.domain.models.wait_spec import WaitSpec
from querywait.infrastructure.query.base import QueryExecutor

logger = logging.getLogger(__name__)


class _WaitInterrupted(Exception):
    """Deadline or cancel signal fired at a suspension point"""

    def __init__(self, reason: FailureReason):
        self.reason = reason
        super().__init__(reason.value)


@dataclass
class _Observation:
    count: int
    records: List[Any]


class _WaitRun:
    """Mutable counters of one ``wait()`` call"""

    def __init__(
        self,
        spec: WaitSpec,
        signal: threading.Event,
        cancelled: threading.Event,
        clock: Callable[[], float],
    ):
        self.signal = signal
        self.cancelled = cancelled
        self.clock = clock
        self.started = clock()
        self.deadline = self.started + spec.timeout if spec.timeout > 0 else None
        self.attempts = 0
        self.last_count = 0
        self.stop_reason: Optional[FailureReason] = None

    def elapsed(self) -> float:
        return self.clock() - self.started

    def remaining(self) -> Optional[float]:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - self.clock())

    def expired(self) -> bool:
        return self.deadline is not None and self.clock() >= self.deadline

    def check_interrupted(self) -> None:
        if self.signal.is_set() or self.cancelled.is_set():
            raise _WaitInterrupted(FailureReason.CANCELLED)
        if self.expired():
            raise _WaitInterrupted(FailureReason.TIMEOUT)


class QueryWaiter:
    """Polls a query until a condition is met, the deadline passes or attempts run out

    A waiter runs one ``wait()`` at a time. ``cancel()`` may be called from
    another thread; a cancelled waiter stays cancelled.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        spec: WaitSpec,
        echo: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize waiter

        Args:
            executor: Query executor used for every attempt
            spec: What to run and when to stop
            echo: Sink for human-readable progress lines (None = silent)
            clock: Monotonic time source in seconds
        """
        self.executor = executor
        self.spec = spec
        self.progress = WaitProgress.for_spec(spec, echo)
        self.clock = clock
        self._state = WaitState.PENDING
        self._lock = threading.Lock()
        self._cancel_event = threading.Event()
        self._active_signal: Optional[threading.Event] = None

    @property
    def state(self) -> WaitState:
        """Current state of the polling state machine"""
        return self._state

    def cancel(self) -> None:
        """Request prompt termination with the ``cancelled`` outcome

        While a wait runs with a caller-supplied ``cancel_event``, that event is
        set as well so that sleeps and executors blocked on it wake up.
        """
        self._cancel_event.set()
        if self._active_signal is not None:
            self._active_signal.set()

    def wait(self, cancel_event: Optional[threading.Event] = None) -> WaitResult:
        """Run the wait to completion

        Args:
            cancel_event: Optional external cancel signal

        Returns:
            WaitResult describing the terminal state

        Raises:
            RuntimeError: If this waiter is already waiting
        """
        if not self._lock.acquire(blocking=False):
            raise RuntimeError("QueryWaiter.wait() is already running on this instance")
        try:
            signal = cancel_event if cancel_event is not None else self._cancel_event
            self._active_signal = signal
            self._state = WaitState.PENDING
            return self._run(_WaitRun(self.spec, signal, self._cancel_event, self.clock))
        finally:
            self._active_signal = None
            self._lock.release()

    def _transition(self, state: WaitState) -> None:
        if self._state.is_terminal:
            raise RuntimeError(f"Cannot leave terminal state {self._state.value} for {state.value}")
        logger.debug(f"Wait state: {self._state.value} -> {state.value}")
        self._state = state

    def _run(self, run: _WaitRun) -> WaitResult:
        spec = self.spec
        self.progress.started(spec)
        logger.debug(
            f"Waiting for '{spec.condition}' (timeout={spec.timeout}s, max_attempts={spec.max_attempts})"
        )

        retrying = Retrying(
            stop=lambda retry_state: self._should_stop(run),
            wait=BackoffCursor(spec.backoff),
            retry=retry_if_result(lambda observation: not spec.condition.satisfied_by(observation.count)),
            sleep=lambda seconds: self._sleep(run, seconds),
            before_sleep=lambda retry_state: self._before_sleep(run, retry_state),
            retry_error_callback=lambda retry_state: None,
        )

        try:
            if spec.backoff.initial_delay > 0:
                self._sleep(run, spec.backoff.initial_delay)
            observation = retrying(self._attempt, run)
        except _WaitInterrupted as interrupt:
            return self._finish(run, interrupt.reason)
        except QueryExecutionError as e:
            logger.warning(f"Query execution failed on attempt {run.attempts}: {e}")
            return self._finish(run, FailureReason.QUERY_ERROR, error=str(e))

        if observation is None:
            return self._finish(run, run.stop_reason or FailureReason.TIMEOUT)
        return self._finish(run, FailureReason.NONE, payload=observation.records)

    def _attempt(self, run: _WaitRun) -> _Observation:
        run.check_interrupted()
        self._transition(WaitState.EXECUTING)
        run.attempts += 1
        self.progress.attempt_started(self.spec, run.attempts)

        attempt_started = self.clock()
        try:
            records = self.executor.execute(
                self.spec.query,
                self.spec.query_options,
                timeout=run.remaining(),
                cancel_event=run.signal,
            )
        except Exception as e:
            # A failure caused by the deadline or a cancel is reported as such
            run.check_interrupted()
            if isinstance(e, QueryExecutionError):
                raise
            raise QueryExecutionError(f"Query execution failed: {e}") from e

        self._transition(WaitState.EVALUATING)
        count = len(records)
        run.last_count = count
        self.progress.attempt_evaluated(count, self.clock() - attempt_started)
        logger.debug(f"Attempt {run.attempts}: {count} record(s)")
        return _Observation(count=count, records=list(records))

    def _should_stop(self, run: _WaitRun) -> bool:
        if self.spec.max_attempts and run.attempts >= self.spec.max_attempts:
            run.stop_reason = FailureReason.MAX_ATTEMPTS_EXCEEDED
            return True
        if run.expired():
            run.stop_reason = FailureReason.TIMEOUT
            return True
        return False

    def _before_sleep(self, run: _WaitRun, retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        self.progress.retrying(self.spec, run.attempts, run.last_count, delay)
        logger.debug(f"Condition '{self.spec.condition}' not met, sleeping {delay:.3f}s")

    def _sleep(self, run: _WaitRun, seconds: float) -> None:
        run.check_interrupted()
        self._transition(WaitState.SLEEPING)
        remaining = run.remaining()
        budget = seconds if remaining is None else min(seconds, remaining)
        if run.signal.wait(budget):
            raise _WaitInterrupted(FailureReason.CANCELLED)
        run.check_interrupted()

    def _finish(
        self,
        run: _WaitRun,
        reason: FailureReason,
        payload: Optional[List[Any]] = None,
        error: Optional[str] = None,
    ) -> WaitResult:
        result = WaitResult(
            success=reason is FailureReason.NONE,
            failure_reason=reason,
            attempts=run.attempts,
            last_record_count=run.last_count,
            elapsed=run.elapsed(),
            last_payload=payload,
            error=error,
        )
        self._transition(result.state)
        self.progress.finished(self.spec, result)
        logger.debug(
            f"Wait finished: {result.state.value} after {result.attempts} attempt(s) in {result.elapsed:.3f}s"
        )
        return result
