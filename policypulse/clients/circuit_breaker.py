"""Circuit breaker guarding calls to the analysis backend.

Three states:
  CLOSED    -- requests flow; consecutive failures are counted
  OPEN      -- backend considered down; calls fail fast
  HALF_OPEN -- recovery window; the next call is a probe

Transitions:
  CLOSED -> OPEN       failure_threshold consecutive failed requests
  OPEN -> HALF_OPEN    recovery_timeout seconds since the breaker opened
  HALF_OPEN -> CLOSED  probe succeeded
  HALF_OPEN -> OPEN    probe failed (recovery timer restarts)

A "failure" is a request whose whole retry loop was exhausted, so a single
flaky response never opens the breaker.
"""

import enum
import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class CircuitState(enum.Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(Exception):
    """A call was attempted while the breaker is OPEN.

    Attributes:
        source_name: Name of the guarded backend.
    """

    def __init__(self, source_name: str):
        self.source_name = source_name
        super().__init__(f"Circuit open for '{source_name}'; skipping request")


class CircuitBreaker:
    """Consecutive-failure breaker with an injectable monotonic clock.

    Args:
        name: Backend name used in log messages.
        failure_threshold: Consecutive failures that open the breaker.
        recovery_timeout: Seconds the breaker stays OPEN before probing.
        clock: Zero-argument callable returning seconds; defaults to
            ``time.monotonic``.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        clock: Callable[[], float] | None = None,
    ):
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock or time.monotonic

        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at = 0.0

    @property
    def state(self) -> CircuitState:
        """Current state; an expired OPEN window reads as HALF_OPEN."""
        if self._state is CircuitState.OPEN:
            elapsed = self._clock() - self._opened_at
            if elapsed >= self.recovery_timeout:
                self._move_to(CircuitState.HALF_OPEN, "%.1fs since opening" % elapsed)
        return self._state

    @property
    def failure_count(self) -> int:
        return self._consecutive_failures

    @property
    def is_call_permitted(self) -> bool:
        return self.state is not CircuitState.OPEN

    def check(self) -> None:
        """Raise CircuitOpenError unless a call is currently permitted."""
        if not self.is_call_permitted:
            raise CircuitOpenError(self.name)

    def record_success(self) -> None:
        self._consecutive_failures = 0
        if self._state is CircuitState.HALF_OPEN:
            self._move_to(CircuitState.CLOSED, "probe succeeded")

    def record_failure(self) -> None:
        self._consecutive_failures += 1
        if self._state is CircuitState.HALF_OPEN:
            self._open("probe failed")
        elif (self._state is CircuitState.CLOSED
                and self._consecutive_failures >= self.failure_threshold):
            self._open(f"{self._consecutive_failures} consecutive failures")

    def reset(self) -> None:
        """Force the breaker back to CLOSED with cleared counters."""
        self._consecutive_failures = 0
        self._opened_at = 0.0
        self._move_to(CircuitState.CLOSED, "manual reset")

    def _open(self, reason: str) -> None:
        self._opened_at = self._clock()
        self._move_to(CircuitState.OPEN, reason)

    def _move_to(self, new_state: CircuitState, reason: str) -> None:
        old_state = self._state
        self._state = new_state
        log = logger.warning if new_state is CircuitState.OPEN else logger.info
        log("%s: circuit %s -> %s (%s)", self.name, old_state.name, new_state.name, reason)
