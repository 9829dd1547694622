"""Deadline-bound tick loop shared by the pollers.

The ticker owns the timing half of a wait: the deadline computed at start,
the evaluation counter, cancellation checks and the sleep between
evaluations. Pollers own the observation half.
"""

from loguru import logger

from upgradewatch.core.clock import CancellationToken
from upgradewatch.exceptions import WaitCancelledError
from upgradewatch.protocols import ClockProtocol


class PollTicker:
    """Drives one wait: immediate first evaluation, then one per interval.

    The last sleep is shortened so that an evaluation happens exactly at the
    deadline, which bounds the number of evaluations to
    ``ceil(timeout / interval) + 1``.
    """

    PROGRESS_LOG_INTERVAL: float = 60.0

    def __init__(
        self,
        clock: ClockProtocol,
        interval: float,
        timeout: float,
        token: CancellationToken | None = None,
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        if timeout < 0:
            raise ValueError(f"timeout must not be negative, got {timeout}")

        self._clock = clock
        self._interval = interval
        self._timeout = timeout
        self._token = token
        self._started_at: float | None = None
        self._deadline: float | None = None
        self._last_progress_log: float | None = None
        self.evaluations = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def timeout(self) -> float:
        return self._timeout

    def start(self) -> None:
        """Fix the deadline at ``now + timeout``."""
        self._started_at = self._clock.now()
        self._deadline = self._started_at + self._timeout
        self._last_progress_log = self._started_at
        self.evaluations = 0

    @property
    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return self._clock.now() - self._started_at

    @property
    def expired(self) -> bool:
        return self._deadline is not None and self._clock.now() >= self._deadline

    def begin_tick(self, description: str) -> int:
        """Start an evaluation; raises if the run has been cancelled."""
        if self._deadline is None:
            raise RuntimeError("PollTicker.start() must be called before ticking")
        if self._token is not None and self._token.cancelled:
            raise WaitCancelledError(
                f"Wait for {description} cancelled after {self.elapsed:.1f}s: "
                f"{self._token.reason}"
            )
        self.evaluations += 1
        return self.evaluations

    def sleep_until_next_tick(self) -> None:
        remaining = self._deadline - self._clock.now()
        self._clock.sleep(min(self._interval, remaining), self._token)

    def log_progress(self, description: str) -> None:
        """Emit a periodic progress line so long waits are visibly alive."""
        now = self._clock.now()
        if now - self._last_progress_log >= self.PROGRESS_LOG_INTERVAL:
            logger.info(
                f"Still waiting for {description} "
                f"({self.elapsed:.1f}s / {self._timeout}s)..."
            )
            self._last_progress_log = now
