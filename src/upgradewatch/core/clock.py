"""Clock and cancellation primitives driving the poll tick loop."""

import threading
import time

from loguru import logger


class CancellationToken:
    """Run-scoped abort signal shared by every wait in a workflow run.

    Sleeping on a token returns early as soon as it is cancelled.
    """

    def __init__(self):
        self._event = threading.Event()
        self._reason = ""

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            logger.warning(f"Cancellation requested: {reason}")
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def wait(self, seconds: float) -> bool:
        """Block up to ``seconds``; return True if cancelled meanwhile."""
        return self._event.wait(timeout=max(seconds, 0.0))


class SystemClock:
    """Wall-clock implementation backed by the monotonic timer."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float, token: CancellationToken | None = None) -> None:
        if seconds <= 0:
            return
        if token is None:
            time.sleep(seconds)
        else:
            token.wait(seconds)


class ManualClock:
    """Virtual clock whose time only moves when someone sleeps on it.

    Useful for simulations and tests: a poll loop with a 10 minute timeout
    completes instantly while reporting the same elapsed times as a real run.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError(f"cannot move clock backwards by {seconds}")
        self._now += seconds

    def sleep(self, seconds: float, token: CancellationToken | None = None) -> None:
        if token is not None and token.cancelled:
            return
        if seconds <= 0:
            return
        self.sleeps.append(seconds)
        self.advance(seconds)
