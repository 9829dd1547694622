"""Collection condition wait.

Every tick re-lists the collection and requires each listed member to
satisfy the predicate on that same tick. There is no failure short-circuit
here: collections expose no aggregate failure signal.
"""

from dataclasses import dataclass

from loguru import logger

from upgradewatch.core.clock import CancellationToken
from upgradewatch.core.objects import TrackedObject
from upgradewatch.core.predicates import ObjectPredicate
from upgradewatch.exceptions import FetchError, ObjectStoreError, WaitTimeoutError
from upgradewatch.orchestration.ticker import PollTicker
from upgradewatch.protocols import ClockProtocol, ObjectStoreProtocol


@dataclass(frozen=True)
class ListPollResult:
    """Result from a successful collection wait."""

    objects: tuple[TrackedObject, ...]
    expected_count: int
    evaluations: int
    elapsed: float


class ListPoller:
    """Waits until every member of a collection satisfies a predicate."""

    def __init__(self, store: ObjectStoreProtocol, clock: ClockProtocol):
        self._store = store
        self._clock = clock

    def wait_for_all(
        self,
        kind: str,
        namespace: str,
        predicate: ObjectPredicate,
        expected_count: int | None = None,
        interval: float = 10.0,
        timeout: float = 300.0,
        token: CancellationToken | None = None,
    ) -> ListPollResult:
        """Block until all listed members satisfy ``predicate`` on one tick.

        Args:
            kind: Kind of the collection members
            namespace: Namespace to list
            predicate: Predicate every member must satisfy
            expected_count: Number of members that must match. When None it is
                captured from an initial list at wait start and never recomputed.
            interval: Seconds between evaluations
            timeout: Total seconds allowed, measured from the call
            token: Run cancellation token, checked before every evaluation

        Raises:
            FetchError: If listing the collection fails
            WaitTimeoutError: If the deadline passes first
            WaitCancelledError: If ``token`` is cancelled
        """
        description = f"all {kind} in {namespace} to reach {predicate.describe()}"
        ticker = PollTicker(self._clock, interval, timeout, token)
        ticker.start()

        if expected_count is None:
            expected_count = len(self._list(kind, namespace))
        if expected_count < 0:
            raise ValueError(f"expected_count must not be negative, got {expected_count}")

        logger.info(
            f"Waiting for {expected_count} {kind} in {namespace} to reach "
            f"{predicate.describe()}, interval: {interval}s, timeout: {timeout}s"
        )

        while True:
            evaluation = ticker.begin_tick(description)
            members = self._list(kind, namespace)

            not_ready = [m for m in members if not predicate.check(m)]
            matched = len(members) - len(not_ready)

            for member in not_ready:
                logger.info(
                    f"{kind} {member.name} is not ready ({predicate.detail(member)})"
                )

            if not not_ready and matched >= expected_count:
                logger.info(
                    f"All {matched} {kind} in {namespace} reached "
                    f"{predicate.describe()} after {ticker.elapsed:.1f}s"
                )
                return ListPollResult(
                    objects=tuple(members),
                    expected_count=expected_count,
                    evaluations=evaluation,
                    elapsed=ticker.elapsed,
                )

            if not not_ready:
                logger.debug(
                    f"Check {evaluation}: only {matched}/{expected_count} {kind} listed"
                )

            if ticker.expired:
                pending = ", ".join(m.name for m in not_ready) or (
                    f"{expected_count - matched} missing"
                )
                raise WaitTimeoutError(
                    f"Timed out after {ticker.elapsed:.1f}s waiting for "
                    f"{description}: {matched}/{expected_count} ready, "
                    f"not ready: {pending}"
                )

            ticker.log_progress(description)
            ticker.sleep_until_next_tick()

    def _list(self, kind: str, namespace: str) -> list[TrackedObject]:
        try:
            return self._store.list(kind, namespace)
        except ObjectStoreError as e:
            raise FetchError(f"Failed to list {kind} in {namespace}: {e}") from e
