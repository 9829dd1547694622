"""Single-object condition wait.

The poller re-fetches one object on every tick and evaluates a success
predicate and an optional failure predicate against the fresh snapshot.
"""

from dataclasses import dataclass

from loguru import logger

from upgradewatch.core.clock import CancellationToken
from upgradewatch.core.objects import ObjectRef, TrackedObject
from upgradewatch.core.predicates import ObjectPredicate
from upgradewatch.exceptions import (
    FetchError,
    ObjectNotFoundError,
    ObjectStoreError,
    PredicateFailure,
    WaitTimeoutError,
)
from upgradewatch.orchestration.ticker import PollTicker
from upgradewatch.protocols import ClockProtocol, ObjectStoreProtocol


@dataclass(frozen=True)
class PollResult:
    """Result from a successful single-object wait."""

    object: TrackedObject
    evaluations: int
    elapsed: float


class Poller:
    """Waits until one object's conditions satisfy a predicate."""

    def __init__(self, store: ObjectStoreProtocol, clock: ClockProtocol):
        self._store = store
        self._clock = clock

    def wait_for(
        self,
        ref: ObjectRef,
        success: ObjectPredicate,
        failure: ObjectPredicate | None = None,
        interval: float = 10.0,
        timeout: float = 300.0,
        token: CancellationToken | None = None,
    ) -> PollResult:
        """Block until ``success`` holds on a fresh snapshot of ``ref``.

        Args:
            ref: Object to watch
            success: Predicate that ends the wait successfully
            failure: Optional predicate that ends the wait immediately with an error
            interval: Seconds between evaluations
            timeout: Total seconds allowed, measured from the call
            token: Run cancellation token, checked before every evaluation

        Returns:
            PollResult carrying the satisfying snapshot

        Raises:
            FetchError: If the object cannot be fetched (including not found)
            PredicateFailure: If ``failure`` holds before ``success``
            WaitTimeoutError: If the deadline passes first
            WaitCancelledError: If ``token`` is cancelled
        """
        description = f"{ref.kind} {ref} condition {success.describe()}"
        ticker = PollTicker(self._clock, interval, timeout, token)
        ticker.start()

        logger.info(
            f"Waiting for {description}, interval: {interval}s, timeout: {timeout}s"
        )

        while True:
            evaluation = ticker.begin_tick(description)
            obj = self._fetch(ref)

            if failure is not None and failure.check(obj):
                detail = failure.detail(obj)
                logger.error(f"{ref.kind} {ref} reported failure: {detail}")
                raise PredicateFailure(
                    f"{ref.kind} {ref} failed ({failure.describe()}) after "
                    f"{ticker.elapsed:.1f}s: {detail}"
                )

            if success.check(obj):
                logger.info(
                    f"{ref.kind} {ref} reached {success.describe()} "
                    f"after {ticker.elapsed:.1f}s ({evaluation} checks)"
                )
                return PollResult(
                    object=obj, evaluations=evaluation, elapsed=ticker.elapsed
                )

            logger.debug(
                f"Check {evaluation}: {ref.kind} {ref} not ready "
                f"({success.detail(obj)})"
            )

            if ticker.expired:
                raise WaitTimeoutError(
                    f"Timed out after {ticker.elapsed:.1f}s waiting for "
                    f"{description}; last observed: {success.detail(obj)}"
                )

            ticker.log_progress(description)
            ticker.sleep_until_next_tick()

    def _fetch(self, ref: ObjectRef) -> TrackedObject:
        try:
            return self._store.get(ref.kind, ref.namespace, ref.name)
        except ObjectNotFoundError as e:
            raise FetchError(f"{ref.kind} {ref} not found: {e}") from e
        except ObjectStoreError as e:
            raise FetchError(f"Failed to get {ref.kind} {ref}: {e}") from e
