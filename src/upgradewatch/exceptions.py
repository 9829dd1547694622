"""Custom exception classes for upgradewatch.

This module defines the error taxonomy shared by the object store, the
pollers and the stage sequencer. Errors are raised where the failure is
detected and propagate up to the sequencer, which attaches the stage label.
"""


class UpgradeWatchError(Exception):
    """Base exception class for all upgradewatch errors."""

    pass


class ObjectStoreError(UpgradeWatchError):
    """Raised by an object store when a get/list/create request fails."""

    pass


class ObjectNotFoundError(ObjectStoreError):
    """Raised by an object store when the requested object does not exist."""

    pass


class FetchError(UpgradeWatchError):
    """Raised when a poller cannot retrieve the object or collection it watches.

    Always fatal to the current wait. The poller never retries a failed fetch.
    """

    pass


class PredicateFailure(UpgradeWatchError):
    """Raised when a failure condition is observed before the success condition."""

    pass


class WaitTimeoutError(UpgradeWatchError, TimeoutError):
    """Raised when a wait deadline elapses without success or explicit failure."""

    pass


class WaitCancelledError(UpgradeWatchError):
    """Raised when the run's cancellation token is set during a wait."""

    pass


class MutationError(UpgradeWatchError):
    """Raised when a create call made by a mutate stage fails."""

    pass


class ContractViolation(UpgradeWatchError):
    """Raised when a run-context binding is read before, or written after, it is set.

    This is a programming error in the workflow definition and is never
    reported as an ordinary stage failure.
    """

    pass


class WorkflowValidationError(UpgradeWatchError):
    """Raised when workflow validation fails before execution."""

    pass
