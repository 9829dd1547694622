"""Protocol definitions for dependency injection.

This module defines protocol interfaces for the collaborators the polling
engine depends on. Protocols decouple the pollers and the sequencer from
concrete transports and timers.

All protocols are marked @runtime_checkable to support isinstance() validation.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable, TYPE_CHECKING

if TYPE_CHECKING:
    from upgradewatch.core.clock import CancellationToken
    from upgradewatch.core.objects import TrackedObject


@runtime_checkable
class ObjectStoreProtocol(Protocol):
    """Protocol for reading and creating objects in the remote store."""

    def get(self, kind: str, namespace: str, name: str) -> TrackedObject:
        """Fetch a fresh snapshot of one object.

        Args:
            kind: Object kind, e.g. "Upgrade"
            namespace: Namespace holding the object
            name: Object name

        Returns:
            TrackedObject snapshot

        Raises:
            ObjectNotFoundError: If the object does not exist
            ObjectStoreError: If the request fails for any other reason
        """
        ...

    def list(self, kind: str, namespace: str) -> list[TrackedObject]:
        """List every object of a kind in a namespace.

        Raises:
            ObjectStoreError: If the request fails
        """
        ...

    def create(self, obj: TrackedObject) -> TrackedObject:
        """Create an object and return it as stored (final name assigned).

        Raises:
            ObjectStoreError: If the request fails
        """
        ...


@runtime_checkable
class ClockProtocol(Protocol):
    """Protocol for the timer the poll loops block on."""

    def now(self) -> float:
        """Current time in seconds from an arbitrary monotonic origin."""
        ...

    def sleep(self, seconds: float, token: CancellationToken | None = None) -> None:
        """Block for ``seconds`` or until ``token`` is cancelled."""
        ...
