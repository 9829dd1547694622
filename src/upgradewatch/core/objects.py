"""Tracked object and condition snapshots.

Objects returned by an object store are immutable snapshots. Conditions are
inspected through pure helper functions so predicates never perform I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


STATUS_TRUE = "True"
STATUS_FALSE = "False"
STATUS_UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Condition:
    """A named status flag attached to a tracked object."""

    type: str
    status: str = STATUS_UNKNOWN
    message: str = ""
    reason: str = ""

    @property
    def is_true(self) -> bool:
        return self.status == STATUS_TRUE

    @property
    def is_false(self) -> bool:
        return self.status == STATUS_FALSE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Condition:
        """Build a condition from a Kubernetes-style status entry."""
        return cls(
            type=str(data.get("type", "")),
            status=str(data.get("status", STATUS_UNKNOWN)),
            message=str(data.get("message") or ""),
            reason=str(data.get("reason") or ""),
        )


@dataclass(frozen=True)
class ObjectRef:
    """Identity of a tracked object: (kind, namespace, name)."""

    kind: str
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@runtime_checkable
class HasConditions(Protocol):
    """Capability shared by every object kind the pollers can watch."""

    @property
    def conditions(self) -> tuple[Condition, ...]: ...


@dataclass(frozen=True)
class TrackedObject:
    """Snapshot of a remote resource.

    ``name`` may be empty on objects that have not been created yet when
    ``generate_name`` is set; the store assigns the final name.
    """

    kind: str
    namespace: str
    name: str = ""
    generate_name: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    spec: dict[str, Any] = field(default_factory=dict)
    conditions: tuple[Condition, ...] = ()

    @property
    def ref(self) -> ObjectRef:
        return ObjectRef(kind=self.kind, namespace=self.namespace, name=self.name)

    def get_condition(self, condition_type: str) -> Condition | None:
        return get_condition(self, condition_type)


def get_condition(obj: HasConditions, condition_type: str) -> Condition | None:
    """Return the named condition, or None when the object does not carry it."""
    for condition in obj.conditions:
        if condition.type == condition_type:
            return condition
    return None


def is_condition_true(obj: HasConditions, condition_type: str) -> bool:
    """True only when the condition is present with status True.

    An absent condition is treated as not yet true rather than an error.
    """
    condition = get_condition(obj, condition_type)
    return condition is not None and condition.is_true


def is_condition_false(obj: HasConditions, condition_type: str) -> bool:
    """True only when the condition is present with status False."""
    condition = get_condition(obj, condition_type)
    return condition is not None and condition.is_false
