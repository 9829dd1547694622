"""In-memory object store.

Implements ObjectStoreProtocol over a plain dict so workflows can run
against simulated state. Status changes are applied with set_condition().
"""

import itertools
from dataclasses import replace

from loguru import logger

from upgradewatch.core.objects import Condition, ObjectRef, TrackedObject
from upgradewatch.exceptions import ObjectNotFoundError, ObjectStoreError


class InMemoryObjectStore:
    """Dict-backed store keyed by (kind, namespace, name)."""

    def __init__(self, objects: list[TrackedObject] | None = None):
        self._objects: dict[tuple[str, str, str], TrackedObject] = {}
        self._name_counter = itertools.count(1)
        for obj in objects or []:
            self.put(obj)

    @staticmethod
    def _key(kind: str, namespace: str, name: str) -> tuple[str, str, str]:
        return (kind, namespace, name)

    def _lookup(self, kind: str, namespace: str, name: str) -> TrackedObject:
        try:
            return self._objects[self._key(kind, namespace, name)]
        except KeyError:
            raise ObjectNotFoundError(
                f'{kind} "{name}" not found in namespace "{namespace}"'
            ) from None

    def get(self, kind: str, namespace: str, name: str) -> TrackedObject:
        return self._lookup(kind, namespace, name)

    def list(self, kind: str, namespace: str) -> list[TrackedObject]:
        return sorted(
            (
                obj
                for (k, ns, _), obj in self._objects.items()
                if k == kind and ns == namespace
            ),
            key=lambda obj: obj.name,
        )

    def create(self, obj: TrackedObject) -> TrackedObject:
        if not obj.name and not obj.generate_name:
            raise ObjectStoreError(f"{obj.kind}: name or generate_name is required")

        name = obj.name or f"{obj.generate_name}{next(self._name_counter):05d}"
        key = self._key(obj.kind, obj.namespace, name)
        if key in self._objects:
            raise ObjectStoreError(
                f'{obj.kind} "{name}" already exists in namespace "{obj.namespace}"'
            )

        created = replace(obj, name=name)
        self._objects[key] = created
        logger.debug(f"Stored {created.kind} {created.ref}")
        return created

    def put(self, obj: TrackedObject) -> TrackedObject:
        """Insert or replace an object without create semantics."""
        if not obj.name:
            raise ObjectStoreError(f"{obj.kind}: put requires a name")
        self._objects[self._key(obj.kind, obj.namespace, obj.name)] = obj
        return obj

    def delete(self, ref: ObjectRef) -> None:
        try:
            del self._objects[self._key(ref.kind, ref.namespace, ref.name)]
        except KeyError:
            raise ObjectNotFoundError(f"{ref.kind} {ref} not found") from None

    def set_condition(
        self,
        ref: ObjectRef,
        condition_type: str,
        status: str,
        message: str = "",
        reason: str = "",
    ) -> TrackedObject:
        """Replace (or add) one condition on a stored object."""
        current = self._lookup(ref.kind, ref.namespace, ref.name)
        condition = Condition(
            type=condition_type, status=status, message=message, reason=reason
        )
        conditions = tuple(
            c for c in current.conditions if c.type != condition_type
        ) + (condition,)
        return self.put(replace(current, conditions=conditions))
