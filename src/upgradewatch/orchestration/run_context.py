"""Run-scoped context threaded explicitly through every stage call.

Bindings are typed keys written once by a producing stage and read by later
stages. Writing returns a new context; the previous one is left untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Generic, Mapping, TypeVar

from upgradewatch.core.clock import CancellationToken
from upgradewatch.exceptions import ContractViolation

T = TypeVar("T")


@dataclass(frozen=True)
class Binding(Generic[T]):
    """Typed name for a value carried forward between stages."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class RunContext:
    """Immutable snapshot of a workflow run's shared state."""

    token: CancellationToken = field(default_factory=CancellationToken)
    run_id: str = ""
    _bindings: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), repr=False
    )

    def has(self, binding: Binding[Any]) -> bool:
        return binding.name in self._bindings

    def require(self, binding: Binding[T]) -> T:
        """Read a binding that an earlier stage must have written."""
        if binding.name not in self._bindings:
            raise ContractViolation(
                f"Binding '{binding.name}' read before any stage wrote it"
            )
        return self._bindings[binding.name]

    def bind(self, binding: Binding[T], value: T) -> RunContext:
        """Return a new context with ``binding`` set to ``value``."""
        if binding.name in self._bindings:
            raise ContractViolation(f"Binding '{binding.name}' is already written")
        updated = dict(self._bindings)
        updated[binding.name] = value
        return replace(self, _bindings=MappingProxyType(updated))

    @property
    def bindings(self) -> Mapping[str, Any]:
        return self._bindings
