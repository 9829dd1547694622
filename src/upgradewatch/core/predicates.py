"""Condition predicates evaluated against tracked object snapshots.

This module provides the predicates the pollers use to decide
when a wait has succeeded or failed.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from upgradewatch.core.objects import (
    STATUS_FALSE,
    STATUS_TRUE,
    HasConditions,
    get_condition,
    is_condition_false,
    is_condition_true,
)


class ObjectPredicate(ABC):
    """Abstract base for a boolean observation over one object's status.

    Implementations must be pure: they inspect the snapshot they are given
    and never fetch anything.
    """

    @abstractmethod
    def check(self, obj: HasConditions) -> bool:
        pass

    @abstractmethod
    def describe(self) -> str:
        pass

    def detail(self, obj: HasConditions) -> str:
        """Diagnostic text for the observed snapshot."""
        return ""

    def __str__(self) -> str:
        return self.describe()


@dataclass(frozen=True)
class ConditionStatus(ObjectPredicate):
    """Holds when the named condition is present with status True or False.

    A missing condition never matches. Unknown is neither, so it is not a
    status this predicate can wait for.
    """

    condition_type: str
    status: str = STATUS_TRUE

    def __post_init__(self):
        if not self.condition_type:
            raise ValueError("condition_type must not be empty")
        if self.status not in (STATUS_TRUE, STATUS_FALSE):
            raise ValueError(
                f"status must be {STATUS_TRUE} or {STATUS_FALSE}, got {self.status!r}"
            )

    def check(self, obj: HasConditions) -> bool:
        if self.status == STATUS_TRUE:
            return is_condition_true(obj, self.condition_type)
        return is_condition_false(obj, self.condition_type)

    def describe(self) -> str:
        return f"{self.condition_type}={self.status}"

    def detail(self, obj: HasConditions) -> str:
        condition = get_condition(obj, self.condition_type)
        if condition is None:
            return f"condition {self.condition_type} not present"
        parts = [f"{condition.type}={condition.status}"]
        if condition.reason:
            parts.append(f"reason={condition.reason}")
        if condition.message:
            parts.append(f"message={condition.message}")
        return ", ".join(parts)


def condition_true(condition_type: str) -> ConditionStatus:
    return ConditionStatus(condition_type, STATUS_TRUE)


def condition_false(condition_type: str) -> ConditionStatus:
    return ConditionStatus(condition_type, STATUS_FALSE)

