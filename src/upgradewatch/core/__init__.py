"""Core domain types: object snapshots, predicates and the clock."""

from upgradewatch.core.clock import CancellationToken, ManualClock, SystemClock
from upgradewatch.core.objects import (
    Condition,
    HasConditions,
    ObjectRef,
    TrackedObject,
    get_condition,
    is_condition_false,
    is_condition_true,
)
from upgradewatch.core.predicates import (
    ConditionStatus,
    ObjectPredicate,
    condition_false,
    condition_true,
)

__all__ = [
    "CancellationToken",
    "ManualClock",
    "SystemClock",
    "Condition",
    "HasConditions",
    "ObjectRef",
    "TrackedObject",
    "get_condition",
    "is_condition_false",
    "is_condition_true",
    "ConditionStatus",
    "ObjectPredicate",
    "condition_false",
    "condition_true",
]
