"""Stage definitions for a workflow run.

A stage is either a single mutating call against the object store or a
condition wait. Stages are frozen; each one receives the run context and
returns the context the next stage should see.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from loguru import logger

from upgradewatch.core.objects import ObjectRef, TrackedObject
from upgradewatch.core.predicates import ObjectPredicate
from upgradewatch.exceptions import MutationError, ObjectStoreError
from upgradewatch.orchestration.list_poller import ListPoller
from upgradewatch.orchestration.poller import Poller
from upgradewatch.orchestration.run_context import Binding, RunContext
from upgradewatch.protocols import ObjectStoreProtocol


class StageAction(Enum):
    """What a stage does."""

    MUTATE = "mutate"
    WAIT_ONE = "wait_one"
    WAIT_ALL = "wait_all"


@dataclass(frozen=True)
class StageServices:
    """Collaborators stages execute against."""

    store: ObjectStoreProtocol
    poller: Poller
    list_poller: ListPoller


@dataclass(frozen=True)
class StageResult:
    """Context after a stage plus a one-line description of what happened."""

    context: RunContext
    detail: str = ""


class Stage(ABC):
    """Abstract base for one unit of a workflow run."""

    label: str

    @property
    @abstractmethod
    def action(self) -> StageAction:
        pass

    @property
    def requires(self) -> tuple[Binding, ...]:
        """Bindings this stage reads; earlier stages must provide them."""
        return ()

    @property
    def provides(self) -> tuple[Binding, ...]:
        """Bindings this stage writes on success."""
        return ()

    @property
    def interval(self) -> float | None:
        return None

    @property
    def timeout(self) -> float | None:
        return None

    @abstractmethod
    def execute(self, context: RunContext, services: StageServices) -> StageResult:
        pass


@dataclass(frozen=True)
class MutateStage(Stage):
    """Create exactly one object and bind its identity for later stages.

    ``build`` turns the current context into the object to create. It may
    read bindings listed in ``uses``.
    """

    label: str
    build: Callable[[RunContext], TrackedObject]
    binds: Binding[ObjectRef]
    uses: tuple[Binding, ...] = ()

    @property
    def action(self) -> StageAction:
        return StageAction.MUTATE

    @property
    def requires(self) -> tuple[Binding, ...]:
        return self.uses

    @property
    def provides(self) -> tuple[Binding, ...]:
        return (self.binds,)

    def execute(self, context: RunContext, services: StageServices) -> StageResult:
        obj = self.build(context)
        target = obj.name or f"{obj.generate_name}*"
        logger.debug(f"Creating {obj.kind} {obj.namespace}/{target}")

        try:
            created = services.store.create(obj)
        except ObjectStoreError as e:
            raise MutationError(
                f"Failed to create {obj.kind} {obj.namespace}/{target}: {e}"
            ) from e

        logger.info(f"{created.kind} is created: {created.ref}")
        return StageResult(
            context=context.bind(self.binds, created.ref),
            detail=f"created {created.kind} {created.ref}",
        )


@dataclass(frozen=True)
class WaitOneStage(Stage):
    """Wait for one object's condition, optionally failing fast.

    ``target`` is either a fixed reference or a binding written by an
    earlier mutate stage.
    """

    label: str
    target: ObjectRef | Binding[ObjectRef]
    success: ObjectPredicate
    failure: ObjectPredicate | None = None
    interval_seconds: float = 10.0
    timeout_seconds: float = 300.0

    @property
    def action(self) -> StageAction:
        return StageAction.WAIT_ONE

    @property
    def requires(self) -> tuple[Binding, ...]:
        if isinstance(self.target, Binding):
            return (self.target,)
        return ()

    @property
    def interval(self) -> float:
        return self.interval_seconds

    @property
    def timeout(self) -> float:
        return self.timeout_seconds

    def resolve_target(self, context: RunContext) -> ObjectRef:
        if isinstance(self.target, Binding):
            return context.require(self.target)
        return self.target

    def execute(self, context: RunContext, services: StageServices) -> StageResult:
        ref = self.resolve_target(context)
        result = services.poller.wait_for(
            ref,
            success=self.success,
            failure=self.failure,
            interval=self.interval_seconds,
            timeout=self.timeout_seconds,
            token=context.token,
        )
        return StageResult(
            context=context,
            detail=f"{ref.kind} {ref} {self.success.describe()} "
            f"after {result.evaluations} checks",
        )


@dataclass(frozen=True)
class WaitAllStage(Stage):
    """Wait for every member of a collection to satisfy a predicate."""

    label: str
    kind: str
    namespace: str
    predicate: ObjectPredicate
    expected_count: int | None = None
    interval_seconds: float = 10.0
    timeout_seconds: float = 300.0

    @property
    def action(self) -> StageAction:
        return StageAction.WAIT_ALL

    @property
    def interval(self) -> float:
        return self.interval_seconds

    @property
    def timeout(self) -> float:
        return self.timeout_seconds

    def execute(self, context: RunContext, services: StageServices) -> StageResult:
        result = services.list_poller.wait_for_all(
            self.kind,
            self.namespace,
            self.predicate,
            expected_count=self.expected_count,
            interval=self.interval_seconds,
            timeout=self.timeout_seconds,
            token=context.token,
        )
        return StageResult(
            context=context,
            detail=f"{len(result.objects)} {self.kind} {self.predicate.describe()}",
        )
