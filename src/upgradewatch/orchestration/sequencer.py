"""Stage sequencer for coordinating a workflow run.

Runs an ordered list of stages with fail-fast semantics: the first stage
failure halts the run and is reported with the stage label, elapsed time
and the underlying error.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Sequence

from loguru import logger

from upgradewatch.exceptions import (
    ContractViolation,
    UpgradeWatchError,
    WaitCancelledError,
)
from upgradewatch.orchestration.run_context import RunContext
from upgradewatch.orchestration.stages import Stage, StageAction, StageServices
from upgradewatch.protocols import ClockProtocol


class StageStatus(Enum):
    """Lifecycle of one stage within a run."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RunStatus(Enum):
    """Overall status of a workflow run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class StageReport:
    """Terminal (or pending) record for one stage."""

    label: str
    action: StageAction
    status: StageStatus = StageStatus.PENDING
    elapsed: float | None = None
    detail: str = ""
    error: UpgradeWatchError | None = None

    @property
    def executed(self) -> bool:
        return self.status in (StageStatus.SUCCEEDED, StageStatus.FAILED)

    @property
    def error_type(self) -> str | None:
        return type(self.error).__name__ if self.error is not None else None


@dataclass(frozen=True)
class RunOutcome:
    """Structured result of a workflow run."""

    status: RunStatus
    stages: tuple[StageReport, ...]
    context: RunContext | None = field(default=None, repr=False, compare=False)

    @property
    def succeeded(self) -> bool:
        return self.status == RunStatus.SUCCEEDED

    @property
    def failed_stage(self) -> StageReport | None:
        for report in self.stages:
            if report.status == StageStatus.FAILED:
                return report
        return None

    @property
    def elapsed(self) -> float:
        return sum(r.elapsed or 0.0 for r in self.stages)

    def report_for(self, label: str) -> StageReport:
        for report in self.stages:
            if report.label == label:
                return report
        raise KeyError(label)

    def summary(self) -> str:
        """Diagnostic text naming the failing stage and its raw error."""
        failed = self.failed_stage
        if failed is None:
            return f"All {len(self.stages)} stages succeeded in {self.elapsed:.1f}s"
        return (
            f"Stage '{failed.label}' failed after {failed.elapsed:.1f}s "
            f"({failed.error_type}): {failed.error}"
        )


def validate_stage_order(stages: Sequence[Stage]) -> None:
    """Reject pipelines where a stage reads a binding nobody wrote earlier.

    Raises:
        ContractViolation: On a missing provider, a duplicate provider or a
            duplicate stage label
    """
    provided: set[str] = set()
    labels: set[str] = set()
    for position, stage in enumerate(stages, start=1):
        if stage.label in labels:
            raise ContractViolation(f"Duplicate stage label '{stage.label}'")
        labels.add(stage.label)

        for binding in stage.requires:
            if binding.name not in provided:
                raise ContractViolation(
                    f"Stage {position} '{stage.label}' reads binding "
                    f"'{binding.name}' that no earlier stage provides"
                )
        for binding in stage.provides:
            if binding.name in provided:
                raise ContractViolation(
                    f"Binding '{binding.name}' is provided by more than one stage"
                )
            provided.add(binding.name)


class StageSequencer:
    """Executes stages strictly in order, stopping at the first failure."""

    def __init__(self, services: StageServices, clock: ClockProtocol):
        self._services = services
        self._clock = clock

    def run(
        self, stages: Sequence[Stage], context: RunContext | None = None
    ) -> RunOutcome:
        """Run ``stages`` in order and report the outcome.

        ContractViolation is a programming error and propagates out of this
        method instead of being recorded as a stage failure.
        """
        validate_stage_order(stages)
        context = context if context is not None else RunContext()

        reports = [StageReport(label=s.label, action=s.action) for s in stages]
        logger.info(f"Starting run with {len(stages)} stages")

        for index, stage in enumerate(stages):
            reports[index] = replace(reports[index], status=StageStatus.RUNNING)
            logger.info(f"[{index + 1}/{len(stages)}] Starting stage '{stage.label}'")
            started_at = self._clock.now()

            # a cancelled run starts no further stages
            if context.token.cancelled:
                error = WaitCancelledError(
                    f"Run cancelled before stage '{stage.label}' started: "
                    f"{context.token.reason}"
                )
                return self._fail(reports, index, 0.0, error, context)

            try:
                result = stage.execute(context, self._services)
            except ContractViolation:
                logger.error(f"Contract violation in stage '{stage.label}'")
                raise
            except UpgradeWatchError as e:
                elapsed = self._clock.now() - started_at
                return self._fail(reports, index, elapsed, e, context)

            elapsed = self._clock.now() - started_at
            context = result.context
            reports[index] = replace(
                reports[index],
                status=StageStatus.SUCCEEDED,
                elapsed=elapsed,
                detail=result.detail,
            )
            logger.info(f"Completed stage '{stage.label}' in {elapsed:.1f}s")

        outcome = RunOutcome(
            status=RunStatus.SUCCEEDED, stages=tuple(reports), context=context
        )
        logger.info(outcome.summary())
        return outcome

    @staticmethod
    def _fail(
        reports: list[StageReport],
        index: int,
        elapsed: float,
        error: UpgradeWatchError,
        context: RunContext,
    ) -> RunOutcome:
        reports[index] = replace(
            reports[index],
            status=StageStatus.FAILED,
            elapsed=elapsed,
            error=error,
        )
        logger.error(
            f"Stage '{reports[index].label}' failed after {elapsed:.1f}s: {error}"
        )
        outcome = RunOutcome(
            status=RunStatus.FAILED, stages=tuple(reports), context=context
        )
        logger.info(outcome.summary())
        return outcome
