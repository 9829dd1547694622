"""Polling and stage sequencing engine."""

from upgradewatch.orchestration.list_poller import ListPoller, ListPollResult
from upgradewatch.orchestration.poller import Poller, PollResult
from upgradewatch.orchestration.run_context import Binding, RunContext
from upgradewatch.orchestration.sequencer import (
    RunOutcome,
    RunStatus,
    StageReport,
    StageSequencer,
    StageStatus,
    validate_stage_order,
)
from upgradewatch.orchestration.stages import (
    MutateStage,
    Stage,
    StageAction,
    StageResult,
    StageServices,
    WaitAllStage,
    WaitOneStage,
)
from upgradewatch.orchestration.ticker import PollTicker

__all__ = [
    "ListPoller",
    "ListPollResult",
    "Poller",
    "PollResult",
    "Binding",
    "RunContext",
    "RunOutcome",
    "RunStatus",
    "StageReport",
    "StageSequencer",
    "StageStatus",
    "validate_stage_order",
    "MutateStage",
    "Stage",
    "StageAction",
    "StageResult",
    "StageServices",
    "WaitAllStage",
    "WaitOneStage",
    "PollTicker",
]
