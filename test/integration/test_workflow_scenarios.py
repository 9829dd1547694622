"""Integration tests running whole pipelines against the scripted store.

Time is virtual: a ManualClock advances only when a poller sleeps, and the
store applies scheduled status changes once the clock reaches them.
"""

import pytest

from upgradewatch.core.clock import CancellationToken
from upgradewatch.core.objects import ObjectRef, TrackedObject
from upgradewatch.core.predicates import condition_true
from upgradewatch.exceptions import (
    PredicateFailure,
    WaitCancelledError,
    WaitTimeoutError,
)
from upgradewatch.orchestration.run_context import Binding
from upgradewatch.orchestration.sequencer import RunStatus, StageStatus
from upgradewatch.orchestration.stages import MutateStage, WaitAllStage, WaitOneStage
from upgradewatch.workflows.upgrade_workflow import (
    UpgradeWorkflow,
    UpgradeWorkflowConfig,
)

HARVESTER_NS = "harvester-system"
CHART_NS = "fleet-local"
CHART_NAMES = ("harvester", "harvester-crd", "rancher-monitoring")

IMAGE = Binding("image")
IMAGE_REF = ObjectRef("VirtualMachineImage", HARVESTER_NS, "img-1")
IMAGE_REF_GENERATED = ObjectRef(
    "VirtualMachineImage", HARVESTER_NS, "upgrade-image-00001"
)
UPGRADE_REF = ObjectRef("Upgrade", HARVESTER_NS, "hvst-upgrade-00002")


def chart_ref(name):
    return ObjectRef("ManagedChart", CHART_NS, name)


def set_conditions(ref, *conditions):
    """Return a scheduled change applying (type, status[, message]) tuples."""

    def change(store):
        for condition in conditions:
            store.set_condition(ref, *condition)

    return change


@pytest.fixture
def charts(store):
    for name in CHART_NAMES:
        store.put(TrackedObject(kind="ManagedChart", namespace=CHART_NS, name=name))
    return [chart_ref(name) for name in CHART_NAMES]


def three_stage_workflow():
    return [
        MutateStage(
            label="create image",
            build=lambda context: TrackedObject(
                kind=IMAGE_REF.kind, namespace=IMAGE_REF.namespace, name=IMAGE_REF.name
            ),
            binds=IMAGE,
        ),
        WaitOneStage(
            label="wait image imported",
            target=IMAGE,
            success=condition_true("Imported"),
            interval_seconds=1,
            timeout_seconds=5,
        ),
        WaitAllStage(
            label="wait charts ready",
            kind="ManagedChart",
            namespace=CHART_NS,
            predicate=condition_true("Ready"),
            interval_seconds=1,
            timeout_seconds=5,
        ),
    ]


class TestThreeStageWorkflow:
    """Create, wait for one object, then wait for a collection."""

    def test_run_succeeds_with_stage_timings(self, store, sequencer, charts):
        store.at(2, set_conditions(IMAGE_REF, ("Imported", "True")))
        # the chart wait starts at t=2, so its fourth tick is t=6
        for ref in charts:
            store.at(6, set_conditions(ref, ("Ready", "True")))

        outcome = sequencer.run(three_stage_workflow())

        assert outcome.status == RunStatus.SUCCEEDED
        assert [r.elapsed for r in outcome.stages] == [0, 2, 4]
        assert outcome.context.require(IMAGE) == IMAGE_REF

    def test_chart_never_ready_times_out(self, store, sequencer, charts):
        store.at(2, set_conditions(IMAGE_REF, ("Imported", "True")))
        for ref in charts[:2]:
            store.at(6, set_conditions(ref, ("Ready", "True")))
        store.set_condition(charts[2], "Ready", "False")

        outcome = sequencer.run(three_stage_workflow())

        assert outcome.status == RunStatus.FAILED
        statuses = [r.status for r in outcome.stages]
        assert statuses == [
            StageStatus.SUCCEEDED,
            StageStatus.SUCCEEDED,
            StageStatus.FAILED,
        ]
        failed = outcome.failed_stage
        assert failed.label == "wait charts ready"
        assert isinstance(failed.error, WaitTimeoutError)
        assert isinstance(failed.error, TimeoutError)
        assert failed.elapsed == 5
        assert "rancher-monitoring" in str(failed.error)


class TestUpgradeWorkflowRun:
    """Full upgrade pipeline against simulated cluster state."""

    @pytest.fixture
    def workflow(self, sequencer):
        return UpgradeWorkflow(sequencer, UpgradeWorkflowConfig())

    @pytest.fixture
    def ready_charts(self, store, charts):
        for ref in charts:
            store.set_condition(ref, "Ready", "True")
        return charts

    def test_upgrade_completes(self, store, clock, workflow, ready_charts):
        store.at(20, set_conditions(IMAGE_REF_GENERATED, ("Imported", "True")))
        # the upgrade object is created at t=20, after the image wait ends
        store.at(
            21,
            set_conditions(
                UPGRADE_REF,
                ("LogReady", "True"),
                ("ImageReady", "True"),
                ("RepoReady", "True"),
                ("NodesPrepared", "True"),
                ("SystemServicesUpgraded", "True"),
                ("NodesUpgraded", "True"),
                ("Completed", "True"),
            ),
        )

        outcome = workflow.run()

        assert outcome.succeeded, outcome.summary()
        assert all(r.status == StageStatus.SUCCEEDED for r in outcome.stages)
        assert outcome.report_for("wait upgrade image imported").elapsed == 20
        assert outcome.report_for("wait log").elapsed == 10
        assert clock.now() == 30

        upgrade = store.get("Upgrade", HARVESTER_NS, UPGRADE_REF.name)
        assert upgrade.spec["image"] == str(IMAGE_REF_GENERATED)

    def test_upgrade_failure_short_circuits(self, store, workflow, ready_charts):
        store.at(20, set_conditions(IMAGE_REF_GENERATED, ("Imported", "True")))
        store.at(21, set_conditions(UPGRADE_REF, ("LogReady", "True")))
        store.at(
            45,
            set_conditions(
                UPGRADE_REF, ("Completed", "False", "Job has reached backoff limit")
            ),
        )

        outcome = workflow.run()

        assert outcome.status == RunStatus.FAILED
        failed = outcome.failed_stage
        assert failed.label == "wait image"
        assert isinstance(failed.error, PredicateFailure)
        assert "backoff limit" in str(failed.error)
        # wait image starts at t=30 and sees the failure on its t=50 tick
        assert failed.elapsed == 20

        index = [r.label for r in outcome.stages].index("wait image")
        assert all(r.status == StageStatus.SUCCEEDED for r in outcome.stages[:index])
        assert all(
            r.status == StageStatus.PENDING for r in outcome.stages[index + 1 :]
        )
        assert "Stage 'wait image' failed" in outcome.summary()

    def test_cancellation_fails_current_stage(self, store, workflow, ready_charts):
        token = CancellationToken()
        store.at(10, lambda s: token.cancel("interrupted by user"))

        outcome = workflow.run(token=token)

        failed = outcome.failed_stage
        assert failed.label == "wait upgrade image imported"
        assert isinstance(failed.error, WaitCancelledError)
        assert outcome.report_for("create an upgrade").status == StageStatus.PENDING
