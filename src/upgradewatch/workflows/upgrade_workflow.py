"""
Upgrade workflow implementation.

This module defines the staged pipeline for one cluster upgrade run:
wait for managed charts, create the upgrade image and the upgrade, then
follow the upgrade through each of its status conditions.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from functools import partial

from loguru import logger

from upgradewatch.core.clock import CancellationToken
from upgradewatch.core.objects import ObjectRef, TrackedObject
from upgradewatch.core.predicates import condition_false, condition_true
from upgradewatch.exceptions import WorkflowValidationError
from upgradewatch.orchestration.run_context import Binding, RunContext
from upgradewatch.orchestration.sequencer import RunOutcome, StageSequencer
from upgradewatch.orchestration.stages import (
    MutateStage,
    Stage,
    WaitAllStage,
    WaitOneStage,
)

MINUTE = 60.0

HARVESTER_SYSTEM_NAMESPACE = "harvester-system"
MANAGED_CHART_NAMESPACE = "fleet-local"
UPGRADE_IMAGE_LABEL = "harvesterhci.io/upgrade"

# Condition types reported by the upgrade controller
IMAGE_IMPORTED = "Imported"
LOG_READY = "LogReady"
IMAGE_READY = "ImageReady"
REPO_PROVISIONED = "RepoReady"
NODES_PREPARED = "NodesPrepared"
SYSTEM_SERVICES_UPGRADED = "SystemServicesUpgraded"
NODES_UPGRADED = "NodesUpgraded"
UPGRADE_COMPLETED = "Completed"
CHART_READY = "Ready"

VERSION: Binding[ObjectRef] = Binding("version")
UPGRADE_IMAGE: Binding[ObjectRef] = Binding("upgrade_image")
UPGRADE: Binding[ObjectRef] = Binding("upgrade")


@dataclass(frozen=True)
class UpgradeConditionWait:
    """One wait on the upgrade object's status."""

    label: str
    condition: str
    interval: float
    timeout: float


UPGRADE_CONDITION_WAITS: tuple[UpgradeConditionWait, ...] = (
    UpgradeConditionWait("wait log", LOG_READY, 10.0, 5 * MINUTE),
    UpgradeConditionWait("wait image", IMAGE_READY, 10.0, 5 * MINUTE),
    UpgradeConditionWait("wait repo", REPO_PROVISIONED, 10.0, 10 * MINUTE),
    UpgradeConditionWait("wait node prepared", NODES_PREPARED, 30.0, 30 * MINUTE),
    UpgradeConditionWait(
        "wait system services upgraded", SYSTEM_SERVICES_UPGRADED, 30.0, 30 * MINUTE
    ),
    UpgradeConditionWait("wait nodes upgraded", NODES_UPGRADED, 30.0, 45 * MINUTE),
    UpgradeConditionWait("wait upgrade complete", UPGRADE_COMPLETED, 10.0, 3 * MINUTE),
)


def _default_storage_parameters() -> dict[str, str]:
    return {
        "mirroring": "true",
        "numberOfReplicas": "2",
        "staleReplicaTimeout": "30",
    }


@dataclass(frozen=True)
class UpgradeWorkflowConfig:
    """Plain parameters for one upgrade run."""

    version: str = "v8.8.8"
    iso_url: str = "http://10.10.0.1/harvester/harvester.iso"
    namespace: str = HARVESTER_SYSTEM_NAMESPACE
    managed_chart_namespace: str = MANAGED_CHART_NAMESPACE
    create_version: bool = False
    image_display_name: str = "upgrade-iso"
    image_storage_parameters: dict[str, str] = field(
        default_factory=_default_storage_parameters
    )
    log_enabled: bool = True
    chart_interval: float = 10.0
    chart_timeout: float = 5 * MINUTE
    image_interval: float = 10.0
    image_timeout: float = 5 * MINUTE
    time_scale: float = 1.0

    def scaled(self, seconds: float) -> float:
        return seconds * self.time_scale


def build_version(config: UpgradeWorkflowConfig, context: RunContext) -> TrackedObject:
    return TrackedObject(
        kind="Version",
        namespace=config.namespace,
        name=config.version,
        spec={"isoURL": config.iso_url},
    )


def build_upgrade_image(
    config: UpgradeWorkflowConfig, context: RunContext
) -> TrackedObject:
    return TrackedObject(
        kind="VirtualMachineImage",
        namespace=config.namespace,
        generate_name="upgrade-image-",
        labels={UPGRADE_IMAGE_LABEL: "true"},
        spec={
            "displayName": config.image_display_name,
            "url": config.iso_url,
            "sourceType": "download",
            "storageClassParameters": dict(config.image_storage_parameters),
        },
    )


def build_upgrade(config: UpgradeWorkflowConfig, context: RunContext) -> TrackedObject:
    image = context.require(UPGRADE_IMAGE)
    return TrackedObject(
        kind="Upgrade",
        namespace=config.namespace,
        generate_name="hvst-upgrade-",
        spec={
            "version": config.version,
            "image": str(image),
            "logEnabled": config.log_enabled,
        },
    )


def build_upgrade_stages(config: UpgradeWorkflowConfig) -> list[Stage]:
    """Return the ordered pipeline for one upgrade run.

    Every wait on the upgrade object fails fast once the upgrade reports
    Completed=False.
    """
    upgrade_failed = condition_false(UPGRADE_COMPLETED)

    stages: list[Stage] = [
        WaitAllStage(
            label="wait managed charts",
            kind="ManagedChart",
            namespace=config.managed_chart_namespace,
            predicate=condition_true(CHART_READY),
            interval_seconds=config.scaled(config.chart_interval),
            timeout_seconds=config.scaled(config.chart_timeout),
        ),
    ]

    if config.create_version:
        stages.append(
            MutateStage(
                label="create a version",
                build=partial(build_version, config),
                binds=VERSION,
            )
        )

    stages += [
        MutateStage(
            label="create an upgrade image",
            build=partial(build_upgrade_image, config),
            binds=UPGRADE_IMAGE,
        ),
        WaitOneStage(
            label="wait upgrade image imported",
            target=UPGRADE_IMAGE,
            success=condition_true(IMAGE_IMPORTED),
            interval_seconds=config.scaled(config.image_interval),
            timeout_seconds=config.scaled(config.image_timeout),
        ),
        MutateStage(
            label="create an upgrade",
            build=partial(build_upgrade, config),
            binds=UPGRADE,
            uses=(UPGRADE_IMAGE,),
        ),
    ]

    stages += [
        WaitOneStage(
            label=wait.label,
            target=UPGRADE,
            success=condition_true(wait.condition),
            failure=upgrade_failed,
            interval_seconds=config.scaled(wait.interval),
            timeout_seconds=config.scaled(wait.timeout),
        )
        for wait in UPGRADE_CONDITION_WAITS
    ]
    return stages


class UpgradeWorkflow:
    """
    This workflow drives one upgrade from image creation to completion.
    """

    def __init__(
        self,
        sequencer: StageSequencer,
        config: UpgradeWorkflowConfig | None = None,
    ):
        """Initialize UpgradeWorkflow.

        Args:
            sequencer: StageSequencer that executes the pipeline
            config: Run parameters; defaults mirror a standard test cluster
        """
        self._sequencer = sequencer
        self._config = config or UpgradeWorkflowConfig()

    @property
    def config(self) -> UpgradeWorkflowConfig:
        return self._config

    def validate(self) -> None:
        logger.info("Starting upgrade workflow validation")
        config = self._config

        if config.time_scale <= 0:
            raise WorkflowValidationError(
                f"time_scale must be positive, got {config.time_scale}"
            )
        if not config.version:
            raise WorkflowValidationError("Upgrade version must not be empty")
        if not config.iso_url.startswith(("http://", "https://")):
            raise WorkflowValidationError(
                f"ISO URL must be an http(s) URL, got {config.iso_url!r}"
            )
        if not config.namespace or not config.managed_chart_namespace:
            raise WorkflowValidationError("Namespaces must not be empty")

        for stage in self.stages():
            if stage.interval is None:
                continue
            if stage.interval <= 0 or stage.timeout <= 0:
                raise WorkflowValidationError(
                    f"Stage '{stage.label}' needs a positive interval and timeout"
                )
            if stage.interval > stage.timeout:
                raise WorkflowValidationError(
                    f"Stage '{stage.label}' interval {stage.interval}s exceeds "
                    f"timeout {stage.timeout}s"
                )

        # Managed charts expose no aggregate failure condition, so that wait can
        # only end in success or timeout.
        logger.debug("Managed chart wait has no failure short-circuit")
        logger.info("Upgrade workflow validation completed successfully")

    def stages(self) -> list[Stage]:
        return build_upgrade_stages(self._config)

    def run(self, token: CancellationToken | None = None) -> RunOutcome:
        logger.info(f"Starting upgrade workflow to version {self._config.version}")
        context = RunContext(
            token=token or CancellationToken(),
            run_id=uuid.uuid4().hex[:8],
        )
        outcome = self._sequencer.run(self.stages(), context)
        logger.info(
            f"Upgrade workflow finished: {outcome.status.value} "
            f"(run_id={context.run_id})"
        )
        return outcome
