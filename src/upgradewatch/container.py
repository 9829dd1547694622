"""Dependency injection container for upgradewatch services."""

from dependency_injector import containers, providers

from upgradewatch.core.clock import SystemClock
from upgradewatch.orchestration.list_poller import ListPoller
from upgradewatch.orchestration.poller import Poller
from upgradewatch.orchestration.sequencer import StageSequencer
from upgradewatch.orchestration.stages import StageServices
from upgradewatch.services.app_data import AppData
from upgradewatch.services.rest_store import RestObjectStore
from upgradewatch.services.run_report import RunReportWriter
from upgradewatch.workflows.upgrade_workflow import (
    UpgradeWorkflow,
    UpgradeWorkflowConfig,
)


class Container(containers.DeclarativeContainer):
    """Application dependency injection container.

    The clock and the object store are Singletons shared by every stage of a
    run. Pollers, the sequencer and the workflow are Factories.
    """

    wiring_config = containers.WiringConfiguration(
        modules=[
            "upgradewatch.cli.run_cli",
        ]
    )

    # Configuration provider for application settings
    config = providers.Configuration()

    app_data = providers.Singleton(
        AppData,
        output_dir=config.output_dir,
        debug_enabled=config.debug,
    )

    run_report_writer = providers.Factory(
        RunReportWriter,
        app_data=app_data,
    )

    clock = providers.Singleton(SystemClock)

    object_store = providers.Singleton(
        RestObjectStore,
        server=config.server,
        token=config.token,
        verify=config.verify,
    )

    poller = providers.Factory(
        Poller,
        store=object_store,
        clock=clock,
    )

    list_poller = providers.Factory(
        ListPoller,
        store=object_store,
        clock=clock,
    )

    stage_services = providers.Factory(
        StageServices,
        store=object_store,
        poller=poller,
        list_poller=list_poller,
    )

    sequencer = providers.Factory(
        StageSequencer,
        services=stage_services,
        clock=clock,
    )

    workflow_config = providers.Factory(
        UpgradeWorkflowConfig,
        version=config.workflow.version,
        iso_url=config.workflow.iso_url,
        create_version=config.workflow.create_version,
        time_scale=config.workflow.time_scale,
    )

    upgrade_workflow = providers.Factory(
        UpgradeWorkflow,
        sequencer=sequencer,
        config=workflow_config,
    )
