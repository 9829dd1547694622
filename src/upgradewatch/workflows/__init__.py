"""
Workflow definitions for upgradewatch.

This package provides workflow classes that assemble stages into a concrete
upgrade pipeline with an explicit validate-then-run lifecycle.
"""

from upgradewatch.workflows.upgrade_workflow import (
    UPGRADE,
    UPGRADE_CONDITION_WAITS,
    UPGRADE_IMAGE,
    VERSION,
    UpgradeConditionWait,
    UpgradeWorkflow,
    UpgradeWorkflowConfig,
    build_upgrade_stages,
)

__all__ = [
    "UPGRADE",
    "UPGRADE_CONDITION_WAITS",
    "UPGRADE_IMAGE",
    "VERSION",
    "UpgradeConditionWait",
    "UpgradeWorkflow",
    "UpgradeWorkflowConfig",
    "build_upgrade_stages",
]
