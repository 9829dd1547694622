"""Run report persistence.

Every finished run leaves a JSON record of its stages under the output
directory, so a failed upgrade can be inspected after the terminal output
is gone.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from loguru import logger

from upgradewatch.orchestration.sequencer import RunOutcome, StageReport
from upgradewatch.services.app_data import AppData


def stage_report_to_dict(report: StageReport) -> dict[str, Any]:
    return {
        "label": report.label,
        "action": report.action.value,
        "status": report.status.value,
        "elapsed": report.elapsed,
        "detail": report.detail,
        "error_type": report.error_type,
        "error": str(report.error) if report.error is not None else None,
    }


def outcome_to_dict(outcome: RunOutcome, run_id: str) -> dict[str, Any]:
    failed = outcome.failed_stage
    return {
        "run_id": run_id,
        "status": outcome.status.value,
        "elapsed": outcome.elapsed,
        "summary": outcome.summary(),
        "failed_stage": failed.label if failed is not None else None,
        "stages": [stage_report_to_dict(r) for r in outcome.stages],
    }


class RunReportWriter:
    """Saves run outcomes as JSON reports under AppData.runs_dir."""

    REPORT_FILE_NAME = "run_report.json"

    def __init__(self, app_data: AppData):
        self._app_data = app_data

    def save(self, outcome: RunOutcome, metadata: dict | None = None) -> Path:
        """Write the report for ``outcome`` and return its path.

        Args:
            outcome: Finished run
            metadata: Extra top-level fields, e.g. target version and server

        Returns:
            Path of the written report file
        """
        run_id = outcome.context.run_id if outcome.context is not None else ""
        if not run_id:
            run_id = datetime.now().strftime("%Y%m%d-%H%M%S")

        report = outcome_to_dict(outcome, run_id)
        if metadata:
            report.update(metadata)

        run_dir = self._app_data.run_dir(run_id)
        run_dir.mkdir(parents=True, exist_ok=True)
        report_path = run_dir / self.REPORT_FILE_NAME
        with open(report_path, "w") as f:
            json.dump(report, f, indent=2)

        logger.info(f"Saved run report to {report_path}")
        return report_path
