"""Unit tests for RunReportWriter."""

import json

from upgradewatch.exceptions import WaitTimeoutError
from upgradewatch.orchestration.run_context import RunContext
from upgradewatch.orchestration.sequencer import (
    RunOutcome,
    RunStatus,
    StageReport,
    StageStatus,
)
from upgradewatch.orchestration.stages import StageAction
from upgradewatch.services.app_data import AppData
from upgradewatch.services.run_report import RunReportWriter


def failed_outcome(run_id="3f9c2a1b"):
    return RunOutcome(
        status=RunStatus.FAILED,
        stages=(
            StageReport(
                label="wait managed charts",
                action=StageAction.WAIT_ALL,
                status=StageStatus.SUCCEEDED,
                elapsed=20.0,
                detail="3 ManagedChart Ready=True",
            ),
            StageReport(
                label="create an upgrade image",
                action=StageAction.MUTATE,
                status=StageStatus.FAILED,
                elapsed=1.5,
                error=WaitTimeoutError("Timed out after 1.5s"),
            ),
            StageReport(label="wait upgrade image imported", action=StageAction.WAIT_ONE),
        ),
        context=RunContext(run_id=run_id),
    )


class TestRunReportWriter:
    """Tests for RunReportWriter.save()."""

    def test_writes_report_under_run_dir(self, tmp_path):
        app_data = AppData(output_dir=tmp_path, debug_enabled=False)

        path = RunReportWriter(app_data).save(failed_outcome())

        assert path == tmp_path / "runs" / "3f9c2a1b" / "run_report.json"
        report = json.loads(path.read_text())
        assert report["run_id"] == "3f9c2a1b"
        assert report["status"] == "failed"
        assert report["failed_stage"] == "create an upgrade image"
        assert report["elapsed"] == 21.5
        assert report["summary"].startswith("Stage 'create an upgrade image' failed")

    def test_stage_entries(self, tmp_path):
        path = RunReportWriter(AppData(tmp_path, False)).save(failed_outcome())

        charts, image, pending = json.loads(path.read_text())["stages"]
        assert charts["status"] == "succeeded"
        assert charts["action"] == "wait_all"
        assert charts["error"] is None
        assert image["error_type"] == "WaitTimeoutError"
        assert image["error"] == "Timed out after 1.5s"
        assert pending == {
            "label": "wait upgrade image imported",
            "action": "wait_one",
            "status": "pending",
            "elapsed": None,
            "detail": "",
            "error_type": None,
            "error": None,
        }

    def test_metadata_is_merged(self, tmp_path):
        path = RunReportWriter(AppData(tmp_path, False)).save(
            failed_outcome(), metadata={"version": "v8.8.8"}
        )

        assert json.loads(path.read_text())["version"] == "v8.8.8"

    def test_missing_run_id_falls_back_to_timestamp(self, tmp_path):
        path = RunReportWriter(AppData(tmp_path, False)).save(failed_outcome(run_id=""))

        assert path.parent.parent == tmp_path / "runs"
        assert path.parent.name
