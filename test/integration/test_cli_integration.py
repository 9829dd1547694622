"""Integration tests for the CLI with the object store and clock swapped out.

The container's REST store and system clock are overridden with the scripted
in-memory store and a ManualClock, so `run` executes the real pipeline
without a cluster and without sleeping.
"""

import json

import click
import pytest
from click.testing import CliRunner
from dependency_injector import providers

from upgradewatch.cli.cli import upgradewatch
from upgradewatch.container import Container
from upgradewatch.core.objects import ObjectRef, TrackedObject

HARVESTER_NS = "harvester-system"
CHART_NS = "fleet-local"
UPGRADE_CONDITIONS = (
    "LogReady",
    "ImageReady",
    "RepoReady",
    "NodesPrepared",
    "SystemServicesUpgraded",
    "NodesUpgraded",
    "Completed",
)


@pytest.fixture
def container(store, clock):
    container = Container()
    container.object_store.override(providers.Object(store))
    container.clock.override(providers.Object(clock))
    return container


@pytest.fixture
def charts(store):
    refs = []
    for name in ("harvester", "harvester-crd"):
        store.put(TrackedObject(kind="ManagedChart", namespace=CHART_NS, name=name))
        refs.append(ObjectRef("ManagedChart", CHART_NS, name))
    return refs

@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "out"


@pytest.fixture
def invoke(container, output_dir):
    """Invoke the CLI with the overridden container, writing under tmp_path."""

    def run_cli(*args):
        return CliRunner().invoke(
            upgradewatch,
            ["-o", str(output_dir), *args],
            obj={"container": container},
            env={"COLUMNS": "200"},
        )

    return run_cli


class TestCLIIntegration:
    """Integration tests for CLI behavior."""

    def test_help_lists_commands(self):
        result = CliRunner().invoke(upgradewatch, ["--help"])

        assert result.exit_code == 0
        assert "run" in result.output
        assert "stages" in result.output

    def test_stages_lists_pipeline(self, invoke):
        result = invoke("stages")

        assert result.exit_code == 0, result.output
        assert "wait managed charts" in result.output
        assert "wait upgrade complete" in result.output
        assert "create a version" not in result.output

    def test_stages_with_create_version(self, invoke):
        result = invoke("--create-version", "stages")

        assert result.exit_code == 0, result.output
        assert "create a version" in result.output

    def test_cli_context_contains_app_data(self, container, invoke, output_dir):
        """Verify the group callback stores container and AppData on the context."""
        captured = {}

        @upgradewatch.command("show-context")
        def show_context():
            captured.update(click.get_current_context().obj)

        try:
            result = invoke("show-context")
        finally:
            upgradewatch.commands.pop("show-context")

        assert result.exit_code == 0, result.output
        assert captured["container"] is container
        assert captured["app_data"].output_dir == output_dir
        assert captured["debug"] is False

    def test_run_succeeds(self, store, charts, invoke, output_dir):
        for ref in charts:
            store.set_condition(ref, "Ready", "True")
        store.at(
            10,
            lambda s: s.set_condition(
                ObjectRef("VirtualMachineImage", HARVESTER_NS, "upgrade-image-00001"),
                "Imported",
                "True",
            ),
        )
        upgrade = ObjectRef("Upgrade", HARVESTER_NS, "hvst-upgrade-00002")
        for condition in UPGRADE_CONDITIONS:
            store.at(11, lambda s, c=condition: s.set_condition(upgrade, c, "True"))

        result = invoke("run", "--server", "https://10.10.0.10:6443")

        assert result.exit_code == 0, result.output
        assert "All 11 stages succeeded" in result.output
        assert "Run report:" in result.output
        (report_path,) = (output_dir / "runs").glob("*/run_report.json")
        report = json.loads(report_path.read_text())
        assert report["status"] == "succeeded"
        assert report["server"] == "https://10.10.0.10:6443"

    def test_run_failure_exits_nonzero(self, store, charts, invoke, output_dir):
        store.set_condition(charts[0], "Ready", "True")
        store.set_condition(charts[1], "Ready", "False")

        result = invoke("run", "--server", "https://10.10.0.10:6443")

        assert result.exit_code == 1
        assert "Stage 'wait managed charts' failed" in result.output
        (report_path,) = (output_dir / "runs").glob("*/run_report.json")
        report = json.loads(report_path.read_text())
        assert report["failed_stage"] == "wait managed charts"
        assert report["stages"][1]["status"] == "pending"

    def test_run_rejects_invalid_config(self, invoke, output_dir):
        result = invoke(
            "--time-scale",
            "0",
            "run",
            "--server",
            "https://10.10.0.10:6443",
        )

        assert result.exit_code == 1
        assert "Validation failed" in result.output
        assert not (output_dir / "runs").exists()

    def test_run_requires_server(self, invoke, monkeypatch):
        monkeypatch.delenv("UPGRADEWATCH_SERVER", raising=False)

        result = invoke("run")

        assert result.exit_code == 2
        assert "--server" in result.output
