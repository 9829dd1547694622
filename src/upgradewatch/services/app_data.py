from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppData:
    """Locations a run writes to, all under one output directory.

    Layout::

        <output_dir>/upgradewatch.log        (debug mode only)
        <output_dir>/runs/<run_id>/run_report.json
    """

    DEFAULT_OUTPUT_DIR = Path("upgradewatch-output")
    RUNS_SUBDIR = "runs"
    LOG_FILE_NAME = "upgradewatch.log"

    output_dir: Path
    debug_enabled: bool

    @property
    def runs_dir(self) -> Path:
        return self.output_dir / self.RUNS_SUBDIR

    @property
    def log_file(self) -> Path | None:
        """Debug log file, or None when debug logging is off."""
        if not self.debug_enabled:
            return None
        return self.output_dir / self.LOG_FILE_NAME

    def run_dir(self, run_id: str) -> Path:
        if not run_id or "/" in run_id or run_id in (".", ".."):
            raise ValueError(f"invalid run id: {run_id!r}")
        return self.runs_dir / run_id
