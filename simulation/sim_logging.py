"""Report output: persists each ended session's PnL report and trade history.

The output directory structure is::

    {output_dir}/{run_name}/
    ├── session_001/
    │   ├── report.json
    │   └── trades.json
    ├── session_002/
    │   └── ...
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from models.report import SimulationReport

logger = logging.getLogger(__name__)


def run_name_from_config_path(config_path: str | Path | None) -> str:
    """Derive a run name from the configuration file path (stem without extension)."""
    if config_path is None:
        return "default"
    return Path(config_path).stem


class ReportWriter:
    """Writes one directory per ended session under ``{output_dir}/{run_name}``."""

    def __init__(self, output_dir: str | Path, run_name: str) -> None:
        self._run_dir = Path(output_dir) / run_name

    def write_report(self, report: SimulationReport) -> Path:
        """Persist *report* and its trade history; return the session directory."""
        session_dir = _next_session_dir(self._run_dir)
        session_dir.mkdir(parents=True, exist_ok=False)

        _write_json(session_dir / "report.json", report.model_dump(mode="json", exclude={"trades"}))

        # Trades (separate convenience file).
        _write_json(
            session_dir / "trades.json",
            [t.model_dump(mode="json") for t in report.trades],
        )

        logger.info("Wrote session report to %s", session_dir)
        return session_dir

    @property
    def run_dir(self) -> Path:
        return self._run_dir


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _next_session_dir(run_dir: Path) -> Path:
    """Return the first ``session_NNN`` directory under *run_dir* that does not exist."""
    idx = 1
    while True:
        candidate = run_dir / f"session_{idx:03d}"
        if not candidate.exists():
            return candidate
        idx += 1


def _write_json(path: Path, data: Any) -> None:
    """Write *data* as pretty-printed JSON to *path*."""
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
