"""Reading analysis input and writing trace artifacts.

Estimate tables are plain CSV files with one row per database. Grid
tables keep their column labels as written (``"-1"``, ``"0"``, ...),
so support points are parsed by the grid detector, not by pandas.
Results are written as a summary CSV, a JSON metadata file, and the
retained trace as a CSV artifact.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List, Optional

import pandas as pd

from ..core.models import PosteriorSummary, PosteriorTrace
from ..utils.logging import get_logger
from .paths import create_output_dir

logger = get_logger(__name__)


def load_estimates(path: Path) -> pd.DataFrame:
    """Load a per-database estimate table from CSV."""
    df = pd.read_csv(path)
    logger.info(f"Loaded {len(df)} estimates from {path}")
    return df


def load_patient_level(paths: Iterable[Path]) -> List[pd.DataFrame]:
    """Load one patient-level record set per CSV file, in the given order."""
    populations = [pd.read_csv(p) for p in paths]
    logger.info(f"Loaded {len(populations)} patient-level record sets")
    return populations


def save_trace(trace: PosteriorTrace, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    trace.to_frame().to_csv(path, index=False)
    return path


def load_trace(path: Path) -> PosteriorTrace:
    df = pd.read_csv(path)
    return PosteriorTrace(draws=df.to_numpy(dtype=float), names=tuple(df.columns))


def save_summary(summary: PosteriorSummary, directory: Optional[Path] = None) -> Path:
    """Write summary, metadata and trace into ``directory``.

    A timestamped directory under the configured output directory is
    created when none is given.
    """
    directory = directory or create_output_dir("analysis")
    directory.mkdir(parents=True, exist_ok=True)
    summary.to_frame().to_csv(directory / "summary.csv", index=False)
    metadata = {
        "type": summary.detected_type.value,
        "n_draws": 0 if summary.trace is None else summary.trace.n_draws,
        "trace_columns": [] if summary.trace is None else list(summary.trace.names),
        "diagnostics": [
            {"level": e.level, "message": e.message, "context": e.context} for e in summary.diagnostics
        ],
    }
    (directory / "metadata.json").write_text(json.dumps(metadata, indent=2, default=str))
    if summary.trace is not None:
        save_trace(summary.trace, directory / "trace.csv")
    logger.info(f"Saved analysis results to {directory}")
    return directory
