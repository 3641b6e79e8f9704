"""Console rendering of posterior summaries."""

from __future__ import annotations

import math
from typing import Optional

from rich.console import Console
from rich.table import Table

from ..core.models import PosteriorSummary


def _fmt(value: float) -> str:
    return "NA" if value is None or math.isnan(value) else f"{value:.4f}"


def summary_table(summary: PosteriorSummary, alpha: float = 0.05) -> Table:
    """Build a rich table with the estimates and credible intervals of mu and tau."""
    mass = f"{(1 - alpha) * 100:g}%"
    table = Table(title=f"Bayesian meta-analysis ({summary.detected_type.value})")
    table.add_column("Parameter", style="cyan")
    table.add_column("Estimate", justify="right")
    table.add_column(f"{mass} HDI", justify="right")
    table.add_column("SE", justify="right")
    table.add_row(
        "mu",
        _fmt(summary.mu),
        f"{_fmt(summary.mu95_lb)} to {_fmt(summary.mu95_ub)}",
        _fmt(summary.mu_se),
    )
    table.add_row(
        "tau",
        _fmt(summary.tau),
        f"{_fmt(summary.tau95_lb)} to {_fmt(summary.tau95_ub)}",
        "",
    )
    return table


def print_summary(summary: PosteriorSummary, console: Optional[Console] = None, alpha: float = 0.05) -> None:
    console = console or Console()
    console.print(summary_table(summary, alpha=alpha))
    if summary.is_missing:
        console.print("[yellow]⚠ No estimates left after cleaning; nothing was sampled[/yellow]")
    for entry in summary.diagnostics:
        if entry.level == "warning":
            console.print(f"[yellow]⚠ {entry.message}[/yellow]")
