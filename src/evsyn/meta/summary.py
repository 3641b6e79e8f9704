"""Reduction of posterior draws to point estimates and credible intervals."""

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

import numpy as np

from ..core.diagnostics import Diagnostics
from ..core.models import LikelihoodType, PosteriorSummary, PosteriorTrace


def hdi(draws: Sequence[float], cred_mass: float = 0.95) -> Tuple[float, float]:
    """Highest density interval of an empirical sample.

    Among all intervals spanning the same number of sorted draws, the
    narrowest one is returned (the first one on ties).
    """
    if not 0 < cred_mass < 1:
        raise ValueError(f"cred_mass must be in (0, 1), got {cred_mass}")
    x = np.sort(np.asarray(draws, dtype=float))
    n = len(x)
    if n == 0:
        raise ValueError("Cannot compute an HDI of an empty sample")
    exclude = n - int(math.floor(n * cred_mass))
    widths = x[n - exclude:] - x[:exclude]
    best = int(np.argmin(widths))
    return float(x[best]), float(x[n - exclude + best])


def summarize(
    trace: PosteriorTrace,
    alpha: float,
    detected_type: LikelihoodType,
    diagnostics: Optional[Diagnostics] = None,
) -> PosteriorSummary:
    """Summarise the mu and tau columns; auxiliary columns are kept only in the trace."""
    mu_draws, tau_draws = trace.mu, trace.tau
    mu = float(np.mean(mu_draws))
    mu_lb, mu_ub = hdi(mu_draws, cred_mass=1 - alpha)
    tau_lb, tau_ub = hdi(tau_draws, cred_mass=1 - alpha)
    return PosteriorSummary(
        mu=mu,
        mu95_lb=mu_lb,
        mu95_ub=mu_ub,
        mu_se=float(np.sqrt(np.mean((mu_draws - mu) ** 2))),
        tau=float(np.median(tau_draws)),
        tau95_lb=tau_lb,
        tau95_ub=tau_ub,
        detected_type=detected_type,
        trace=trace,
        diagnostics=tuple(diagnostics or ()),
    )
