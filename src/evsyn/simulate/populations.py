"""Simulated stratified survival populations, one per database."""

from __future__ import annotations

from typing import List, Optional

import numpy as np
import pandas as pd

from ..utils.logging import get_logger

logger = get_logger(__name__)


def simulate_populations(
    n_sites: int = 5,
    n: int = 10_000,
    treated_fraction: float = 0.2,
    n_strata: int = 10,
    min_background_hazard: float = 2e-7,
    max_background_hazard: float = 2e-5,
    hazard_ratio: float = 2.0,
    random_effect_sd: float = 0.0,
    censoring_mean: float = 1000.0,
    seed: Optional[int] = None,
) -> List[pd.DataFrame]:
    """Simulate one population per site for a stratified Cox model.

    Every site draws its own log hazard ratio from
    ``Normal(log(hazard_ratio), random_effect_sd)``. Each stratum has a
    background hazard drawn uniformly between the two bounds. Outcome
    and censoring times are exponential; the observed time is the
    earlier one, rounded up to whole days.

    Returns:
        A list of frames with columns ``stratumId``, ``y``, ``time`` and
        ``x``, suitable as patient-level meta-analysis input.
    """
    if not 0 <= treated_fraction <= 1:
        raise ValueError("treated_fraction must be between 0 and 1")
    if hazard_ratio <= 0:
        raise ValueError("hazard_ratio must be positive")
    rng = np.random.default_rng(seed)
    populations: List[pd.DataFrame] = []
    for site in range(n_sites):
        log_hr = np.log(hazard_ratio)
        if random_effect_sd > 0:
            log_hr += rng.normal(0.0, random_effect_sd)
        background = rng.uniform(min_background_hazard, max_background_hazard, size=n_strata)
        x = (rng.uniform(size=n) < treated_fraction).astype(float)
        stratum = rng.integers(0, n_strata, size=n)
        rates = background[stratum] * np.exp(log_hr * x)
        t_outcome = rng.exponential(1.0 / rates)
        t_censor = rng.exponential(censoring_mean, size=n)
        populations.append(
            pd.DataFrame(
                {
                    "stratumId": stratum.astype(int),
                    "y": (t_outcome < t_censor).astype(int),
                    "time": np.ceil(np.minimum(t_outcome, t_censor)),
                    "x": x,
                }
            )
        )
        logger.debug(f"Simulated site {site + 1}/{n_sites} with log HR {log_hr:.3f}")
    return populations
