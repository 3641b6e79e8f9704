"""Bayesian random-effects meta-analysis.

This module defines :func:`compute_bayesian_meta_analysis`, which
combines per-database likelihood approximations (normal, skew-normal,
custom parametric, grid) or pooled patient-level survival data into
posterior estimates of the overall effect ``mu`` and the between-database
heterogeneity ``tau``.

A normal prior is used for mu and a half-normal prior for tau, with
standard deviations given by ``prior_sd``.

Example::

    populations = simulate_populations(seed=1)
    estimate = compute_bayesian_meta_analysis(populations)
    estimate.to_frame()
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from pydantic import ValidationError

from ..config.settings import settings
from ..core.diagnostics import Diagnostics
from ..core.errors import InvalidChainConfigError
from ..core.models import ChainConfig, PosteriorSummary
from ..sampler.base import PosteriorSampler
from ..sampler.metropolis import MetropolisSampler
from ..utils.logging import get_logger
from .adapters import feed_dataset, prepare_dataset
from .detection import detect_likelihood_type
from .orchestrator import AnalysisOrchestrator
from .priors import build_prior
from .summary import summarize

logger = get_logger(__name__)


def build_chain_config(
    chain_length: Optional[int] = None,
    burn_in: Optional[int] = None,
    sub_sample_frequency: Optional[int] = None,
    alpha: Optional[float] = None,
) -> ChainConfig:
    """Validate chain settings, filling gaps from :data:`settings`.

    Raises:
        InvalidChainConfigError: If the chain cannot retain any draw or
            alpha is outside (0, 1).
    """
    try:
        return ChainConfig(
            chain_length=settings.chain_length if chain_length is None else chain_length,
            burn_in=settings.burn_in if burn_in is None else burn_in,
            sub_sample_frequency=(
                settings.sub_sample_frequency if sub_sample_frequency is None else sub_sample_frequency
            ),
            alpha=settings.alpha if alpha is None else alpha,
        )
    except ValidationError as exc:
        raise InvalidChainConfigError(str(exc)) from exc


def compute_bayesian_meta_analysis(
    data: Any,
    chain_length: Optional[int] = None,
    burn_in: Optional[int] = None,
    sub_sample_frequency: Optional[int] = None,
    prior_sd: Optional[Sequence[float]] = None,
    alpha: Optional[float] = None,
    sampler: Optional[PosteriorSampler] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> PosteriorSummary:
    """Compute a Bayesian random-effects meta-analysis.

    Args:
        data: A data frame (or column mapping) with one row per database
            holding normal (``logRr``, ``seLogRr``), skew-normal (``mu``,
            ``sigma``, ``alpha``), custom parametric (``mu``, ``sigma``,
            ``gamma``) or grid (numeric column labels) likelihood data,
            or a list of per-database patient-level record sets with
            ``stratumId``, ``y``, ``time`` and ``x``.
        chain_length: Number of MCMC iterations.
        burn_in: Number of iterations discarded as burn-in.
        sub_sample_frequency: Keep every n-th iteration after burn-in.
        prior_sd: Standard deviations of the priors on mu and tau.
        alpha: One minus the credible mass of the intervals.
        sampler: MCMC engine; defaults to :class:`MetropolisSampler`.
        diagnostics: Accumulator for warnings; a new one is created if omitted.

    Returns:
        The posterior summary. It carries the detected type, the retained
        trace and all diagnostics. When no data remain after cleaning, all
        estimates are NaN and the sampler is never called.
    """
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    chain_config = build_chain_config(chain_length, burn_in, sub_sample_frequency, alpha)
    prior = build_prior(settings.prior_sd if prior_sd is None else prior_sd)

    likelihood_type = detect_likelihood_type(data, diagnostics)
    dataset = prepare_dataset(data, likelihood_type, diagnostics)
    if dataset.n_rows == 0:
        return PosteriorSummary.missing(likelihood_type, diagnostics.entries)

    sampler = sampler if sampler is not None else MetropolisSampler(seed=settings.seed)
    data_model = feed_dataset(sampler, dataset)

    diagnostics.inform(
        "Performing MCMC. This may take a while",
        logger,
        databases=dataset.n_rows,
        chain_length=chain_config.chain_length,
    )
    trace = AnalysisOrchestrator(sampler).run(data_model, prior, chain_config, diagnostics)
    return summarize(trace, chain_config.alpha, likelihood_type, diagnostics)
