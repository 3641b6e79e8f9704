"""Bayesian meta-analysis pipeline.

This package turns per-database likelihood data into posterior
estimates: rows are cleaned, the likelihood type is detected, the data
are fed to a sampler, and the retained draws are summarised into point
estimates and highest density intervals for mu and tau.
"""

from .analyzer import build_chain_config, compute_bayesian_meta_analysis  # noqa: F401
from .cleaning import clean_data  # noqa: F401
from .detection import detect_likelihood_type, parse_grid_support  # noqa: F401
from .orchestrator import AnalysisOrchestrator  # noqa: F401
from .priors import build_prior  # noqa: F401
from .summary import hdi, summarize  # noqa: F401
