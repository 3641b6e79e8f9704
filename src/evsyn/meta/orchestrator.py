"""Invocation of the sampler and retrieval of the raw trace."""

from __future__ import annotations

from typing import Any, List, Optional

import numpy as np

from ..core.diagnostics import Diagnostics
from ..core.errors import SamplerError
from ..core.models import ChainConfig, PosteriorTrace, Prior
from ..sampler.base import PosteriorSampler
from ..utils.logging import get_logger
from .priors import configure_prior

logger = get_logger(__name__)

# 1-based sampler indices; 1 and 2 are reserved by the engine.
FIRST_PARAMETER_INDEX = 3
EXPECTED_NAMES = ("mu", "tau")


class AnalysisOrchestrator:
    """Run one chain over a finished data model and collect the traces."""

    def __init__(self, sampler: PosteriorSampler) -> None:
        self.sampler = sampler

    def run(
        self,
        data_model: Any,
        prior: Prior,
        chain_config: ChainConfig,
        diagnostics: Optional[Diagnostics] = None,
    ) -> PosteriorTrace:
        """Run the chain and return the mu, tau and auxiliary traces.

        Sampler index ``i`` (``i >= 3``) becomes trace column ``i - 2``:
        column 1 is mu, column 2 is tau, further columns are auxiliary.
        """
        diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        prior_handle = configure_prior(self.sampler, prior)
        try:
            trace_handle = self.sampler.run_chain(
                data_model,
                prior_handle,
                prior.mu_prior_sd,
                chain_config.chain_length,
                chain_config.burn_in,
                chain_config.sub_sample_frequency,
            )
        except Exception as e:
            logger.error(f"Sampler failed: {e}")
            raise
        names: List[str] = list(self.sampler.get_parameter_names(trace_handle))
        if len(names) < FIRST_PARAMETER_INDEX + 1:
            raise SamplerError(
                f"Sampler returned {len(names)} parameters; expected at least "
                f"{FIRST_PARAMETER_INDEX + 1} (2 reserved, mu, tau)"
            )
        retained = names[FIRST_PARAMETER_INDEX - 1:]
        if tuple(n.lower() for n in retained[:2]) != EXPECTED_NAMES:
            diagnostics.warn(
                f"Sampler parameters at positions {FIRST_PARAMETER_INDEX} and "
                f"{FIRST_PARAMETER_INDEX + 1} are named {retained[:2]}, expected {list(EXPECTED_NAMES)}. "
                "Using them as mu and tau by position.",
                logger,
                names=names,
            )

        columns = []
        for index in range(FIRST_PARAMETER_INDEX, len(names) + 1):
            columns.append(np.asarray(self.sampler.get_trace(trace_handle, index), dtype=float))
        lengths = {len(c) for c in columns}
        if len(lengths) != 1:
            raise SamplerError(f"Sampler returned traces of unequal length: {sorted(lengths)}")
        if lengths.pop() == 0:
            raise SamplerError("Sampler returned no draws")
        return PosteriorTrace(draws=np.column_stack(columns), names=tuple(retained))
