"""Shared fixtures: a recording sampler that stands in for an MCMC engine."""

from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pytest

from evsyn.core.models import LikelihoodType
from evsyn.sampler.base import PosteriorSampler


class RecordingSampler(PosteriorSampler):
    """Sampler that records every call and returns a preset trace matrix.

    ``traces`` holds one column per sampler parameter, in sampler index
    order (column 0 is index 1).
    """

    def __init__(
        self,
        traces: Optional[np.ndarray] = None,
        names: Optional[List[str]] = None,
        fail_with: Optional[Exception] = None,
    ) -> None:
        if traces is None:
            rng = np.random.default_rng(0)
            traces = np.column_stack(
                [
                    np.arange(1, 201),
                    rng.normal(-5, 1, 200),
                    rng.normal(0.1, 0.05, 200),
                    np.abs(rng.normal(0.05, 0.02, 200)),
                ]
            )
        self.traces = np.asarray(traces, dtype=float)
        self.names = names or ["iteration", "logLikelihood", "mu", "tau"] + [
            f"theta_{i}" for i in range(1, self.traces.shape[1] - 3)
        ]
        self.fail_with = fail_with
        self.calls: List[str] = []
        self.models: List[Dict[str, Any]] = []
        self.run_args: Optional[tuple] = None
        self.prior_args: Optional[tuple] = None

    @property
    def run_count(self) -> int:
        return self.calls.count("run_chain")

    def new_data_model(self, likelihood_type: LikelihoodType) -> Dict[str, Any]:
        self.calls.append("new_data_model")
        model = {"type": likelihood_type, "rows": [], "finished": False}
        self.models.append(model)
        return model

    def add_likelihood_row(self, data_model, params: Sequence[float], auxiliary=None) -> None:
        self.calls.append("add_likelihood_row")
        data_model["rows"].append(
            (np.asarray(params, dtype=float), None if auxiliary is None else np.asarray(auxiliary, dtype=float))
        )

    def add_patient_level_data(self, data_model, stratum_id, y, time, x) -> None:
        self.calls.append("add_patient_level_data")
        data_model["rows"].append((stratum_id, y, time, x))

    def finish_model(self, data_model) -> None:
        self.calls.append("finish_model")
        data_model["finished"] = True

    def new_half_normal_prior(self, mean: float, sd: float):
        self.calls.append("new_half_normal_prior")
        self.prior_args = (mean, sd)
        return ("half_normal", mean, sd)

    def run_chain(self, data_model, prior, mu_prior_sd, chain_length, burn_in, sub_sample_frequency):
        self.calls.append("run_chain")
        self.run_args = (data_model, prior, mu_prior_sd, chain_length, burn_in, sub_sample_frequency)
        if self.fail_with is not None:
            raise self.fail_with
        return "trace-handle"

    def get_parameter_names(self, trace) -> List[str]:
        return list(self.names)

    def get_trace(self, trace, index: int) -> np.ndarray:
        return self.traces[:, index - 1]


@pytest.fixture
def recording_sampler() -> RecordingSampler:
    return RecordingSampler()


@pytest.fixture
def make_sampler():
    """Factory for recording samplers with custom traces or failures."""
    return RecordingSampler
