"""Base classes and interfaces for posterior samplers."""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

from ..core.models import LikelihoodType


class PosteriorSampler(ABC):
    """Abstract MCMC engine behind the meta-analysis pipeline.

    The pipeline only ever talks to a sampler through these calls:
    build a data model, configure the tau prior, run a chain, and read
    back named traces. Handles are opaque to callers.

    Traces are addressed with 1-based indices. Indices 1 and 2 are
    reserved by the engine (e.g. iteration counter and log-likelihood);
    index 3 is mu, index 4 is tau, and any further indices are
    auxiliary parameters such as per-database random effects.
    """

    @abstractmethod
    def new_data_model(self, likelihood_type: LikelihoodType) -> Any:
        """Create an empty data model for one likelihood type."""
        raise NotImplementedError

    @abstractmethod
    def add_likelihood_row(
        self,
        data_model: Any,
        params: Sequence[float],
        auxiliary: Optional[Sequence[float]] = None,
    ) -> None:
        """Append the likelihood approximation of one database."""
        raise NotImplementedError

    @abstractmethod
    def add_patient_level_data(
        self,
        data_model: Any,
        stratum_id: Sequence[int],
        y: Sequence[int],
        time: Sequence[float],
        x: Sequence[float],
    ) -> None:
        """Append the stratified survival records of one database."""
        raise NotImplementedError

    @abstractmethod
    def finish_model(self, data_model: Any) -> None:
        """Freeze the data model; no rows may be added afterwards."""
        raise NotImplementedError

    @abstractmethod
    def new_half_normal_prior(self, mean: float, sd: float) -> Any:
        """Create the half-normal prior on tau."""
        raise NotImplementedError

    @abstractmethod
    def run_chain(
        self,
        data_model: Any,
        prior: Any,
        mu_prior_sd: float,
        chain_length: int,
        burn_in: int,
        sub_sample_frequency: int,
    ) -> Any:
        """Run the chain to completion and return a trace handle.

        Blocks for the full run; runtime grows with ``chain_length``.
        """
        raise NotImplementedError

    @abstractmethod
    def get_parameter_names(self, trace: Any) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    def get_trace(self, trace: Any, index: int) -> Sequence[float]:
        """Return the retained draws of the parameter at 1-based ``index``."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
