"""Random-walk Metropolis-within-Gibbs sampler for the random-effects model.

Model::

    mu      ~ Normal(0, mu_prior_sd)
    tau     ~ HalfNormal(mean, tau_prior_sd)
    theta_i ~ Normal(mu, tau)              one per database
    data_i  ~ L_i(theta_i)                 likelihood approximation of database i
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from ..core.errors import SamplerError
from ..core.models import LikelihoodType
from ..utils.logging import get_logger
from .base import PosteriorSampler
from .likelihoods import MODEL_MAP, LikelihoodModel

logger = get_logger(__name__)

TARGET_ACCEPTANCE = 0.44
ADAPT_INTERVAL = 50


@dataclass(frozen=True)
class HalfNormalPrior:
    """Half-normal density on tau, truncated below at zero."""

    mean: float
    sd: float

    def log_density(self, tau: float) -> float:
        if tau < 0:
            return -np.inf
        return -0.5 * ((tau - self.mean) / self.sd) ** 2


@dataclass
class ChainResult:
    names: List[str]
    draws: np.ndarray


class _StepSize:
    """Proposal scale tuned toward a target acceptance rate during burn-in."""

    def __init__(self, initial) -> None:
        self.value = np.asarray(initial, dtype=float).copy()
        self.accepted = np.zeros_like(self.value)
        self.proposed = 0

    def record(self, accepted) -> None:
        self.accepted += accepted
        self.proposed += 1

    def adapt(self) -> None:
        if self.proposed == 0:
            return
        rate = self.accepted / self.proposed
        self.value = np.where(rate > TARGET_ACCEPTANCE, self.value * 1.2, self.value / 1.2)
        self.accepted[...] = 0
        self.proposed = 0


class MetropolisSampler(PosteriorSampler):
    """Bundled MCMC engine.

    Each iteration draws mu from its Gibbs conditional, updates log tau
    by random walk, shifts mu and all random effects jointly, rescales
    tau together with the deviations ``theta - mu``, and finally updates
    every random effect by an independent random walk. Proposal scales
    adapt only during burn-in.
    """

    def __init__(self, seed: Optional[int] = None, log_every: int = 100_000) -> None:
        self.rng = np.random.default_rng(seed)
        self.log_every = log_every

    def new_data_model(self, likelihood_type: LikelihoodType) -> LikelihoodModel:
        try:
            return MODEL_MAP[LikelihoodType(likelihood_type)]()
        except (KeyError, ValueError) as exc:
            raise SamplerError(f"No data model for likelihood type {likelihood_type!r}") from exc

    def add_likelihood_row(
        self,
        data_model: LikelihoodModel,
        params: Sequence[float],
        auxiliary: Optional[Sequence[float]] = None,
    ) -> None:
        data_model.add_row(params, auxiliary)

    def add_patient_level_data(self, data_model: LikelihoodModel, stratum_id, y, time, x) -> None:
        data_model.add_patient_level(stratum_id, y, time, x)

    def finish_model(self, data_model: LikelihoodModel) -> None:
        data_model.finish()

    def new_half_normal_prior(self, mean: float, sd: float) -> HalfNormalPrior:
        if not sd > 0:
            raise SamplerError(f"Half-normal prior needs a positive sd, got {sd}")
        return HalfNormalPrior(mean=float(mean), sd=float(sd))

    def get_parameter_names(self, trace: ChainResult) -> List[str]:
        return list(trace.names)

    def get_trace(self, trace: ChainResult, index: int) -> np.ndarray:
        if not 1 <= index <= len(trace.names):
            raise IndexError(f"Trace index {index} outside 1..{len(trace.names)}")
        return trace.draws[:, index - 1].copy()

    def run_chain(
        self,
        data_model: LikelihoodModel,
        prior: HalfNormalPrior,
        mu_prior_sd: float,
        chain_length: int,
        burn_in: int,
        sub_sample_frequency: int,
    ) -> ChainResult:
        if not data_model.finished:
            raise SamplerError("Data model must be finished before running the chain")
        rng = self.rng
        k = data_model.n_databases
        mu_precision_prior = 1.0 / mu_prior_sd ** 2

        theta = data_model.initial_values().astype(float)
        mu = float(np.mean(theta))
        tau = max(prior.sd / 2.0, 1e-3)
        ll = data_model.log_likelihood(theta)

        theta_step = _StepSize(data_model.proposal_scales())
        tau_step = _StepSize(0.5)
        shift_step = _StepSize(float(np.mean(theta_step.value)))
        scale_step = _StepSize(0.5)

        n_keep = (chain_length - burn_in) // sub_sample_frequency
        draws = np.empty((n_keep, 4 + k))
        kept = 0
        logger.info(
            "Starting MCMC",
            extra={"context": {"databases": k, "chain_length": chain_length, "burn_in": burn_in}},
        )

        for iteration in range(1, chain_length + 1):
            # Gibbs step for mu given theta and tau.
            precision = mu_precision_prior + k / tau ** 2
            mu = float(np.sum(theta) / tau ** 2 / precision + rng.standard_normal() / np.sqrt(precision))

            # Random walk on log tau.
            log_s = tau_step.value * rng.standard_normal()
            new_tau = tau * np.exp(log_s)
            log_ratio = (
                prior.log_density(new_tau)
                - prior.log_density(tau)
                + _normal_log_density(theta, mu, new_tau)
                - _normal_log_density(theta, mu, tau)
                + log_s
            )
            accepted = np.log(rng.uniform()) < log_ratio
            if accepted:
                tau = float(new_tau)
            tau_step.record(accepted)

            # Joint shift of mu and theta; theta - mu is unchanged.
            delta = shift_step.value * rng.standard_normal()
            new_ll = data_model.log_likelihood(theta + delta)
            log_ratio = (
                np.sum(new_ll) - np.sum(ll)
                - 0.5 * mu_precision_prior * ((mu + delta) ** 2 - mu ** 2)
            )
            accepted = np.log(rng.uniform()) < log_ratio
            if accepted:
                mu, theta, ll = mu + float(delta), theta + delta, new_ll
            shift_step.record(accepted)

            # Joint rescaling of tau and theta - mu; z = (theta - mu) / tau is unchanged.
            log_s = scale_step.value * rng.standard_normal()
            new_tau = tau * np.exp(log_s)
            new_theta = mu + np.exp(log_s) * (theta - mu)
            new_ll = data_model.log_likelihood(new_theta)
            log_ratio = (
                prior.log_density(new_tau) - prior.log_density(tau)
                + np.sum(new_ll) - np.sum(ll)
                + log_s
            )
            accepted = np.log(rng.uniform()) < log_ratio
            if accepted:
                tau, theta, ll = float(new_tau), new_theta, new_ll
            scale_step.record(accepted)

            # Independent random walks on each theta_i.
            proposal = theta + theta_step.value * rng.standard_normal(k)
            new_ll = data_model.log_likelihood(proposal)
            log_ratio = (
                new_ll - ll
                - 0.5 * ((proposal - mu) ** 2 - (theta - mu) ** 2) / tau ** 2
            )
            accepted = np.log(rng.uniform(size=k)) < log_ratio
            theta = np.where(accepted, proposal, theta)
            ll = np.where(accepted, new_ll, ll)
            theta_step.record(accepted)

            if iteration <= burn_in:
                if iteration % ADAPT_INTERVAL == 0:
                    for step in (theta_step, tau_step, shift_step, scale_step):
                        step.adapt()
            elif (iteration - burn_in) % sub_sample_frequency == 0 and kept < n_keep:
                draws[kept, 0] = iteration
                draws[kept, 1] = float(np.sum(ll))
                draws[kept, 2] = mu
                draws[kept, 3] = tau
                draws[kept, 4:] = theta
                kept += 1

            if iteration % self.log_every == 0:
                logger.info(f"MCMC iteration {iteration}/{chain_length}")

        names = ["iteration", "logLikelihood", "mu", "tau"] + [f"theta_{i}" for i in range(1, k + 1)]
        return ChainResult(names=names, draws=draws[:kept])


def _normal_log_density(x: np.ndarray, mean: float, sd: float) -> float:
    return float(np.sum(-0.5 * ((x - mean) / sd) ** 2) - len(x) * np.log(sd))
