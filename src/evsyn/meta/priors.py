"""Prior configuration for mu and tau."""

from __future__ import annotations

import math
from typing import Any, Sequence

from ..core.errors import InvalidPriorError
from ..core.models import Prior
from ..sampler.base import PosteriorSampler


def build_prior(prior_sd: Sequence[float]) -> Prior:
    """Build the prior from ``(mu_prior_sd, tau_prior_sd)``.

    mu gets a normal prior centred at 0 with sd ``prior_sd[0]``; tau a
    half-normal prior with location 0 and scale ``prior_sd[1]``.

    Raises:
        InvalidPriorError: If either scale is missing, non-finite or not positive.
    """
    values = list(prior_sd)
    if len(values) != 2:
        raise InvalidPriorError(f"prior_sd needs exactly two values (mu, tau), got {len(values)}")
    for name, value in zip(("mu", "tau"), values):
        try:
            value = float(value)
        except (TypeError, ValueError) as exc:
            raise InvalidPriorError(f"Prior sd for {name} is not a number: {value!r}") from exc
        if not math.isfinite(value) or value <= 0:
            raise InvalidPriorError(f"Prior sd for {name} must be positive and finite, got {value}")
    return Prior(mu_prior_sd=float(values[0]), tau_prior_sd=float(values[1]))


def configure_prior(sampler: PosteriorSampler, prior: Prior) -> Any:
    """Create the sampler's half-normal prior handle for tau."""
    return sampler.new_half_normal_prior(prior.tau_prior_mean, prior.tau_prior_sd)
