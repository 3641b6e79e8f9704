"""Unit tests for prior and chain configuration."""

import math

import pytest

from evsyn.core.errors import InvalidChainConfigError, InvalidPriorError
from evsyn.core.models import ChainConfig, Prior
from evsyn.meta.analyzer import build_chain_config
from evsyn.meta.priors import build_prior, configure_prior


class TestBuildPrior:
    """Tests for prior construction."""

    def test_build_default_prior(self) -> None:
        """Test the default scales map to mu and tau."""
        prior = build_prior((2, 0.5))
        assert prior == Prior(mu_prior_sd=2.0, tau_prior_sd=0.5)
        assert prior.tau_prior_mean == 0.0

    @pytest.mark.parametrize("prior_sd", [(0, 0.5), (2, -1), (2, math.inf), (2, float("nan")), ("a", 1)])
    def test_invalid_scales(self, prior_sd) -> None:
        """Test non-positive or non-finite scales fail."""
        with pytest.raises(InvalidPriorError):
            build_prior(prior_sd)

    def test_wrong_length(self) -> None:
        """Test exactly two scales are required."""
        with pytest.raises(InvalidPriorError):
            build_prior((1.0,))

    def test_configure_prior_uses_tau_scale(self, recording_sampler) -> None:
        """Test the half-normal prior is centred at 0 with the tau scale."""
        handle = configure_prior(recording_sampler, build_prior((2, 0.5)))
        assert recording_sampler.prior_args == (0.0, 0.5)
        assert handle == ("half_normal", 0.0, 0.5)


class TestChainConfig:
    """Tests for chain parameter validation."""

    def test_defaults(self) -> None:
        """Test the documented defaults."""
        config = ChainConfig()
        assert config.chain_length == 1_100_000
        assert config.burn_in == 100_000
        assert config.sub_sample_frequency == 100
        assert config.alpha == 0.05
        assert config.n_retained == 10_000

    def test_build_uses_overrides(self) -> None:
        """Test explicit values override the settings defaults."""
        config = build_chain_config(chain_length=2000, burn_in=1000, sub_sample_frequency=10, alpha=0.1)
        assert config.n_retained == 100
        assert config.alpha == 0.1

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"chain_length": 0, "burn_in": 0},
            {"chain_length": 100, "burn_in": 100},
            {"chain_length": 100, "burn_in": 150},
            {"chain_length": 100, "burn_in": -1},
            {"chain_length": 100, "burn_in": 10, "sub_sample_frequency": 0},
            {"chain_length": 100, "burn_in": 10, "sub_sample_frequency": 200},
            {"chain_length": 100, "burn_in": 10, "alpha": 1.0},
            {"chain_length": 100, "burn_in": 10, "alpha": 0.0},
        ],
    )
    def test_invalid_chain(self, kwargs) -> None:
        """Test invalid chains fail before any sampling."""
        with pytest.raises(InvalidChainConfigError):
            build_chain_config(**kwargs)
