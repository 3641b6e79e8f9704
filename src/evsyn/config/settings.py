"""Configuration management using Pydantic Settings."""

from pathlib import Path
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Analysis defaults loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="EVSYN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # MCMC chain
    chain_length: int = Field(1_100_000, gt=0)
    burn_in: int = Field(100_000, ge=0)
    sub_sample_frequency: int = Field(100, gt=0)
    seed: Optional[int] = Field(None, description="Seed for the bundled sampler")

    # Priors (normal on mu, half-normal on tau)
    mu_prior_sd: float = Field(2.0, gt=0)
    tau_prior_sd: float = Field(0.5, gt=0)

    # Credible intervals
    alpha: float = Field(0.05, gt=0, lt=1)

    # Directories
    output_dir: Path = Field(Path("output"))

    # Logging
    log_level: str = Field("INFO")
    log_format: str = Field("json", pattern="^(json|text)$")

    @property
    def prior_sd(self) -> tuple[float, float]:
        return (self.mu_prior_sd, self.tau_prior_sd)


# Instantiate global settings
settings = Settings()
