"""Core domain models for likelihood data sets, priors, chains and results."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .diagnostics import DiagnosticEntry


SUMMARY_COLUMNS = ["mu", "mu95Lb", "mu95Ub", "muSe", "tau", "tau95Lb", "tau95Ub"]


class LikelihoodType(str, Enum):
    """Supported per-database likelihood representations."""

    NORMAL = "normal"
    CUSTOM = "custom"
    SKEW_NORMAL = "skew normal"
    PATIENT_LEVEL = "pooled"
    GRID = "grid"


def _as_float_array(values: Sequence[float]) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class NormalDataSet:
    """Normal approximations: point estimate and standard error per database."""

    type: ClassVar[LikelihoodType] = LikelihoodType.NORMAL
    log_rr: np.ndarray
    se_log_rr: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "log_rr", _as_float_array(self.log_rr))
        object.__setattr__(self, "se_log_rr", _as_float_array(self.se_log_rr))

    @property
    def n_rows(self) -> int:
        return len(self.log_rr)

    def rows(self) -> List[Tuple[float, float]]:
        return [(float(m), float(s)) for m, s in zip(self.log_rr, self.se_log_rr)]

    def __len__(self) -> int:
        return self.n_rows


@dataclass(frozen=True)
class SkewNormalDataSet:
    """Skew-normal approximations (location, scale, skew) per database."""

    type: ClassVar[LikelihoodType] = LikelihoodType.SKEW_NORMAL
    mu: np.ndarray
    sigma: np.ndarray
    alpha: np.ndarray

    def __post_init__(self) -> None:
        for name in ("mu", "sigma", "alpha"):
            object.__setattr__(self, name, _as_float_array(getattr(self, name)))

    @property
    def n_rows(self) -> int:
        return len(self.mu)

    def rows(self) -> List[Tuple[float, float, float]]:
        return [(float(m), float(s), float(a)) for m, s, a in zip(self.mu, self.sigma, self.alpha)]

    def __len__(self) -> int:
        return self.n_rows


@dataclass(frozen=True)
class CustomDataSet:
    """Custom parametric approximations (location, scale, shape) per database."""

    type: ClassVar[LikelihoodType] = LikelihoodType.CUSTOM
    mu: np.ndarray
    sigma: np.ndarray
    gamma: np.ndarray

    def __post_init__(self) -> None:
        for name in ("mu", "sigma", "gamma"):
            object.__setattr__(self, name, _as_float_array(getattr(self, name)))

    @property
    def n_rows(self) -> int:
        return len(self.mu)

    def rows(self) -> List[Tuple[float, float, float]]:
        return [(float(m), float(s), float(g)) for m, s, g in zip(self.mu, self.sigma, self.gamma)]

    def __len__(self) -> int:
        return self.n_rows


@dataclass(frozen=True)
class GridDataSet:
    """Log-likelihood values evaluated on a support grid shared by all databases."""

    type: ClassVar[LikelihoodType] = LikelihoodType.GRID
    x: np.ndarray
    values: np.ndarray

    def __post_init__(self) -> None:
        x = _as_float_array(self.x)
        values = np.atleast_2d(np.array(self.values, dtype=float))
        if values.size == 0:
            values = values.reshape(0, len(x))
        if values.shape[1] != len(x):
            raise ValueError(
                f"Grid rows have {values.shape[1]} values but there are {len(x)} support points"
            )
        values.setflags(write=False)
        object.__setattr__(self, "x", x)
        object.__setattr__(self, "values", values)

    @property
    def n_rows(self) -> int:
        return self.values.shape[0]

    def __len__(self) -> int:
        return self.n_rows


@dataclass(frozen=True)
class PatientLevelRecords:
    """Stratified survival records of a single database."""

    stratum_id: np.ndarray
    y: np.ndarray
    time: np.ndarray
    x: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "stratum_id", np.asarray(self.stratum_id, dtype=np.int64))
        object.__setattr__(self, "y", np.asarray(self.y, dtype=np.int64))
        object.__setattr__(self, "time", np.asarray(self.time, dtype=float))
        object.__setattr__(self, "x", np.asarray(self.x, dtype=float))
        n = len(self.stratum_id)
        if not (len(self.y) == len(self.time) == len(self.x) == n):
            raise ValueError("stratumId, y, time and x must have the same length")

    def __len__(self) -> int:
        return len(self.stratum_id)


@dataclass(frozen=True)
class PatientLevelDataSet:
    """One set of stratified survival records per database."""

    type: ClassVar[LikelihoodType] = LikelihoodType.PATIENT_LEVEL
    populations: Tuple[PatientLevelRecords, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "populations", tuple(self.populations))

    @property
    def n_rows(self) -> int:
        return len(self.populations)

    def __len__(self) -> int:
        return self.n_rows


DataSet = Union[NormalDataSet, SkewNormalDataSet, CustomDataSet, GridDataSet, PatientLevelDataSet]


class Prior(BaseModel):
    """Normal prior on mu and half-normal prior on tau."""

    model_config = ConfigDict(frozen=True)

    mu_prior_sd: float = Field(..., gt=0, description="SD of the normal prior on mu (mean 0)")
    tau_prior_sd: float = Field(..., gt=0, description="Scale of the half-normal prior on tau")
    tau_prior_mean: float = Field(0.0, description="Location of the half-normal prior on tau")


class ChainConfig(BaseModel):
    """MCMC chain settings and the credible interval complement."""

    model_config = ConfigDict(frozen=True)

    chain_length: int = Field(1_100_000, gt=0)
    burn_in: int = Field(100_000, ge=0)
    sub_sample_frequency: int = Field(100, gt=0)
    alpha: float = Field(0.05, gt=0, lt=1)

    @model_validator(mode="after")
    def _check_retained_draws(self) -> "ChainConfig":
        if self.burn_in >= self.chain_length:
            raise ValueError(
                f"burn_in ({self.burn_in}) must be smaller than chain_length ({self.chain_length})"
            )
        if self.n_retained < 1:
            raise ValueError(
                f"No draws retained: {self.chain_length - self.burn_in} post burn-in iterations "
                f"with sub_sample_frequency {self.sub_sample_frequency}"
            )
        return self

    @property
    def n_retained(self) -> int:
        return (self.chain_length - self.burn_in) // self.sub_sample_frequency


@dataclass(frozen=True)
class PosteriorTrace:
    """Retained MCMC draws: column 0 is mu, column 1 is tau, the rest auxiliary."""

    draws: np.ndarray
    names: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        draws = np.array(self.draws, dtype=float)
        if draws.ndim != 2 or draws.shape[1] < 2:
            raise ValueError(f"A posterior trace needs at least 2 columns (mu, tau), got shape {draws.shape}")
        names = tuple(self.names) or ("mu", "tau") + tuple(
            f"param_{i}" for i in range(3, draws.shape[1] + 1)
        )
        if len(names) != draws.shape[1]:
            raise ValueError(f"{len(names)} names given for {draws.shape[1]} trace columns")
        draws.setflags(write=False)
        object.__setattr__(self, "draws", draws)
        object.__setattr__(self, "names", names)

    @property
    def mu(self) -> np.ndarray:
        return self.draws[:, 0]

    @property
    def tau(self) -> np.ndarray:
        return self.draws[:, 1]

    @property
    def n_draws(self) -> int:
        return self.draws.shape[0]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.draws, columns=list(self.names))


@dataclass(frozen=True)
class PosteriorSummary:
    """Point estimates and credible intervals for mu and tau.

    Numeric fields are NaN when the analysis had no data left after
    cleaning; in that case ``trace`` is ``None``.
    """

    mu: float
    mu95_lb: float
    mu95_ub: float
    mu_se: float
    tau: float
    tau95_lb: float
    tau95_ub: float
    detected_type: LikelihoodType
    trace: Optional[PosteriorTrace] = None
    diagnostics: Tuple[DiagnosticEntry, ...] = field(default_factory=tuple)

    @classmethod
    def missing(
        cls,
        detected_type: LikelihoodType,
        diagnostics: Sequence[DiagnosticEntry] = (),
    ) -> "PosteriorSummary":
        nan = float("nan")
        return cls(
            mu=nan,
            mu95_lb=nan,
            mu95_ub=nan,
            mu_se=nan,
            tau=nan,
            tau95_lb=nan,
            tau95_ub=nan,
            detected_type=detected_type,
            trace=None,
            diagnostics=tuple(diagnostics),
        )

    @property
    def is_missing(self) -> bool:
        return self.trace is None and math.isnan(self.mu)

    def values(self) -> List[float]:
        return [
            self.mu,
            self.mu95_lb,
            self.mu95_ub,
            self.mu_se,
            self.tau,
            self.tau95_lb,
            self.tau95_ub,
        ]

    def to_frame(self) -> pd.DataFrame:
        """One-row table with the output columns; type and trace in ``attrs``."""
        df = pd.DataFrame([self.values()], columns=SUMMARY_COLUMNS)
        df.attrs["type"] = self.detected_type.value
        df.attrs["traces"] = None if self.trace is None else self.trace.draws
        return df
