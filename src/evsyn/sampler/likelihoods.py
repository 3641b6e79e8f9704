"""Per-database log-likelihood models used by the bundled sampler.

Every model maps a vector ``theta`` (one effect per database, in feed
order) to the vector of per-database log-likelihoods. Additive
constants are dropped since only differences enter the
Metropolis acceptance ratio.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Type

import numpy as np
from scipy import stats

from ..core.errors import SamplerError
from ..core.models import LikelihoodType


class LikelihoodModel:
    """Collects likelihood rows and evaluates them once finished."""

    likelihood_type: LikelihoodType
    n_params: int = 0

    def __init__(self) -> None:
        self._rows: List[np.ndarray] = []
        self.finished = False

    @property
    def n_databases(self) -> int:
        return len(self._rows)

    def _check_open(self) -> None:
        if self.finished:
            raise SamplerError(f"{self.__class__.__name__} is finished; no rows can be added")

    def add_row(self, params: Sequence[float], auxiliary: Optional[Sequence[float]] = None) -> None:
        self._check_open()
        row = np.asarray(params, dtype=float)
        if row.shape != (self.n_params,):
            raise SamplerError(
                f"{self.__class__.__name__} expects {self.n_params} parameters per row, got {row.shape}"
            )
        self._rows.append(row)

    def add_patient_level(self, stratum_id, y, time, x) -> None:
        raise SamplerError(f"{self.__class__.__name__} does not accept patient-level data")

    def finish(self) -> None:
        if self.finished:
            return
        if not self._rows:
            raise SamplerError(f"{self.__class__.__name__} has no data")
        self._build()
        self.finished = True

    def _build(self) -> None:
        self.params = np.vstack(self._rows)

    def _check_finished(self) -> None:
        if not self.finished:
            raise SamplerError(f"{self.__class__.__name__} must be finished before use")

    def log_likelihood(self, theta: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def initial_values(self) -> np.ndarray:
        self._check_finished()
        return self.params[:, 0].copy()

    def proposal_scales(self) -> np.ndarray:
        self._check_finished()
        return self.params[:, 1].copy()


class NormalLikelihood(LikelihoodModel):
    """Normal approximation with mean and standard error per database."""

    likelihood_type = LikelihoodType.NORMAL
    n_params = 2

    def log_likelihood(self, theta: np.ndarray) -> np.ndarray:
        self._check_finished()
        mean, se = self.params[:, 0], self.params[:, 1]
        return -0.5 * ((theta - mean) / se) ** 2


class SkewNormalLikelihood(LikelihoodModel):
    """Skew-normal approximation (location, scale, skew) per database."""

    likelihood_type = LikelihoodType.SKEW_NORMAL
    n_params = 3

    def log_likelihood(self, theta: np.ndarray) -> np.ndarray:
        self._check_finished()
        mu, sigma, alpha = self.params.T
        return stats.skewnorm.logpdf(theta, alpha, loc=mu, scale=sigma)


class CustomLikelihood(LikelihoodModel):
    """Custom parametric approximation.

    The log-likelihood is a normal kernel whose curvature is tilted by
    ``gamma``: ``-(t - mu)^2 / (2 sigma^2) * (exp(gamma (t - mu)) + 2) / 3``.
    With ``gamma = 0`` it is the normal approximation.
    """

    likelihood_type = LikelihoodType.CUSTOM
    n_params = 3

    def log_likelihood(self, theta: np.ndarray) -> np.ndarray:
        self._check_finished()
        mu, sigma, gamma = self.params.T
        d = theta - mu
        tilt = (np.exp(np.clip(gamma * d, -50.0, 50.0)) + 2.0) / 3.0
        return -(d ** 2) / (2.0 * sigma ** 2) * tilt


class GridLikelihood(LikelihoodModel):
    """Log-likelihood values on a grid, interpolated linearly.

    Outside the grid the curve is extended linearly with the slope of
    the first and last segments.
    """

    likelihood_type = LikelihoodType.GRID

    def add_row(self, params: Sequence[float], auxiliary: Optional[Sequence[float]] = None) -> None:
        self._check_open()
        x = np.asarray(params, dtype=float)
        values = np.asarray(auxiliary, dtype=float) if auxiliary is not None else None
        if values is None or x.shape != values.shape or x.ndim != 1:
            raise SamplerError("Grid rows need support points and one value per point")
        if len(x) < 2:
            raise SamplerError("Grid rows need at least two support points")
        order = np.argsort(x)
        if np.any(np.diff(x[order]) == 0):
            raise SamplerError("Grid support points must be distinct")
        self._rows.append(np.vstack([x[order], values[order]]))

    def _build(self) -> None:
        self.grids = list(self._rows)

    def log_likelihood(self, theta: np.ndarray) -> np.ndarray:
        self._check_finished()
        out = np.empty(len(self.grids))
        for i, (grid, t) in enumerate(zip(self.grids, np.atleast_1d(theta))):
            x, v = grid
            if t < x[0]:
                out[i] = v[0] + (t - x[0]) * (v[1] - v[0]) / (x[1] - x[0])
            elif t > x[-1]:
                out[i] = v[-1] + (t - x[-1]) * (v[-1] - v[-2]) / (x[-1] - x[-2])
            else:
                out[i] = np.interp(t, x, v)
        return out

    def initial_values(self) -> np.ndarray:
        self._check_finished()
        return np.array([grid[0][np.argmax(grid[1])] for grid in self.grids])

    def proposal_scales(self) -> np.ndarray:
        self._check_finished()
        return np.array([max((grid[0][-1] - grid[0][0]) / 20.0, 0.01) for grid in self.grids])


class _StratifiedCox:
    """Precomputed risk-set structure of one database."""

    def __init__(self, stratum_id, y, time, x) -> None:
        stratum_id = np.asarray(stratum_id, dtype=np.int64)
        y = np.asarray(y, dtype=np.int64)
        time = np.asarray(time, dtype=float)
        x = np.asarray(x, dtype=float)
        # Within each stratum, latest time first so cumulative sums are risk sets.
        order = np.lexsort((-time, stratum_id))
        s, t = stratum_id[order], time[order]
        self.x = x[order]
        self.events = y[order] == 1
        n = len(s)
        new_stratum = np.r_[True, s[1:] != s[:-1]] if n else np.zeros(0, dtype=bool)
        group_end = np.r_[(s[1:] != s[:-1]) | (t[1:] != t[:-1]), True] if n else np.zeros(0, dtype=bool)
        idx = np.arange(n)
        starts = np.flatnonzero(new_stratum)
        ends = np.flatnonzero(group_end)
        self.segment_starts = starts
        self.segment = np.searchsorted(starts, idx, side="right") - 1
        self.start = starts[self.segment]
        self.tie_end = ends[np.searchsorted(ends, idx, side="left")]
        self.n_events = int(self.events.sum())

    def log_likelihood(self, beta: float) -> float:
        if self.n_events == 0:
            return 0.0
        eta = beta * self.x
        shift = np.maximum.reduceat(eta, self.segment_starts)[self.segment]
        w = np.exp(eta - shift)
        cs = np.concatenate(([0.0], np.cumsum(w)))
        ev = self.events
        risk = cs[self.tie_end[ev] + 1] - cs[self.start[ev]]
        risk = np.maximum(risk, np.finfo(float).tiny)
        return float(np.sum(eta[ev]) - np.sum(np.log(risk) + shift[ev]))


class CoxLikelihood(LikelihoodModel):
    """Stratified Cox partial likelihood per database (Breslow ties)."""

    likelihood_type = LikelihoodType.PATIENT_LEVEL

    def add_row(self, params: Sequence[float], auxiliary: Optional[Sequence[float]] = None) -> None:
        raise SamplerError("CoxLikelihood only accepts patient-level data")

    def add_patient_level(self, stratum_id, y, time, x) -> None:
        self._check_open()
        self._rows.append(_StratifiedCox(stratum_id, y, time, x))

    def _build(self) -> None:
        self.databases = list(self._rows)

    def log_likelihood(self, theta: np.ndarray) -> np.ndarray:
        self._check_finished()
        return np.array([db.log_likelihood(float(b)) for db, b in zip(self.databases, np.atleast_1d(theta))])

    def initial_values(self) -> np.ndarray:
        self._check_finished()
        return np.zeros(len(self.databases))

    def proposal_scales(self) -> np.ndarray:
        self._check_finished()
        return np.array([2.0 / np.sqrt(max(db.n_events, 1)) for db in self.databases])


MODEL_MAP: Dict[LikelihoodType, Type[LikelihoodModel]] = {
    LikelihoodType.NORMAL: NormalLikelihood,
    LikelihoodType.SKEW_NORMAL: SkewNormalLikelihood,
    LikelihoodType.CUSTOM: CustomLikelihood,
    LikelihoodType.GRID: GridLikelihood,
    LikelihoodType.PATIENT_LEVEL: CoxLikelihood,
}
