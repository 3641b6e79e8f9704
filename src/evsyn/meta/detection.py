"""Structural classification of meta-analysis input.

The input shape decides which likelihood approximation every database
supplied. Classification happens once, here; downstream code works on
the typed data sets in :mod:`evsyn.core.models` and never inspects
column names again.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, List, Optional

import numpy as np
import pandas as pd

from ..core.diagnostics import Diagnostics
from ..core.errors import MalformedGridError, UnsupportedInputError
from ..core.models import LikelihoodType
from ..utils.logging import get_logger

logger = get_logger(__name__)

_DESCRIPTIONS = {
    LikelihoodType.NORMAL: "Detected data following normal distribution",
    LikelihoodType.CUSTOM: "Detected data following custom parametric distribution",
    LikelihoodType.SKEW_NORMAL: "Detected data following skew normal distribution",
    LikelihoodType.PATIENT_LEVEL: "Detected (pooled) patient-level data",
    LikelihoodType.GRID: "Detected data following grid distribution",
}


def is_record_collection(data: Any) -> bool:
    """True for per-database record sets.

    Either a list or tuple of record sets, or a non-empty mapping from
    database name to record set where every value is a data frame or a
    column mapping.
    """
    if isinstance(data, (list, tuple)):
        return True
    if isinstance(data, Mapping) and data:
        return all(isinstance(v, (pd.DataFrame, Mapping)) for v in data.values())
    return False


def as_frame(data: Any) -> pd.DataFrame:
    """Normalise tabular input (data frame or column mapping) to a data frame."""
    if isinstance(data, pd.DataFrame):
        return data
    if isinstance(data, Mapping):
        try:
            return pd.DataFrame(dict(data))
        except ValueError as exc:
            raise UnsupportedInputError(f"Column mapping is not rectangular: {exc}") from exc
    if isinstance(data, np.ndarray) and data.ndim == 2:
        raise UnsupportedInputError("A bare matrix has no column labels; pass a DataFrame")
    raise UnsupportedInputError(
        f"Unsupported input of type {type(data).__name__}: expected a DataFrame, "
        "a column mapping, or a list of patient-level record sets"
    )


def parse_grid_support(labels: Iterable[Any], n_rows: Optional[int] = None) -> np.ndarray:
    """Parse column labels into numeric support points.

    Raises:
        MalformedGridError: If any label is not a number. The whole data
            set is rejected since its column labelling is invalid.
    """
    labels = list(labels)
    support: List[float] = []
    bad: List[Any] = []
    for label in labels:
        try:
            value = float(label)
        except (TypeError, ValueError):
            bad.append(label)
            continue
        if np.isnan(value):
            bad.append(label)
            continue
        support.append(value)
    if bad or not labels:
        raise MalformedGridError(bad, n_rows=n_rows)
    return np.asarray(support, dtype=float)


def detect_likelihood_type(data: Any, diagnostics: Optional[Diagnostics] = None) -> LikelihoodType:
    """Select the likelihood representation of ``data``.

    First match wins:

    1. a ``logRr`` column: normal
    2. a ``gamma`` column: custom parametric
    3. an ``alpha`` column: skew normal
    4. a list of record sets, or a mapping of database name to record
       set: patient-level
    5. anything else tabular: grid, where every column label must be a number
    """
    if is_record_collection(data):
        detected = LikelihoodType.PATIENT_LEVEL
    else:
        frame = as_frame(data)
        columns = [str(c) for c in frame.columns]
        if "logRr" in columns:
            detected = LikelihoodType.NORMAL
        elif "gamma" in columns:
            detected = LikelihoodType.CUSTOM
        elif "alpha" in columns:
            detected = LikelihoodType.SKEW_NORMAL
        else:
            parse_grid_support(frame.columns, n_rows=len(frame))
            detected = LikelihoodType.GRID
    if diagnostics is not None:
        diagnostics.inform(_DESCRIPTIONS[detected], logger, type=detected.value)
    else:
        logger.info(_DESCRIPTIONS[detected])
    return detected
