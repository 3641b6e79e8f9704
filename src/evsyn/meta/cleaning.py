"""Row filtering of per-database estimates before they reach the sampler."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pandas as pd

from ..core.diagnostics import Diagnostics
from ..utils.logging import get_logger

logger = get_logger(__name__)


def clean_data(
    data: pd.DataFrame,
    columns: Sequence[str],
    min_values: Optional[Sequence[float]] = None,
    max_values: Optional[Sequence[float]] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> pd.DataFrame:
    """Drop rows with infinite, missing or out-of-bounds values.

    Columns are processed in order and every step works on the rows
    left by the previous ones. Bounds are inclusive and default to
    -100 and 100 for every column.

    Args:
        data: One row per database.
        columns: Columns to check.
        min_values: Lower bound per column.
        max_values: Upper bound per column.
        diagnostics: Receives a warning for every removal step.

    Returns:
        A new data frame with a fresh index. It may be empty; callers
        must handle that case.
    """
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    min_values = list(min_values) if min_values is not None else [-100.0] * len(columns)
    max_values = list(max_values) if max_values is not None else [100.0] * len(columns)
    if not (len(min_values) == len(max_values) == len(columns)):
        raise ValueError("columns, min_values and max_values must have the same length")

    cleaned = data.copy()
    for column, lower, upper in zip(columns, min_values, max_values):
        values = pd.to_numeric(cleaned[column], errors="coerce").astype(float)

        infinite = np.isinf(values.to_numpy())
        if infinite.any():
            diagnostics.warn(
                f"Estimate(s) with infinite {column} detected. Removing before computing meta-analysis.",
                logger,
                column=column,
                removed=int(infinite.sum()),
            )
            cleaned, values = cleaned[~infinite], values[~infinite]

        missing = values.isna().to_numpy()
        if missing.any():
            diagnostics.warn(
                f"Estimate(s) with NA {column} detected. Removing before computing meta-analysis.",
                logger,
                column=column,
                removed=int(missing.sum()),
            )
            cleaned, values = cleaned[~missing], values[~missing]

        too_high = (values > upper).to_numpy()
        if too_high.any():
            diagnostics.warn(
                f"Estimate(s) with extremely high {column} (>{upper}) detected. "
                "Removing before computing meta-analysis.",
                logger,
                column=column,
                bound=upper,
                removed=int(too_high.sum()),
            )
            cleaned, values = cleaned[~too_high], values[~too_high]

        too_low = (values < lower).to_numpy()
        if too_low.any():
            diagnostics.warn(
                f"Estimate(s) with extremely low {column} (<{lower}) detected. "
                "Removing before computing meta-analysis.",
                logger,
                column=column,
                bound=lower,
                removed=int(too_low.sum()),
            )
            cleaned = cleaned[~too_low]

    if len(cleaned) == 0:
        diagnostics.warn(
            "No estimates left after removing estimates with NA, infinite or extreme values",
            logger,
            rows_in=len(data),
        )
    return cleaned.reset_index(drop=True)
