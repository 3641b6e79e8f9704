"""Conversion of detected input into typed data sets and sampler feeds.

There is one adapter per likelihood type. ``prepare`` validates and
cleans raw input into a typed data set; ``feed`` pushes that data set
into a sampler data model, one database at a time, in data set order.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from ..core.diagnostics import Diagnostics
from ..core.errors import UnsupportedInputError
from ..core.models import (
    CustomDataSet,
    DataSet,
    GridDataSet,
    LikelihoodType,
    NormalDataSet,
    PatientLevelDataSet,
    PatientLevelRecords,
    SkewNormalDataSet,
)
from ..sampler.base import PosteriorSampler
from ..utils.logging import get_logger
from .cleaning import clean_data
from .detection import as_frame, parse_grid_support

logger = get_logger(__name__)

PATIENT_LEVEL_COLUMNS = ["stratumId", "y", "time", "x"]


class LikelihoodAdapter:
    """Base adapter: clean rows, then feed them as likelihood rows."""

    likelihood_type: LikelihoodType
    columns: List[str] = []
    min_values: List[float] = []
    max_values: List[float] = []

    def prepare(self, data: Any, diagnostics: Diagnostics) -> DataSet:
        frame = as_frame(data)
        missing = [c for c in self.columns if c not in frame.columns]
        if missing:
            raise UnsupportedInputError(
                f"{self.likelihood_type.value} data is missing column(s) {missing} "
                f"({len(frame)} rows)"
            )
        cleaned = clean_data(
            frame,
            self.columns,
            min_values=self.min_values,
            max_values=self.max_values,
            diagnostics=diagnostics,
        )
        return self.build(cleaned)

    def build(self, cleaned: pd.DataFrame) -> DataSet:
        raise NotImplementedError

    def feed(self, sampler: PosteriorSampler, dataset: DataSet) -> Any:
        data_model = sampler.new_data_model(self.likelihood_type)
        for params in dataset.rows():
            sampler.add_likelihood_row(data_model, params, None)
        sampler.finish_model(data_model)
        return data_model


class NormalAdapter(LikelihoodAdapter):
    likelihood_type = LikelihoodType.NORMAL
    columns = ["logRr", "seLogRr"]
    min_values = [-100.0, 1e-5]
    max_values = [100.0, 100.0]

    def build(self, cleaned: pd.DataFrame) -> NormalDataSet:
        return NormalDataSet(
            log_rr=cleaned["logRr"].to_numpy(dtype=float),
            se_log_rr=cleaned["seLogRr"].to_numpy(dtype=float),
        )


class SkewNormalAdapter(LikelihoodAdapter):
    likelihood_type = LikelihoodType.SKEW_NORMAL
    columns = ["mu", "sigma", "alpha"]
    min_values = [-100.0, 1e-5, -100.0]
    max_values = [100.0, 100.0, 100.0]

    def build(self, cleaned: pd.DataFrame) -> SkewNormalDataSet:
        return SkewNormalDataSet(
            mu=cleaned["mu"].to_numpy(dtype=float),
            sigma=cleaned["sigma"].to_numpy(dtype=float),
            alpha=cleaned["alpha"].to_numpy(dtype=float),
        )


class CustomAdapter(LikelihoodAdapter):
    likelihood_type = LikelihoodType.CUSTOM
    columns = ["mu", "sigma", "gamma"]
    min_values = [-100.0, 1e-5, -100.0]
    max_values = [100.0, 100.0, 100.0]

    def build(self, cleaned: pd.DataFrame) -> CustomDataSet:
        return CustomDataSet(
            mu=cleaned["mu"].to_numpy(dtype=float),
            sigma=cleaned["sigma"].to_numpy(dtype=float),
            gamma=cleaned["gamma"].to_numpy(dtype=float),
        )


class GridAdapter(LikelihoodAdapter):
    """Grid cells are not cleaned; the column labels are the support points."""

    likelihood_type = LikelihoodType.GRID

    def prepare(self, data: Any, diagnostics: Diagnostics) -> GridDataSet:
        frame = as_frame(data)
        x = parse_grid_support(frame.columns, n_rows=len(frame))
        if len(frame) == 0:
            diagnostics.warn("Grid data has no rows", logger, support_points=len(x))
        return GridDataSet(x=x, values=frame.to_numpy(dtype=float))

    def feed(self, sampler: PosteriorSampler, dataset: GridDataSet) -> Any:
        data_model = sampler.new_data_model(self.likelihood_type)
        for row in dataset.values:
            sampler.add_likelihood_row(data_model, dataset.x, row)
        sampler.finish_model(data_model)
        return data_model


class PatientLevelAdapter(LikelihoodAdapter):
    """Record sets are assumed pre-validated and are fed whole."""

    likelihood_type = LikelihoodType.PATIENT_LEVEL

    def prepare(self, data: Any, diagnostics: Diagnostics) -> PatientLevelDataSet:
        populations = []
        named = data.items() if isinstance(data, Mapping) else enumerate(data)
        for i, records in named:
            if not isinstance(records, (pd.DataFrame, Mapping)):
                raise UnsupportedInputError(
                    f"Patient-level record set {i} is a {type(records).__name__}, "
                    "expected a DataFrame or column mapping"
                )
            missing = [c for c in PATIENT_LEVEL_COLUMNS if c not in records]
            if missing:
                raise UnsupportedInputError(
                    f"Patient-level record set {i} is missing column(s) {missing}"
                )
            populations.append(
                PatientLevelRecords(
                    stratum_id=np.asarray(records["stratumId"]).astype(np.int64),
                    y=np.asarray(records["y"]).astype(np.int64),
                    time=np.asarray(records["time"], dtype=float),
                    x=np.asarray(records["x"], dtype=float),
                )
            )
        if not populations:
            diagnostics.warn("No patient-level record sets provided", logger)
        return PatientLevelDataSet(populations=tuple(populations))

    def feed(self, sampler: PosteriorSampler, dataset: PatientLevelDataSet) -> Any:
        data_model = sampler.new_data_model(self.likelihood_type)
        for records in dataset.populations:
            sampler.add_patient_level_data(
                data_model,
                records.stratum_id,
                records.y,
                records.time,
                records.x,
            )
        sampler.finish_model(data_model)
        return data_model


ADAPTER_MAP: Dict[LikelihoodType, LikelihoodAdapter] = {
    LikelihoodType.NORMAL: NormalAdapter(),
    LikelihoodType.SKEW_NORMAL: SkewNormalAdapter(),
    LikelihoodType.CUSTOM: CustomAdapter(),
    LikelihoodType.GRID: GridAdapter(),
    LikelihoodType.PATIENT_LEVEL: PatientLevelAdapter(),
}


def prepare_dataset(
    data: Any,
    likelihood_type: LikelihoodType,
    diagnostics: Optional[Diagnostics] = None,
) -> DataSet:
    """Validate and clean ``data`` into the data set of ``likelihood_type``."""
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    return ADAPTER_MAP[likelihood_type].prepare(data, diagnostics)


def feed_dataset(sampler: PosteriorSampler, dataset: DataSet) -> Any:
    """Build and finish a sampler data model holding every row of ``dataset``."""
    adapter = ADAPTER_MAP[dataset.type]
    data_model = adapter.feed(sampler, dataset)
    logger.info(f"Fed {dataset.n_rows} database(s) as {dataset.type.value} likelihoods")
    return data_model
