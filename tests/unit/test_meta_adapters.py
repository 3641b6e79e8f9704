"""Unit tests for likelihood adapters and sampler feeding."""

import numpy as np
import pandas as pd
import pytest

from evsyn.core.diagnostics import Diagnostics
from evsyn.core.errors import UnsupportedInputError
from evsyn.core.models import (
    CustomDataSet,
    GridDataSet,
    LikelihoodType,
    NormalDataSet,
    PatientLevelDataSet,
    SkewNormalDataSet,
)
from evsyn.meta.adapters import feed_dataset, prepare_dataset


def population(n: int = 4, seed: int = 0) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    return pd.DataFrame(
        {
            "stratumId": rng.integers(0, 2, n),
            "y": rng.integers(0, 2, n),
            "time": rng.uniform(1, 100, n),
            "x": rng.integers(0, 2, n).astype(float),
        }
    )


class TestPrepareDataset:
    """Tests for building typed data sets."""

    def test_prepare_normal(self) -> None:
        """Test the normal data set keeps only cleaned rows in order."""
        data = pd.DataFrame({"logRr": [0.1, 0.5, -0.2], "seLogRr": [0.1, np.inf, 0.3]})
        dataset = prepare_dataset(data, LikelihoodType.NORMAL)
        assert isinstance(dataset, NormalDataSet)
        assert dataset.log_rr.tolist() == [0.1, -0.2]
        assert dataset.se_log_rr.tolist() == [0.1, 0.3]

    def test_prepare_normal_se_floor(self) -> None:
        """Test standard errors below 1e-5 are removed."""
        data = pd.DataFrame({"logRr": [0.1, 0.2], "seLogRr": [1e-6, 0.2]})
        dataset = prepare_dataset(data, LikelihoodType.NORMAL)
        assert dataset.n_rows == 1

    def test_prepare_skew_normal(self) -> None:
        """Test skew normal rows are cleaned on mu, sigma and alpha."""
        data = pd.DataFrame({"mu": [0.1, 0.2, 0.3], "sigma": [0.2, 0.0, 0.2], "alpha": [1.0, 1.0, 500.0]})
        dataset = prepare_dataset(data, LikelihoodType.SKEW_NORMAL)
        assert isinstance(dataset, SkewNormalDataSet)
        assert dataset.rows() == [(0.1, 0.2, 1.0)]

    def test_prepare_custom(self) -> None:
        """Test custom rows are cleaned on mu, sigma and gamma."""
        data = pd.DataFrame({"mu": [0.1, -150.0], "sigma": [0.2, 0.2], "gamma": [0.5, 0.5]})
        dataset = prepare_dataset(data, LikelihoodType.CUSTOM)
        assert isinstance(dataset, CustomDataSet)
        assert dataset.rows() == [(0.1, 0.2, 0.5)]

    def test_prepare_missing_column(self) -> None:
        """Test a normal table without seLogRr is rejected."""
        with pytest.raises(UnsupportedInputError):
            prepare_dataset(pd.DataFrame({"logRr": [0.1]}), LikelihoodType.NORMAL)

    def test_prepare_grid_is_not_cleaned(self) -> None:
        """Test grid cells pass through untouched, extreme values included."""
        data = pd.DataFrame([[-1.0, -500.0, -2.0]], columns=["-1", "0", "1"])
        dataset = prepare_dataset(data, LikelihoodType.GRID)
        assert isinstance(dataset, GridDataSet)
        assert dataset.x.tolist() == [-1.0, 0.0, 1.0]
        assert dataset.values.tolist() == [[-1.0, -500.0, -2.0]]

    def test_prepare_patient_level(self) -> None:
        """Test record sets are converted per database with integer strata and outcomes."""
        dataset = prepare_dataset([population(seed=1), population(seed=2)], LikelihoodType.PATIENT_LEVEL)
        assert isinstance(dataset, PatientLevelDataSet)
        assert dataset.n_rows == 2
        assert dataset.populations[0].stratum_id.dtype == np.int64
        assert dataset.populations[0].time.dtype == float

    def test_prepare_patient_level_from_named_sites(self) -> None:
        """Test named record sets are converted in insertion order."""
        first, second = population(n=3, seed=1), population(n=5, seed=2)
        dataset = prepare_dataset({"siteB": first, "siteA": second}, LikelihoodType.PATIENT_LEVEL)
        assert dataset.n_rows == 2
        assert np.array_equal(dataset.populations[0].time, first["time"].to_numpy())
        assert len(dataset.populations[1].y) == 5

    def test_prepare_patient_level_missing_column(self) -> None:
        """Test a record set without time is rejected."""
        broken = population().drop(columns=["time"])
        with pytest.raises(UnsupportedInputError):
            prepare_dataset([broken], LikelihoodType.PATIENT_LEVEL)

    def test_prepare_empty_patient_level_warns(self) -> None:
        """Test an empty collection yields an empty data set and a warning."""
        diagnostics = Diagnostics()
        dataset = prepare_dataset([], LikelihoodType.PATIENT_LEVEL, diagnostics)
        assert dataset.n_rows == 0
        assert len(diagnostics.warnings) == 1


class TestFeedDataset:
    """Tests for the rows handed to the sampler."""

    def test_feed_normal_preserves_order(self, recording_sampler) -> None:
        """Test normal rows are fed as (mean, se) with no auxiliary values, in order."""
        dataset = NormalDataSet(log_rr=[0.3, -0.1, 0.2], se_log_rr=[0.1, 0.2, 0.3])
        model = feed_dataset(recording_sampler, dataset)
        assert model["type"] is LikelihoodType.NORMAL
        assert [row[0].tolist() for row in model["rows"]] == [[0.3, 0.1], [-0.1, 0.2], [0.2, 0.3]]
        assert all(row[1] is None for row in model["rows"])
        assert model["finished"]
        assert recording_sampler.calls[-1] == "finish_model"

    def test_feed_three_parameter_rows(self, recording_sampler) -> None:
        """Test skew normal rows carry three parameters."""
        dataset = SkewNormalDataSet(mu=[0.1], sigma=[0.2], alpha=[3.0])
        model = feed_dataset(recording_sampler, dataset)
        assert model["rows"][0][0].tolist() == [0.1, 0.2, 3.0]

    def test_feed_grid_rows(self, recording_sampler) -> None:
        """Test each grid row is fed with the shared support points."""
        dataset = GridDataSet(x=[-1.0, 0.0, 1.0], values=[[-1.0, 0.0, -1.0], [-2.0, -1.0, 0.0]])
        model = feed_dataset(recording_sampler, dataset)
        assert len(model["rows"]) == 2
        assert model["rows"][0][0].tolist() == [-1.0, 0.0, 1.0]
        assert model["rows"][1][1].tolist() == [-2.0, -1.0, 0.0]

    def test_feed_patient_level(self, recording_sampler) -> None:
        """Test each database is fed as one patient-level contribution."""
        dataset = prepare_dataset([population(seed=1), population(seed=2)], LikelihoodType.PATIENT_LEVEL)
        model = feed_dataset(recording_sampler, dataset)
        assert recording_sampler.calls.count("add_patient_level_data") == 2
        stratum_id, y, time, x = model["rows"][1]
        assert np.array_equal(time, dataset.populations[1].time)
