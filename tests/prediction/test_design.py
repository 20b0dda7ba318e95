"""
Tests for PredictionDesign request validation.
"""

import numpy as np
import pandas as pd
import pytest

from pypredfit.core.datasource import DataSource
from pypredfit.core.exceptions import MissingParameterError, ValidationError
from pypredfit.prediction import PredictionDesign


@pytest.fixture
def training():
    return DataSource.from_arrays(x=[1.0, 2.0, 3.0], y=[1.0, 2.0, 3.0])


class TestDefaults:

    def test_defaults(self, training):
        design = PredictionDesign.build(training)
        assert design.newdata is training
        assert design.uses_training_data
        assert design.se_fit is True
        assert design.interval == 'none'
        assert design.level == 0.95
        assert design.adjust == 'none'
        assert design.k is None

    def test_newdata_coerced(self, training):
        design = PredictionDesign.build(training, pd.DataFrame({'x': [4.0, 5.0]}))
        assert isinstance(design.newdata, DataSource)
        assert design.newdata.n_observations == 2
        assert not design.uses_training_data

    def test_options_canonicalised(self, training):
        design = PredictionDesign.build(
            training, interval='PREDICTION', adjust='scheffe', k=np.int32(2)
        )
        assert design.interval == 'prediction'
        assert design.adjust == 'Scheffe'
        assert design.k == 2


class TestNeedsSe:

    def test_interval_needs_se(self, training):
        assert PredictionDesign.build(training, se_fit=False, interval='confidence').needs_se

    def test_plain_fit_does_not(self, training):
        assert not PredictionDesign.build(training, se_fit=False).needs_se


class TestValidation:

    @pytest.mark.parametrize("adjust", ['Bonferroni', 'Scheffe'])
    def test_k_required_with_adjustment(self, training, adjust):
        with pytest.raises(MissingParameterError) as exc:
            PredictionDesign.build(training, interval='prediction', adjust=adjust)
        assert exc.value.parameter == 'k'

    def test_k_required_even_without_interval(self, training):
        with pytest.raises(MissingParameterError):
            PredictionDesign.build(training, adjust='Bonferroni')

    def test_k_zero(self, training):
        with pytest.raises(MissingParameterError):
            PredictionDesign.build(training, adjust='Bonferroni', k=0)

    def test_k_not_integer(self, training):
        with pytest.raises(ValidationError, match="integer"):
            PredictionDesign.build(training, adjust='Bonferroni', k=1.5)

    def test_unknown_interval(self, training):
        with pytest.raises(ValidationError, match="interval"):
            PredictionDesign.build(training, interval='tolerance')

    @pytest.mark.parametrize("level", [0, 1, -0.5, 95])
    def test_level_bounds(self, training, level):
        with pytest.raises(ValidationError, match="level"):
            PredictionDesign.build(training, level=level)

    def test_se_fit_must_be_bool(self, training):
        with pytest.raises(ValidationError, match="se_fit"):
            PredictionDesign.build(training, se_fit='yes')

    def test_empty_newdata(self, training):
        with pytest.raises(ValidationError, match="no rows"):
            PredictionDesign.build(training, {'x': np.array([])})

    def test_unsupported_newdata_type(self, training):
        with pytest.raises(ValidationError, match="newdata|data"):
            PredictionDesign.build(training, [1.0, 2.0])
