"""
Tests for predict_fit() on nonlinear models.

Validates:
    - Delta-method standard errors against an explicit (R'R)⁻¹
    - A linear mean function fit by nls() reproduces lm() predictions
    - Analytic and finite-difference gradients give the same errors
    - Partially linear (plinear) fits are rejected up front
    - Non-finite or non-numeric newdata and ill-conditioned factors raise
"""

import numpy as np
import pandas as pd
import pytest
from scipy import stats

from pypredfit import ModelFunction, NonlinearModel, SSmicmen, lm, nls, predict_fit
from pypredfit.core.compute.tolerances import CENTRAL_DIFFERENCE, NUMERIC_DERIV
from pypredfit.core.exceptions import (
    MissingParameterError,
    NumericalError,
    SingularMatrixError,
    UnsupportedModelError,
    ValidationError,
)
from pypredfit.core.datasource import DataSource
from pypredfit.prediction import PredictionDesign
from pypredfit.prediction.backends import NonlinearBackend


def _line(theta, X):
    return theta[0] + theta[1] * X[:, 0]


def _micmen(theta, X):
    return theta[0] * X[:, 0] / (theta[1] + X[:, 0])


@pytest.fixture
def micmen_model(puromycin_like):
    return nls(SSmicmen('conc'), puromycin_like, 'rate')


@pytest.fixture
def conc_grid():
    return pd.DataFrame({'conc': [0.01, 0.1, 0.5, 1.0, 1.5]})


class TestDeltaMethod:

    def test_se_matches_explicit_covariance(self, micmen_model, conc_grid):
        res = predict_fit(micmen_model, conc_grid)
        F0 = SSmicmen('conc').analytic_gradient(
            micmen_model.coefficients, conc_grid[['conc']].to_numpy()
        )
        R = micmen_model.R
        V = micmen_model.sigma ** 2 * np.linalg.inv(R.T @ R)
        np.testing.assert_allclose(res.se_fit, np.sqrt(np.diag(F0 @ V @ F0.T)), rtol=1e-8)
        assert res.info['gradient'] == 'analytic'
        assert res.backend_name == 'nonlinear_delta'

    def test_fit_is_mean_function(self, micmen_model, conc_grid):
        res = predict_fit(micmen_model, conc_grid, se_fit=False)
        vm, k = micmen_model.coefficients
        x = conc_grid['conc'].to_numpy()
        np.testing.assert_allclose(res.fit, vm * x / (k + x), rtol=1e-12)
        assert res.info['gradient'] is None

    def test_prediction_interval(self, micmen_model, conc_grid):
        res = predict_fit(micmen_model, conc_grid, interval='prediction')
        t = stats.t.ppf(0.975, micmen_model.df_residual)
        half = t * np.sqrt(micmen_model.sigma ** 2 + res.se_fit ** 2)
        np.testing.assert_allclose(res.upr, res.fit + half, rtol=1e-10)
        np.testing.assert_allclose(res.lwr, res.fit - half, rtol=1e-10)

    def test_scheffe_confidence_uses_parameter_count(self, micmen_model, conc_grid):
        res = predict_fit(
            micmen_model, conc_grid, interval='confidence', adjust='Scheffe', k=5
        )
        expected = np.sqrt(2 * stats.f.ppf(0.95, 2, micmen_model.df_residual))
        assert res.critical_value == pytest.approx(expected)


class TestLinearMeanFunction:
    """A straight line fit by nls() and by lm() predicts identically."""

    def test_matches_lm(self, linear_data):
        f = ModelFunction(_line, ('a', 'b'), ('x',))
        nonlinear = nls(f, linear_data, 'y', start=[0.0, 1.0])
        linear = lm("y ~ x", linear_data)
        new = {'x': [-1.0, 3.0, 7.5, 15.0]}

        res_nl = predict_fit(nonlinear, new, interval='prediction')
        res_lm = predict_fit(linear, new, interval='prediction')

        np.testing.assert_allclose(res_nl.fit, res_lm.fit, rtol=1e-6)
        np.testing.assert_allclose(res_nl.se_fit, res_lm.se_fit, rtol=1e-5)
        np.testing.assert_allclose(res_nl.upr, res_lm.upr, rtol=1e-5)
        assert res_nl.info['gradient'] == 'forward'


class TestGradientSources:

    def test_numeric_matches_analytic(self, micmen_model, puromycin_like, conc_grid):
        plain = ModelFunction(_micmen, ('Vm', 'K'), ('conc',))
        numeric_model = NonlinearModel.from_estimates(
            plain, puromycin_like, 'rate',
            coefficients=micmen_model.coefficients, R=micmen_model.R,
        )
        res_analytic = predict_fit(micmen_model, conc_grid)
        res_numeric = predict_fit(numeric_model, conc_grid)
        np.testing.assert_allclose(
            res_numeric.se_fit, res_analytic.se_fit, rtol=NUMERIC_DERIV.rtol * 10
        )

    def test_central_difference_backend(self, puromycin_like, micmen_model, conc_grid):
        plain = ModelFunction(_micmen, ('Vm', 'K'), ('conc',))
        numeric_model = NonlinearModel.from_estimates(
            plain, puromycin_like, 'rate',
            coefficients=micmen_model.coefficients, R=micmen_model.R,
        )
        design = PredictionDesign.build(numeric_model.data, conc_grid)
        result = NonlinearBackend(deriv=CENTRAL_DIFFERENCE).solve(numeric_model, design)
        assert result.info['gradient'] == 'central'
        np.testing.assert_allclose(
            result.params.se, predict_fit(micmen_model, conc_grid).se_fit, rtol=1e-7
        )


class TestNonlinearErrors:

    def test_plinear_rejected(self, puromycin_like):
        model = NonlinearModel.from_estimates(
            SSmicmen('conc'), puromycin_like, 'rate',
            coefficients=[210.0, 0.065], R=np.eye(2), algorithm='plinear',
        )
        with pytest.raises(UnsupportedModelError) as exc:
            predict_fit(model)
        assert exc.value.variant == 'plinear'

    def test_plinear_rejected_before_request_validation(self, puromycin_like):
        model = NonlinearModel.from_estimates(
            SSmicmen('conc'), puromycin_like, 'rate',
            coefficients=[210.0, 0.065], R=np.eye(2), algorithm='plinear',
        )
        with pytest.raises(UnsupportedModelError):
            predict_fit(model, interval='prediction', adjust='Bonferroni', level=7.0)

    def test_port_supported(self, puromycin_like, conc_grid):
        model = nls(
            SSmicmen('conc'), puromycin_like, 'rate',
            algorithm='port', bounds=([0.0, 0.0], [1000.0, 1.0]),
        )
        res = predict_fit(model, conc_grid, interval='confidence')
        assert np.all(res.lwr <= res.fit)

    def test_missing_predictor(self, micmen_model):
        with pytest.raises(MissingParameterError) as exc:
            predict_fit(micmen_model, {'dose': [0.1, 0.2]})
        assert exc.value.parameter == 'conc'

    def test_extra_columns_ignored(self, micmen_model):
        res = predict_fit(micmen_model, {'conc': [0.1], 'batch': [3.0]})
        assert res.n == 1

    def test_singular_factor(self, puromycin_like):
        model = NonlinearModel.from_estimates(
            SSmicmen('conc'), puromycin_like, 'rate',
            coefficients=[210.0, 0.065], R=np.array([[1.0, 1.0], [0.0, 0.0]]),
        )
        with pytest.raises(SingularMatrixError):
            predict_fit(model, {'conc': [0.1]})

    def test_ill_conditioned_factor(self, puromycin_like):
        model = NonlinearModel.from_estimates(
            SSmicmen('conc'), puromycin_like, 'rate',
            coefficients=[210.0, 0.065], R=np.array([[1.0, 1e9], [0.0, 1.0]]),
        )
        with pytest.raises(NumericalError):
            predict_fit(model, {'conc': [0.1]})

    def test_nan_in_newdata(self, micmen_model):
        with pytest.raises(ValidationError, match="non-finite"):
            predict_fit(micmen_model, {'conc': [np.nan, 0.5]}, se_fit=False)

    def test_inf_in_newdata(self, micmen_model):
        with pytest.raises(ValidationError, match="non-finite"):
            predict_fit(micmen_model, {'conc': [0.1, np.inf]})

    def test_non_numeric_newdata(self, micmen_model):
        with pytest.raises(ValidationError, match="conc"):
            predict_fit(micmen_model, {'conc': ['a', 'b']})

    def test_fit_only_skips_factor(self, puromycin_like):
        model = NonlinearModel.from_estimates(
            SSmicmen('conc'), puromycin_like, 'rate',
            coefficients=[210.0, 0.065], R=np.array([[1.0, 1.0], [0.0, 0.0]]),
        )
        res = predict_fit(model, DataSource.from_arrays(conc=[0.1]), se_fit=False)
        np.testing.assert_allclose(res.fit, [210.0 * 0.1 / 0.165])
