"""
Tests for the random-intercept linear mixed model.

Validates:
    - lme() recovers fixed effects and variance components
    - β̂ and Cov(β̂) agree with dense GLS at the estimated θ
    - The profiled deviance is minimised at θ̂
    - from_estimates() wraps external estimates
    - Design validation
"""

import numpy as np
import pytest

from pypredfit.core.exceptions import (
    DimensionError,
    MissingParameterError,
    ValidationError,
)
from pypredfit.mixed import MixedEffectsModel, lme
from pypredfit.mixed._deviance import GroupSums, profiled_deviance
from pypredfit.mixed.design import MixedDesign


def _dense_gls(data, theta):
    """β̂ and (X'V⁻¹X)⁻¹ with V built explicitly."""
    x = data['x'].to_numpy()
    X = np.column_stack([np.ones_like(x), x])
    y = data['y'].to_numpy()
    g = data['g'].to_numpy()
    Z = (g[:, None] == np.unique(g)[None, :]).astype(float)
    V = np.eye(len(y)) + theta ** 2 * Z @ Z.T
    Vinv = np.linalg.inv(V)
    xvx_inv = np.linalg.inv(X.T @ Vinv @ X)
    beta = xvx_inv @ X.T @ Vinv @ y
    return beta, xvx_inv, Vinv, X, y


class TestLmeFit:

    def test_recovers_fixed_effects(self, grouped_data):
        model = lme("y ~ x", grouped_data, group='g')
        assert isinstance(model, MixedEffectsModel)
        np.testing.assert_allclose(model.coefficients, [3.0, 0.8], atol=1.5)
        assert model.coefficient_names == ('Intercept', 'x')
        assert model.converged
        assert model.backend_name == 'cpu_lme'

    def test_variance_components_plausible(self, grouped_data):
        model = lme("y ~ x", grouped_data, group='g')
        assert 0.5 < model.sigma < 2.0
        assert 0.5 < model.sigma_group < 5.0
        assert 0.0 < model.icc < 1.0

    def test_matches_dense_gls(self, grouped_data):
        model = lme("y ~ x", grouped_data, group='g')
        theta = model.params.theta
        beta, xvx_inv, Vinv, X, y = _dense_gls(grouped_data, theta)
        np.testing.assert_allclose(model.coefficients, beta, rtol=1e-8)

        r = y - X @ beta
        sigma_sq = (r @ Vinv @ r) / (len(y) - X.shape[1])
        np.testing.assert_allclose(model.sigma ** 2, sigma_sq, rtol=1e-8)
        np.testing.assert_allclose(model.vcov, sigma_sq * xvx_inv, rtol=1e-8)

    def test_vcov_symmetric(self, grouped_data):
        model = lme("y ~ x", grouped_data, group='g')
        np.testing.assert_array_equal(model.vcov, model.vcov.T)
        np.testing.assert_allclose(model.se, np.sqrt(np.diag(model.vcov)))

    def test_theta_minimises_deviance(self, grouped_data):
        model = lme("y ~ x", grouped_data, group='g')
        design = MixedDesign.build("y ~ x", grouped_data, 'g')
        sums = GroupSums.build(design.X, design.y, design.codes, len(design.levels))
        theta = model.params.theta
        at_opt = profiled_deviance(theta, design.X, design.y, design.codes, sums)
        for other in (0.5 * theta, 1.5 * theta):
            assert at_opt <= profiled_deviance(other, design.X, design.y, design.codes, sums)

    def test_ml_estimation(self, grouped_data):
        reml = lme("y ~ x", grouped_data, group='g')
        ml = lme("y ~ x", grouped_data, group='g', reml=False)
        assert reml.info["method"] == "REML"
        assert ml.info["method"] == "ML"
        assert "fit by ML" in ml.summary()
        assert np.isfinite(ml.log_likelihood)

    def test_population_fitted_values(self, grouped_data):
        model = lme("y ~ x", grouped_data, group='g')
        X = np.column_stack([np.ones(len(grouped_data)), grouped_data['x']])
        np.testing.assert_allclose(model.fitted_values, X @ model.coefficients)
        np.testing.assert_allclose(model.predict_population(), model.fitted_values)

    def test_no_group_signal_is_singular_fit(self, rng):
        n_groups, per_group = 10, 6
        g = np.repeat(np.arange(n_groups), per_group)
        x = rng.standard_normal(g.shape[0])
        y = 1.0 + x + rng.standard_normal(g.shape[0]) * 0.01
        # Remove any group mean structure from the noise
        y -= np.bincount(g, weights=y - 1.0 - x)[g] / per_group
        with pytest.warns(UserWarning, match="singular fit"):
            model = lme("y ~ x", {'x': x, 'y': y, 'g': g}, group='g')
        assert model.sigma_group < 1e-3
        assert any("singular fit" in w for w in model.warnings)

    def test_summary_and_repr(self, grouped_data):
        model = lme("y ~ x", grouped_data, group='g')
        text = model.summary()
        assert "REML" in text
        assert "~ 1 | g" in text
        assert "groups=12" in repr(model)


class TestLmeValidation:

    def test_missing_group_column(self, grouped_data):
        with pytest.raises(MissingParameterError) as exc:
            lme("y ~ x", grouped_data, group='subject')
        assert exc.value.parameter == 'subject'

    def test_single_group(self, grouped_data):
        data = grouped_data.assign(g='only')
        with pytest.raises(ValidationError, match="at least 2"):
            lme("y ~ x", data, group='g')

    def test_too_few_observations(self):
        with pytest.raises(ValidationError):
            lme("y ~ x", {'x': [1.0, 2.0], 'y': [1.0, 2.0], 'g': [0, 1]}, group='g')


class TestFromEstimates:

    def test_wraps_estimates(self, grouped_data):
        vcov = np.array([[0.4, -0.02], [-0.02, 0.01]])
        model = MixedEffectsModel.from_estimates(
            "y ~ x", grouped_data, coefficients=[3.0, 0.8], vcov=vcov,
            sigma=1.0, sigma_group=2.0, group='g',
        )
        assert model.fixef == {'Intercept': 3.0, 'x': 0.8}
        np.testing.assert_array_equal(model.fixed_effects_vcov(), vcov)
        assert model.params.n_groups == 12
        assert model.backend_name == 'external'
        assert model.icc == pytest.approx(0.8)

    def test_wrong_coefficient_count(self, grouped_data):
        with pytest.raises(ValidationError, match="expected 2"):
            MixedEffectsModel.from_estimates(
                "y ~ x", grouped_data, coefficients=[3.0], vcov=np.eye(2), sigma=1.0,
            )

    def test_wrong_vcov_shape(self, grouped_data):
        with pytest.raises(DimensionError):
            MixedEffectsModel.from_estimates(
                "y ~ x", grouped_data, coefficients=[3.0, 0.8], vcov=np.eye(3), sigma=1.0,
            )

    def test_asymmetric_vcov(self, grouped_data):
        with pytest.raises(ValidationError, match="symmetric"):
            MixedEffectsModel.from_estimates(
                "y ~ x", grouped_data, coefficients=[3.0, 0.8],
                vcov=np.array([[1.0, 0.5], [0.0, 1.0]]), sigma=1.0,
            )

    def test_design_matrix_missing_column(self, grouped_data):
        model = MixedEffectsModel.from_estimates(
            "y ~ x", grouped_data, coefficients=[3.0, 0.8], vcov=np.eye(2) * 0.01, sigma=1.0,
        )
        with pytest.raises(MissingParameterError):
            model.design_matrix({'z': [1.0]})
