"""
pytest configuration and shared fixtures.
"""

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def linear_data(rng):
    """Straight-line data with moderate noise: y = 1 + 2x + e, sd(e) = 0.5."""
    n = 40
    x = np.linspace(0.0, 10.0, n)
    y = 1.0 + 2.0 * x + rng.standard_normal(n) * 0.5
    return pd.DataFrame({'x': x, 'y': y})


@pytest.fixture
def quadratic_data(rng):
    """Quadratic data for multi-column formulas."""
    n = 50
    x = rng.uniform(-2.0, 2.0, n)
    y = 0.5 - 1.0 * x + 0.75 * x ** 2 + rng.standard_normal(n) * 0.2
    return pd.DataFrame({'x': x, 'y': y})


@pytest.fixture
def perfect_fit_data():
    """Noise-free line y = 2x on x = 1..5."""
    x = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
    return pd.DataFrame({'x': x, 'y': 2.0 * x})


@pytest.fixture
def puromycin_like(rng):
    """Michaelis-Menten enzyme kinetics, Vm = 210, K = 0.065."""
    conc = np.repeat([0.02, 0.06, 0.11, 0.22, 0.56, 1.10], 2)
    rate = 210.0 * conc / (0.065 + conc) + rng.standard_normal(conc.shape[0]) * 6.0
    return pd.DataFrame({'conc': conc, 'rate': rate})


@pytest.fixture
def logistic_data(rng):
    """Logistic growth, Asym = 200, xmid = 5, scal = 1.5."""
    x = np.linspace(0.0, 12.0, 30)
    y = 200.0 / (1.0 + np.exp((5.0 - x) / 1.5)) + rng.standard_normal(x.shape[0]) * 3.0
    return pd.DataFrame({'x': x, 'y': y})


@pytest.fixture
def grouped_data(rng):
    """Random-intercept data: 12 groups of 8, sd(b) = 2, sd(e) = 1."""
    n_groups, per_group = 12, 8
    group = np.repeat(np.arange(n_groups), per_group)
    x = np.tile(np.linspace(0.0, 7.0, per_group), n_groups)
    b = rng.standard_normal(n_groups) * 2.0
    y = 3.0 + 0.8 * x + b[group] + rng.standard_normal(group.shape[0])
    return pd.DataFrame({'x': x, 'y': y, 'g': [f"s{i:02d}" for i in group]})
