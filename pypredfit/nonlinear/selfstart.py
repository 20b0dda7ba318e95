"""
Self-starting nonlinear models.

Each factory returns a ModelFunction that carries an analytic gradient
and a routine computing starting values from the data, so nls() needs no
`start` and prediction standard errors need no numerical differentiation.

Models:
    SSlogis   Asym / (1 + exp((xmid - x) / scal))
    SSasymp   Asym + (R0 - Asym) * exp(-exp(lrc) * x)
    SSmicmen  Vm * x / (K + x)
"""

import numpy as np

from pypredfit.core.exceptions import ValidationError
from pypredfit.nonlinear._common import ModelFunction


def _line(x: np.ndarray, y: np.ndarray) -> tuple[float, float]:
    """Intercept and slope of the least-squares line through (x, y)."""
    A = np.column_stack([np.ones_like(x), x])
    (intercept, slope), *_ = np.linalg.lstsq(A, y, rcond=None)
    return float(intercept), float(slope)


def _check_initial(theta: np.ndarray, name: str) -> np.ndarray:
    if not np.all(np.isfinite(theta)):
        raise ValidationError(
            f"{name}: cannot compute starting values from these data; supply start"
        )
    return theta


# === Four-parameter logistic without the lower asymptote ===

def _logis(theta, X):
    asym, xmid, scal = theta
    return asym / (1.0 + np.exp((xmid - X[:, 0]) / scal))


def _logis_gradient(theta, X):
    asym, xmid, scal = theta
    x = X[:, 0]
    e = np.exp((xmid - x) / scal)
    denom = (1.0 + e) ** 2
    return np.column_stack([
        1.0 / (1.0 + e),
        -asym * e / (scal * denom),
        asym * e * (xmid - x) / (scal ** 2 * denom),
    ])


def _logis_initial(X, y):
    x = X[:, 0]
    if np.max(y) <= 0:
        raise ValidationError("SSlogis: response must have positive values")
    asym = 1.05 * np.max(y)
    p = np.clip(y / asym, 1e-6, 1.0 - 1e-6)
    # logit(y / Asym) = (x - xmid) / scal
    intercept, slope = _line(x, np.log(p / (1.0 - p)))
    if slope == 0:
        raise ValidationError("SSlogis: response does not vary with the predictor")
    scal = 1.0 / slope
    xmid = -intercept * scal
    return _check_initial(np.array([asym, xmid, scal]), 'SSlogis')


def SSlogis(
    input: str = 'x',
    parameters: tuple[str, str, str] = ('Asym', 'xmid', 'scal'),
) -> ModelFunction:
    """Self-starting logistic model Asym / (1 + exp((xmid - x) / scal))."""
    return ModelFunction(
        fn=_logis,
        parameters=parameters,
        variables=(input,),
        gradient=_logis_gradient,
        initial=_logis_initial,
        name='SSlogis',
    )


# === Asymptotic regression ===

def _asymp(theta, X):
    asym, r0, lrc = theta
    return asym + (r0 - asym) * np.exp(-np.exp(lrc) * X[:, 0])


def _asymp_gradient(theta, X):
    asym, r0, lrc = theta
    x = X[:, 0]
    rate = np.exp(lrc)
    g = np.exp(-rate * x)
    return np.column_stack([
        1.0 - g,
        g,
        -(r0 - asym) * g * rate * x,
    ])


def _asymp_initial(X, y):
    order = np.argsort(X[:, 0])
    x, yy = X[order, 0], y[order]
    r0 = float(yy[0])
    span = float(yy[-1] - yy[0])
    if span == 0:
        raise ValidationError("SSasymp: response does not vary with the predictor")
    asym = float(yy[-1]) + 0.05 * span
    gap = np.abs(yy - asym)
    keep = gap > 0
    # log|y - Asym| = log|R0 - Asym| - exp(lrc) * x
    _, slope = _line(x[keep], np.log(gap[keep]))
    rate = -slope if slope < 0 else 1.0 / max(float(np.ptp(x)), 1e-8)
    return _check_initial(np.array([asym, r0, np.log(rate)]), 'SSasymp')


def SSasymp(
    input: str = 'x',
    parameters: tuple[str, str, str] = ('Asym', 'R0', 'lrc'),
) -> ModelFunction:
    """Self-starting asymptotic regression Asym + (R0 - Asym) exp(-exp(lrc) x)."""
    return ModelFunction(
        fn=_asymp,
        parameters=parameters,
        variables=(input,),
        gradient=_asymp_gradient,
        initial=_asymp_initial,
        name='SSasymp',
    )


# === Michaelis-Menten ===

def _micmen(theta, X):
    vm, k = theta
    x = X[:, 0]
    return vm * x / (k + x)


def _micmen_gradient(theta, X):
    vm, k = theta
    x = X[:, 0]
    return np.column_stack([
        x / (k + x),
        -vm * x / (k + x) ** 2,
    ])


def _micmen_initial(X, y):
    x = X[:, 0]
    keep = (x != 0) & (y != 0)
    if np.count_nonzero(keep) < 2:
        raise ValidationError("SSmicmen: need at least two non-zero observations")
    # Lineweaver-Burk: 1/y = 1/Vm + (K/Vm) (1/x)
    intercept, slope = _line(1.0 / x[keep], 1.0 / y[keep])
    if intercept == 0:
        raise ValidationError("SSmicmen: cannot compute starting values; supply start")
    vm = 1.0 / intercept
    return _check_initial(np.array([vm, slope * vm]), 'SSmicmen')


def SSmicmen(
    input: str = 'conc',
    parameters: tuple[str, str] = ('Vm', 'K'),
) -> ModelFunction:
    """Self-starting Michaelis-Menten model Vm x / (K + x)."""
    return ModelFunction(
        fn=_micmen,
        parameters=parameters,
        variables=(input,),
        gradient=_micmen_gradient,
        initial=_micmen_initial,
        name='SSmicmen',
    )
