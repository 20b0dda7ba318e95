"""
Numerical tolerances and settings.

Defines the precision expectations used by the test suite together with
the thresholds the prediction backends apply when deciding that a matrix
is singular or a quadratic form is negative beyond round-off.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# Closed-form computations (QR, triangular solves, quadratic forms)
CPU_FP64 = ToleranceTier(
    rtol=1e-10,
    atol=1e-12,
    name='cpu_fp64',
    description='CPU double precision, closed-form arithmetic',
)

# Anything that passes through a finite-difference Jacobian
NUMERIC_DERIV = ToleranceTier(
    rtol=1e-6,
    atol=1e-8,
    name='numeric_deriv',
    description='CPU double precision through forward differences',
)

# Iterative fits compared against closed-form or published values
ITERATIVE_FIT = ToleranceTier(
    rtol=1e-4,
    atol=1e-6,
    name='iterative_fit',
    description='Optimizer-terminated estimates',
)

# A triangular factor whose smallest |diagonal| falls below this fraction
# of its largest, or whose reciprocal condition number falls below it, is
# treated as singular.
SINGULARITY_RTOL = 1e3 * np.finfo(np.float64).eps

# Quadratic forms x'Vx down to -NEGATIVE_VARIANCE_RTOL * x'|V|x are
# round-off and clipped to zero; anything lower is an error.
NEGATIVE_VARIANCE_RTOL = 1e-10


@dataclass(frozen=True)
class NumericDerivSettings:
    """
    Finite-difference settings for Jacobians of a mean function.

    The step for coefficient j is eps * |theta_j|, or eps when theta_j
    is exactly zero.

    Attributes:
        central: Use central differences instead of forward differences
        eps: Relative step size
    """
    central: bool = False
    eps: float | None = None

    @property
    def step(self) -> float:
        if self.eps is not None:
            return self.eps
        machine = np.finfo(np.float64).eps
        return float(machine ** (1.0 / 3.0) if self.central else np.sqrt(machine))


FORWARD_DIFFERENCE = NumericDerivSettings(central=False)
CENTRAL_DIFFERENCE = NumericDerivSettings(central=True)

