"""
Common data types for linear mixed-effects models.

Contains the frozen parameter payload that goes inside Result[P].
The payload is a pure data container: no methods, no computation.

References:
    Pinheiro, J. C., & Bates, D. M. (2000).
    Mixed-Effects Models in S and S-PLUS. Springer.
"""

from dataclasses import dataclass

from numpy.typing import NDArray


@dataclass(frozen=True)
class MixedParams:
    """
    Parameter payload for a fitted random-intercept linear mixed model.

    y_ij = x_ij'β + b_i + e_ij,  b_i ~ N(0, σ_b²),  e_ij ~ N(0, σ²)
    """
    # Fixed effects
    coefficients: NDArray              # β̂ (p,)
    coefficient_names: tuple[str, ...]
    vcov: NDArray                      # Cov(β̂) (p, p)

    # Variance components
    sigma: float                       # residual standard deviation σ
    sigma_group: float                 # random-intercept standard deviation σ_b
    theta: float                       # σ_b / σ

    # Model fit
    log_likelihood: float
    reml: bool
    n_obs: int
    n_groups: int
    fitted_values: NDArray             # population level, Xβ̂ (n,)
    residuals: NDArray                 # y - Xβ̂ (n,)
    converged: bool
    n_iter: int
