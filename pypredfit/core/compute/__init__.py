"""
Shared compute infrastructure for pypredfit.

This module provides timing utilities, numerical tolerances and the
linear algebra kernels shared by the fitters and the prediction backends.

IMPORTANT: This is NOT where family-specific prediction logic lives. That
goes in prediction/backends/. This module contains shared NUMERIC
infrastructure.

Submodules:
    timing: Execution timing utilities
    tolerances: Numerical thresholds and finite-difference settings
    linalg: Linear algebra kernels (QR, triangular solves, quadratic forms)
"""

from pypredfit.core.compute.timing import Timer

__all__ = [
    "Timer",
]
