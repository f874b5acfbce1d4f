"""
Run-constant coefficients of the split-step scheme.

The linear part dp/dt = beta p + alpha + sigma sqrt(p) eta (with the
neighbor coupling frozen over one step) has an exact transition density:
a Poisson mixture of Gamma distributions with rate lambda.
"""

import math
from typing import List

from .constants import BETA_DEGENERATE_THRESHOLD
from .data_types import DerivedCoefficients, SimulationConfig


def derive_coefficients(config: SimulationConfig) -> DerivedCoefficients:
    """
    Compute beta, lambda, and the constant factors of the per-site update.

    Formulas:
        beta              = a - 2 dD / dx^2
        lambda            = 2 beta / (sigma^2 (exp(beta dt) - 1))
                            (2 / (sigma^2 dt) when beta < 1e-5, the beta->0 limit)
        poisson_arg_const = lambda exp(beta dt)
        alpha_const       = D / dx^2
    """
    dx2 = config.dx * config.dx
    sigma2 = config.sigma * config.sigma

    beta = config.a - 2.0 * config.dD / dx2

    if beta < BETA_DEGENERATE_THRESHOLD:
        lambda_ = 2.0 / (sigma2 * config.dt)
    else:
        lambda_ = 2.0 * beta / (sigma2 * math.expm1(beta * config.dt))

    return DerivedCoefficients(
        beta=beta,
        lambda_=lambda_,
        poisson_arg_const=lambda_ * math.exp(beta * config.dt),
        alpha_const=config.D / dx2,
    )


def describe(coeffs: DerivedCoefficients) -> List[str]:
    """Human-readable summary lines, printed once at run start"""
    return [
        f"beta: {coeffs.beta:g}",
        f"coeff: alpha: {coeffs.alpha_const:g}",
        f"lambda: {coeffs.lambda_:g}, poisson arg const: {coeffs.poisson_arg_const:g}",
    ]
