"""
Tests for run-constant coefficient derivation.

Verifies beta for the reference parameters, the closed-form and limiting
lambda branches, and the constant factors of the per-site update.
"""

import math

import pytest

from splitstep.coefficients import derive_coefficients, describe
from splitstep.data_types import SimulationConfig


def test_reference_beta():
    """a=1.84701, D=dD=0.25, dx=1 gives beta = 1.34701"""
    config = SimulationConfig(a=1.84701, D=0.25, dD=0.25, dx=1.0)
    coeffs = derive_coefficients(config)

    assert coeffs.beta == pytest.approx(1.34701, abs=1e-12)
    assert coeffs.alpha_const == pytest.approx(0.25)


def test_closed_form_lambda():
    """Non-degenerate beta uses 2 beta / (sigma^2 (exp(beta dt) - 1))"""
    config = SimulationConfig()
    coeffs = derive_coefficients(config)

    sigma2 = config.sigma ** 2
    expected = 2.0 * coeffs.beta / (sigma2 * (math.exp(coeffs.beta * config.dt) - 1.0))

    assert coeffs.lambda_ == pytest.approx(expected, rel=1e-12)
    assert coeffs.poisson_arg_const == pytest.approx(
        expected * math.exp(coeffs.beta * config.dt), rel=1e-12
    )


def test_degenerate_beta_uses_limit():
    """beta < 1e-5 switches to lambda = 2 / (sigma^2 dt)"""
    config = SimulationConfig(a=0.5 + 1e-6, D=0.25, dD=0.25, dx=1.0, dt=0.1)
    coeffs = derive_coefficients(config)

    assert coeffs.beta < 1e-5
    assert coeffs.lambda_ == pytest.approx(2.0 / (config.sigma ** 2 * config.dt), rel=1e-12)


def test_negative_beta_uses_limit():
    """Strongly negative beta also takes the limiting branch"""
    config = SimulationConfig(a=0.0)
    coeffs = derive_coefficients(config)

    assert coeffs.beta == pytest.approx(-0.5)
    assert coeffs.lambda_ == pytest.approx(2.0 / (config.sigma ** 2 * config.dt))


@pytest.mark.parametrize("beta", [1e-2, 1e-3, 1e-4])
def test_limit_agrees_with_closed_form(beta):
    """Closed form approaches the limiting form as beta -> 0+"""
    dt = 0.1
    config = SimulationConfig(a=0.5 + beta, D=0.25, dD=0.25, dx=1.0, dt=dt)
    coeffs = derive_coefficients(config)
    limit = 2.0 / (config.sigma ** 2 * dt)

    # Relative gap is ~ beta * dt / 2
    assert coeffs.lambda_ == pytest.approx(limit, rel=beta * dt)


def test_describe_lines():
    lines = describe(derive_coefficients(SimulationConfig()))
    assert lines[0].startswith("beta: ")
    assert any("poisson arg const" in line for line in lines)
