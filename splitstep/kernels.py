"""
Per-shard update kernels.

A kernel reads the current generation of its shard [start, end) and
stages the next generation into the same range. Kernels never call
lattice.update(); publishing is the coordinator's job.

Signature: kernel(lattice, start, end, context) -> None
"""

from dataclasses import dataclass
from typing import Callable, Optional

from .data_types import DerivedCoefficients, SimulationConfig
from .lattice import Lattice
from .rng import Samplers


@dataclass
class KernelContext:
    """Per-worker inputs shared by every iteration of one shard"""
    config: SimulationConfig
    coeffs: DerivedCoefficients
    samplers: Optional[Samplers] = None
    iteration: int = 0


Kernel = Callable[[Lattice, int, int, KernelContext], None]


def split_step_range(lattice: Lattice, start: int, end: int, context: KernelContext):
    """
    Apply one split-step generation to sites [start, end).

    Per site i (vectorized over the shard):
        poisson_mean = poisson_arg_const * p(i)
        alpha        = alpha_const * (p(i-1) + p(i+1))
        mu + 1       = 2 alpha / sigma^2
        gamma_shape  = mu + 1 + Poisson(poisson_mean)   (Poisson term is 0 when mean == 0)
        p*           = Gamma(gamma_shape) / lambda
        p_next(i)    = p* / (1 + b dt p*)

    The first five lines solve the linear diffusion + growth part exactly;
    the last is the exact solution of dp/dt = -b p^2 over dt.
    """
    config = context.config
    coeffs = context.coeffs
    samplers = context.samplers
    sites = slice(start, end)

    poisson_mean = coeffs.poisson_arg_const * lattice.get(sites)
    alpha = coeffs.alpha_const * (lattice.left(sites) + lattice.right(sites))
    gamma_shape = 2.0 * alpha / (config.sigma * config.sigma)

    # Zero-mean sites skip the Poisson sampler entirely
    active = poisson_mean != 0
    if active.any():
        gamma_shape[active] += samplers.sample_poisson(poisson_mean[active])

    p_star = samplers.sample_gamma(gamma_shape) / coeffs.lambda_

    lattice.set(p_star / (1.0 + config.b * config.dt * p_star), sites)


def neighbor_sum_range(lattice: Lattice, start: int, end: int, context: KernelContext):
    """Diagnostic kernel: p_next(i) = p(i-1) + p(i+1), no randomness"""
    sites = slice(start, end)
    lattice.set(lattice.left(sites) + lattice.right(sites), sites)


KERNELS = {
    'split_step': split_step_range,
    'neighbor_sum': neighbor_sum_range,
}
