"""
Data types for split-step runs.

SimulationConfig is populated by loader.py from YAML files (or built
directly in code); the remaining types are produced during a run.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .constants import (
    DEFAULT_A,
    DEFAULT_B,
    DEFAULT_D,
    DEFAULT_DD,
    DEFAULT_SIGMA,
    DEFAULT_DX,
    DEFAULT_DT,
    DEFAULT_M,
    DEFAULT_TIMESPAN,
    DEFAULT_WORKER_COUNT,
    DEFAULT_SEED,
    DEFAULT_INITIAL_DENSITY,
)


# ============================================================================
# Run Configuration
# ============================================================================

@dataclass(frozen=True)
class SimulationConfig:
    """
    Immutable run parameters.

    SDE: dp/dt = D lap(p) + a p - b p^2 + sigma sqrt(p) eta

    Attributes:
        a: Linear growth rate
        b: Quadratic decay rate
        sigma: Noise amplitude
        D: Diffusion constant (neighbor coupling)
        dx: Lattice spacing
        dt: Time step
        dD: Diffusion term entering beta
        m: Lattice exponent, N = 2^m sites
        timespan: Total integrated time
        worker_count: Number of worker threads (one shard each)
        seed: Master seed for per-shard random streams
        initial_density: Homogeneous initial field value
        log_dir: Directory for the durable log (None = current directory)
        log_file: Explicit durable log path (overrides log_dir naming)
    """
    a: float = DEFAULT_A
    b: float = DEFAULT_B
    sigma: float = DEFAULT_SIGMA
    D: float = DEFAULT_D
    dx: float = DEFAULT_DX
    dt: float = DEFAULT_DT
    dD: float = DEFAULT_DD
    m: int = DEFAULT_M
    timespan: float = DEFAULT_TIMESPAN
    worker_count: int = DEFAULT_WORKER_COUNT
    seed: int = DEFAULT_SEED
    initial_density: float = DEFAULT_INITIAL_DENSITY
    log_dir: Optional[str] = None
    log_file: Optional[str] = None

    @property
    def N(self) -> int:
        """Number of lattice sites (2^m)"""
        return 2 ** self.m

    @property
    def total_iterations(self) -> int:
        """Number of generations for the full timespan"""
        return int(round(self.timespan / self.dt))

    @property
    def shard_size(self) -> int:
        """Sites per worker (only meaningful after validation)"""
        return self.N // self.worker_count


@dataclass(frozen=True)
class DerivedCoefficients:
    """Run-constant coefficients, computed once before the loop"""
    beta: float               # a - 2 dD / dx^2
    lambda_: float            # Gamma rate of the linear sub-step
    poisson_arg_const: float  # lambda * exp(beta dt)
    alpha_const: float        # D / dx^2


# ============================================================================
# Run Output
# ============================================================================

@dataclass(frozen=True)
class ConvergenceRecord:
    """
    One reported point of the density decay curve.

    Attributes:
        iteration: Generation index (starts at 1)
        elapsed_time: Simulated time (iteration * dt)
        normalized_sum: Mean field value (sum / N)
        wall_seconds: Wall-clock time since previous report
    """
    iteration: int
    elapsed_time: float
    normalized_sum: float
    wall_seconds: float = 0.0

    def to_line(self) -> str:
        """Durable log line: '<elapsed_time>, <normalized_sum>'"""
        return f"{self.elapsed_time:g}, {self.normalized_sum:.12g}"


@dataclass
class RunResult:
    """Summary returned by SplitStepSimulation.run()"""
    iterations_completed: int
    converged: bool
    final_sum: float
    wall_seconds: float
    records: List[ConvergenceRecord] = field(default_factory=list)
