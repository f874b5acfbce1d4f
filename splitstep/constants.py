"""
Central configuration constants for split-step integration.

Defines default run parameters, numeric thresholds, seeds and
reporting cadence used across multiple modules.
"""

import math

# ============================================================================
# Default Run Parameters (reference run, 1-D lattice)
# ============================================================================

DEFAULT_A = 1.84701       # Linear growth rate (near the critical point)
DEFAULT_B = 1.0           # Quadratic decay rate
DEFAULT_D = 0.25          # Diffusion constant
DEFAULT_DD = DEFAULT_D    # Diffusion constant entering beta (d * D in 1-D)
DEFAULT_SIGMA = math.sqrt(2.0)  # Noise amplitude
DEFAULT_DX = 1.0          # Lattice spacing
DEFAULT_DT = 0.1          # Time step (becomes slow when dt < 0.1)
DEFAULT_M = 17            # N = 2^m sites
DEFAULT_TIMESPAN = 10000.0  # Total integrated time

# Initial condition: perfectly homogeneous field
DEFAULT_INITIAL_DENSITY = 1.0


# ============================================================================
# Concurrency Configuration
# ============================================================================

# Fixed worker pool size (one contiguous shard per worker)
DEFAULT_WORKER_COUNT = 8


# ============================================================================
# Random Stream Configuration
# ============================================================================

# Master seed for per-shard stream derivation
DEFAULT_SEED = 437

# Stream family labels (mixed into make_seed)
GAMMA_STREAM = "gamma"
POISSON_STREAM = "poisson"


# ============================================================================
# Numeric Thresholds
# ============================================================================

# Below this beta the closed-form lambda loses precision; use the beta->0 limit
BETA_DEGENERATE_THRESHOLD = 1e-5

# Total field below this is treated as the absorbing state
CONVERGENCE_THRESHOLD = 1e-7


# ============================================================================
# Reporting Cadence (in units of ceil(1/dt) steps)
# ============================================================================

# (upper bound on iteration, report every N units) - last entry has no bound
REPORT_CADENCE = [
    (100, 5),
    (10000, 50),
    (None, 500),
]

# Decimals for normalized sum on the console
CONSOLE_SUM_PRECISION = 11


# ============================================================================
# Output Configuration
# ============================================================================

# Durable log name per run (formatted with the growth rate a)
LOG_FILE_TEMPLATE = "integration_{a}.log"

# Environment variable enabling compute/sync phase profiling
PROFILE_ENV_VAR = "SPLITSTEP_PROFILE"
