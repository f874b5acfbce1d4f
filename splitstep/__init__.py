"""
Split-step integrator for absorbing-state phase transitions

Exact split-step integration of the 1-D stochastic reaction-diffusion
equation with multiplicative square-root noise on a periodic lattice.
Linear part solved by a Gamma/Poisson composition, quadratic decay by a
closed-form rational update.

Architecture: one double-buffered lattice, per-shard random streams,
barrier-synchronized worker threads.
"""

__version__ = "0.1.0"
