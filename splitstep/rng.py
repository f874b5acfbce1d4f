"""
Deterministic random streams for split-step integration.

Uses SHA256 hashing to derive stable seeds from hierarchical components
(master_seed, stream family, shard index). Each distribution family gets
its own numpy.random.Generator(PCG64), and each shard gets its own pair
of generators, so no stream is ever shared between worker threads.
"""

import hashlib
import numpy as np
from typing import Any

from .constants import GAMMA_STREAM, POISSON_STREAM


class SamplingPreconditionError(ValueError):
    """Raised when the Poisson sampler receives a mean <= 0"""
    pass


def make_seed(*components: Any) -> int:
    """
    Generate deterministic 64-bit seed from hierarchical components.

    Args:
        *components: Seed components (master_seed, stream family, shard_index, ...)

    Returns:
        64-bit integer seed for numpy RNG

    Example:
        gamma_seed = make_seed(437, "gamma", 3)
    """
    hash_input = ":".join(str(c) for c in components)

    hash_bytes = hashlib.sha256(hash_input.encode('utf-8')).digest()
    seed = int.from_bytes(hash_bytes[:8], byteorder='big')

    return seed


class Samplers:
    """
    Gamma and Poisson sampling over two dedicated generators.

    Both samplers take a scalar or an array of parameters and return a
    value of the same shape. Not thread-safe: one instance per shard.
    """

    def __init__(self, gamma_seed: int, poisson_seed: int):
        self.gamma_seed = gamma_seed
        self.poisson_seed = poisson_seed
        self._gamma_rng = np.random.Generator(np.random.PCG64(gamma_seed))
        self._poisson_rng = np.random.Generator(np.random.PCG64(poisson_seed))

        # Non-finite shape warnings (printed once per instance, counted always)
        self.bad_shape_count = 0

    @classmethod
    def for_shard(cls, master_seed: int, shard_index: int) -> 'Samplers':
        """Independent streams for one shard, reproducible from master_seed"""
        return cls(
            gamma_seed=make_seed(master_seed, GAMMA_STREAM, shard_index),
            poisson_seed=make_seed(master_seed, POISSON_STREAM, shard_index),
        )

    def sample_gamma(self, shape, scale: float = 1.0):
        """
        Draw Gamma(shape, scale) variates.

        Returns 0 where shape <= 0 (or NaN). Non-finite or non-positive
        shapes are flagged with a [WARN] line but never raise.

        Args:
            shape: Shape parameter(s), scalar or array
            scale: Scale parameter (default 1.0)

        Returns:
            Draw(s) with the same shape as the input
        """
        shape_arr = np.asarray(shape, dtype=np.float64)
        valid = np.isfinite(shape_arr) & (shape_arr > 0)

        # NaN and +inf are the suspicious cases; shape == 0 is routine
        n_bad = int(np.count_nonzero(~np.isfinite(shape_arr) | (shape_arr < 0)))
        if n_bad:
            if self.bad_shape_count == 0:
                print(f"[WARN] Gamma shape not finite positive for {n_bad} draw(s) "
                      f"(e.g. {shape_arr[~valid].flat[0]}), returning 0")
            self.bad_shape_count += n_bad

        if shape_arr.ndim == 0:
            if not valid:
                return 0.0
            return float(self._gamma_rng.gamma(float(shape_arr), scale))

        result = np.zeros(shape_arr.shape, dtype=np.float64)
        if valid.any():
            result[valid] = self._gamma_rng.gamma(shape_arr[valid], scale)
        return result

    def sample_poisson(self, mean):
        """
        Draw Poisson(mean) variates.

        Callers must bypass the sampler for mean == 0 and substitute 0.

        Args:
            mean: Poisson mean(s), scalar or array, all strictly positive

        Returns:
            Integer-valued float draw(s) with the same shape as the input

        Raises:
            SamplingPreconditionError: If any mean is <= 0 or NaN
        """
        mean_arr = np.asarray(mean, dtype=np.float64)
        if not np.all(mean_arr > 0):
            bad = mean_arr[~(mean_arr > 0)].flat[0]
            raise SamplingPreconditionError(
                f"Do not try the Poisson distribution with mean <= 0: {bad}"
            )

        draws = self._poisson_rng.poisson(mean_arr)
        if mean_arr.ndim == 0:
            return float(draws)
        return draws.astype(np.float64)
