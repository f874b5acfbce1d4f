"""
Double-buffered periodic lattice for 1-D integration.

Two float64 buffers of n+2 cells each: one padding cell on either side
makes the array circular without per-site boundary branches. Reads come
from the current generation, writes go to the staged generation, and
update() copies the staged padding cells and swaps the roles.

left() and right() are index-shifted numpy views into the same storage,
so site i's neighbors are read with the same index i (no arithmetic per
call). All accessors accept an int or a slice; a slice returns a
read-only view covering the whole range in one lookup.
"""

import numpy as np
from typing import Union

from .loader import ConfigurationError, is_power_of_two

Index = Union[int, slice]


class _Generation:
    """Views into one raw buffer, built once per buffer"""

    def __init__(self, raw: np.ndarray, n: int):
        self.raw = raw
        # Write view for staging (sites 0..n-1 live at raw[1..n])
        self.sites = raw[1:n + 1]
        # Read-only views for the current-generation role
        self.center = raw[1:n + 1].view()
        self.left = raw[0:n].view()      # raw[i] is site i-1
        self.right = raw[2:n + 2].view()  # raw[i+2] is site i+1
        for v in (self.center, self.left, self.right):
            v.flags.writeable = False


class Lattice:
    """
    Circular double-buffered array of non-negative field values.

    Usage per generation:
        for i in shard: lattice.set(f(lattice.left(i), lattice.get(i), lattice.right(i)), i)
        lattice.update()   # exactly once, after every site is staged

    Staged values are invisible to get/left/right until update().
    """

    def __init__(self, n: int):
        """
        Args:
            n: Number of sites (power of two)
        """
        if not is_power_of_two(n):
            raise ConfigurationError(f"Lattice size must be a power of two, got {n}")

        self.n = n
        self._size = n + 2
        self._current = _Generation(np.zeros(self._size, dtype=np.float64), n)
        self._staged = _Generation(np.zeros(self._size, dtype=np.float64), n)

    def __len__(self) -> int:
        return self.n

    def get(self, i: Index):
        """Current-generation value at site i"""
        return self._current.center[i]

    def set(self, value, i: Index):
        """Stage value(s) at site i for the next generation"""
        self._staged.sites[i] = value

    def left(self, i: Index):
        """Current-generation value of the periodic predecessor of site i"""
        return self._current.left[i]

    def right(self, i: Index):
        """Current-generation value of the periodic successor of site i"""
        return self._current.right[i]

    def update(self):
        """
        Publish the staged generation.

        Copies the staged wrap cells (raw[0] <- last site, raw[n+1] <- first
        site), then swaps current and staged roles. Must be called by exactly
        one thread, after all staging writes of the generation are done.
        """
        raw = self._staged.raw
        raw[0] = raw[self._size - 2]
        raw[self._size - 1] = raw[1]

        self._current, self._staged = self._staged, self._current

    def fill(self, value: float):
        """Stage a homogeneous field on every site (still requires update())"""
        self._staged.sites[:] = value

    def total(self) -> float:
        """Sum over the current generation"""
        return float(self._current.center.sum())

    def snapshot(self) -> np.ndarray:
        """Copy of the current generation as an (n,) array"""
        return self._current.center.copy()
