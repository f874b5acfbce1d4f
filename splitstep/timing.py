"""
Wall-clock timing helpers.

Stopwatch measures progress between reports; PhaseTimer accumulates
per-phase profiling when SPLITSTEP_PROFILE=1.
"""

import os
import time
from contextlib import contextmanager

from .constants import PROFILE_ENV_VAR


class Stopwatch:
    """Restartable wall-clock stopwatch (perf_counter based)"""

    def __init__(self):
        self._start = None
        self._elapsed = 0.0

    def start(self):
        self._start = time.perf_counter()

    def stop(self) -> float:
        """Stop and return seconds since start() (0.0 if never started)"""
        if self._start is None:
            self._elapsed = 0.0
        else:
            self._elapsed = time.perf_counter() - self._start
            self._start = None
        return self._elapsed

    @property
    def elapsed(self) -> float:
        """Seconds of the last completed interval, or of the running one"""
        if self._start is not None:
            return time.perf_counter() - self._start
        return self._elapsed

    def format(self) -> str:
        return f"{self.elapsed:8.3f} s"


class PhaseTimer:
    """
    Lightweight timer for profiling run phases.

    Enabled when SPLITSTEP_PROFILE=1 environment variable is set.
    Adds negligible overhead when disabled (~1 branch per section).
    Not thread-safe: each worker keeps its own instance.
    """

    def __init__(self, enabled: bool = None):
        if enabled is None:
            enabled = os.getenv(PROFILE_ENV_VAR) == '1'
        self.enabled = enabled
        self.timings = {}

    @contextmanager
    def time(self, name: str):
        """Context manager to time a code section."""
        if not self.enabled:
            yield
            return

        start = time.perf_counter_ns()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter_ns() - start) / 1_000_000
            self.timings[name] = self.timings.get(name, 0.0) + elapsed_ms

    def merge(self, other: 'PhaseTimer'):
        """Accumulate another timer's totals into this one"""
        for name, ms in other.timings.items():
            self.timings[name] = self.timings.get(name, 0.0) + ms

    def reset(self):
        self.timings.clear()
