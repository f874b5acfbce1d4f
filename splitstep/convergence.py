"""
Convergence check and adaptive-cadence reporting.

The density decays roughly as a power law, so reports are dense early and
sparse later: every 5 time units up to t=100, every 50 up to t=10000,
every 500 beyond. On each report iteration the field is summed; a sum
below CONVERGENCE_THRESHOLD means the absorbing state was reached.
"""

import math
from pathlib import Path
from typing import List, Optional

from .constants import REPORT_CADENCE, CONVERGENCE_THRESHOLD, CONSOLE_SUM_PRECISION
from .data_types import ConvergenceRecord, SimulationConfig
from .lattice import Lattice
from .timing import Stopwatch


def steps_per_unit_time(dt: float) -> int:
    """Iterations per unit of simulated time, ceil(1/dt)"""
    return int(math.ceil(1.0 / dt))


def is_report_iteration(iteration: int, steps_per_unit: int) -> bool:
    """
    True if the convergence check runs at this iteration.

    Args:
        iteration: Generation index (starts at 1)
        steps_per_unit: ceil(1/dt)
    """
    for bound, every in REPORT_CADENCE:
        if bound is None or iteration <= bound * steps_per_unit:
            return iteration % (every * steps_per_unit) == 0
    return False


def report_iterations(total_iterations: int, dt: float) -> List[int]:
    """All iterations in [1, total_iterations] that trigger a check"""
    u = steps_per_unit_time(dt)
    return [i for i in range(1, total_iterations + 1) if is_report_iteration(i, u)]


# ============================================================================
# Record Sinks
# ============================================================================

class ConsoleSink:
    """Interactive progress line per record (stdout)"""

    def emit(self, record: ConvergenceRecord):
        print(f"{record.wall_seconds:8.3f} s | [dt={record.elapsed_time:g}] "
              f"{record.normalized_sum:12.{CONSOLE_SUM_PRECISION}f}")

    def close(self):
        pass


class FileSink:
    """
    Durable log: one '<elapsed_time>, <normalized_sum>' line per record.

    The file is created when the sink is constructed and flushed after
    every line. I/O errors propagate to the caller.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, 'w')

    def emit(self, record: ConvergenceRecord):
        self._file.write(record.to_line() + "\n")
        self._file.flush()

    def close(self):
        if not self._file.closed:
            self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


# ============================================================================
# Monitor
# ============================================================================

class ConvergenceMonitor:
    """
    Decides, once per generation, whether the run continues.

    Called only by the elected coordinator, after lattice.update(), so it
    always sees a complete generation. Records are append-only.
    """

    def __init__(self, config: SimulationConfig, sinks: Optional[list] = None,
                 stopwatch: Optional[Stopwatch] = None):
        self.config = config
        self.sinks = sinks if sinks is not None else []
        self.stopwatch = stopwatch if stopwatch is not None else Stopwatch()
        self.steps_per_unit = steps_per_unit_time(config.dt)
        self.records: List[ConvergenceRecord] = []
        self.converged = False
        self.last_sum: Optional[float] = None

    def check(self, iteration: int, lattice: Lattice) -> bool:
        """
        Run the scheduled convergence check for this iteration.

        Returns:
            True if the absorbing state was reached (stop the run)
        """
        if not is_report_iteration(iteration, self.steps_per_unit):
            return False

        wall = self.stopwatch.stop()

        sum1 = lattice.total()
        self.last_sum = sum1

        if sum1 < CONVERGENCE_THRESHOLD:
            print(f"End... (sum1 == {sum1:g})")
            self.converged = True
            return True

        record = ConvergenceRecord(
            iteration=iteration,
            elapsed_time=iteration * self.config.dt,
            normalized_sum=sum1 / lattice.n,
            wall_seconds=wall,
        )
        self.records.append(record)
        for sink in self.sinks:
            sink.emit(record)

        self.stopwatch.start()
        return False
