"""
Split-step simulation kernel.

Main simulation class that owns the lattice, partitions it into shards,
and drives the barrier-synchronized worker loop.
"""

import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .constants import LOG_FILE_TEMPLATE
from .coefficients import derive_coefficients, describe
from .convergence import ConsoleSink, ConvergenceMonitor, FileSink
from .data_types import RunResult, SimulationConfig
from .kernels import KERNELS, Kernel, KernelContext
from .lattice import Lattice
from .loader import ConfigurationError, validate_config
from .rng import Samplers
from .timing import PhaseTimer, Stopwatch


def partition(n: int, worker_count: int) -> List[Tuple[int, int]]:
    """
    Split sites [0, n) into worker_count equal contiguous shards.

    Returns:
        List of (start, end) half-open ranges, in site order

    Raises:
        ConfigurationError: If n is not divisible by worker_count
    """
    if worker_count < 1 or n % worker_count != 0:
        raise ConfigurationError(
            f"N={n} sites cannot be divided evenly among {worker_count} workers"
        )

    size = n // worker_count
    return [(k * size, (k + 1) * size) for k in range(worker_count)]


class SplitStepSimulation:
    """
    Stochastic split-step integration on a periodic 1-D lattice.

    TWO-BARRIER GENERATION CONTRACT (Critical Invariant):

    Compute phase
    -------------
    Every worker reads generation g of the whole lattice (its shard plus
    one neighbor on each side) and stages generation g+1 for its own shard.
    Staged writes are disjoint between shards and invisible to reads.

    Publish phase
    -------------
    Barrier #1: all shards are staged. Exactly one elected worker (the one
    the barrier hands index 0) calls lattice.update() and the convergence
    check. Barrier #2: every worker sees the same stop decision before it
    starts generation g+2.

    With worker_count == 1 the loop runs inline on the calling thread and
    the single worker is always the elected one.
    """

    def __init__(
        self,
        config: SimulationConfig,
        kernel: Union[str, Kernel] = 'split_step',
        sinks: Optional[list] = None,
        write_log: bool = True,
    ):
        """
        Initialize simulation from run configuration.

        Args:
            config: Run parameters (validated here, before any output)
            kernel: Kernel name from KERNELS or a callable with the same signature
            sinks: Record sinks; default is console plus durable log file
            write_log: If False, the default sinks omit the durable log file
        """
        self.config = validate_config(config)
        self.shards = partition(config.N, config.worker_count)

        if isinstance(kernel, str):
            if kernel not in KERNELS:
                raise ConfigurationError(f"Unknown kernel '{kernel}', expected one of {sorted(KERNELS)}")
            kernel = KERNELS[kernel]
        self.kernel: Kernel = kernel

        self.coeffs = derive_coefficients(config)
        self.lattice = Lattice(config.N)

        self._sinks = sinks
        self._write_log = write_log

        # Run state (reset by run())
        self.monitor: Optional[ConvergenceMonitor] = None
        self.iteration: int = 0
        self._stop_run: bool = False
        self._barrier: Optional[threading.Barrier] = None
        self._errors: List[BaseException] = []
        self._error_lock = threading.Lock()
        self._contexts: List[KernelContext] = []
        self._timers: List[PhaseTimer] = []

        for line in describe(self.coeffs):
            print(line)
        print(f"[OK] Simulation initialized: N={config.N} sites, "
              f"{config.worker_count} workers x {config.shard_size} sites, "
              f"dt={config.dt}, seed={config.seed}")

    @property
    def log_path(self) -> Path:
        """Durable log location for this run"""
        if self.config.log_file:
            return Path(self.config.log_file)
        log_dir = Path(self.config.log_dir) if self.config.log_dir else Path('.')
        return log_dir / LOG_FILE_TEMPLATE.format(a=self.config.a)

    def _open_sinks(self) -> Tuple[list, list]:
        """Returns (all sinks, sinks owned and closed by this run)"""
        if self._sinks is not None:
            return list(self._sinks), []

        sinks = [ConsoleSink()]
        owned = []
        if self._write_log:
            file_sink = FileSink(self.log_path)
            sinks.append(file_sink)
            owned.append(file_sink)
        return sinks, owned

    def _reset(self, sinks: list):
        """Fresh run state: homogeneous field, fresh per-shard streams"""
        self.lattice.fill(self.config.initial_density)
        self.lattice.update()

        self.iteration = 0
        self._stop_run = False
        self._errors = []
        self.monitor = ConvergenceMonitor(self.config, sinks, Stopwatch())

        self._contexts = [
            KernelContext(
                config=self.config,
                coeffs=self.coeffs,
                samplers=Samplers.for_shard(self.config.seed, shard_index),
            )
            for shard_index in range(len(self.shards))
        ]
        self._timers = [PhaseTimer() for _ in self.shards]

    def run(self, max_iterations: Optional[int] = None) -> RunResult:
        """
        Integrate until all iterations complete or the field dies out.

        Args:
            max_iterations: Optional cap below config.total_iterations

        Returns:
            RunResult with iteration count, convergence flag and records
        """
        n_iterations = self.config.total_iterations
        if max_iterations is not None:
            n_iterations = min(n_iterations, max_iterations)

        sinks, owned = self._open_sinks()
        try:
            self._reset(sinks)
            start_time = time.perf_counter()
            self.monitor.stopwatch.start()

            if len(self.shards) == 1:
                start, end = self.shards[0]
                self._run_range(0, start, end, n_iterations)
            else:
                self._run_threaded(n_iterations)

            wall = time.perf_counter() - start_time
        finally:
            for sink in owned:
                sink.close()

        self._print_profile()

        return RunResult(
            iterations_completed=self.iteration,
            converged=self.monitor.converged,
            final_sum=self.lattice.total(),
            wall_seconds=wall,
            records=list(self.monitor.records),
        )

    def _run_threaded(self, n_iterations: int):
        """One thread per shard; re-raises the first worker failure"""
        self._barrier = threading.Barrier(len(self.shards))
        threads = [
            threading.Thread(
                target=self._worker,
                args=(shard_index, start, end, n_iterations),
                name=f"splitstep-worker-{shard_index}",
            )
            for shard_index, (start, end) in enumerate(self.shards)
        ]

        for thread in threads:
            thread.start()
        # Blocks till all workers are finished
        for thread in threads:
            thread.join()

        self._barrier = None
        if self._errors:
            raise self._errors[0]

    def _worker(self, shard_index: int, start: int, end: int, n_iterations: int):
        try:
            self._run_range(shard_index, start, end, n_iterations)
        except Exception as e:
            # First failure is recorded before the abort; peers then see
            # BrokenBarrierError, recorded after it
            with self._error_lock:
                self._errors.append(e)
            self._barrier.abort()

    def _run_range(self, shard_index: int, start: int, end: int, n_iterations: int):
        """
        Run the generation loop for one shard.

        Iterations are numbered from 1 so the first reported time is never
        zero (log-axis plots).
        """
        context = self._contexts[shard_index]
        timer = self._timers[shard_index]

        for iteration in range(1, n_iterations + 1):
            context.iteration = iteration

            with timer.time('compute'):
                self.kernel(self.lattice, start, end, context)

            with timer.time('sync'):
                if self._barrier is None:
                    self._publish(iteration)
                else:
                    # Barrier: only one worker gets index 0 and publishes
                    if self._barrier.wait() == 0:
                        self._publish(iteration)
                    # Wait all again, so every worker sees _stop_run
                    self._barrier.wait()

            if self._stop_run:
                break

    def _publish(self, iteration: int):
        """Elected-worker step: swap generations, check convergence"""
        self.lattice.update()
        self.iteration = iteration
        if self.monitor.check(iteration, self.lattice):
            self._stop_run = True

    def _print_profile(self):
        """Print accumulated phase timings (SPLITSTEP_PROFILE=1 only)"""
        if not self._timers or not self._timers[0].enabled:
            return

        total = PhaseTimer(enabled=True)
        for timer in self._timers:
            total.merge(timer)

        workers = len(self._timers)
        print(f"\n[Perf Breakdown] {self.iteration} iterations, {workers} workers")
        for name, ms in sorted(total.timings.items()):
            print(f"  {name:8s} {ms / workers:10.3f} ms per worker")

    def get_snapshot(self) -> dict:
        """
        Get current simulation state snapshot.

        Returns:
            Dict with iteration, elapsed time, N and the current field
        """
        return {
            'iteration': self.iteration,
            'elapsed_time': self.iteration * self.config.dt,
            'N': self.config.N,
            'field': self.lattice.snapshot().tolist(),
        }
