"""
Worker-count scaling for the split-step kernel.

Runs a fixed number of generations at several worker counts and reports
median/p90 time per generation.
"""

# Pin threading for stable measurement
import os
os.environ.update({
    'OPENBLAS_NUM_THREADS': '1',
    'MKL_NUM_THREADS': '1',
    'NUMEXPR_NUM_THREADS': '1',
    'OMP_NUM_THREADS': '1'
})

import gc
import time

import numpy as np

from splitstep.data_types import SimulationConfig
from splitstep.simulation import SplitStepSimulation


def run_worker_perf_test(m: int, worker_count: int, iterations: int = 50, runs: int = 5) -> dict:
    """
    Time `iterations` generations on 2^m sites.

    Args:
        m: Lattice exponent
        worker_count: Number of worker threads
        iterations: Generations per run
        runs: Number of timed runs (median over runs)

    Returns:
        Dict with p50/p90 per-generation times in ms
    """
    config = SimulationConfig(m=m, worker_count=worker_count, timespan=iterations * 0.1)
    sim = SplitStepSimulation(config, sinks=[])

    # Warmup
    sim.run(max_iterations=2)

    gc.collect()
    gc.disable()

    times_ns = []
    try:
        for _ in range(runs):
            start = time.perf_counter_ns()
            result = sim.run()
            times_ns.append((time.perf_counter_ns() - start) / max(result.iterations_completed, 1))
    finally:
        gc.enable()

    times_ms = np.array(times_ns) / 1_000_000
    return {
        'N': config.N,
        'workers': worker_count,
        'p50_ms': np.percentile(times_ms, 50),
        'p90_ms': np.percentile(times_ms, 90),
    }


def main():
    """Run worker-count scaling at N = 2^17."""
    print("=" * 80)
    print("Split-step worker scaling")
    print("=" * 80)
    print()

    results = [run_worker_perf_test(17, w) for w in (1, 2, 4, 8)]

    print()
    print("| Workers | N       | p50 (ms/gen) | p90 (ms/gen) |")
    print("|---------|---------|--------------|--------------|")
    for r in results:
        print(f"| {r['workers']:7d} | {r['N']:7d} | {r['p50_ms']:12.3f} | {r['p90_ms']:12.3f} |")
    print()


if __name__ == '__main__':
    main()
