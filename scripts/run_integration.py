"""
Run one split-step integration from a YAML run file.

Usage:
    python scripts/run_integration.py --config data/config/default.yaml
    python scripts/run_integration.py --config data/config/smoke.yaml --workers 4 --log-dir out/

Exit codes: 0 on completion or convergence, 2 on configuration errors.
"""

import argparse
import sys
from pathlib import Path

from splitstep.loader import ConfigurationError, DataLoadError, load_config
from splitstep.simulation import SplitStepSimulation

PROJECT_ROOT = Path(__file__).parent.parent


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Split-step integration of a 1-D stochastic field")
    parser.add_argument("--config", type=Path, default=PROJECT_ROOT / "data" / "config" / "default.yaml",
                        help="YAML run file")
    parser.add_argument("--schema-dir", type=Path, default=PROJECT_ROOT / "data" / "schemas",
                        help="Directory with simulation.schema.json")
    parser.add_argument("--workers", type=int, default=None, help="Override worker_count")
    parser.add_argument("--seed", type=int, default=None, help="Override master seed")
    parser.add_argument("--timespan", type=float, default=None, help="Override total integrated time")
    parser.add_argument("--a", type=float, default=None, help="Override growth rate a")
    parser.add_argument("--log-dir", type=str, default=None, help="Directory for the durable log")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    print("=" * 60)
    print(f"Split-step integration: {args.config}")
    print("=" * 60)

    try:
        config = load_config(
            args.config,
            schema_dir=args.schema_dir,
            worker_count=args.workers,
            seed=args.seed,
            timespan=args.timespan,
            a=args.a,
            log_dir=args.log_dir,
        )
        sim = SplitStepSimulation(config)
    except (ConfigurationError, DataLoadError) as e:
        print(f"[ERROR] {e}")
        return 2

    result = sim.run()

    status = "converged (absorbing state)" if result.converged else "completed"
    print(f"[OK] Run {status}: {result.iterations_completed} iterations, "
          f"t={result.iterations_completed * config.dt:g}, "
          f"{result.wall_seconds:.1f} s wall, log={sim.log_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
