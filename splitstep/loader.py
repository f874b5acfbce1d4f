"""
YAML run-configuration loader with schema validation.

Loads run parameters from YAML files, validates against a JSON schema,
and enforces lattice/partition preconditions before any run starts.
"""

import yaml
import json
import math
from dataclasses import replace
from pathlib import Path
from typing import Optional
import jsonschema

from .data_types import SimulationConfig


class DataLoadError(Exception):
    """Raised when data loading or validation fails"""
    pass


class ConfigurationError(ValueError):
    """Raised when run parameters violate a lattice or partition precondition"""
    pass


def is_power_of_two(n: int) -> bool:
    """True for 1, 2, 4, 8, ..."""
    return isinstance(n, int) and n > 0 and (n & (n - 1)) == 0


def load_yaml(file_path: Path) -> dict:
    """Load YAML file and return parsed dict"""
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    try:
        with open(file_path, 'r') as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise DataLoadError(f"YAML parse error in {file_path}: {e}")


def validate_against_schema(data: dict, schema_path: Path, data_path: Path):
    """Validate data dict against JSON schema"""
    if not schema_path.exists():
        # Schema validation optional (schemas ship with the data pack only)
        return

    try:
        with open(schema_path, 'r') as f:
            schema = json.load(f)
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        raise DataLoadError(f"Validation error in {data_path}: {e.message}")
    except json.JSONDecodeError as e:
        raise DataLoadError(f"Invalid JSON schema {schema_path}: {e}")


def _lattice_exponent(lattice: dict, data_path: Path) -> Optional[int]:
    """Resolve lattice size given as either 'm' or 'sites'"""
    if 'sites' in lattice:
        sites = lattice['sites']
        if not is_power_of_two(sites):
            raise ConfigurationError(
                f"Lattice size must be a power of two, got {sites} in {data_path}"
            )
        m = sites.bit_length() - 1
        if 'm' in lattice and lattice['m'] != m:
            raise ConfigurationError(
                f"Conflicting lattice size in {data_path}: sites={sites}, m={lattice['m']}"
            )
        return m
    return lattice.get('m')


def config_from_dict(data: dict, data_path: Path = Path("<dict>")) -> SimulationConfig:
    """
    Build SimulationConfig from parsed YAML structure.

    Expected layout (all sections optional, missing keys keep defaults):
        parameters: {a, b, sigma, D, dD, dx, dt, timespan}
        lattice:    {m} or {sites}
        simulation: {worker_count, seed, initial_density}
        output:     {log_dir, log_file}
    """
    kwargs = {}
    kwargs.update(data.get('parameters', {}) or {})

    lattice = data.get('lattice', {}) or {}
    m = _lattice_exponent(lattice, data_path)
    if m is not None:
        kwargs['m'] = m

    kwargs.update(data.get('simulation', {}) or {})
    kwargs.update(data.get('output', {}) or {})

    # dD follows D unless given explicitly
    if 'D' in kwargs and 'dD' not in kwargs:
        kwargs['dD'] = kwargs['D']

    try:
        return SimulationConfig(**kwargs)
    except TypeError as e:
        raise DataLoadError(f"Unknown run parameter in {data_path}: {e}")


def validate_config(config: SimulationConfig) -> SimulationConfig:
    """
    Enforce run preconditions (fail fast, before any output).

    Raises:
        ConfigurationError: Non-power-of-two N, N not divisible by worker_count,
                            or non-positive step sizes
    """
    if not isinstance(config.m, int) or config.m < 1:
        raise ConfigurationError(f"Lattice exponent m must be a positive integer, got {config.m}")

    if not is_power_of_two(config.N):
        raise ConfigurationError(f"Lattice size must be a power of two, got {config.N}")

    if not isinstance(config.worker_count, int) or config.worker_count < 1:
        raise ConfigurationError(f"worker_count must be >= 1, got {config.worker_count}")

    if config.N % config.worker_count != 0:
        raise ConfigurationError(
            f"N={config.N} sites cannot be divided evenly among "
            f"{config.worker_count} workers"
        )

    for name in ('dt', 'dx', 'sigma', 'timespan'):
        value = getattr(config, name)
        if not (math.isfinite(value) and value > 0):
            raise ConfigurationError(f"{name} must be a finite positive number, got {value}")

    if not (math.isfinite(config.initial_density) and config.initial_density >= 0):
        raise ConfigurationError(
            f"initial_density must be finite and non-negative, got {config.initial_density}"
        )

    return config


def load_config(file_path: Path, schema_dir: Optional[Path] = None, **overrides) -> SimulationConfig:
    """
    Load run configuration from YAML.

    Args:
        file_path: Path to YAML run file
        schema_dir: Optional path to JSON schemas
        **overrides: Field overrides applied after loading (None values ignored)

    Returns:
        Validated SimulationConfig
    """
    file_path = Path(file_path)
    data = load_yaml(file_path)

    # Validate if schema available
    if schema_dir:
        schema_path = Path(schema_dir) / "simulation.schema.json"
        validate_against_schema(data, schema_path, file_path)

    config = config_from_dict(data, file_path)

    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        config = replace(config, **overrides)

    return validate_config(config)
