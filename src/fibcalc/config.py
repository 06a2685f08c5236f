"""Application configuration.

Settings come from defaults, an optional YAML file, then explicit CLI
flags, in increasing order of precedence.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml

from fibcalc.engine.calculator import DEFAULT_PARALLEL_THRESHOLD, MAX_INDEX
from fibcalc.errors import ConfigError

ALL_ALGORITHMS = "all"


@dataclass(frozen=True)
class AppConfig:
    """Configuration of a calculation run.

    Attributes:
        n: Index of the Fibonacci number to compute.
        algo: Algorithm name, or "all" to compare every algorithm.
        timeout: Maximum wall-clock time in seconds.
        threshold: Parallel multiplication threshold in bits.
        verbose: Print the full result instead of a truncated one.
    """

    n: int = 100_000_000
    algo: str = ALL_ALGORITHMS
    timeout: float = 300.0
    threshold: int = DEFAULT_PARALLEL_THRESHOLD
    verbose: bool = False

    def validate(self, available: list[str]) -> None:
        """Check value ranges and algorithm name.

        Raises:
            ConfigError: On the first invalid setting.
        """
        if isinstance(self.n, bool) or not isinstance(self.n, int):
            raise ConfigError(f"n must be an integer, got {self.n!r}")
        if not 0 <= self.n <= MAX_INDEX:
            raise ConfigError(f"n must be between 0 and {MAX_INDEX} (got {self.n})")
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
            raise ConfigError(f"timeout must be a number of seconds, got {self.timeout!r}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive (got {self.timeout})")
        if isinstance(self.threshold, bool) or not isinstance(self.threshold, int):
            raise ConfigError(f"threshold must be an integer, got {self.threshold!r}")
        if self.threshold < 0:
            raise ConfigError(f"threshold cannot be negative (got {self.threshold})")
        if not isinstance(self.verbose, bool):
            raise ConfigError(f"verbose must be true or false, got {self.verbose!r}")
        if self.algo != ALL_ALGORITHMS and self.algo not in available:
            raise ConfigError(
                f"unknown algorithm '{self.algo}'. "
                f"Valid options: 'all' or [{', '.join(available)}]"
            )


def load_config(config_path: Path | str, base: AppConfig | None = None) -> AppConfig:
    """Load a configuration file.

    Args:
        config_path: YAML file with any of the :class:`AppConfig` keys.
        base: Values used for keys the file omits (defaults otherwise).

    Returns:
        Configuration with file values applied over ``base``.

    Raises:
        ConfigError: If the file is missing, malformed or has unknown keys.
    """
    path = Path(config_path)
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read configuration {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    base = base if base is not None else AppConfig()
    if data is None:
        return base
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")

    known = {f.name for f in fields(AppConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"{path}: unknown keys {', '.join(unknown)}")

    if "algo" in data:
        data["algo"] = str(data["algo"]).lower()
    return replace(base, **data)


def merge_cli(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Overlay CLI flags that were given explicitly (not None) on ``config``."""
    overrides = {}
    for f in fields(AppConfig):
        value = getattr(args, f.name, None)
        if value is not None:
            overrides[f.name] = value
    if "algo" in overrides:
        overrides["algo"] = overrides["algo"].lower()
    return replace(config, **overrides)
