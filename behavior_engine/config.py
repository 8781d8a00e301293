"""Run parameters for the behavior embedding recompute and its scheduler."""

import numbers
from dataclasses import dataclass, field, fields
from datetime import time
from typing import Any, Dict, List

import yaml

from .errors import ConfigError


@dataclass(frozen=True)
class RecomputeConfig:
    """Tunables for one recompute run. Immutable once built."""

    # Window of listening history considered
    lookback_days: int = 30

    # Consecutive plays further apart than this are treated as separate sessions
    max_sequence_gap_minutes: int = 60

    # Share of the behavior vector in the stored vector; content gets the rest
    behavior_weight: float = 0.35

    # Multiplier on the edge pointing back to the earlier song of a pair
    reverse_edge_factor: float = 0.75

    # Treat an unparseable content vector as missing instead of aborting the run
    skip_malformed_vectors: bool = False

    show_progress: bool = False

    def __post_init__(self):
        issues = self.validate()
        if issues:
            raise ConfigError("Invalid recompute configuration: " + "; ".join(issues))

    @property
    def content_weight(self) -> float:
        return 1.0 - self.behavior_weight

    def validate(self) -> List[str]:
        """Return a list of human readable problems with the current values."""
        issues = []
        for name in ("lookback_days", "max_sequence_gap_minutes"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                issues.append(f"{name} must be an integer, got {value!r}")
        for name in ("behavior_weight", "reverse_edge_factor"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                issues.append(f"{name} must be a number, got {value!r}")
        for name in ("skip_malformed_vectors", "show_progress"):
            value = getattr(self, name)
            if not isinstance(value, bool):
                issues.append(f"{name} must be true or false, got {value!r}")
        if issues:
            # Range checks below assume the right types
            return issues

        if self.lookback_days <= 0:
            issues.append(f"lookback_days must be positive, got {self.lookback_days}")
        if self.max_sequence_gap_minutes < 0:
            issues.append(
                f"max_sequence_gap_minutes must be non-negative, got {self.max_sequence_gap_minutes}"
            )
        if not (0 <= self.behavior_weight <= 1):
            issues.append(f"behavior_weight should be between 0 and 1, got {self.behavior_weight}")
        if self.reverse_edge_factor <= 0:
            issues.append(
                f"reverse_edge_factor must be positive, got {self.reverse_edge_factor}"
            )
        return issues

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "RecomputeConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in known})

    @classmethod
    def from_yaml(cls, config_path: str) -> "RecomputeConfig":
        """Load the ``recompute`` section of a YAML file."""
        return cls.from_dict(_load_section(config_path, "recompute"))


@dataclass(frozen=True)
class SchedulerConfig:
    """Settings for the periodic recompute trigger."""

    enabled: bool = False
    run_at: time = field(default_factory=lambda: time(3, 30))
    timezone: str = "Asia/Ho_Chi_Minh"

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "SchedulerConfig":
        config = cls()
        enabled = values.get("enabled", config.enabled)
        run_at = values.get("run_at", config.run_at)
        timezone = values.get("timezone", config.timezone)

        if isinstance(run_at, str):
            try:
                run_at = time.fromisoformat(run_at)
            except ValueError as e:
                raise ConfigError(f"run_at should look like HH:MM, got {run_at!r}") from e
        elif isinstance(run_at, int):
            # YAML 1.1 reads an unquoted 03:30 as sexagesimal minutes
            run_at = time(run_at // 60 % 24, run_at % 60)

        if not isinstance(enabled, bool):
            raise ConfigError(f"enabled must be true or false, got {enabled!r}")
        if not isinstance(run_at, time):
            raise ConfigError(f"run_at should look like HH:MM, got {run_at!r}")

        return cls(enabled=enabled, run_at=run_at, timezone=str(timezone))

    @classmethod
    def from_yaml(cls, config_path: str) -> "SchedulerConfig":
        """Load the ``scheduler`` section of a YAML file."""
        return cls.from_dict(_load_section(config_path, "scheduler"))


def _load_section(config_path: str, section: str) -> Dict[str, Any]:
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {config_path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}") from e

    if not isinstance(yaml_config, dict):
        raise ConfigError(f"Expected a mapping at the top of {config_path}")

    values = yaml_config.get(section) or {}
    if not isinstance(values, dict):
        raise ConfigError(f"Section '{section}' in {config_path} must be a mapping")
    return values
