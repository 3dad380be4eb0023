"""
Configuration Management for the Cross-Document Engine

Provides configuration loading and defaults for alignment thresholds, score
weights, and rule execution. Supports YAML/JSON config files and environment
variables.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .constants import (
    DOSE_ALIGNED_THRESHOLD,
    DOSE_CANDIDATE_THRESHOLD,
    DOSE_FREQUENCY_WEIGHT,
    DOSE_ROUTE_WEIGHT,
    DOSE_VALUE_WEIGHT,
    ENDPOINT_DESCRIPTION_WEIGHT,
    ENDPOINT_NAME_WEIGHT,
    ENDPOINT_THRESHOLD,
    OBJECTIVE_THRESHOLD,
)
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Default config file locations
CONFIG_LOCATIONS = [
    "crossdoc_config.yaml",
    "crossdoc_config.yml",
    "crossdoc_config.json",
]


class PrimaryObjectivePolicy(str, Enum):
    """How primary objectives are paired between IB and Protocol."""
    FIRST_TO_FIRST = "first_to_first"  # index 0 vs index 0, regardless of score
    BEST_MATCH = "best_match"          # greedy search, same as secondary objectives


_FLOAT_FIELDS = (
    "objective_threshold",
    "endpoint_threshold",
    "endpoint_name_weight",
    "endpoint_description_weight",
    "dose_candidate_threshold",
    "dose_aligned_threshold",
    "dose_value_weight",
    "dose_route_weight",
    "dose_frequency_weight",
)


def _as_float(name: str, value: Any) -> float:
    """Numeric config value as float; bools and non-numeric strings are rejected."""
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}", cause=e)


@dataclass
class EngineConfig:
    """Configuration for alignment and rule evaluation."""

    # Objective alignment
    objective_threshold: float = OBJECTIVE_THRESHOLD
    primary_objective_policy: PrimaryObjectivePolicy = PrimaryObjectivePolicy.FIRST_TO_FIRST

    # Endpoint alignment
    endpoint_threshold: float = ENDPOINT_THRESHOLD
    endpoint_name_weight: float = ENDPOINT_NAME_WEIGHT
    endpoint_description_weight: float = ENDPOINT_DESCRIPTION_WEIGHT

    # Dose alignment
    dose_candidate_threshold: float = DOSE_CANDIDATE_THRESHOLD
    dose_aligned_threshold: float = DOSE_ALIGNED_THRESHOLD
    dose_value_weight: float = DOSE_VALUE_WEIGHT
    dose_route_weight: float = DOSE_ROUTE_WEIGHT
    dose_frequency_weight: float = DOSE_FREQUENCY_WEIGHT

    # Rule execution
    parallel_rules: bool = False
    rule_timeout: Optional[float] = None

    def __post_init__(self):
        for name in _FLOAT_FIELDS:
            setattr(self, name, _as_float(name, getattr(self, name)))
        if self.rule_timeout is not None:
            self.rule_timeout = _as_float("rule_timeout", self.rule_timeout)
        if not isinstance(self.parallel_rules, bool):
            raise ConfigurationError(
                f"parallel_rules must be true or false, got {self.parallel_rules!r}"
            )
        if not isinstance(self.primary_objective_policy, PrimaryObjectivePolicy):
            try:
                self.primary_objective_policy = PrimaryObjectivePolicy(self.primary_objective_policy)
            except ValueError as e:
                raise ConfigurationError(
                    f"Unknown primary_objective_policy: {self.primary_objective_policy!r}",
                    cause=e,
                )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        data = asdict(self)
        data["primary_objective_policy"] = self.primary_objective_policy.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Create config from dictionary, ignoring unknown keys."""
        valid_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in (data or {}).items() if k in valid_fields}
        return cls(**filtered)


def load_config(
    config_path: Optional[str] = None,
    search_cwd: bool = True,
) -> EngineConfig:
    """
    Load configuration from file, then apply environment overrides.

    Args:
        config_path: Explicit path to config file
        search_cwd: Whether to search current directory for config files

    Returns:
        EngineConfig with loaded settings
    """
    config = EngineConfig()

    if config_path:
        path = Path(config_path)
        if path.exists():
            config = _load_config_file(path)
            logger.info(f"Loaded config from {path}")
        else:
            logger.warning(f"Config file not found: {path}")
    elif search_cwd:
        for filename in CONFIG_LOCATIONS:
            path = Path(filename)
            if path.exists():
                config = _load_config_file(path)
                logger.info(f"Loaded config from {path}")
                break

    return _load_from_env(config)


def _load_config_file(path: Path) -> EngineConfig:
    """Load config from YAML or JSON file."""
    with open(path, 'r', encoding='utf-8') as f:
        content = f.read()

    try:
        if path.suffix in ('.yaml', '.yml'):
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not parse config file {path}", cause=e)

    if data is None:
        return EngineConfig()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    return EngineConfig.from_dict(data)


def _load_from_env(config: EngineConfig) -> EngineConfig:
    """Override config with environment variables."""
    env_mappings = {
        "CROSSDOC_OBJECTIVE_THRESHOLD": "objective_threshold",
        "CROSSDOC_ENDPOINT_THRESHOLD": "endpoint_threshold",
        "CROSSDOC_DOSE_CANDIDATE_THRESHOLD": "dose_candidate_threshold",
        "CROSSDOC_DOSE_ALIGNED_THRESHOLD": "dose_aligned_threshold",
        "CROSSDOC_PRIMARY_OBJECTIVE_POLICY": "primary_objective_policy",
        "CROSSDOC_PARALLEL_RULES": "parallel_rules",
        "CROSSDOC_RULE_TIMEOUT": "rule_timeout",
    }

    for env_var, field_name in env_mappings.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        try:
            if field_name == "parallel_rules":
                parsed = value.lower() in ('true', '1', 'yes')
            elif field_name == "primary_objective_policy":
                parsed = PrimaryObjectivePolicy(value.lower())
            else:
                parsed = float(value)
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for {env_var}: {value!r}", cause=e)
        setattr(config, field_name, parsed)

    return config


def save_config(
    config: EngineConfig,
    path: str,
    format: str = "json",
) -> str:
    """
    Save configuration to file.

    Args:
        config: Configuration to save
        path: Output file path
        format: Output format ('json' or 'yaml')

    Returns:
        Path to saved file
    """
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.to_dict()

    if format == "yaml":
        content = yaml.safe_dump(data, default_flow_style=False)
    else:
        content = json.dumps(data, indent=2)

    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(content)

    logger.info(f"Saved config to {output_path}")
    return str(output_path)
