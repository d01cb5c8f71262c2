"""Recommender configuration resolution.

Turns a flat key/value configuration (recommender defaults merged with
rule-level overrides) into typed, nested records:
- DimensionConfig: statistical and histogram parameters of one resource dimension
- RecommenderConfig: one DimensionConfig per dimension plus the OOM and
  specification flags

Every recognized key has a default. Values that fail to parse, or that break an
invariant, raise ConfigurationError so that no recommender is ever built from a
bad configuration. Unrecognized keys are ignored.
"""
import logging
from dataclasses import dataclass
from dataclasses import field
from datetime import timedelta
from pathlib import Path
from typing import Any
from typing import Callable
from typing import Dict
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import Union

import yaml

from resource_recommender.config.specifications import DEFAULT_SPECS
from resource_recommender.config.specifications import parse_specifications
from resource_recommender.errors import ConfigurationError
from resource_recommender.models.resource import ResourceDimension
from resource_recommender.models.resource import Specification
from resource_recommender.utils.conversions import parse_bool
from resource_recommender.utils.conversions import parse_duration
from resource_recommender.utils.conversions import parse_float

logger = logging.getLogger(__name__)

# Configuration key prefix per dimension, e.g. "cpu-request-percentile"
KEY_PREFIXES: Dict[ResourceDimension, str] = {
    ResourceDimension.CPU: "cpu",
    ResourceDimension.MEMORY: "mem",
    ResourceDimension.ACCELERATOR_COMPUTE: "gpu",
    ResourceDimension.ACCELERATOR_MEMORY: "gpumem",
}

_COMMON_DEFAULTS = {
    "sample-interval": "1m",
    "request-percentile": "0.99",
    "request-margin-fraction": "0.15",
    "target-utilization": "1.0",
    "model-history-length": "168h",
}

# (bucket size, max value): CPU/accelerator compute in cores, memory in bytes
_HISTOGRAM_DEFAULTS = {
    ResourceDimension.CPU: ("0.1", "100"),
    ResourceDimension.MEMORY: ("104857600", "104857600000"),
    ResourceDimension.ACCELERATOR_COMPUTE: ("0.1", "100"),
    ResourceDimension.ACCELERATOR_MEMORY: ("104857600", "104857600000"),
}

OOM_PROTECTION = "oom-protection"
OOM_HISTORY_LENGTH = "oom-history-length"
OOM_BUMP_RATIO = "oom-bump-ratio"
SPECIFICATION = "specification"
SPECIFICATION_CONFIG = "specification-config"
HISTORY_COMPLETION_CHECK = "history-completion-check"


def default_config() -> Dict[str, Any]:
    """Every recognized key with its default value."""
    defaults: Dict[str, Any] = {}
    for dimension, prefix in KEY_PREFIXES.items():
        for suffix, value in _COMMON_DEFAULTS.items():
            defaults[f"{prefix}-{suffix}"] = value
        bucket_size, max_value = _HISTOGRAM_DEFAULTS[dimension]
        defaults[f"{prefix}-histogram-bucket-size"] = bucket_size
        defaults[f"{prefix}-histogram-max-value"] = max_value
    defaults.update(
        {
            OOM_PROTECTION: "true",
            OOM_HISTORY_LENGTH: "168h",
            OOM_BUMP_RATIO: "1.2",
            SPECIFICATION: "false",
            SPECIFICATION_CONFIG: DEFAULT_SPECS,
            HISTORY_COMPLETION_CHECK: "false",
        }
    )
    return defaults


@dataclass(frozen=True)
class DimensionConfig:
    """Parameters of one resource dimension. Immutable for a recommender's lifetime."""

    sample_interval: timedelta
    percentile: float
    margin_fraction: float
    target_utilization: float
    history_length: timedelta
    bucket_size: float
    max_value: float

    def __post_init__(self):
        if not 0 < self.percentile <= 1:
            raise ConfigurationError(
                f"percentile must be in (0, 1], got {self.percentile}"
            )
        if self.margin_fraction < 0:
            raise ConfigurationError(
                f"margin fraction must be >= 0, got {self.margin_fraction}"
            )
        if self.target_utilization <= 0:
            raise ConfigurationError(
                f"target utilization must be > 0, got {self.target_utilization}"
            )
        if self.history_length <= timedelta(0):
            raise ConfigurationError(
                f"history length must be positive, got {self.history_length}"
            )
        if self.sample_interval <= timedelta(0):
            raise ConfigurationError(
                f"sample interval must be positive, got {self.sample_interval}"
            )
        if self.bucket_size <= 0 or self.max_value <= 0:
            raise ConfigurationError("histogram bucket size and max value must be positive")
        if self.bucket_size > self.max_value:
            raise ConfigurationError(
                f"histogram bucket size {self.bucket_size} exceeds max value {self.max_value}"
            )


@dataclass(frozen=True)
class RecommenderConfig:
    """Fully resolved recommender configuration."""

    dimensions: Mapping[ResourceDimension, DimensionConfig]
    oom_protection: bool = field(default=True)
    oom_history_length: timedelta = field(default=timedelta(hours=168))
    oom_bump_ratio: float = field(default=1.2)
    specification: bool = field(default=False)
    specifications: Tuple[Specification, ...] = field(default=())
    history_completion_check: bool = field(default=False)

    def __post_init__(self):
        missing = [d.value for d in ResourceDimension if d not in self.dimensions]
        if missing:
            raise ConfigurationError(f"missing dimension configuration: {missing}")
        if self.oom_bump_ratio < 1:
            raise ConfigurationError(
                f"OOM bump ratio must be >= 1, got {self.oom_bump_ratio}"
            )
        if self.oom_history_length < timedelta(0):
            raise ConfigurationError("OOM history length must not be negative")

    def dimension(self, dimension: ResourceDimension) -> DimensionConfig:
        return self.dimensions[dimension]


def merge_recommender_config(
    base: Optional[Mapping[str, Any]], overrides: Optional[Mapping[str, Any]] = None
) -> Dict[str, Any]:
    """Overlay rule-level overrides onto the recommender's base configuration."""
    merged = dict(base or {})
    merged.update(overrides or {})
    return merged


def _get(
    config: Mapping[str, Any], key: str, defaults: Mapping[str, Any], parser: Callable
):
    value = config.get(key, defaults[key])
    try:
        return parser(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value {value!r} for {key!r}: {e}") from e


def _positive_float(value) -> float:
    number = parse_float(value)
    if number <= 0:
        raise ValueError("must be positive")
    return number


def _resolve_dimension(
    config: Mapping[str, Any], dimension: ResourceDimension, defaults: Mapping[str, Any]
) -> DimensionConfig:
    prefix = KEY_PREFIXES[dimension]
    return DimensionConfig(
        sample_interval=_get(config, f"{prefix}-sample-interval", defaults, parse_duration),
        percentile=_get(config, f"{prefix}-request-percentile", defaults, parse_float),
        margin_fraction=_get(
            config, f"{prefix}-request-margin-fraction", defaults, parse_float
        ),
        target_utilization=_get(
            config, f"{prefix}-target-utilization", defaults, parse_float
        ),
        history_length=_get(
            config, f"{prefix}-model-history-length", defaults, parse_duration
        ),
        bucket_size=_get(
            config, f"{prefix}-histogram-bucket-size", defaults, _positive_float
        ),
        max_value=_get(config, f"{prefix}-histogram-max-value", defaults, _positive_float),
    )


def resolve_recommender_config(
    base: Optional[Mapping[str, Any]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> RecommenderConfig:
    """
    Resolve a typed RecommenderConfig from base configuration and rule overrides.

    :param base: The recommender's own configuration (key -> value).
    :param overrides: Rule-level configuration; wins over ``base``.
    :raises ConfigurationError: if any recognized value fails to parse or
        violates an invariant.
    """
    config = merge_recommender_config(base, overrides)
    defaults = default_config()

    unknown = sorted(key for key in config if key not in defaults)
    if unknown:
        logger.debug(f"Ignoring unrecognized configuration keys: {unknown}")

    dimensions = {
        dimension: _resolve_dimension(config, dimension, defaults)
        for dimension in ResourceDimension
    }
    return RecommenderConfig(
        dimensions=dimensions,
        oom_protection=_get(config, OOM_PROTECTION, defaults, parse_bool),
        oom_history_length=_get(config, OOM_HISTORY_LENGTH, defaults, parse_duration),
        oom_bump_ratio=_get(config, OOM_BUMP_RATIO, defaults, parse_float),
        specification=_get(config, SPECIFICATION, defaults, parse_bool),
        specifications=_get(config, SPECIFICATION_CONFIG, defaults, parse_specifications),
        history_completion_check=_get(
            config, HISTORY_COMPLETION_CHECK, defaults, parse_bool
        ),
    )


def load_recommender_config(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read base configuration from a YAML file.

    The file is a mapping of configuration keys to values. A top-level
    ``specifications`` list, if present, becomes ``specification-config``.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not read configuration {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration {path} must be a mapping")

    specifications = data.pop("specifications", None)
    if specifications is not None:
        data[SPECIFICATION_CONFIG] = specifications
    return {str(key): value for key, value in data.items()}
