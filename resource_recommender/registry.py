"""Explicit recommender factory table.

Callers build the table once with ``default_registry()`` (optionally adding
their own factories) and pass it to whatever schedules evaluations.
"""
from typing import Any
from typing import Callable
from typing import Dict
from typing import Mapping
from typing import Optional

from resource_recommender.errors import ConfigurationError
from resource_recommender.recommender_service import ResourceRecommender

RecommenderFactory = Callable[
    [Optional[Mapping[str, Any]], Optional[Mapping[str, Any]]], Any
]


def default_registry() -> Dict[str, RecommenderFactory]:
    """A fresh registry with the built-in recommenders."""
    return {ResourceRecommender.NAME: ResourceRecommender.from_config}


def build_recommender(
    name: str,
    base_config: Optional[Mapping[str, Any]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    registry: Optional[Mapping[str, RecommenderFactory]] = None,
):
    """Construct the recommender registered under ``name``."""
    registry = default_registry() if registry is None else registry
    factory = registry.get(name)
    if factory is None:
        raise ConfigurationError(
            f"Unknown recommender {name!r}; available: {sorted(registry)}"
        )
    return factory(base_config, overrides)
