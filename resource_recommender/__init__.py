"""Histogram-based resource request recommendations for workloads."""

__version__ = "0.1.0"

from resource_recommender.api import recommend_workloads
from resource_recommender.config.recommender_config import resolve_recommender_config
from resource_recommender.errors import ConfigurationError
from resource_recommender.errors import IncompleteHistory
from resource_recommender.errors import InsufficientData
from resource_recommender.errors import NoFeasibleSpecification
from resource_recommender.errors import RecommendationError
from resource_recommender.recommender_service import ResourceRecommender

__all__ = [
    "ConfigurationError",
    "IncompleteHistory",
    "InsufficientData",
    "NoFeasibleSpecification",
    "RecommendationError",
    "ResourceRecommender",
    "recommend_workloads",
    "resolve_recommender_config",
]
