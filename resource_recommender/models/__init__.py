from resource_recommender.models.recommendation import Recommendation
from resource_recommender.models.resource import OOMEvent
from resource_recommender.models.resource import ResourceDimension
from resource_recommender.models.resource import Sample
from resource_recommender.models.resource import Specification

__all__ = ["OOMEvent", "Recommendation", "ResourceDimension", "Sample", "Specification"]
