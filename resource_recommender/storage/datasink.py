from abc import ABC
from abc import abstractmethod
from typing import Sequence

from resource_recommender.models.recommendation import Recommendation


class IRecommendationSink(ABC):
    """
    Interface for publishers that store finished recommendations.
    """

    @abstractmethod
    def save(self, recommendations: Sequence[Recommendation]) -> None:
        """Save the given recommendations to the sink."""
        pass
