from abc import ABC
from abc import abstractmethod
from datetime import datetime
from typing import Iterable
from typing import Mapping
from typing import Optional
from typing import Sequence

from resource_recommender.analytics.histogram import DecayingHistogram
from resource_recommender.config.recommender_config import DimensionConfig
from resource_recommender.models.resource import OOMEvent
from resource_recommender.models.resource import ResourceDimension
from resource_recommender.models.resource import Specification


class BaseEstimator(ABC):
    """Abstract base class for all per-dimension estimation strategies."""

    @abstractmethod
    def estimate(
        self,
        dimension: ResourceDimension,
        histogram: DecayingHistogram,
        config: DimensionConfig,
        now: Optional[datetime] = None,
    ) -> float:
        """Derives a recommended quantity for one dimension from its histogram."""
        pass


class BaseMemoryAdjuster(ABC):
    """Abstract base class for strategies that adjust the memory estimate."""

    @abstractmethod
    def adjust_memory(
        self,
        base_estimate: float,
        oom_events: Iterable[OOMEvent],
        bump_ratio: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> float:
        """Returns the memory recommendation after taking OOM history into account."""
        pass


class BaseSpecificationMatcher(ABC):
    """Abstract base class for strategies that snap a raw vector onto a catalog entry."""

    @abstractmethod
    def match(
        self,
        raw_vector: Mapping[ResourceDimension, float],
        specs: Sequence[Specification],
    ) -> Specification:
        """Selects the catalog entry to use for the raw recommendation."""
        pass
