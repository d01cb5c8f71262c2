from abc import ABC
from abc import abstractmethod
from datetime import datetime
from datetime import timedelta
from typing import List

from resource_recommender.models.resource import OOMEvent
from resource_recommender.models.resource import ResourceDimension
from resource_recommender.models.resource import Sample


class ISampleSource(ABC):
    """
    Interface for sources that provide workload usage samples and OOM events.
    """

    @abstractmethod
    def list_workloads(self) -> List[str]:
        """List all workloads the source has samples for."""
        pass

    @abstractmethod
    def get_samples(
        self,
        workload: str,
        dimension: ResourceDimension,
        start: datetime,
        end: datetime,
        step: timedelta,
    ) -> List[Sample]:
        """Get usage samples in [start, end], oldest first, at most one per step."""
        pass

    @abstractmethod
    def get_oom_events(
        self, workload: str, start: datetime, end: datetime
    ) -> List[OOMEvent]:
        """Get OOM events for a workload in [start, end]."""
        pass
