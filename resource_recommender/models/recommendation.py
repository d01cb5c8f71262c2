from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from typing import Any
from typing import Dict
from typing import Optional

from resource_recommender.models.resource import ResourceDimension


@dataclass
class Recommendation:
    """
    Recommended resource requests for one workload, produced fresh each evaluation cycle.

    Dimensions that could not be estimated are left as None and listed in ``skipped``
    together with the reason.
    """

    workload: str
    evaluated_at: datetime

    # CPU in cores, memory values in bytes
    cpu: Optional[float] = field(default=None)
    memory: Optional[float] = field(default=None)
    accelerator_compute: Optional[float] = field(default=None)
    accelerator_memory: Optional[float] = field(default=None)

    # Name of the matched specification, when specification mode is enabled
    specification: Optional[str] = field(default=None)

    skipped: Dict[str, str] = field(default_factory=dict)

    def quantity(self, dimension: ResourceDimension) -> Optional[float]:
        return getattr(self, dimension.field_name)

    def set_quantity(self, dimension: ResourceDimension, value: Optional[float]) -> None:
        setattr(self, dimension.field_name, value)

    def resources(self) -> Dict[ResourceDimension, float]:
        """Only the dimensions that have a recommended quantity."""
        return {
            dimension: value
            for dimension in ResourceDimension
            if (value := self.quantity(dimension)) is not None
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)
