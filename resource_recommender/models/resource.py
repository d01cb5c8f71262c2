"""Data models for resource usage and resource specifications.

This module contains enums and dataclasses for:
- ResourceDimension: the resource axes a recommendation covers
- Sample: one observed usage value for a workload and dimension
- OOMEvent: an out-of-memory kill with the memory observed at failure
- Specification: a named, discrete resource vector a recommendation may snap to
"""

from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from enum import Enum
from typing import Any
from typing import Dict

from resource_recommender.utils.conversions import camelcase
from resource_recommender.utils.conversions import parse_quantity


class ResourceDimension(str, Enum):
    """Resource axes; each owns its own parameters and histogram."""

    CPU = "cpu"  # cores
    MEMORY = "memory"  # bytes
    ACCELERATOR_COMPUTE = "accelerator-compute"  # accelerator units
    ACCELERATOR_MEMORY = "accelerator-memory"  # bytes

    @property
    def field_name(self) -> str:
        """Attribute name used for this dimension on Recommendation/Specification."""
        return self.value.replace("-", "_")


@dataclass(frozen=True)
class Sample:
    """A single usage observation."""

    timestamp: datetime
    value: float


@dataclass(frozen=True)
class OOMEvent:
    """A workload was killed for exceeding memory. ``memory`` is in bytes."""

    timestamp: datetime
    memory: float


@camelcase
@dataclass(frozen=True)
class Specification:
    """A named resource tier. CPU in cores, memory values in bytes."""

    name: str
    cpu: float = field(default=0.0)
    memory: float = field(default=0.0)
    accelerator_compute: float = field(default=0.0)
    accelerator_memory: float = field(default=0.0)

    def quantity(self, dimension: ResourceDimension) -> float:
        """Quantity this specification provides for ``dimension``."""
        return getattr(self, dimension.field_name)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Specification":
        """Create a Specification from a mapping with camelCase or snake_case keys.

        Quantities may be plain numbers or Kubernetes-style strings (``512Mi``).
        """
        values = dict(data)
        name = values.pop("name", None)
        quantities = {key: parse_quantity(value) for key, value in values.items()}
        if name is None:
            name = _default_name(quantities)
        return cls(name=str(name), **quantities)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


def _default_name(quantities: Dict[str, float]) -> str:
    cpu = quantities.get("cpu", 0.0)
    memory_gib = quantities.get("memory", 0.0) / (1024**3)
    return f"{cpu:g}c{memory_gib:g}g"
