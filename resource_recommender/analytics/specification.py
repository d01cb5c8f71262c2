import logging
from typing import Mapping
from typing import Optional
from typing import Sequence

from resource_recommender.errors import NoFeasibleSpecification
from resource_recommender.models.resource import ResourceDimension
from resource_recommender.models.resource import Specification

from .base import BaseSpecificationMatcher

logger = logging.getLogger(__name__)


class SpecificationMatcher(BaseSpecificationMatcher):
    """
    Snaps a raw recommendation onto the catalog entry with the least surplus.

    A specification is eligible when it is at least the raw value in every
    dimension present in the raw vector. Surplus is measured per dimension
    relative to the specification, ``(spec - raw) / spec``, and summed so
    that cores and bytes weigh equally. Ties keep the earliest catalog entry.
    """

    def _surplus(
        self, raw_vector: Mapping[ResourceDimension, float], spec: Specification
    ) -> Optional[float]:
        """Relative surplus of ``spec`` over the raw vector, None if not dominating."""
        surplus = 0.0
        for dimension, raw in raw_vector.items():
            offered = spec.quantity(dimension)
            if offered < raw:
                return None
            if offered > 0:
                surplus += (offered - raw) / offered
        return surplus

    def match(
        self,
        raw_vector: Mapping[ResourceDimension, float],
        specs: Sequence[Specification],
    ) -> Specification:
        best, best_surplus = None, None
        for spec in specs:
            surplus = self._surplus(raw_vector, spec)
            if surplus is None:
                continue
            # strict comparison keeps the earliest entry on ties
            if best_surplus is None or surplus < best_surplus:
                best, best_surplus = spec, surplus

        if best is None:
            raw = {dimension.value: value for dimension, value in raw_vector.items()}
            raise NoFeasibleSpecification(
                f"None of {len(specs)} specifications can hold {raw}"
            )
        logger.debug(f"Matched specification {best.name} (surplus {best_surplus:.3f})")
        return best
