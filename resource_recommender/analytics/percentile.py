import logging
from datetime import datetime
from typing import Optional

from resource_recommender.analytics.histogram import DecayingHistogram
from resource_recommender.config.recommender_config import DimensionConfig
from resource_recommender.errors import IncompleteHistory
from resource_recommender.models.resource import ResourceDimension

from .base import BaseEstimator

logger = logging.getLogger(__name__)


class PercentileEstimator(BaseEstimator):
    """
    Recommends the configured percentile of decayed usage, scaled up by the
    margin fraction and down to the target utilization.
    """

    def __init__(self, history_completion_check: bool = False):
        self.history_completion_check = history_completion_check

    def estimate(
        self,
        dimension: ResourceDimension,
        histogram: DecayingHistogram,
        config: DimensionConfig,
        now: Optional[datetime] = None,
    ) -> float:
        """
        adjusted = percentile value * (1 + margin fraction) / target utilization

        Raises IncompleteHistory when the completion check is enabled and the
        samples still carrying weight at ``now`` do not span a full history
        length, and InsufficientData when the histogram is empty.
        """
        if self.history_completion_check:
            span = histogram.total_sample_span(at=now)
            if span < config.history_length:
                raise IncompleteHistory(
                    f"{dimension.value} history covers {span}, "
                    f"{config.history_length} required"
                )

        raw = histogram.value_at_percentile(config.percentile)
        adjusted = raw * (1 + config.margin_fraction) / config.target_utilization
        logger.debug(
            f"{dimension.value}: p{config.percentile * 100:g}={raw} -> {adjusted}"
        )
        return max(adjusted, 0.0)
