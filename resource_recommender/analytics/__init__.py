from resource_recommender.analytics.histogram import DecayingHistogram
from resource_recommender.analytics.oom import OOMProtectionAdjuster
from resource_recommender.analytics.percentile import PercentileEstimator
from resource_recommender.analytics.specification import SpecificationMatcher

__all__ = [
    "DecayingHistogram",
    "OOMProtectionAdjuster",
    "PercentileEstimator",
    "SpecificationMatcher",
]
