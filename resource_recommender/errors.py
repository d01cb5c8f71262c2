"""Error taxonomy for the resource recommender.

Every error derives from ``RecommendationError`` (itself a ``ValueError``) so
callers can treat all expected failures uniformly:

- ConfigurationError: bad configuration, raised while building a recommender
- InsufficientData: a histogram (or workload) has no usable weight yet
- IncompleteHistory: samples do not yet cover the required history window
- NoFeasibleSpecification: no catalog entry can hold the raw recommendation
"""


class RecommendationError(ValueError):
    """Base class for all recommender errors."""


class ConfigurationError(RecommendationError):
    """A configuration value failed to parse or violates an invariant."""


class InsufficientData(RecommendationError):
    """There is no decayed weight to derive a recommendation from."""


class IncompleteHistory(RecommendationError):
    """The sample span is shorter than the configured history length."""


class NoFeasibleSpecification(RecommendationError):
    """No specification dominates the raw recommendation in every dimension."""
