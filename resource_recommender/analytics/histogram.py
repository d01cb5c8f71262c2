"""Exponentially decaying histogram of resource usage.

Buckets are fixed width: ``[0, b), [b, 2b), ...`` up to the configured max
value, plus one overflow bucket for values at or above it. Each new sample
first decays every existing weight by ``exp(-Δt·ln2 / half_life)`` and then
adds its own weight, so a sample's influence halves every ``half_life``.

Percentiles are reported as the lower bound of the bucket in which the
cumulative weight crosses the requested fraction (the overflow bucket reports
the max value). This never overshoots the observed usage by more than one
bucket and keeps results exact for values sitting on bucket boundaries.
"""
import logging
import math
from datetime import datetime
from datetime import timedelta
from typing import Optional

import numpy as np

from resource_recommender.errors import ConfigurationError
from resource_recommender.errors import InsufficientData

logger = logging.getLogger(__name__)

# Weights (and decay factors) below this are treated as zero.
EPSILON = 1e-4

_LN2 = math.log(2)
# Absorbs float error in value / bucket_size for values on a bucket boundary.
_INDEX_TOLERANCE = 1e-9


class DecayingHistogram:
    """Time-decayed frequency distribution over fixed-width buckets."""

    def __init__(self, bucket_size: float, max_value: float, half_life: timedelta):
        if bucket_size <= 0 or max_value <= 0:
            raise ConfigurationError("bucket size and max value must be positive")
        if bucket_size > max_value:
            raise ConfigurationError(
                f"bucket size {bucket_size} exceeds max value {max_value}"
            )
        if half_life <= timedelta(0):
            raise ConfigurationError(f"half life must be positive, got {half_life}")

        self.bucket_size = float(bucket_size)
        self.max_value = float(max_value)
        self.half_life = half_life
        self.num_buckets = int(math.ceil(self.max_value / self.bucket_size - _INDEX_TOLERANCE))
        # Last slot is the overflow bucket for values >= max_value
        self._weights = np.zeros(self.num_buckets + 1, dtype=np.float64)
        self._reference_time: Optional[datetime] = None
        self._first_sample_time: Optional[datetime] = None
        self._last_sample_time: Optional[datetime] = None
        self.sample_count = 0

    @property
    def reference_time(self) -> Optional[datetime]:
        """Time the stored weights are expressed at."""
        return self._reference_time

    @property
    def last_sample_time(self) -> Optional[datetime]:
        return self._last_sample_time

    def _bucket_index(self, value: float) -> int:
        if value >= self.max_value:
            return self.num_buckets
        index = int(math.floor(value / self.bucket_size + _INDEX_TOLERANCE))
        return min(index, self.num_buckets - 1)

    def bucket_start(self, index: int) -> float:
        """Lower bound of bucket ``index``; the overflow bucket starts at max_value."""
        if index >= self.num_buckets:
            return self.max_value
        return index * self.bucket_size

    def _decay_factor(self, elapsed: timedelta) -> float:
        return math.exp(
            -elapsed.total_seconds() * _LN2 / self.half_life.total_seconds()
        )

    def _advance(self, timestamp: datetime) -> bool:
        if self._reference_time is not None:
            if timestamp < self._reference_time:
                return False
            if timestamp > self._reference_time:
                self._weights *= self._decay_factor(timestamp - self._reference_time)
        self._reference_time = timestamp
        return True

    def add_sample(self, value: float, timestamp: datetime, weight: float = 1.0) -> bool:
        """
        Decay existing weights up to ``timestamp`` and add one sample.

        Returns False (leaving the histogram untouched) when ``timestamp`` is
        older than the latest applied timestamp or ``value`` is not finite.
        """
        if weight < 0:
            raise ValueError(f"sample weight must be non-negative, got {weight}")
        value = float(value)
        if not math.isfinite(value):
            logger.debug(f"Rejected non-finite sample {value} at {timestamp}")
            return False
        if not self._advance(timestamp):
            logger.debug(
                f"Rejected out-of-order sample at {timestamp} "
                f"(histogram is at {self._reference_time})"
            )
            return False

        value = min(max(value, 0.0), self.max_value)
        self._weights[self._bucket_index(value)] += weight
        if self._first_sample_time is None:
            self._first_sample_time = timestamp
        self._last_sample_time = timestamp
        self.sample_count += 1
        return True

    def decay_to(self, timestamp: datetime) -> bool:
        """Apply decay up to ``timestamp`` without adding a sample."""
        return self._advance(timestamp)

    def total_weight(self, at: Optional[datetime] = None) -> float:
        """Decayed total weight, optionally projected forward to ``at``."""
        total = float(self._weights.sum())
        if at is None or self._reference_time is None:
            return total
        if at < self._reference_time:
            raise ValueError(
                f"cannot project weight to {at}, histogram is at {self._reference_time}"
            )
        return total * self._decay_factor(at - self._reference_time)

    def _as_of(self, at: Optional[datetime]) -> Optional[datetime]:
        # Evaluation times before the last applied sample read the current state
        if at is None or self._reference_time is None or at < self._reference_time:
            return self._reference_time
        return at

    def is_empty(self, at: Optional[datetime] = None) -> bool:
        """True when the decayed weight, projected to ``at`` if given, is negligible."""
        return self.total_weight(at=self._as_of(at)) < EPSILON

    def value_at_percentile(self, percentile: float) -> float:
        """
        Lower bound of the bucket where cumulative weight reaches
        ``percentile`` of the total.

        :raises InsufficientData: when the histogram holds no weight.
        """
        if not 0 < percentile <= 1:
            raise ValueError(f"percentile must be in (0, 1], got {percentile}")

        cumulative = np.cumsum(self._weights)
        total = float(cumulative[-1])
        if total < EPSILON:
            raise InsufficientData("histogram has no weight")

        index = int(np.searchsorted(cumulative, percentile * total, side="left"))
        return self.bucket_start(min(index, self.num_buckets))

    def total_sample_span(self, at: Optional[datetime] = None) -> timedelta:
        """
        Time between the earliest sample that still carries non-negligible
        weight at ``at`` (default: the reference time) and the latest sample.
        """
        if self._first_sample_time is None:
            return timedelta(0)
        # A sample is negligible once its decay factor drops below EPSILON
        horizon = self.half_life * math.log2(1 / EPSILON)
        earliest = max(self._first_sample_time, self._as_of(at) - horizon)
        return max(self._last_sample_time - earliest, timedelta(0))

    def reset(self) -> None:
        self._weights[:] = 0.0
        self._reference_time = None
        self._first_sample_time = None
        self._last_sample_time = None
        self.sample_count = 0

    def __repr__(self) -> str:
        return (
            f"DecayingHistogram(bucket_size={self.bucket_size}, max_value={self.max_value}, "
            f"half_life={self.half_life}, total_weight={self.total_weight():.4f})"
        )
