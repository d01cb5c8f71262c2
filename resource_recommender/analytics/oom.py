import logging
from datetime import datetime
from datetime import timedelta
from datetime import timezone
from typing import Iterable
from typing import List
from typing import Optional

from resource_recommender.errors import ConfigurationError
from resource_recommender.models.resource import OOMEvent

from .base import BaseMemoryAdjuster

logger = logging.getLogger(__name__)


def recent_oom_events(
    oom_events: Iterable[OOMEvent], history_length: timedelta, now: datetime
) -> List[OOMEvent]:
    """Events within ``history_length`` before ``now`` (inclusive on both ends)."""
    cutoff = now - history_length
    return [event for event in oom_events if cutoff <= event.timestamp <= now]


class OOMProtectionAdjuster(BaseMemoryAdjuster):
    """
    Keeps memory recommendations above the level that caused a recent OOM kill.

    Only ever raises the estimate: the result is
    ``max(base, max observed failure memory * bump ratio)`` when recent OOM
    events exist, and ``base`` otherwise.
    """

    def __init__(self, history_length: timedelta, bump_ratio: float = 1.2):
        if bump_ratio < 1:
            raise ConfigurationError(f"OOM bump ratio must be >= 1, got {bump_ratio}")
        self.history_length = history_length
        self.bump_ratio = bump_ratio

    def adjust_memory(
        self,
        base_estimate: float,
        oom_events: Iterable[OOMEvent],
        bump_ratio: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> float:
        ratio = self.bump_ratio if bump_ratio is None else bump_ratio
        if ratio < 1:
            raise ValueError(f"OOM bump ratio must be >= 1, got {ratio}")
        now = now or datetime.now(timezone.utc)

        recent = recent_oom_events(oom_events, self.history_length, now)
        if not recent:
            return base_estimate

        peak = max(event.memory for event in recent)
        bumped = peak * ratio
        if bumped > base_estimate:
            logger.info(
                f"OOM protection raised memory from {base_estimate:.0f} to {bumped:.0f} "
                f"({len(recent)} OOM events, peak {peak:.0f})"
            )
            return bumped
        return base_estimate
