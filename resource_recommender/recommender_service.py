import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from datetime import timezone
from typing import Any
from typing import Dict
from typing import Iterable
from typing import List
from typing import Mapping
from typing import Optional
from typing import Set
from typing import Tuple

from resource_recommender.analytics.base import BaseEstimator
from resource_recommender.analytics.base import BaseMemoryAdjuster
from resource_recommender.analytics.base import BaseSpecificationMatcher
from resource_recommender.analytics.histogram import DecayingHistogram
from resource_recommender.analytics.oom import OOMProtectionAdjuster
from resource_recommender.analytics.oom import recent_oom_events
from resource_recommender.analytics.percentile import PercentileEstimator
from resource_recommender.analytics.specification import SpecificationMatcher
from resource_recommender.collectors.datasource import ISampleSource
from resource_recommender.config.recommender_config import RecommenderConfig
from resource_recommender.config.recommender_config import resolve_recommender_config
from resource_recommender.errors import IncompleteHistory
from resource_recommender.errors import InsufficientData
from resource_recommender.errors import NoFeasibleSpecification
from resource_recommender.errors import RecommendationError
from resource_recommender.models.recommendation import Recommendation
from resource_recommender.models.resource import OOMEvent
from resource_recommender.models.resource import ResourceDimension
from resource_recommender.models.resource import Sample
from resource_recommender.storage.datasink import IRecommendationSink

logger = logging.getLogger(__name__)


@dataclass
class WorkloadState:
    """Histograms and OOM history of one workload, guarded by its own lock."""

    workload: str
    histograms: Dict[ResourceDimension, DecayingHistogram] = field(default_factory=dict)
    oom_events: List[OOMEvent] = field(default_factory=list)
    seen_oom_events: Set[OOMEvent] = field(default_factory=set, repr=False)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class ResourceRecommender:
    """
    Recommends CPU, memory and accelerator requests for workloads from their
    decayed usage history.

    Configuration is resolved once at construction and never changes. Each
    tracked workload owns its histograms and OOM history; ingestion and
    estimation for the same workload are serialized by that workload's lock,
    while different workloads can be evaluated in parallel.
    """

    NAME = "Resource"

    def __init__(
        self,
        config: RecommenderConfig,
        estimator: Optional[BaseEstimator] = None,
        oom_adjuster: Optional[BaseMemoryAdjuster] = None,
        matcher: Optional[BaseSpecificationMatcher] = None,
    ):
        self.config = config
        self.estimator = estimator or PercentileEstimator(config.history_completion_check)
        self.oom_adjuster = oom_adjuster or OOMProtectionAdjuster(
            config.oom_history_length, config.oom_bump_ratio
        )
        self.matcher = matcher or SpecificationMatcher()
        self._workloads: Dict[str, WorkloadState] = {}
        self._workloads_lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        base_config: Optional[Mapping[str, Any]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "ResourceRecommender":
        """Build a recommender from base configuration merged with rule overrides."""
        return cls(resolve_recommender_config(base_config, overrides))

    @property
    def name(self) -> str:
        return self.NAME

    # ── Workload tracking ────────────────────────────────────────────────────

    def _state(self, workload: str, create: bool = True) -> Optional[WorkloadState]:
        with self._workloads_lock:
            state = self._workloads.get(workload)
            if state is None and create:
                state = WorkloadState(workload=workload)
                self._workloads[workload] = state
            return state

    def tracked_workloads(self) -> List[str]:
        with self._workloads_lock:
            return sorted(self._workloads)

    def forget(self, workload: str) -> bool:
        """Drop all state for a workload that is no longer tracked."""
        with self._workloads_lock:
            return self._workloads.pop(workload, None) is not None

    def last_sample_time(
        self, workload: str, dimension: ResourceDimension
    ) -> Optional[datetime]:
        state = self._state(workload, create=False)
        if state is None:
            return None
        with state.lock:
            histogram = state.histograms.get(dimension)
            return histogram.last_sample_time if histogram else None

    # ── Ingestion ────────────────────────────────────────────────────────────

    def _new_histogram(self, dimension: ResourceDimension) -> DecayingHistogram:
        dimension_config = self.config.dimension(dimension)
        return DecayingHistogram(
            bucket_size=dimension_config.bucket_size,
            max_value=dimension_config.max_value,
            half_life=dimension_config.history_length,
        )

    def ingest_samples(
        self, workload: str, dimension: ResourceDimension, samples: Iterable[Sample]
    ) -> int:
        """Add samples to the workload's histogram. Returns how many were applied."""
        state = self._state(workload)
        applied = rejected = 0
        with state.lock:
            histogram = state.histograms.get(dimension)
            if histogram is None:
                histogram = state.histograms[dimension] = self._new_histogram(dimension)
            for sample in samples:
                if histogram.add_sample(sample.value, sample.timestamp):
                    applied += 1
                else:
                    rejected += 1
        if rejected:
            logger.debug(
                f"{workload}: rejected {rejected} out-of-order or non-finite "
                f"{dimension.value} samples"
            )
        return applied

    def record_oom_event(self, workload: str, event: OOMEvent) -> None:
        self.record_oom_events(workload, [event])

    def record_oom_events(self, workload: str, events: Iterable[OOMEvent]) -> None:
        state = self._state(workload)
        with state.lock:
            for event in events:
                if event not in state.seen_oom_events:
                    state.seen_oom_events.add(event)
                    state.oom_events.append(event)

    # ── Estimation ───────────────────────────────────────────────────────────

    def recommend(self, workload: str, now: Optional[datetime] = None) -> Recommendation:
        """
        Compute a fresh recommendation for one workload.

        Dimensions without usable history are left empty and listed in
        ``skipped``. Raises InsufficientData if the workload is not tracked.
        """
        state = self._state(workload, create=False)
        if state is None:
            raise InsufficientData(f"Workload {workload} is not tracked")
        now = now or datetime.now(timezone.utc)
        recommendation = Recommendation(workload=workload, evaluated_at=now)

        with state.lock:
            self._prune_oom_events(state, now)

            for dimension in ResourceDimension:
                histogram = state.histograms.get(dimension)
                if histogram is None or histogram.sample_count == 0:
                    recommendation.skipped[dimension.value] = "no samples"
                    continue
                if histogram.is_empty(at=now):
                    recommendation.skipped[dimension.value] = "samples fully decayed"
                    continue
                try:
                    value = self.estimator.estimate(
                        dimension, histogram, self.config.dimension(dimension), now
                    )
                except (InsufficientData, IncompleteHistory) as e:
                    logger.warning(f"{workload}: skipping {dimension.value}: {e}")
                    recommendation.skipped[dimension.value] = str(e)
                    continue
                recommendation.set_quantity(dimension, value)

            if self.config.oom_protection:
                recent = recent_oom_events(
                    state.oom_events, self.config.oom_history_length, now
                )
                if recent:
                    self._protect_memory(recommendation, recent, now)

        if self.config.specification:
            self._snap_to_specification(recommendation)
        return recommendation

    def _prune_oom_events(self, state: WorkloadState, now: datetime) -> None:
        # Events past the evaluation time are kept for later cycles
        cutoff = now - self.config.oom_history_length
        expired = [event for event in state.oom_events if event.timestamp < cutoff]
        if expired:
            state.oom_events = [e for e in state.oom_events if e.timestamp >= cutoff]
            state.seen_oom_events.difference_update(expired)

    def _protect_memory(
        self, recommendation: Recommendation, oom_events: List[OOMEvent], now: datetime
    ) -> None:
        base = recommendation.memory
        adjusted = self.oom_adjuster.adjust_memory(
            base if base is not None else 0.0,
            oom_events,
            self.config.oom_bump_ratio,
            now,
        )
        if base is None:
            # OOM history alone is enough to size memory
            recommendation.skipped.pop(ResourceDimension.MEMORY.value, None)
        recommendation.memory = adjusted

    def _snap_to_specification(self, recommendation: Recommendation) -> None:
        raw_vector = recommendation.resources()
        if not raw_vector:
            return
        try:
            spec = self.matcher.match(raw_vector, self.config.specifications)
        except NoFeasibleSpecification as e:
            logger.warning(
                f"{recommendation.workload}: keeping raw recommendation: {e}"
            )
            recommendation.skipped["specification"] = str(e)
            return
        for dimension in raw_vector:
            recommendation.set_quantity(dimension, spec.quantity(dimension))
        recommendation.specification = spec.name

    def _try_recommend(
        self, workload: str, now: datetime
    ) -> Tuple[str, Optional[Recommendation]]:
        try:
            return workload, self.recommend(workload, now)
        except RecommendationError as e:
            logger.warning(f"No recommendation for {workload}: {e}")
            return workload, None
        except Exception:
            logger.exception(f"Unexpected error while recommending for {workload}")
            return workload, None

    def evaluate(
        self,
        workloads: Optional[Iterable[str]] = None,
        now: Optional[datetime] = None,
        max_workers: Optional[int] = None,
    ) -> Dict[str, Recommendation]:
        """
        Recommend for many workloads. A workload that fails is logged and left
        out of the result; it never stops the others.
        """
        workloads = list(workloads) if workloads is not None else self.tracked_workloads()
        now = now or datetime.now(timezone.utc)

        if max_workers and max_workers > 1 and len(workloads) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                results = list(
                    executor.map(lambda w: self._try_recommend(w, now), workloads)
                )
        else:
            results = [self._try_recommend(workload, now) for workload in workloads]

        return {
            workload: recommendation
            for workload, recommendation in results
            if recommendation is not None
        }

    # ── Evaluation cycle ─────────────────────────────────────────────────────

    def _ingest_from_source(
        self, source: ISampleSource, workload: str, now: datetime
    ) -> None:
        for dimension in ResourceDimension:
            dimension_config = self.config.dimension(dimension)
            start = now - dimension_config.history_length
            last = self.last_sample_time(workload, dimension)
            samples = source.get_samples(
                workload, dimension, start, now, dimension_config.sample_interval
            )
            # Sources return the full window each cycle; only ingest what is new
            new_samples = [s for s in samples if last is None or s.timestamp > last]
            self.ingest_samples(workload, dimension, new_samples)

        if self.config.oom_protection:
            events = source.get_oom_events(
                workload, now - self.config.oom_history_length, now
            )
            self.record_oom_events(workload, events)

    def run_cycle(
        self,
        source: ISampleSource,
        workloads: Optional[Iterable[str]] = None,
        now: Optional[datetime] = None,
        sink: Optional[IRecommendationSink] = None,
        max_workers: Optional[int] = None,
    ) -> Dict[str, Recommendation]:
        """
        Pull new samples and OOM events from ``source``, evaluate, and publish
        to ``sink``. Workloads whose samples cannot be read are skipped.
        """
        now = now or datetime.now(timezone.utc)
        workloads = list(workloads) if workloads is not None else source.list_workloads()

        ready = []
        for workload in workloads:
            try:
                self._ingest_from_source(source, workload, now)
            except OSError as e:
                logger.warning(f"Skipping {workload} this cycle, could not read samples: {e}")
                continue
            except Exception:
                logger.exception(f"Skipping {workload} this cycle, ingestion failed")
                continue
            ready.append(workload)

        results = self.evaluate(ready, now=now, max_workers=max_workers)
        logger.info(
            f"Evaluated {len(workloads)} workloads, {len(results)} recommendations"
        )
        if sink is not None and results:
            sink.save(list(results.values()))
        return results
