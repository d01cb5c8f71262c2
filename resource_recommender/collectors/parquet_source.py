"""Parquet sample source for usage samples and OOM events.

Reads pre-exported datasets rather than querying a metrics backend. Expected
columns:
- samples: ``workload`` (string), ``dimension`` (string, a ResourceDimension
  value), ``timestamp`` (timestamp), ``value`` (double)
- OOM events: ``workload`` (string), ``timestamp`` (timestamp), ``memory``
  (double, bytes)
"""
import logging
import math
from datetime import datetime
from datetime import timedelta
from datetime import timezone
from typing import List
from typing import Optional

import pyarrow.dataset as ds
import s3fs

from resource_recommender.models.resource import OOMEvent
from resource_recommender.models.resource import ResourceDimension
from resource_recommender.models.resource import Sample

from .datasource import ISampleSource

logger = logging.getLogger(__name__)


def _as_utc(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


def downsample(samples: List[Sample], step: Optional[timedelta]) -> List[Sample]:
    """Keep at most one sample per ``step``, starting from the oldest."""
    if not step or step <= timedelta(0):
        return samples
    kept: List[Sample] = []
    for sample in samples:
        if not kept or sample.timestamp - kept[-1].timestamp >= step:
            kept.append(sample)
    return kept


class ParquetSampleSource(ISampleSource):
    """Sample source backed by (optionally hive-partitioned) Parquet datasets."""

    def __init__(self, samples_location: str, oom_location: Optional[str] = None):
        """
        :param samples_location: Root path of the samples dataset (local or 's3://...').
        :param oom_location: Root path of the OOM events dataset, if any.
        """
        self.samples_location = samples_location.rstrip("/")
        self.oom_location = oom_location.rstrip("/") if oom_location else ""
        self.filesystem = (
            s3fs.S3FileSystem() if self.samples_location.startswith("s3://") else None
        )

    def _dataset(self, location: str) -> ds.Dataset:
        try:
            return ds.dataset(
                location,
                format="parquet",
                partitioning="hive",
                filesystem=self.filesystem,
            )
        except Exception as e:
            logger.error(f"Error reading dataset from {location}: {e}")
            raise e

    def list_workloads(self) -> List[str]:
        table = self._dataset(self.samples_location).to_table(columns=["workload"])
        return sorted(table.column("workload").unique().to_pylist())

    def get_samples(
        self,
        workload: str,
        dimension: ResourceDimension,
        start: datetime,
        end: datetime,
        step: Optional[timedelta] = None,
    ) -> List[Sample]:
        table = (
            self._dataset(self.samples_location)
            .to_table(
                columns=["timestamp", "value"],
                filter=(ds.field("workload") == workload)
                & (ds.field("dimension") == dimension.value),
            )
            .sort_by("timestamp")
        )
        start, end = _as_utc(start), _as_utc(end)
        samples = []
        for timestamp, value in zip(
            table.column("timestamp").to_pylist(), table.column("value").to_pylist()
        ):
            if timestamp is None or value is None or not math.isfinite(value):
                continue
            timestamp = _as_utc(timestamp)
            if start <= timestamp <= end:
                samples.append(Sample(timestamp=timestamp, value=float(value)))

        samples = downsample(samples, step)
        logger.debug(f"Read {len(samples)} {dimension.value} samples for {workload}")
        return samples

    def get_oom_events(
        self, workload: str, start: datetime, end: datetime
    ) -> List[OOMEvent]:
        if not self.oom_location:
            return []

        table = self._dataset(self.oom_location).to_table(
            columns=["timestamp", "memory"],
            filter=ds.field("workload") == workload,
        )
        start, end = _as_utc(start), _as_utc(end)
        events = [
            OOMEvent(timestamp=_as_utc(timestamp), memory=float(memory))
            for timestamp, memory in zip(
                table.column("timestamp").to_pylist(),
                table.column("memory").to_pylist(),
            )
            if timestamp is not None and memory is not None and math.isfinite(memory)
        ]
        return sorted(
            (event for event in events if start <= event.timestamp <= end),
            key=lambda event: event.timestamp,
        )
