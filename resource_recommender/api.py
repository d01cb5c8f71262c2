from datetime import datetime
from typing import Any
from typing import Dict
from typing import Iterable
from typing import Mapping
from typing import Optional

from resource_recommender.collectors.parquet_source import ParquetSampleSource
from resource_recommender.config.recommender_config import load_recommender_config
from resource_recommender.models.recommendation import Recommendation
from resource_recommender.registry import build_recommender
from resource_recommender.storage.arrow_io import ParquetSink


def recommend_workloads(
    samples_location: str,
    oom_location: Optional[str] = None,
    config_path: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    workloads: Optional[Iterable[str]] = None,
    sink_path: Optional[str] = None,
    now: Optional[datetime] = None,
    max_workers: Optional[int] = None,
) -> Dict[str, Recommendation]:
    """
    A high-level function to compute resource recommendations for workloads.

    This function simplifies programmatic access by handling the initialization
    of all necessary components.

    :param samples_location: Path of the Parquet dataset holding usage samples.
    :param oom_location: Optional path of the Parquet dataset holding OOM events.
    :param config_path: Optional YAML file with the recommender's base configuration.
    :param overrides: Optional rule-level configuration overriding the base.
    :param workloads: Workloads to evaluate. Defaults to every workload in the samples.
    :param sink_path: Optional path to save the recommendations parquet dataset.
    :param now: Evaluation time. Defaults to the current UTC time.
    :param max_workers: Evaluate workloads in a thread pool of this size.
    :return: Recommendations keyed by workload.
    """
    # 1. Resolve configuration and build the recommender
    base_config = load_recommender_config(config_path) if config_path else {}
    recommender = build_recommender("Resource", base_config, overrides)

    # 2. Initialize the data source and optional sink
    source = ParquetSampleSource(samples_location, oom_location)
    sink = ParquetSink(sink_path) if sink_path else None

    # 3. Ingest, evaluate and publish
    return recommender.run_cycle(
        source, workloads=workloads, now=now, sink=sink, max_workers=max_workers
    )
