"""Arrow/Parquet storage layer for recommendations.

Writes each evaluation cycle's recommendations to a Parquet dataset
partitioned by evaluation date.
"""
import logging
from typing import Sequence

import pyarrow as pa
import pyarrow.parquet as pq
import s3fs

from resource_recommender.models.recommendation import Recommendation

from .datasink import IRecommendationSink

logger = logging.getLogger(__name__)

RECOMMENDATION_SCHEMA = pa.schema(
    [
        pa.field("workload", pa.string()),
        pa.field("evaluated_at", pa.timestamp("ms", tz="UTC")),
        pa.field("cpu", pa.float64(), nullable=True),
        pa.field("memory", pa.float64(), nullable=True),
        pa.field("accelerator_compute", pa.float64(), nullable=True),
        pa.field("accelerator_memory", pa.float64(), nullable=True),
        pa.field("specification", pa.string(), nullable=True),
        pa.field("skipped", pa.map_(pa.string(), pa.string()), nullable=True),
        pa.field("evaluation_dt", pa.date32()),
    ]
)


class ParquetSink(IRecommendationSink):
    """
    A data sink that writes recommendations to a Parquet dataset.
    """

    def __init__(self, sink_location: str):
        """
        Initializes the sink with a target location.
        :param sink_location: The root path for the Parquet dataset (e.g., 's3://my-bucket/my-path/').
        """
        self.sink_location = sink_location.rstrip("/")
        self.filesystem = (
            s3fs.S3FileSystem() if self.sink_location.startswith("s3://") else None
        )

    def to_table(self, recommendations: Sequence[Recommendation]) -> pa.Table:
        """Convert recommendations to an Arrow table using RECOMMENDATION_SCHEMA."""
        table_data = {name: [] for name in RECOMMENDATION_SCHEMA.names}
        for recommendation in recommendations:
            if not isinstance(recommendation, Recommendation):
                raise TypeError("Data must be a sequence of Recommendation objects")
            row = recommendation.to_dict()
            row["skipped"] = list(recommendation.skipped.items())
            row["evaluation_dt"] = recommendation.evaluated_at.date()
            for name in RECOMMENDATION_SCHEMA.names:
                table_data[name].append(row[name])
        return pa.Table.from_pydict(table_data, schema=RECOMMENDATION_SCHEMA)

    def save(self, recommendations: Sequence[Recommendation]) -> None:
        """
        Saves recommendations to a partitioned Parquet dataset.
        The dataset is partitioned by 'evaluation_dt'.
        """
        if not recommendations:
            logger.info("No recommendations to write")
            return

        table = self.to_table(recommendations)
        logger.info(f"Writing {table.num_rows} recommendations to {self.sink_location}")
        pq.write_to_dataset(
            table,
            root_path=self.sink_location,
            filesystem=self.filesystem,
            partition_cols=["evaluation_dt"],
            existing_data_behavior="overwrite_or_ignore",
        )
