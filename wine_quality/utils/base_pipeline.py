"""
Base pipeline class with shared Spark session and MLflow client setup.

Keeps session creation, version reporting and tracking client construction
in one place for model_training.py and model_predict.py.
"""

from typing import Optional

from mlflow.tracking import MlflowClient
from pyspark.sql import SparkSession

from wine_quality.config.config import PipelineConfig
from wine_quality.utils.mlflow_client import create_mlflow_client
from wine_quality.utils.spark_utils import SparkUtils, show_versions


class BasePipeline:
    """Common setup shared by the training and scoring stages."""

    def __init__(
        self,
        pipeline_config: PipelineConfig,
        tracking_uri: Optional[str] = None,
        token: Optional[str] = None,
        spark: Optional[SparkSession] = None,
        client: Optional[MlflowClient] = None,
    ) -> None:
        self.config = pipeline_config
        self.tracking_uri = tracking_uri
        # Sessions handed in by the caller are theirs to stop.
        self._owns_spark = spark is None
        self.spark = spark if spark is not None else SparkUtils(self.config.spark).spark
        self.versions = show_versions(self.spark)
        self.client = client if client is not None else self._setup_mlflow(token)

    def _setup_mlflow(self, token: Optional[str]) -> MlflowClient:
        return create_mlflow_client(self.tracking_uri, token, self.config.tracking)

    def close(self) -> None:
        """Stop Spark session."""
        if self._owns_spark and self.spark:
            self.spark.stop()
