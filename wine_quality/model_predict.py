"""
Model Scoring - score a dataset with the Spark ML model of a training run.

Downloads the ``spark-model`` artifact logged by model_training.py and runs
it over a wine quality CSV. The label column is optional here.

Usage::

    python -m wine_quality.model_predict --runId <run_id> --dataPath data/wine-quality-white.csv
"""

import argparse
import json
from dataclasses import asdict, dataclass
from typing import Optional, Sequence

from mlflow.artifacts import download_artifacts
from mlflow.tracking import MlflowClient
from pydantic import ValidationError
from pyspark.ml import PipelineModel
from pyspark.sql import DataFrame, SparkSession, functions as F

from wine_quality.config.config import DEFAULT_SETTINGS_PATH, PipelineConfig, PredictOptions
from wine_quality.model_training import SPARK_MODEL_DIR
from wine_quality.utils.base_pipeline import BasePipeline
from wine_quality.utils.spark_utils import read_data


@dataclass
class PredictionResult:
    """Output of the scoring pipeline."""

    run_id: str
    model_path: str
    row_count: int
    prediction_min: Optional[float]
    prediction_max: Optional[float]
    prediction_mean: Optional[float]


class WinePredictionPipeline(BasePipeline):
    """Loads a logged Spark ML pipeline and scores a dataset with it."""

    PREVIEW_ROWS = 10

    def __init__(
        self,
        pipeline_config: PipelineConfig,
        tracking_uri: Optional[str] = None,
        token: Optional[str] = None,
        spark: Optional[SparkSession] = None,
        client: Optional[MlflowClient] = None,
    ) -> None:
        super().__init__(pipeline_config, tracking_uri, token, spark=spark, client=client)

    def _download_model(self, run_id: str) -> str:
        local_path = download_artifacts(
            run_id=run_id,
            artifact_path=SPARK_MODEL_DIR,
            tracking_uri=self.tracking_uri,
        )
        print(f"[predict] downloaded {SPARK_MODEL_DIR} of run {run_id} to {local_path}")
        return local_path

    def score(self, model: PipelineModel, data: DataFrame) -> DataFrame:
        label = self.config.data.label_col
        if label in data.columns:
            data = data.drop(label)
        return model.transform(data)

    def predict(self, run_id: str, data_path: str) -> PredictionResult:
        model_path = self._download_model(run_id)
        model = PipelineModel.load(model_path)
        predictions = self.score(
            model, read_data(self.spark, data_path, self.config.data, require_label=False)
        )

        prediction_col = self.config.data.prediction_col
        print(f"[predict] first {self.PREVIEW_ROWS} predictions:")
        for row in predictions.select(prediction_col).limit(self.PREVIEW_ROWS).collect():
            print(f"[predict]   {row[prediction_col]}")

        summary = predictions.agg(
            F.count(F.col(prediction_col)).alias("row_count"),
            F.min(F.col(prediction_col)).alias("min"),
            F.max(F.col(prediction_col)).alias("max"),
            F.mean(F.col(prediction_col)).alias("mean"),
        ).collect()[0]

        return PredictionResult(
            run_id=run_id,
            model_path=str(model_path),
            row_count=int(summary["row_count"]),
            prediction_min=summary["min"],
            prediction_max=summary["max"],
            prediction_mean=summary["mean"],
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Score wine quality data with the Spark ML model of an MLflow run."
    )
    parser.add_argument("--trackingUri", dest="tracking_uri", default=None, help="Tracking Server URI")
    parser.add_argument("--token", dest="token", default=None, help="REST API token")
    parser.add_argument("--runId", dest="run_id", required=True, help="Run ID of the training run")
    parser.add_argument("--dataPath", dest="data_path", required=True, help="Data path")
    parser.add_argument(
        "--config", dest="config_path", default=DEFAULT_SETTINGS_PATH, help="Settings YAML file"
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> PredictOptions:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return PredictOptions(**vars(args))
    except ValidationError as exc:
        parser.error(str(exc))


def main(argv: Optional[Sequence[str]] = None) -> None:
    options = parse_args(argv)
    print("[predict] options:")
    for key, value in options.masked().items():
        print(f"[predict]   {key}: {value}")

    config = PipelineConfig.from_yaml(options.config_path)
    pipeline = WinePredictionPipeline(config, options.tracking_uri, options.token)
    try:
        result = pipeline.predict(options.run_id, options.data_path)
        print(json.dumps(asdict(result), indent=2))
    finally:
        pipeline.close()


if __name__ == "__main__":
    main()
