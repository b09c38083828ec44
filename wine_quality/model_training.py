"""
Model Training - DecisionTreeRegressor on the wine quality data.

Reads the wine quality CSV with Spark, splits it 70/30, fits a
VectorAssembler + DecisionTreeRegressor pipeline and records tags, params,
metrics and the model (Spark ML + MLeap bundle) to an MLflow run.

Usage::

    python -m wine_quality.model_training --dataPath data/wine-quality-white.csv --modelPath models
"""

import argparse
import json
import tempfile
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import mlflow
from mlflow.entities import RunStatus
from mlflow.tracking import MlflowClient
from mlflow.utils.mlflow_tags import MLFLOW_SOURCE_NAME
from pydantic import ValidationError
from pyspark.ml import PipelineModel
from pyspark.sql import DataFrame, SparkSession

from wine_quality.config.config import DEFAULT_SETTINGS_PATH, PipelineConfig, TrainOptions
from wine_quality.model_evaluation import evaluate_predictions
from wine_quality.models.model_export import save_mleap_bundle, save_spark_model
from wine_quality.models.model_factory import build_pipeline
from wine_quality.utils.base_pipeline import BasePipeline
from wine_quality.utils.mlflow_client import get_or_create_experiment_id, get_source_name
from wine_quality.utils.spark_utils import (
    feature_columns,
    read_data,
    write_metadata_json,
)

# Artifact layout read by downstream tooling; do not rename.
TREE_MODEL_DIR = "details"
TREE_MODEL_FILE = "treeModel.txt"
SPARK_MODEL_DIR = "spark-model"
MLEAP_MODEL_DIR = "mleap-model"
# Same layout as mlflow.mleap.log_model in MLflow's Python client.
MLEAP_ARTIFACT_PATH = "mleap-model/mleap/model"


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------


@dataclass
class TrainingResult:
    """Output of the training pipeline."""

    experiment_id: str
    run_id: str
    metrics: Dict[str, float]
    train_rows: int
    test_rows: int
    spark_model_path: str
    mleap_model_path: str
    params: Dict[str, str] = field(default_factory=dict)
    artifact_paths: List[str] = field(default_factory=list)
    metadata_path: str = ""


# ---------------------------------------------------------------------------
# Training Pipeline
# ---------------------------------------------------------------------------


class WineTrainingPipeline(BasePipeline):
    """Fits the assembler + decision tree pipeline and logs it to MLflow.

    Every step goes straight to Spark or the tracking client. There are no
    retries; a failure anywhere leaves the MLflow run open.
    """

    def __init__(
        self,
        pipeline_config: PipelineConfig,
        tracking_uri: Optional[str] = None,
        token: Optional[str] = None,
        spark: Optional[SparkSession] = None,
        client: Optional[MlflowClient] = None,
    ) -> None:
        super().__init__(pipeline_config, tracking_uri, token, spark=spark, client=client)

    # -- Data ----------------------------------------------------------------

    def _load_data(self, data_path: str) -> DataFrame:
        df = read_data(self.spark, data_path, self.config.data)
        print(f"[training] input data count: {df.count():,}")
        return df

    def _split(self, df: DataFrame) -> Tuple[DataFrame, DataFrame]:
        """Deterministic train/test split for a fixed seed and input."""
        data = self.config.data
        training_data, test_data = df.randomSplit(data.split_weights, seed=data.seed)
        return training_data, test_data

    # -- Tracking ------------------------------------------------------------

    def _create_run(self, experiment_id: str) -> str:
        run = self.client.create_run(experiment_id)
        run_id = run.info.run_id
        print(f"[training] run ID: {run_id}")
        return run_id

    def _log_tags(self, run_id: str, data_path: str) -> None:
        self.client.set_tag(run_id, "dataPath", data_path)
        self.client.set_tag(run_id, "mlflowVersion", mlflow.__version__)
        self.client.set_tag(run_id, MLFLOW_SOURCE_NAME, get_source_name(__file__))

    def _log_params(self, run_id: str, params: Sequence[Tuple[str, Any]]) -> Dict[str, str]:
        logged: Dict[str, str] = {}
        print("[training] params:")
        for key, value in params:
            print(f"[training]   {key}: {value}")
            self.client.log_param(run_id, key, str(value))
            logged[key] = str(value)
        return logged

    def _log_metrics(self, run_id: str, metrics: Dict[str, float]) -> None:
        for name, value in metrics.items():
            self.client.log_metric(run_id, name, value)

    def _log_tree_model(self, run_id: str, model: PipelineModel) -> str:
        """Upload the fitted tree's debug string as details/treeModel.txt."""
        tree_model = model.stages[-1]
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / TREE_MODEL_FILE
            path.write_text(tree_model.toDebugString, encoding="utf-8")
            self.client.log_artifact(run_id, str(path), TREE_MODEL_DIR)
        return f"{TREE_MODEL_DIR}/{TREE_MODEL_FILE}"

    def _log_spark_model(self, run_id: str, model_dir: str, model: PipelineModel) -> Path:
        model_path = Path(model_dir) / SPARK_MODEL_DIR
        save_spark_model(model, model_path)
        self.client.log_artifacts(run_id, str(model_path), SPARK_MODEL_DIR)
        return model_path

    def _log_mleap_model(
        self,
        run_id: str,
        model_dir: str,
        model: PipelineModel,
        predictions: DataFrame,
    ) -> Path:
        model_path = save_mleap_bundle(model, Path(model_dir) / MLEAP_MODEL_DIR, predictions)
        self.client.log_artifacts(run_id, str(model_path), MLEAP_ARTIFACT_PATH)
        return model_path

    # -- Main pipeline -------------------------------------------------------

    def train(
        self,
        experiment_id: str,
        model_dir: str,
        max_depth: int,
        max_bins: int,
        run_origin: str,
        data_path: str,
    ) -> TrainingResult:
        """Train on data_path and record everything on a new run of experiment_id."""
        data_cfg = self.config.data

        # 1. Read and split
        data = self._load_data(data_path)
        columns = feature_columns(data, data_cfg.label_col)
        training_data, test_data = self._split(data)

        # 2. Run, tags, params
        run_id = self._create_run(experiment_id)
        print(f"[training] runOrigin: {run_origin}")
        self._log_tags(run_id, data_path)
        params = self._log_params(
            run_id,
            [("maxDepth", max_depth), ("maxBins", max_bins), ("runOrigin", run_origin)],
        )

        # 3. Fit and predict
        pipeline = build_pipeline(
            columns,
            label_col=data_cfg.label_col,
            features_col=data_cfg.features_col,
            max_depth=max_depth,
            max_bins=max_bins,
        )
        start_ts = time.time()
        model = pipeline.fit(training_data)
        print(f"[training] fit completed in {time.time() - start_ts:.2f}s")
        predictions = model.transform(test_data)

        # 4. Metrics
        metrics = evaluate_predictions(predictions, data_cfg.label_col, data_cfg.prediction_col)
        self._log_metrics(run_id, metrics)

        # 5. Artifacts
        tree_artifact = self._log_tree_model(run_id, model)
        spark_model_path = self._log_spark_model(run_id, model_dir, model)
        mleap_model_path = self._log_mleap_model(run_id, model_dir, model, predictions)

        # 6. Close run
        self.client.set_terminated(
            run_id, RunStatus.to_string(RunStatus.FINISHED), int(time.time() * 1000)
        )
        print(f"[training] run {run_id} finished")

        result = TrainingResult(
            experiment_id=experiment_id,
            run_id=run_id,
            metrics=metrics,
            train_rows=training_data.count(),
            test_rows=test_data.count(),
            spark_model_path=str(spark_model_path),
            mleap_model_path=str(mleap_model_path),
            params=params,
            artifact_paths=[tree_artifact, SPARK_MODEL_DIR, MLEAP_ARTIFACT_PATH],
        )
        metadata = {
            "stage": "model_training",
            **asdict(result),
            "data_path": data_path,
        }
        result.metadata_path = str(write_metadata_json(metadata, Path(model_dir)))
        print(f"[training] metadata saved to {result.metadata_path}")
        return result

    def run(self, options: TrainOptions) -> TrainingResult:
        """Resolve the experiment, then train."""
        experiment_id = get_or_create_experiment_id(self.client, options.experiment_name)
        print(f"[training] experiment ID: {experiment_id}")
        return self.train(
            experiment_id,
            model_dir=options.model_path,
            max_depth=options.max_depth,
            max_bins=options.max_bins,
            run_origin=options.run_origin,
            data_path=options.data_path,
        )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Train a DecisionTreeRegressor on wine quality data and log it to MLflow."
    )
    parser.add_argument("--trackingUri", dest="tracking_uri", default=None, help="Tracking Server URI")
    parser.add_argument("--token", dest="token", default=None, help="REST API token")
    parser.add_argument("--dataPath", dest="data_path", required=True, help="Data path")
    parser.add_argument("--modelPath", dest="model_path", required=True, help="Model path")
    parser.add_argument("--maxDepth", dest="max_depth", type=int, default=5, help="maxDepth param")
    parser.add_argument("--maxBins", dest="max_bins", type=int, default=32, help="maxBins param")
    parser.add_argument("--runOrigin", dest="run_origin", default="None", help="runOrigin tag")
    parser.add_argument(
        "--experimentName", dest="experiment_name", default="scala_classic", help="Experiment name"
    )
    parser.add_argument(
        "--config", dest="config_path", default=DEFAULT_SETTINGS_PATH, help="Settings YAML file"
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> TrainOptions:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return TrainOptions(**vars(args))
    except ValidationError as exc:
        parser.error(str(exc))


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point for the CLI."""
    options = parse_args(argv)
    print("[training] options:")
    for key, value in options.masked().items():
        print(f"[training]   {key}: {value}")

    config = PipelineConfig.from_yaml(options.config_path)
    pipeline = WineTrainingPipeline(config, options.tracking_uri, options.token)
    try:
        result = pipeline.run(options)
        print("\n" + "=" * 80)
        print("TRAINING RESULT")
        print("=" * 80)
        print(json.dumps(asdict(result), indent=2))
    finally:
        pipeline.close()


if __name__ == "__main__":
    main()
