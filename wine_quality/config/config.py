"""
Pydantic configuration models for the wine quality training job.

Single source of truth: loads and validates settings.yaml and the CLI options.
The training and scoring entry points use these typed models instead of raw
dict / argparse namespace access.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


DEFAULT_SETTINGS_PATH = str(Path(__file__).resolve().parent / "settings.yaml")


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------


class SparkConfig(BaseModel):
    """Spark session settings."""

    app_name: str = "DecisionTreeRegressionExample"
    master: str = "local[*]"
    shuffle_partitions: int = Field(default=16, ge=1)
    driver_host: str = "localhost"
    bind_address: str = "127.0.0.1"
    # Maven coordinates resolved by Spark at session start (MLeap runtime).
    jars_packages: List[str] = Field(default_factory=list)
    model_config = {"extra": "forbid"}


class TrackingConfig(BaseModel):
    """MLflow tracking connection settings."""

    token_env_key: str = "MLFLOW_TRACKING_TOKEN"
    env_file_path: str = ".env"
    model_config = {"extra": "forbid"}


class DataConfig(BaseModel):
    """Input file layout and split settings."""

    label_col: str = "quality"
    features_col: str = "features"
    prediction_col: str = "prediction"
    delimiter: str = ","
    train_fraction: float = Field(default=0.7, gt=0.0, lt=1.0)
    seed: int = 2019
    model_config = {"extra": "forbid"}

    @property
    def split_weights(self) -> List[float]:
        return [self.train_fraction, round(1.0 - self.train_fraction, 10)]


# ---------------------------------------------------------------------------
# Root pipeline config
# ---------------------------------------------------------------------------


class PipelineConfig(BaseModel):
    """Root config loaded from settings.yaml.

    Usage::

        config = PipelineConfig.from_yaml("wine_quality/config/settings.yaml")
        print(config.data.label_col)
    """

    spark: SparkConfig = Field(default_factory=SparkConfig)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)
    data: DataConfig = Field(default_factory=DataConfig)

    model_config = {"extra": "forbid"}

    @classmethod
    def from_yaml(cls, path: str = DEFAULT_SETTINGS_PATH) -> "PipelineConfig":
        """Load, parse, and validate the YAML config file."""
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with config_path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
        return cls.model_validate(raw or {})


# ---------------------------------------------------------------------------
# CLI options
# ---------------------------------------------------------------------------


class TrainOptions(BaseModel):
    """Validated options of the training command."""

    tracking_uri: Optional[str] = None
    token: Optional[str] = None
    experiment_name: str = Field(default="scala_classic", min_length=1)
    data_path: str = Field(min_length=1)
    model_path: str = Field(min_length=1)
    # Spark ML caps tree depth at 30.
    max_depth: int = Field(default=5, ge=0, le=30)
    max_bins: int = Field(default=32, ge=2)
    run_origin: str = "None"
    config_path: str = DEFAULT_SETTINGS_PATH
    model_config = {"extra": "forbid"}

    def masked(self) -> Dict[str, Any]:
        """Options as a dict with the token hidden, for printing."""
        values = self.model_dump()
        if values.get("token"):
            values["token"] = "***"
        return values


class PredictOptions(BaseModel):
    """Validated options of the scoring command."""

    tracking_uri: Optional[str] = None
    token: Optional[str] = None
    run_id: str = Field(min_length=1)
    data_path: str = Field(min_length=1)
    config_path: str = DEFAULT_SETTINGS_PATH
    model_config = {"extra": "forbid"}

    @field_validator("run_id")
    @classmethod
    def _strip_run_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("run_id must not be blank")
        return value

    def masked(self) -> Dict[str, Any]:
        values = self.model_dump()
        if values.get("token"):
            values["token"] = "***"
        return values
