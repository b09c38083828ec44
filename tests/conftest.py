"""Shared test fixtures for wine_quality tests."""

import os
import shutil
from types import SimpleNamespace
from unittest.mock import MagicMock

import numpy as np
import pytest

from wine_quality.config.config import PipelineConfig


FEATURE_COLUMNS = ["fixed acidity", "volatile acidity", "alcohol", "sulphates"]


@pytest.fixture(scope="session")
def spark():
    """Local single-core Spark session shared by the whole test session."""
    if shutil.which("java") is None and not os.environ.get("JAVA_HOME"):
        pytest.skip("Spark tests need a Java runtime")
    from pyspark.sql import SparkSession

    session = (SparkSession.builder
               .appName("wine-quality-tests")
               .master("local[1]")
               .config("spark.sql.shuffle.partitions", "1")
               .config("spark.ui.enabled", "false")
               .config("spark.driver.host", "localhost")
               .config("spark.driver.bindAddress", "127.0.0.1")
               .getOrCreate())
    yield session
    session.stop()


@pytest.fixture
def pipeline_config():
    return PipelineConfig()


@pytest.fixture
def wine_csv(tmp_path):
    """Write a 200-row synthetic wine-like CSV and return its path."""
    rng = np.random.RandomState(42)
    rows = []
    for _ in range(200):
        fixed_acidity = round(rng.uniform(4.0, 10.0), 2)
        volatile_acidity = round(rng.uniform(0.1, 1.0), 3)
        alcohol = round(rng.uniform(8.0, 14.0), 2)
        sulphates = round(rng.uniform(0.3, 1.0), 3)
        quality = int(np.clip(round(alcohol - 5.0 - 2.0 * volatile_acidity + rng.normal(0, 0.3)), 3, 9))
        rows.append((fixed_acidity, volatile_acidity, alcohol, sulphates, quality))

    path = tmp_path / "wine-quality.csv"
    with path.open("w", encoding="utf-8") as handle:
        handle.write(",".join(FEATURE_COLUMNS + ["quality"]) + "\n")
        for row in rows:
            handle.write(",".join(str(v) for v in row) + "\n")
    return path


@pytest.fixture
def tracking_client():
    """MagicMock standing in for MlflowClient with a fresh experiment."""
    client = MagicMock(name="MlflowClient")
    client.get_experiment_by_name.return_value = None
    client.create_experiment.return_value = "7"
    client.create_run.return_value = SimpleNamespace(info=SimpleNamespace(run_id="run-123"))
    return client
