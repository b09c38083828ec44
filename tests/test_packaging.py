"""Tests that the declared dependencies match what a training run needs."""

from pathlib import Path

import pytest

from wine_quality.config.config import DEFAULT_SETTINGS_PATH, PipelineConfig

tomllib = pytest.importorskip("tomllib")

PYPROJECT = Path(__file__).resolve().parents[1] / "pyproject.toml"


@pytest.fixture(scope="module")
def dependencies():
    with PYPROJECT.open("rb") as handle:
        return tomllib.load(handle)["project"]["dependencies"]


def test_mleap_is_a_runtime_dependency(dependencies):
    # Every run uploads the MLeap bundle, so a plain install must provide it.
    assert any(dep.startswith("mleap") for dep in dependencies)


def test_pyspark_pinned_to_mleap_spark_line(dependencies):
    pyspark = next(dep for dep in dependencies if dep.startswith("pyspark"))
    assert "<3.5" in pyspark

    jars = PipelineConfig.from_yaml(DEFAULT_SETTINGS_PATH).spark.jars_packages
    assert any(jar.startswith("ml.combust.mleap:mleap-spark_2.12:0.23.") for jar in jars)
