"""Tests for tracking client helpers."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from wine_quality.config.config import TrackingConfig
from wine_quality.utils import mlflow_client
from wine_quality.utils.mlflow_client import (
    create_mlflow_client,
    get_or_create_experiment_id,
    get_source_name,
    resolve_token,
)


@pytest.fixture
def tracking(tmp_path, monkeypatch):
    monkeypatch.delenv("WINE_TEST_TOKEN", raising=False)
    return TrackingConfig(token_env_key="WINE_TEST_TOKEN", env_file_path=str(tmp_path / ".env"))


class TestResolveToken:
    def test_explicit_token_wins(self, tracking, monkeypatch):
        monkeypatch.setenv("WINE_TEST_TOKEN", "from-env")
        assert resolve_token(tracking, " explicit ") == "explicit"

    def test_env_var(self, tracking, monkeypatch):
        monkeypatch.setenv("WINE_TEST_TOKEN", "from-env")
        assert resolve_token(tracking) == "from-env"

    def test_env_file(self, tracking, tmp_path):
        (tmp_path / ".env").write_text(
            "# comment\nOTHER=1\nWINE_TEST_TOKEN='from-file'\n", encoding="utf-8"
        )
        assert resolve_token(tracking) == "from-file"

    def test_empty_value_in_env_file(self, tracking, tmp_path):
        (tmp_path / ".env").write_text("WINE_TEST_TOKEN=\n", encoding="utf-8")
        assert resolve_token(tracking) is None

    def test_no_token_anywhere(self, tracking):
        assert resolve_token(tracking) is None


class TestCreateClient:
    def test_uri_and_token(self, tracking, monkeypatch):
        fake_client_cls = MagicMock()
        monkeypatch.setattr(mlflow_client, "MlflowClient", fake_client_cls)
        monkeypatch.delenv("MLFLOW_TRACKING_TOKEN", raising=False)

        client = create_mlflow_client("http://localhost:5000", "tok", tracking)

        fake_client_cls.assert_called_once_with(tracking_uri="http://localhost:5000")
        assert client is fake_client_cls.return_value
        assert mlflow_client.os.environ["MLFLOW_TRACKING_TOKEN"] == "tok"

    def test_default_uri(self, tracking, monkeypatch):
        fake_client_cls = MagicMock()
        monkeypatch.setattr(mlflow_client, "MlflowClient", fake_client_cls)

        create_mlflow_client(None, None, tracking)

        fake_client_cls.assert_called_once_with()


class TestExperiment:
    def test_existing_experiment_reused(self):
        client = MagicMock()
        client.get_experiment_by_name.return_value = SimpleNamespace(experiment_id=3)

        assert get_or_create_experiment_id(client, "scala_classic") == "3"
        client.create_experiment.assert_not_called()

    def test_missing_experiment_created(self):
        client = MagicMock()
        client.get_experiment_by_name.return_value = None
        client.create_experiment.return_value = "11"

        assert get_or_create_experiment_id(client, "scala_classic") == "11"
        client.create_experiment.assert_called_once_with("scala_classic")


def test_source_name_is_file_name():
    assert get_source_name("/opt/jobs/wine_quality/model_training.py") == "model_training.py"
