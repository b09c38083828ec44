import os
from pathlib import Path
from typing import Optional

from mlflow.tracking import MlflowClient

from wine_quality.config.config import TrackingConfig


def resolve_token(tracking: TrackingConfig, token: Optional[str] = None) -> Optional[str]:
    """
    Resolve the REST API token: explicit value, then env var, then .env file.
    Returns None when no token is configured anywhere.
    """
    if token:
        return token.strip()

    key = tracking.token_env_key
    value = os.getenv(key)
    if value and value.strip():
        return value.strip()

    env_path = Path(tracking.env_file_path)
    if not env_path.exists():
        return None

    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        k, v = stripped.split("=", 1)
        if k.strip() == key:
            return v.strip().strip('"').strip("'") or None
    return None


def create_mlflow_client(
    tracking_uri: Optional[str],
    token: Optional[str],
    tracking: Optional[TrackingConfig] = None,
) -> MlflowClient:
    tracking = tracking or TrackingConfig()
    resolved = resolve_token(tracking, token)
    if resolved:
        os.environ["MLFLOW_TRACKING_TOKEN"] = resolved

    if tracking_uri is None:
        print(f"[tracking] MLFLOW_TRACKING_URI: {os.getenv('MLFLOW_TRACKING_URI')}")
        return MlflowClient()
    print(f"[tracking] tracking URI: {tracking_uri}")
    return MlflowClient(tracking_uri=tracking_uri)


def get_or_create_experiment_id(client: MlflowClient, experiment_name: str) -> str:
    experiment = client.get_experiment_by_name(experiment_name)
    if experiment is not None:
        print(f"[tracking] found experiment '{experiment_name}' ID: {experiment.experiment_id}")
        return str(experiment.experiment_id)

    experiment_id = client.create_experiment(experiment_name)
    print(f"[tracking] created new experiment '{experiment_name}' ID: {experiment_id}")
    return str(experiment_id)


def get_source_name(module_file: str) -> str:
    """Program identifier recorded in the mlflow.source.name tag."""
    return Path(module_file).name
