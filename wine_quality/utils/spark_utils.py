import json
import platform
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import mlflow
import pyspark
from pyspark.sql import SparkSession, DataFrame

from wine_quality.config.config import DataConfig, SparkConfig


## create a spark session
class SparkUtils:
    def __init__(self, config: Optional[SparkConfig] = None):
        self.config = config or SparkConfig()
        self.spark = self._create_spark_session()

    def _create_spark_session(self) -> SparkSession:
        """
        Create and configure Spark session.

        Returns:
            Configured SparkSession
        """
        builder = (SparkSession.builder
                   .appName(self.config.app_name)
                   .master(self.config.master)
                   .config("spark.sql.shuffle.partitions", str(self.config.shuffle_partitions))
                   .config("spark.driver.host", self.config.driver_host)
                   .config("spark.driver.bindAddress", self.config.bind_address))
        if self.config.jars_packages:
            builder = builder.config("spark.jars.packages", ",".join(self.config.jars_packages))
        return builder.getOrCreate()


def show_versions(spark: SparkSession) -> Dict[str, str]:
    """Print the versions of the libraries doing the real work."""
    versions = {
        "spark": spark.version,
        "pyspark": pyspark.__version__,
        "mlflow": mlflow.__version__,
        "python": platform.python_version(),
    }
    print("[spark] versions:")
    for name, version in versions.items():
        print(f"[spark]   {name}: {version}")
    return versions


_URI_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]+:")
_GLOB_CHARS = set("*?[{")


def _is_plain_local_path(data_path: str) -> bool:
    # Single-letter prefixes are Windows drives, not schemes.
    if _URI_SCHEME.match(data_path):
        return False
    return not any(ch in _GLOB_CHARS for ch in data_path)


def read_data(
    spark: SparkSession,
    data_path: str,
    data_config: DataConfig,
    require_label: bool = True,
) -> DataFrame:
    """
    Read the delimited wine quality file with a header row and inferred schema.

    URIs (file:, hdfs:, dbfs:, s3a://, ...) and glob patterns are handed to
    Spark as-is. Plain local paths are checked first so a typo fails with a
    readable message.
    """
    if _is_plain_local_path(data_path) and not Path(data_path).exists():
        raise FileNotFoundError(f"Data file not found: {data_path}")

    df = (spark.read
          .format("csv")
          .option("header", "true")
          .option("inferSchema", "true")
          .option("sep", data_config.delimiter)
          .load(data_path))

    if require_label and data_config.label_col not in df.columns:
        raise ValueError(
            f"Label column '{data_config.label_col}' missing in {data_path}. "
            f"Columns: {df.columns}"
        )
    return df


def feature_columns(df: DataFrame, label_col: str) -> List[str]:
    return [c for c in df.columns if c != label_col]


def write_metadata_json(
    metadata: Dict[str, Any],
    output_dir: Path,
    filename: str = "training_metadata.json",
) -> Path:
    """
    Write metadata atomically to <output_dir>/<filename>.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    metadata_path = output_dir / filename
    tmp_path = metadata_path.with_suffix(metadata_path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as handle:
        json.dump(metadata, handle, indent=2, sort_keys=False, default=str)
        handle.write("\n")
    tmp_path.replace(metadata_path)
    return metadata_path
