import importlib
import shutil
from pathlib import Path

from pyspark.ml import PipelineModel
from pyspark.sql import DataFrame


def save_spark_model(model: PipelineModel, model_path: Path) -> Path:
    """Native Spark ML pipeline format, replacing any previous save."""
    model.write().overwrite().save(str(model_path))
    print(f"[export] Spark ML model saved to {model_path}")
    return model_path


def _spark_support():
    # mleap.pyspark patches pyspark classes on import and needs a live JVM.
    return importlib.import_module("mleap.pyspark.spark_support")


def save_mleap_bundle(model: PipelineModel, bundle_dir: Path, dataset: DataFrame) -> Path:
    """
    Serialize the pipeline as an MLeap directory bundle.

    ``dataset`` must be the output of ``model.transform`` so MLeap can infer
    the schema of every stage. The MLeap runtime jars have to be on the Spark
    classpath (spark.jars.packages).
    """
    bundle_dir = bundle_dir.resolve()
    if bundle_dir.exists():
        shutil.rmtree(bundle_dir)
    bundle_dir.mkdir(parents=True)

    serializer = _spark_support().SimpleSparkSerializer()
    serializer.serializeToBundle(model, f"file:{bundle_dir}", dataset)
    print(f"[export] MLeap bundle saved to {bundle_dir}")
    return bundle_dir
