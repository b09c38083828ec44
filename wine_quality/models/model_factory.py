from typing import List

from pyspark.ml import Pipeline
from pyspark.ml.feature import VectorAssembler
from pyspark.ml.regression import DecisionTreeRegressor


def build_pipeline(
    feature_cols: List[str],
    label_col: str,
    features_col: str,
    max_depth: int,
    max_bins: int,
) -> Pipeline:
    """Assembler over every feature column followed by a decision tree regressor."""
    if not feature_cols:
        raise ValueError("At least one feature column is required to build the pipeline")
    if label_col in feature_cols:
        raise ValueError(f"Label column '{label_col}' must not be used as a feature")

    assembler = VectorAssembler(inputCols=list(feature_cols), outputCol=features_col)
    dt = DecisionTreeRegressor(
        labelCol=label_col,
        featuresCol=features_col,
        maxDepth=max_depth,
        maxBins=max_bins,
    )
    return Pipeline(stages=[assembler, dt])
