"""
Regression metrics for the test-split predictions.

Metrics are computed with Spark's RegressionEvaluator so the numbers match
what any other Spark ML job reports for the same predictions.
"""

from typing import Dict, Tuple

from pyspark.ml.evaluation import RegressionEvaluator
from pyspark.sql import DataFrame

# Logged in this order.
METRIC_NAMES: Tuple[str, ...] = ("rmse", "r2", "mae")


def evaluate_predictions(
    predictions: DataFrame,
    label_col: str,
    prediction_col: str,
) -> Dict[str, float]:
    """Return {metric: value} for RMSE, R2 and MAE, in that order."""
    metrics: Dict[str, float] = {}
    print("[evaluation] metrics:")
    for metric in METRIC_NAMES:
        evaluator = RegressionEvaluator(
            labelCol=label_col,
            predictionCol=prediction_col,
            metricName=metric,
        )
        value = float(evaluator.evaluate(predictions))
        print(f"[evaluation]   {metric}: {value} - isLargerBetter: {evaluator.isLargerBetter()}")
        metrics[metric] = value
    return metrics
