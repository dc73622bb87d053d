"""
peer_assessment/scoring — Evaluator metrics, trust weights and weighted
score aggregation.

Module layout
-------------
config.py       — Score range, display precision, report columns, WeightPolicy
metrics.py      — Per-evaluator behavioral statistics + analytics report frame
weights.py      — Rule cascade mapping metrics to a weight in [0, 1]
aggregation.py  — Weighted per-question scores, overall medians, final scores

Public interface
----------------
    collect_evaluator_metrics(roster, responses)
    calculate_evaluator_weights(metrics_by_id, policy)
    aggregate_scores(responses, weights)
    final_scores_frame(roster, placeholders, questions, aggregates)
"""

from .aggregation import (
    ScoreAggregate,
    aggregate_scores,
    final_scores_frame,
    overall_medians,
    weighted_score,
)
from .config import DEFAULT_WEIGHT_POLICY, WeightPolicy
from .metrics import (
    EvaluatorMetrics,
    collect_evaluator_metrics,
    evaluator_analytics_frame,
)
from .weights import (
    calculate_evaluator_weight,
    calculate_evaluator_weights,
    weight_adjustments,
)

__all__ = [
    # Policy
    "WeightPolicy",
    "DEFAULT_WEIGHT_POLICY",
    # Metrics
    "EvaluatorMetrics",
    "collect_evaluator_metrics",
    "evaluator_analytics_frame",
    # Weights
    "weight_adjustments",
    "calculate_evaluator_weight",
    "calculate_evaluator_weights",
    # Aggregation
    "ScoreAggregate",
    "weighted_score",
    "aggregate_scores",
    "overall_medians",
    "final_scores_frame",
]
