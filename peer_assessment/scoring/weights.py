"""
Evaluator trust weights.

Maps each evaluator's metrics to a weight in [0, 1] through a
deterministic rule cascade:

1. No scores at all             → 0.0
2. Fewer than ``min_scores``    → ``insufficient_data_weight`` (0.4)
3. Otherwise start from ``base_weight`` (1.0) and apply every rule in
   :func:`weight_adjustments`, clamp to [0, 1], and raise the result to
   ``participation_floor`` (0.4) when it falls below it.

Weights are rounded to three decimals.  All thresholds come from a
:class:`~peer_assessment.scoring.config.WeightPolicy`.
"""

from __future__ import annotations

from .config import DEFAULT_WEIGHT_POLICY, WEIGHT_PRECISION, WeightPolicy
from .metrics import EvaluatorMetrics


def weight_adjustments(
    metrics: EvaluatorMetrics,
    policy: WeightPolicy = DEFAULT_WEIGHT_POLICY,
) -> list[tuple[str, float]]:
    """
    List the rules that fire for ``metrics``, in evaluation order.

    Only evaluators with at least ``policy.min_scores`` scores are
    adjusted; everyone else gets an empty list.

    Returns:
        List of ``(rule_name, delta)``; penalties are negative.
    """
    n = metrics.scored_count
    if n < policy.min_scores:
        return []

    applied: list[tuple[str, float]] = []
    mean = metrics.mean
    enough_for_spread = n >= policy.min_scores_for_spread_rules

    # Score-level bias
    if mean > policy.severe_warm_bias_threshold:
        applied.append(("severe_warm_bias", -policy.severe_warm_bias_penalty))
    elif mean > policy.warm_bias_threshold:
        applied.append(("warm_bias", -policy.warm_bias_penalty))

    if mean < policy.severe_cold_bias_threshold:
        applied.append(("severe_cold_bias", -policy.severe_cold_bias_penalty))
    elif mean < policy.cold_bias_threshold:
        applied.append(("cold_bias", -policy.cold_bias_penalty))

    # Use of the top of the scale
    if metrics.pct_max > policy.max_score_pct_threshold:
        applied.append(("high_max_score_rate", -policy.max_score_pct_penalty))
        if metrics.pct_max > policy.very_high_max_score_pct_threshold:
            applied.append(("very_high_max_score_rate", -policy.very_high_max_score_pct_penalty))

    # Avoiding the bottom of the scale while rating generously
    if metrics.pct_min < policy.low_min_score_pct_threshold and mean > policy.warm_bias_threshold:
        applied.append(("avoids_min_score", -policy.low_min_score_pct_penalty))

    # Range restriction
    distinct = metrics.distinct_count
    if distinct == 1:
        applied.append(("single_value_used", -policy.single_value_penalty))
    elif distinct == 2:
        applied.append(("two_values_used", -policy.two_values_penalty))
    elif enough_for_spread and metrics.std_dev < policy.low_sd_threshold:
        applied.append(("low_spread", -policy.low_sd_penalty))

    # Rubber-stamping: near-identical scores to the same peer
    intra = metrics.avg_intra_peer_sd
    if enough_for_spread and intra is not None and intra < policy.intra_peer_sd_threshold:
        applied.append(("low_intra_peer_variation", -policy.intra_peer_sd_penalty))

    # Systematic disagreement with peer consensus
    deviation = metrics.avg_consensus_deviation
    if (
        enough_for_spread
        and deviation is not None
        and deviation > policy.consensus_deviation_threshold
    ):
        applied.append(("consensus_deviation", -policy.consensus_deviation_penalty))

    # Comment engagement
    if metrics.comment_coverage > policy.comment_coverage_threshold:
        applied.append(("comment_coverage", policy.comment_coverage_bonus))
        if metrics.comment_coverage > policy.high_comment_coverage_threshold:
            applied.append(("high_comment_coverage", policy.high_comment_coverage_bonus))

    return applied


def calculate_evaluator_weight(
    metrics: EvaluatorMetrics,
    policy: WeightPolicy = DEFAULT_WEIGHT_POLICY,
) -> float:
    """
    Compute one evaluator's trust weight.

    Args:
        metrics: The evaluator's metrics.
        policy: Thresholds and deltas; defaults to :data:`DEFAULT_WEIGHT_POLICY`.

    Returns:
        Weight in [0.0, 1.0], rounded to three decimals.
    """
    n = metrics.scored_count
    if n == 0:
        return 0.0
    if n < policy.min_scores:
        return round(policy.insufficient_data_weight, WEIGHT_PRECISION)

    weight = policy.base_weight + sum(delta for _, delta in weight_adjustments(metrics, policy))
    weight = min(1.0, max(0.0, weight))
    if weight < policy.participation_floor:
        weight = policy.participation_floor
    return round(weight, WEIGHT_PRECISION)


def calculate_evaluator_weights(
    metrics_by_id: dict[str, EvaluatorMetrics],
    policy: WeightPolicy = DEFAULT_WEIGHT_POLICY,
) -> dict[str, float]:
    """Weights for every evaluator in ``metrics_by_id``, keyed by evaluator id."""
    weights = {
        evaluator_id: calculate_evaluator_weight(m, policy)
        for evaluator_id, m in metrics_by_id.items()
    }
    if weights:
        floored = sum(
            1 for evaluator_id, w in weights.items()
            if w == policy.participation_floor
            and metrics_by_id[evaluator_id].scored_count >= policy.min_scores
        )
        print(f"Evaluator weights: {len(weights)} computed, "
              f"{sum(1 for w in weights.values() if w == 0.0)} at 0.0, "
              f"{floored} at the participation floor")
    return weights
