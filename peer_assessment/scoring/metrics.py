"""
Evaluator behavioral statistics.

For every active roster student this module collects the scores and
comments they gave and derives the signals the trust-weight calculator
reads: score level and spread, use of the scale extremes, distinct values
used, per-peer consistency, deviation from peer consensus and comment
engagement.  Everything is recomputed from the full response set on each
run; there is no incremental state.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from ..ingest.models import Response, RosterIndex
from .config import (
    ANALYTICS_COLUMNS,
    DISPLAY_PRECISION,
    NOT_AVAILABLE,
    SCORE_MAX,
    SCORE_MIN,
    WEIGHT_PRECISION,
)


# ---------------------------------------------------------------------------
# Metrics record
# ---------------------------------------------------------------------------

@dataclass
class EvaluatorMetrics:
    """
    Raw observations and derived statistics for one evaluator.

    Derived values are properties over the raw lists; statistics that
    need data the evaluator never produced return ``None``.
    """

    evaluator_id: str
    scores: list[float] = field(default_factory=list)
    comment_lengths: list[int] = field(default_factory=list)
    # (evaluated, question) pairs that received both a score and a comment
    scored_with_comment: int = 0
    consensus_deviations: list[float] = field(default_factory=list)
    peer_sds: list[float] = field(default_factory=list)

    # -- counts -------------------------------------------------------------

    @property
    def scored_count(self) -> int:
        return len(self.scores)

    @property
    def comment_count(self) -> int:
        return len(self.comment_lengths)

    @property
    def distinct_count(self) -> int:
        return len(set(self.scores))

    # -- score level and spread --------------------------------------------

    @property
    def mean(self) -> float | None:
        return float(np.mean(self.scores)) if self.scores else None

    @property
    def std_dev(self) -> float:
        """Population standard deviation; 0 with fewer than two scores."""
        if len(self.scores) < 2:
            return 0.0
        return float(np.std(self.scores))

    @property
    def min_score(self) -> float | None:
        return min(self.scores) if self.scores else None

    @property
    def max_score(self) -> float | None:
        return max(self.scores) if self.scores else None

    @property
    def score_range(self) -> float | None:
        if not self.scores:
            return None
        return self.max_score - self.min_score

    # -- scale extremes (0–100) --------------------------------------------

    def _pct(self, count: int) -> float:
        return count / len(self.scores) * 100 if self.scores else 0.0

    @property
    def pct_max(self) -> float:
        return self._pct(sum(1 for s in self.scores if s == SCORE_MAX))

    @property
    def pct_min(self) -> float:
        return self._pct(sum(1 for s in self.scores if s == SCORE_MIN))

    @property
    def pct_mid(self) -> float:
        return self._pct(sum(1 for s in self.scores if SCORE_MIN < s < SCORE_MAX))

    # -- consistency and consensus -----------------------------------------

    @property
    def avg_intra_peer_sd(self) -> float | None:
        """Mean per-peer SD over peers scored at least twice; ``None`` if no such peer."""
        return float(np.mean(self.peer_sds)) if self.peer_sds else None

    @property
    def avg_consensus_deviation(self) -> float | None:
        """Mean |own score − group median excluding self|; ``None`` without comparable scores."""
        return float(np.mean(self.consensus_deviations)) if self.consensus_deviations else None

    # -- comments -----------------------------------------------------------

    @property
    def comment_coverage(self) -> float:
        return self._pct(self.scored_with_comment)

    @property
    def avg_comment_length(self) -> float | None:
        return float(np.mean(self.comment_lengths)) if self.comment_lengths else None


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------

def collect_evaluator_metrics(
    roster: RosterIndex,
    responses: list[Response],
) -> dict[str, EvaluatorMetrics]:
    """
    Compute metrics for every active roster student.

    Students who submitted nothing still get an (empty) record; placeholder
    ids are never evaluators and never appear as keys.

    Args:
        roster: Active roster index.
        responses: Normalized responses (SCORE and COMMENT).

    Returns:
        Dict mapping evaluator id → :class:`EvaluatorMetrics`.
    """
    metrics = {student.id: EvaluatorMetrics(evaluator_id=student.id) for student in roster}

    # (evaluated, question) → [(evaluator, score), ...] across all evaluators
    pair_scores: dict[tuple[str, str], list[tuple[str, float]]] = defaultdict(list)
    # evaluator → (evaluated, question) pairs scored / commented
    scored_pairs: dict[str, set[tuple[str, str]]] = defaultdict(set)
    commented_pairs: dict[str, set[tuple[str, str]]] = defaultdict(set)
    # (evaluator, evaluated) → scores across questions
    peer_scores: dict[tuple[str, str], list[float]] = defaultdict(list)

    for r in responses:
        record = metrics.get(r.evaluator_id)
        if record is None:
            continue
        pair = (r.evaluated_id, r.question_id)
        if r.is_score:
            record.scores.append(float(r.value))
            pair_scores[pair].append((r.evaluator_id, float(r.value)))
            scored_pairs[r.evaluator_id].add(pair)
            peer_scores[(r.evaluator_id, r.evaluated_id)].append(float(r.value))
        elif r.is_comment:
            record.comment_lengths.append(len(str(r.value)))
            commented_pairs[r.evaluator_id].add(pair)

    # Group median excluding self
    for pair, given in pair_scores.items():
        for evaluator_id, score in given:
            others = [s for other_id, s in given if other_id != evaluator_id]
            if others:
                metrics[evaluator_id].consensus_deviations.append(
                    abs(score - float(np.median(others)))
                )

    # Intra-peer consistency
    for (evaluator_id, _), scores in peer_scores.items():
        if len(scores) >= 2:
            metrics[evaluator_id].peer_sds.append(float(np.std(scores)))

    for evaluator_id, record in metrics.items():
        record.scored_with_comment = len(
            scored_pairs[evaluator_id] & commented_pairs[evaluator_id]
        )

    active = sum(1 for m in metrics.values() if m.scored_count)
    print(f"Evaluator metrics: {len(metrics)} evaluators ({active} with scores)")
    return metrics


# ---------------------------------------------------------------------------
# Report rendering
# ---------------------------------------------------------------------------

def _display(value: float | None, precision: int = DISPLAY_PRECISION):
    return NOT_AVAILABLE if value is None else round(value, precision)


def format_adjustments(adjustments: list[tuple[str, float]]) -> str:
    """``[("warm_bias", -0.15)]`` → ``"warm_bias -0.15"``; empty list → ``""``."""
    return "; ".join(f"{rule} {delta:+.2f}" for rule, delta in adjustments)


def evaluator_analytics_frame(
    metrics: dict[str, EvaluatorMetrics],
    weights: dict[str, float],
    roster: RosterIndex,
    adjustments: dict[str, list[tuple[str, float]]] | None = None,
) -> pd.DataFrame:
    """
    Render the evaluator analytics report, one row per evaluator.

    Rows are sorted by evaluator name, then id.  Statistics that need
    scores (or comments) the evaluator never gave render as ``N/A``.

    Args:
        metrics: Output of :func:`collect_evaluator_metrics`.
        weights: Evaluator id → calculated weight.
        roster: Active roster index (for names).
        adjustments: Optional evaluator id → applied (rule, delta) pairs.

    Returns:
        DataFrame with :data:`ANALYTICS_COLUMNS`.
    """
    adjustments = adjustments or {}
    rows = []
    for student in roster.sorted_by_name():
        m = metrics.get(student.id)
        if m is None:
            continue
        has_scores = m.scored_count > 0
        rows.append({
            "evaluatorId": student.id,
            "evaluatorName": student.name,
            "totalScoredAssessments": m.scored_count,
            "avgScoreGiven": _display(m.mean),
            "stdDevScoresGiven": _display(m.std_dev if has_scores else None),
            "distinctScoresUsed": m.distinct_count if has_scores else NOT_AVAILABLE,
            "rangeOfScoresUsed": _display(m.score_range),
            "percentMaxScore": _display(m.pct_max if has_scores else None),
            "percentMinScore": _display(m.pct_min if has_scores else None),
            "percentMidScores": _display(m.pct_mid if has_scores else None),
            "avgIntraPeerSd": _display(m.avg_intra_peer_sd),
            "avgAbsDevFromGroupMedian": _display(m.avg_consensus_deviation),
            "totalComments": m.comment_count,
            "percentScoresWithComment": _display(m.comment_coverage if has_scores else None),
            "avgCommentLength": _display(m.avg_comment_length, 1),
            "calculatedWeight": round(weights.get(student.id, 0.0), WEIGHT_PRECISION),
            "weightAdjustments": format_adjustments(adjustments.get(student.id, [])),
        })
    return pd.DataFrame(rows, columns=ANALYTICS_COLUMNS)
