"""
Weighted per-question scores and overall per-student summaries.

For every (evaluated student, question) pair with at least one score:

* weighted mean over responses whose evaluator weight is > 0;
* otherwise the plain mean of the scores (every evaluator weighted 0);
* the overall summary is the median of a student's per-question scores.

Full precision is kept in :class:`ScoreAggregate`; values are rounded to
``DISPLAY_PRECISION`` only when the final-scores frame is rendered.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass

import numpy as np
import pandas as pd

from ..ingest.models import PlaceholderStudent, Question, Response, RosterIndex
from .config import DISPLAY_PRECISION, OVERALL_COLUMN

METHOD_WEIGHTED = "weighted"
METHOD_UNWEIGHTED_MEAN = "unweighted_mean"


@dataclass(frozen=True)
class ScoreAggregate:
    student_id: str
    question_id: str
    weighted_score: float | None
    method: str | None
    n_scores: int
    n_weighted: int

    @property
    def display_score(self) -> float | None:
        if self.weighted_score is None:
            return None
        return round(self.weighted_score, DISPLAY_PRECISION)


def weighted_score(scored_pairs: list[tuple[float, float]]) -> float | None:
    """
    Combine ``(score, weight)`` pairs into one score.

    Σ(score·weight)/Σ(weight) over pairs with weight > 0; the plain mean
    of all scores when no pair has positive weight; ``None`` when there
    are no pairs.
    """
    if not scored_pairs:
        return None
    contributing = [(s, w) for s, w in scored_pairs if w > 0]
    if contributing:
        scores, weights = zip(*contributing)
        return float(np.average(scores, weights=weights))
    return float(np.mean([s for s, _ in scored_pairs]))


def aggregate_scores(
    responses: list[Response],
    weights: dict[str, float],
) -> dict[tuple[str, str], ScoreAggregate]:
    """
    Aggregate SCORE responses per (evaluated student, question).

    Evaluators missing from ``weights`` count as weight 0.

    Returns:
        Dict keyed by ``(student_id, question_id)``.
    """
    grouped: dict[tuple[str, str], list[tuple[float, float]]] = defaultdict(list)
    for r in responses:
        if r.is_score:
            grouped[(r.evaluated_id, r.question_id)].append(
                (float(r.value), weights.get(r.evaluator_id, 0.0))
            )

    aggregates: dict[tuple[str, str], ScoreAggregate] = {}
    for (student_id, question_id), pairs in grouped.items():
        n_weighted = sum(1 for _, w in pairs if w > 0)
        aggregates[(student_id, question_id)] = ScoreAggregate(
            student_id=student_id,
            question_id=question_id,
            weighted_score=weighted_score(pairs),
            method=METHOD_WEIGHTED if n_weighted else METHOD_UNWEIGHTED_MEAN,
            n_scores=len(pairs),
            n_weighted=n_weighted,
        )

    fallback = sum(1 for a in aggregates.values() if a.method == METHOD_UNWEIGHTED_MEAN)
    print(f"Aggregated scores: {len(aggregates)} student×question cells "
          f"({fallback} via unweighted fallback)")
    return aggregates


def overall_medians(
    aggregates: dict[tuple[str, str], ScoreAggregate],
) -> dict[str, float | None]:
    """Median of each student's available per-question scores (``None`` if none)."""
    per_student: dict[str, list[float]] = {}
    for (student_id, _), agg in aggregates.items():
        per_student.setdefault(student_id, [])
        if agg.weighted_score is not None:
            per_student[student_id].append(agg.weighted_score)
    return {
        student_id: float(np.median(scores)) if scores else None
        for student_id, scores in per_student.items()
    }


def question_order(questions: dict[str, Question]) -> list[str]:
    """Question ids in numeric order (Q2 before Q10)."""
    return sorted(questions, key=lambda qid: (int(qid[1:]), qid))


def _cell(value: float | None):
    return "" if value is None else round(value, DISPLAY_PRECISION)


def final_scores_frame(
    roster: RosterIndex,
    placeholders: dict[str, PlaceholderStudent],
    questions: dict[str, Question],
    aggregates: dict[tuple[str, str], ScoreAggregate],
) -> pd.DataFrame:
    """
    Render the final-scores report.

    One row per roster student (sorted by name, then id) followed by every
    placeholder student that received at least one score.  One lowercase
    column per question id plus ``overallWeightedMedian``; cells without a
    score are blank, never zero.
    """
    qids = question_order(questions)
    medians = overall_medians(aggregates)
    scored_students = {student_id for student_id, _ in aggregates}

    students = list(roster.sorted_by_name()) + sorted(
        (p for p in placeholders.values() if p.id in scored_students),
        key=lambda p: (p.name, p.id),
    )

    rows = []
    for student in students:
        row = {"studentId": student.id, "studentName": student.name}
        for qid in qids:
            agg = aggregates.get((student.id, qid))
            row[qid.lower()] = _cell(agg.weighted_score if agg else None)
        row[OVERALL_COLUMN] = _cell(medians.get(student.id))
        rows.append(row)

    columns = ["studentId", "studentName"] + [q.lower() for q in qids] + [OVERALL_COLUMN]
    return pd.DataFrame(rows, columns=columns)
