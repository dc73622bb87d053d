"""All-responses report: every normalized response with names, prompt and evaluator weight."""

from __future__ import annotations

import pandas as pd

from ..ingest.models import NormalizedData
from ..scoring.config import WEIGHT_PRECISION

ALL_RESPONSES_COLUMNS: list[str] = [
    "timestamp", "evaluatedStudentId", "evaluatedStudentName", "questionId",
    "questionPrompt", "responseType", "responseValue", "evaluatorId",
    "evaluatorName", "evaluatorWeight", "unitContextOfEvaluation",
]


def all_responses_frame(data: NormalizedData, weights: dict[str, float]) -> pd.DataFrame:
    """
    One row per accepted response, sorted by evaluated id, question, evaluator, timestamp.

    Evaluated students resolve to roster or placeholder names; evaluators
    missing from ``weights`` show weight 0.
    """
    rows = []
    for r in data.responses:
        evaluated = data.resolve(r.evaluated_id)
        evaluator = data.roster.get(r.evaluator_id)
        question = data.questions.get(r.question_id)
        rows.append({
            "timestamp": r.timestamp,
            "evaluatedStudentId": r.evaluated_id,
            "evaluatedStudentName": evaluated.name if evaluated else "",
            "questionId": r.question_id,
            "questionPrompt": question.prompt if question else "",
            "responseType": r.type,
            "responseValue": r.value,
            "evaluatorId": r.evaluator_id,
            "evaluatorName": evaluator.name if evaluator else "",
            "evaluatorWeight": round(weights.get(r.evaluator_id, 0.0), WEIGHT_PRECISION),
            "unitContextOfEvaluation": r.unit_context,
        })
    df = pd.DataFrame(rows, columns=ALL_RESPONSES_COLUMNS)
    if not df.empty:
        df = df.sort_values(
            ["evaluatedStudentId", "questionId", "evaluatorId", "timestamp"], kind="stable"
        ).reset_index(drop=True)
    return df
