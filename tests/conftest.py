"""
Shared pytest fixtures and record builders for the peer-assessment tests.

Student ids follow the roster pattern (one letter + nine digits); ``sid(n)``
builds ``A00000000n``-style ids so tests read as "student 1", "student 2".
Source fixtures are all-string DataFrames, matching what the CSV loaders
return.
"""

from __future__ import annotations

import itertools

import pandas as pd
import pytest

from peer_assessment.ingest.config import (
    QUESTION_COLUMNS,
    ROSTER_COLUMNS,
    SUBMISSION_COLUMNS,
)
from peer_assessment.ingest.models import KnownStudent, Response, RosterIndex
from peer_assessment.scoring.metrics import EvaluatorMetrics


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def sid(n: int, letter: str = "A") -> str:
    """Canonical student id for test student ``n``."""
    return f"{letter}{n:09d}"


def email_for(n: int, letter: str = "A") -> str:
    return f"{sid(n, letter).lower()}@mail.shu.edu.tw"


def make_student(n: int, name: str | None = None, units=("A",), email: str | None = None):
    return KnownStudent(
        id=sid(n),
        name=name or f"Student {n:02d}",
        email=email or email_for(n),
        units=tuple(units),
    )


def make_roster(*students: KnownStudent) -> RosterIndex:
    return RosterIndex.from_students(list(students))


_response_ids = itertools.count(1)


def make_response(
    evaluator_id: str,
    evaluated_id: str,
    question_id: str = "Q1",
    value=3.0,
    response_type: str = "SCORE",
    unit_context: str = "",
) -> Response:
    return Response(
        id=f"RESP_TEST_{next(_response_ids)}",
        question_id=question_id,
        value=value,
        type=response_type,
        evaluator_id=evaluator_id,
        evaluated_id=evaluated_id,
        timestamp="2025-03-01T10:00:00",
        unit_context=unit_context,
    )


def make_comment(evaluator_id: str, evaluated_id: str, question_id: str = "Q1", text="Solid work"):
    return make_response(evaluator_id, evaluated_id, question_id, text, "COMMENT")


def make_metrics(scores, **kwargs) -> EvaluatorMetrics:
    return EvaluatorMetrics(evaluator_id=sid(1), scores=[float(s) for s in scores], **kwargs)


def submission_row(**overrides) -> dict:
    """A valid SCORE row (student 1 scores student 2 on Q1 with 3), with overrides."""
    row = {
        "evaluatorId": sid(1),
        "evaluatedStudentId": sid(2),
        "evaluatedStudentName": "Bob",
        "questionId": "Q1",
        "responseType": "SCORE",
        "responseValue": "3",
        "timestamp": "2025-03-01 10:20:30",
        "unitContextOfEvaluation": "A",
    }
    row.update(overrides)
    return row


def frame(rows: list[dict], columns: list[str]) -> pd.DataFrame:
    """All-string DataFrame with exactly ``columns`` (missing cells blank)."""
    df = pd.DataFrame(rows, columns=columns).fillna("")
    return df.astype(str)


def write_sources(data_dir, roster_rows, question_rows, submission_rows=None) -> None:
    """Write the three source sheets as CSV files into ``data_dir``."""
    data_dir.mkdir(parents=True, exist_ok=True)
    frame(roster_rows, ROSTER_COLUMNS).to_csv(data_dir / "PaMasterStudentList.csv", index=False)
    frame(question_rows, QUESTION_COLUMNS).to_csv(data_dir / "PaQuestionConfig.csv", index=False)
    if submission_rows is not None:
        frame(submission_rows, SUBMISSION_COLUMNS).to_csv(
            data_dir / "PaRawSubmissionsV2.csv", index=False
        )


# ---------------------------------------------------------------------------
# Source fixtures
# ---------------------------------------------------------------------------

ROSTER_ROWS = [
    {"studentId": sid(1), "studentName": "Alice", "unit1": "A", "unit2": "",
     "email": email_for(1), "status": "active"},
    {"studentId": sid(2), "studentName": "Bob", "unit1": "Unit A", "unit2": "b",
     "email": "", "status": "Enrolled"},
    {"studentId": sid(3), "studentName": "Carol", "unit1": "B", "unit2": "B",
     "email": "not-an-email", "status": ""},
    {"studentId": sid(4), "studentName": "Dave", "unit1": "C", "unit2": "",
     "email": email_for(4), "status": "withdrawn"},
    {"studentId": "bad-id", "studentName": "Eve", "unit1": "A", "unit2": "",
     "email": "", "status": "active"},
    {"studentId": sid(1), "studentName": "Alice Duplicate", "unit1": "D", "unit2": "",
     "email": "", "status": "active"},
]

QUESTION_ROWS = [
    {"QuestionID": "Q1", "QuestionText": "Contribution to the team", "QuestionType": "LikertScale",
     "Choices": "", "InstructionalComment": "Rate overall effort"},
    {"QuestionID": "q2", "QuestionText": "Communication", "QuestionType": "",
     "Choices": "1, 2,3,4", "InstructionalComment": ""},
    {"QuestionID": "", "QuestionText": "", "QuestionType": "",
     "Choices": "", "InstructionalComment": ""},
    {"QuestionID": "X9", "QuestionText": "Invalid code", "QuestionType": "LikertScale",
     "Choices": "", "InstructionalComment": ""},
]


@pytest.fixture
def roster_df():
    return frame(ROSTER_ROWS, ROSTER_COLUMNS)


@pytest.fixture
def questions_df():
    return frame(QUESTION_ROWS, QUESTION_COLUMNS)


@pytest.fixture
def submissions_df():
    rows = [
        submission_row(),
        submission_row(questionId="Q2", responseValue="4"),
        submission_row(responseType="COMMENT", responseValue="  Great teammate  "),
        submission_row(evaluatorId=sid(2), evaluatedStudentId=sid(1),
                       evaluatedStudentName="Alice", responseValue="2"),
        submission_row(responseValue="7"),
        submission_row(evaluatorId=sid(9)),
    ]
    return frame(rows, SUBMISSION_COLUMNS)


@pytest.fixture
def data_dir(tmp_path):
    """A data directory holding a small, fully valid set of sources."""
    directory = tmp_path / "data"
    submissions = [
        submission_row(),
        submission_row(questionId="Q2", responseValue="4"),
        submission_row(responseType="COMMENT", responseValue="Always prepared"),
        submission_row(evaluatorId=sid(2), evaluatedStudentId=sid(1),
                       evaluatedStudentName="Alice", responseValue="2"),
        submission_row(evaluatorId=sid(2), evaluatedStudentId=sid(3),
                       evaluatedStudentName="Carol", responseValue="4",
                       unitContextOfEvaluation="B"),
        submission_row(evaluatedStudentId=sid(7), evaluatedStudentName="Guest Student",
                       responseValue="1"),
        submission_row(questionId="Q99"),
    ]
    write_sources(directory, ROSTER_ROWS, QUESTION_ROWS, submissions)
    return directory
