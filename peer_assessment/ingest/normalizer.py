"""
Normalization of raw roster, question-catalog and submission rows into
canonical Student, Question and Response records.

Roster and catalog problems are fatal (``SourceError``); a malformed
submission row is a soft failure recorded as a :class:`SkipReason` while
processing continues.  Each submission row is parsed into either a
``Response`` or a ``SkipReason`` and the two are partitioned afterwards.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime
from pathlib import Path

import pandas as pd

from .config import (
    DEFAULT_QUESTION_TYPE,
    DEFAULT_STATUS,
    PLACEHOLDER_EMAIL,
    PLACEHOLDER_NAME,
    RESPONSE_TYPE_SCORE,
    RESPONSE_TYPES,
    SKIPPED_ROWS_LOG,
    UNKNOWN_ID_PREFIX,
)
from .models import (
    KnownStudent,
    NormalizedData,
    PlaceholderStudent,
    Question,
    Response,
    RosterIndex,
    SkipReason,
)
from .sources import SourceError
from .validators import (
    clean_cell,
    derive_email_from_id,
    extract_student_id_from_email,
    is_active_status,
    is_valid_email,
    is_valid_question_id,
    is_valid_score,
    is_valid_student_id,
    is_valid_unit,
    normalize_unit,
    parse_score,
)

# Skip reason codes
MISSING_FIELDS = "missing_fields"
UNKNOWN_EVALUATOR = "unknown_evaluator"
INVALID_EVALUATED_ID = "invalid_evaluated_id"
EVALUATOR_WITHOUT_EMAIL = "evaluator_without_valid_email"
UNKNOWN_QUESTION = "unknown_question"
UNSUPPORTED_TYPE = "unsupported_response_type"
UNPARSEABLE_SCORE = "unparseable_score"
SCORE_OUT_OF_RANGE = "score_out_of_range"


# ---------------------------------------------------------------------------
# Identity helpers
# ---------------------------------------------------------------------------

def canonical_identifier(raw: object) -> str:
    """
    Uppercase an identifier cell; an institutional email becomes its id.

    ``"a123456789@mail.shu.edu.tw"`` → ``"A123456789"``; ``" b1 "`` → ``"B1"``.
    """
    text = clean_cell(raw)
    from_email = extract_student_id_from_email(text)
    return from_email if from_email else text.upper()


def is_valid_evaluated_id(student_id: str) -> bool:
    """A canonical id, or an explicit ``UNKNOWNID_<...>`` marker for an off-roster peer."""
    return is_valid_student_id(student_id) or (
        student_id.startswith(UNKNOWN_ID_PREFIX) and len(student_id) > len(UNKNOWN_ID_PREFIX)
    )


def _normalized_units(unit1: object, unit2: object) -> tuple[str, ...]:
    units: list[str] = []
    for raw in (unit1, unit2):
        unit = normalize_unit(raw)
        if is_valid_unit(unit) and unit not in units:
            units.append(unit)
    return tuple(units)


def _roster_email(raw_email: object, student_id: str) -> str:
    email = clean_cell(raw_email).lower()
    if is_valid_email(email):
        return email
    return derive_email_from_id(student_id) or PLACEHOLDER_EMAIL.format(student_id=student_id)


# ---------------------------------------------------------------------------
# Roster
# ---------------------------------------------------------------------------

def build_roster(roster_df: pd.DataFrame) -> RosterIndex:
    """
    Build the immutable roster index from master-list rows.

    A row is kept only if its id matches the canonical pattern (an id is
    derived from a valid email when the id cell is blank) and its status
    is ``active``/``enrolled`` (blank → active).  Units are normalized and
    invalid tags dropped; emails are lowercased, and derived from the id
    when absent or malformed.

    Raises:
        SourceError: No usable active rows.
    """
    students: list[KnownStudent] = []
    seen: set[str] = set()

    for i, row in enumerate(roster_df.to_dict("records"), start=2):
        raw_id = clean_cell(row.get("studentId"))
        raw_email = clean_cell(row.get("email")).lower()
        student_id = raw_id.upper()
        email_id = extract_student_id_from_email(raw_email)

        if not student_id and email_id:
            student_id = email_id
        elif email_id and student_id != email_id:
            print(f"  WARNING: roster row {i}: id '{student_id}' differs from email "
                  f"'{raw_email}'; using explicit id.")

        if not is_valid_student_id(student_id):
            continue
        if not is_active_status(clean_cell(row.get("status")) or DEFAULT_STATUS):
            continue
        if student_id in seen:
            print(f"  WARNING: roster row {i}: duplicate id '{student_id}' ignored.")
            continue
        seen.add(student_id)

        name = clean_cell(row.get("studentName")) or PLACEHOLDER_NAME.format(student_id=student_id)
        students.append(KnownStudent(
            id=student_id,
            name=name,
            email=_roster_email(raw_email, student_id),
            units=_normalized_units(row.get("unit1"), row.get("unit2")),
            status=(clean_cell(row.get("status")) or DEFAULT_STATUS).lower(),
        ))

    if not students:
        raise SourceError(
            "No active/enrolled students loaded from the roster. "
            "Check student statuses and IDs."
        )
    print(f"Roster: {len(students)} active students "
          f"({len(roster_df) - len(students)} rows excluded)")
    return RosterIndex.from_students(students)


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------

def build_questions(questions_df: pd.DataFrame) -> dict[str, Question]:
    """
    Build the question catalog keyed by uppercase question id.

    Rows without an id matching the short-code pattern or without prompt
    text are dropped; blank type, choices and instruction fall back to
    defaults.

    Raises:
        SourceError: No usable question rows.
    """
    questions: dict[str, Question] = {}
    for i, row in enumerate(questions_df.to_dict("records"), start=2):
        question_id = clean_cell(row.get("QuestionID")).upper()
        prompt = clean_cell(row.get("QuestionText"))
        if not question_id or not prompt:
            if question_id or prompt:
                print(f"  WARNING: question row {i} skipped (missing QuestionID or QuestionText).")
            continue
        if not is_valid_question_id(question_id):
            print(f"  WARNING: question row {i} skipped (invalid id '{question_id}').")
            continue

        choices = tuple(c.strip() for c in clean_cell(row.get("Choices")).split(",") if c.strip())
        questions[question_id] = Question(
            id=question_id,
            prompt=prompt,
            type=clean_cell(row.get("QuestionType")) or DEFAULT_QUESTION_TYPE,
            choices=choices,
            instruction=clean_cell(row.get("InstructionalComment")),
        )

    if not questions:
        raise SourceError("No questions were loaded from the question catalog. Cannot proceed.")
    print(f"Questions: {len(questions)} loaded")
    return questions


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

def normalize_timestamp(raw: object) -> str:
    """ISO-8601 string for a timestamp cell; the current time if blank or unparseable."""
    text = clean_cell(raw)
    parsed = pd.to_datetime(text, errors="coerce") if text else pd.NaT
    if pd.isna(parsed):
        return datetime.now().isoformat(timespec="seconds")
    return parsed.isoformat()


def make_response_id(
    timestamp: str,
    evaluator_id: str,
    evaluated_id: str,
    question_id: str,
    response_type: str,
) -> str:
    """``RESP_<yyyymmddHHMMSS>_<evaluator>_<evaluated>_<question>_<TYPE>_<random>``."""
    ts_short = "".join(ch for ch in timestamp if ch.isdigit())[:14]
    suffix = uuid.uuid4().hex[:6].upper()
    return (
        f"RESP_{ts_short}_{evaluator_id}_{evaluated_id}_"
        f"{question_id}_{response_type[:4]}_{suffix}"
    )


def parse_submission_row(
    row_number: int,
    row: dict,
    roster: RosterIndex,
    questions: dict[str, Question],
) -> Response | SkipReason:
    """
    Turn one raw submission row into a Response, or explain why it was skipped.

    Well-formed evaluated ids missing from the roster are accepted here;
    the caller synthesizes the placeholder student.  Free-text ids such as
    ``N/A`` are skipped.

    Args:
        row_number: 1-based sheet row number (header is row 1).
        row: Raw row dict keyed by submission headers.
        roster: Active roster index.
        questions: Question catalog keyed by id.

    Returns:
        A :class:`Response` or a :class:`SkipReason`.
    """
    evaluator_id = canonical_identifier(row.get("evaluatorId"))
    evaluated_id = canonical_identifier(row.get("evaluatedStudentId"))
    question_id = clean_cell(row.get("questionId")).upper()
    response_type = clean_cell(row.get("responseType")).upper()
    raw_value = clean_cell(row.get("responseValue"))

    def skip(reason: str, detail: str = "") -> SkipReason:
        return SkipReason(
            row_number=row_number,
            reason=reason,
            evaluator_id=evaluator_id,
            evaluated_id=evaluated_id,
            question_id=question_id,
            detail=detail,
        )

    if not (evaluator_id and evaluated_id and question_id and response_type and raw_value):
        return skip(MISSING_FIELDS, "evaluator, evaluated, question, type or value missing")
    if not is_valid_evaluated_id(evaluated_id):
        return skip(INVALID_EVALUATED_ID, f"evaluated id '{evaluated_id}'")

    evaluator = roster.get(evaluator_id)
    if evaluator is None:
        return skip(UNKNOWN_EVALUATOR, "evaluator not in active roster")
    if not evaluator.has_deliverable_email:
        return skip(EVALUATOR_WITHOUT_EMAIL, f"email '{evaluator.email}'")

    if question_id not in questions:
        return skip(UNKNOWN_QUESTION, "question id not in catalog")
    if response_type not in RESPONSE_TYPES:
        return skip(UNSUPPORTED_TYPE, f"type '{response_type}'")

    value: float | str
    if response_type == RESPONSE_TYPE_SCORE:
        score = parse_score(raw_value)
        if score is None:
            return skip(UNPARSEABLE_SCORE, f"value '{raw_value}'")
        if not is_valid_score(score):
            return skip(SCORE_OUT_OF_RANGE, f"value {score}")
        value = score
    else:
        value = raw_value

    unit_context = normalize_unit(row.get("unitContextOfEvaluation"))
    if not is_valid_unit(unit_context):
        unit_context = ""

    timestamp = normalize_timestamp(row.get("timestamp"))
    return Response(
        id=make_response_id(timestamp, evaluator_id, evaluated_id, question_id, response_type),
        question_id=question_id,
        value=value,
        type=response_type,
        evaluator_id=evaluator_id,
        evaluated_id=evaluated_id,
        timestamp=timestamp,
        unit_context=unit_context,
    )


def build_responses(
    submissions_df: pd.DataFrame,
    roster: RosterIndex,
    questions: dict[str, Question],
) -> tuple[list[Response], dict[str, PlaceholderStudent], list[SkipReason]]:
    """
    Parse every submission row, synthesizing placeholders for unknown evaluated ids.

    Returns:
        Tuple of (responses, placeholders keyed by id, skipped-row reasons).
    """
    responses: list[Response] = []
    placeholders: dict[str, PlaceholderStudent] = {}
    skipped: list[SkipReason] = []

    for i, row in enumerate(submissions_df.to_dict("records"), start=2):
        result = parse_submission_row(i, row, roster, questions)
        if isinstance(result, SkipReason):
            skipped.append(result)
            continue

        evaluated_id = result.evaluated_id
        if evaluated_id not in roster and evaluated_id not in placeholders:
            placeholders[evaluated_id] = PlaceholderStudent.synthesize(
                evaluated_id, clean_cell(row.get("evaluatedStudentName"))
            )
        responses.append(result)

    print(f"Responses: {len(responses)} accepted, {len(skipped)} rows skipped, "
          f"{len(placeholders)} placeholder students")
    return responses, placeholders, skipped


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def normalize(
    roster_df: pd.DataFrame,
    questions_df: pd.DataFrame,
    submissions_df: pd.DataFrame,
) -> NormalizedData:
    """
    Run the full normalization pass.

    Questions are loaded first, then the roster, then responses; a fatal
    catalog or roster problem raises before any submission is read.

    Returns:
        :class:`NormalizedData` with records and the skipped-row audit trail.

    Raises:
        SourceError: Empty question catalog or roster.
    """
    questions = build_questions(questions_df)
    roster = build_roster(roster_df)
    responses, placeholders, skipped = build_responses(submissions_df, roster, questions)

    data = NormalizedData(
        roster=roster,
        questions=questions,
        responses=responses,
        placeholders=placeholders,
        skipped=skipped,
    )
    for reason, n in sorted(data.skip_counts().items()):
        print(f"  Skipped [{reason}]: {n}")
    return data


def log_skipped_rows(
    skipped: list[SkipReason],
    log_path: Path = SKIPPED_ROWS_LOG,
) -> None:
    """
    Append skipped-row records to the JSONL audit log.

    Records accumulate across runs; each carries the run timestamp.
    """
    if not skipped:
        return
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logged_at = datetime.now().isoformat(timespec="seconds")
    with log_path.open("a", encoding="utf-8") as fh:
        for skip in skipped:
            fh.write(json.dumps({**skip.to_record(), "logged_at": logged_at}) + "\n")
    print(f"Logged {len(skipped)} skipped rows to {log_path}")
