"""
Ingest-layer configuration: project paths, sheet names, column contracts,
identifier patterns, and placeholder formats.

All constants used by the validators, sources and normalizer live here so
that configuration is separated from logic.
"""

from pathlib import Path

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

# Resolved against the working directory the pipeline is launched from
DATA_DIR = Path("data")
RESULTS_DIR = Path("results")
LOGS_DIR = Path("logs")

# One CSV file per sheet of the tabular store
ROSTER_SHEET = "PaMasterStudentList"
QUESTION_CONFIG_SHEET = "PaQuestionConfig"
SUBMISSIONS_SHEET = "PaRawSubmissionsV2"

ROSTER_PATH = DATA_DIR / f"{ROSTER_SHEET}.csv"
QUESTION_CONFIG_PATH = DATA_DIR / f"{QUESTION_CONFIG_SHEET}.csv"
SUBMISSIONS_PATH = DATA_DIR / f"{SUBMISSIONS_SHEET}.csv"

SKIPPED_ROWS_LOG = LOGS_DIR / "skipped_rows.jsonl"

# ---------------------------------------------------------------------------
# Column contracts
# ---------------------------------------------------------------------------

ROSTER_COLUMNS: list[str] = ["studentId", "studentName", "unit1", "unit2", "email", "status"]
ROSTER_REQUIRED_COLUMNS: list[str] = ["studentId", "studentName", "status"]

QUESTION_COLUMNS: list[str] = [
    "QuestionID", "QuestionText", "QuestionType", "Choices", "InstructionalComment",
]
QUESTION_REQUIRED_COLUMNS: list[str] = ["QuestionID", "QuestionText", "QuestionType"]

SUBMISSION_COLUMNS: list[str] = [
    "evaluatorId", "evaluatedStudentId", "evaluatedStudentName", "questionId",
    "responseType", "responseValue", "timestamp", "unitContextOfEvaluation",
]
SUBMISSION_REQUIRED_COLUMNS: list[str] = [
    "evaluatorId", "evaluatedStudentId", "questionId", "responseType", "responseValue",
]

# ---------------------------------------------------------------------------
# Identity rules
# ---------------------------------------------------------------------------

STUDENT_ID_PATTERN = r"^[A-Z][0-9]{9}$"
QUESTION_ID_PATTERN = r"^Q[0-9]{1,2}$"

INSTITUTION_EMAIL_DOMAIN = "mail.shu.edu.tw"
INSTITUTION_EMAIL_PATTERN = r"^[a-z][0-9]{9}@mail\.shu\.edu\.tw$"

VALID_UNITS: frozenset[str] = frozenset({"A", "B", "C", "D"})
UNIT_PREFIX = "UNIT "

ACTIVE_STATUSES: frozenset[str] = frozenset({"active", "enrolled"})
DEFAULT_STATUS = "active"

# ---------------------------------------------------------------------------
# Question defaults
# ---------------------------------------------------------------------------

DEFAULT_QUESTION_TYPE = "LikertScale"

# ---------------------------------------------------------------------------
# Response types
# ---------------------------------------------------------------------------

RESPONSE_TYPE_SCORE = "SCORE"
RESPONSE_TYPE_COMMENT = "COMMENT"
RESPONSE_TYPES: frozenset[str] = frozenset({RESPONSE_TYPE_SCORE, RESPONSE_TYPE_COMMENT})

# Closed Likert score range.  AUTHORITATIVE: scoring/config.py imports these.
SCORE_MIN: float = 1.0
SCORE_MAX: float = 4.0

# ---------------------------------------------------------------------------
# Placeholder formats (never treated as real names or deliverable addresses)
# ---------------------------------------------------------------------------

PLACEHOLDER_NAME = "[Name for {student_id}]"
PLACEHOLDER_EMAIL = "[NoValidEmailFor_{student_id}]"

# Evaluated ids that are not canonical must carry this prefix to be kept
UNKNOWN_ID_PREFIX = "UNKNOWNID_"
