"""
peer_assessment/ingest — Source access and normalization of roster,
question-catalog and submission rows.

Module layout
-------------
config.py      — Paths, sheet names, column contracts, id patterns, units
validators.py  — Pure well-formedness predicates (ids, emails, units, scores)
models.py      — Student variants, Question, Response, SkipReason,
                 RosterIndex, NormalizedData
sources.py     — CSV sheet loaders and the fatal SourceError
normalizer.py  — Raw rows → canonical records + skipped-row audit trail

Public interface
----------------
Load the three sources:
    load_roster(), load_question_catalog(), load_submissions()

Normalize them:
    normalize(roster_df, questions_df, submissions_df)
"""

from .models import (
    KnownStudent,
    NormalizedData,
    PlaceholderStudent,
    Question,
    Response,
    RosterIndex,
    SkipReason,
    Student,
)
from .normalizer import (
    build_questions,
    build_responses,
    build_roster,
    log_skipped_rows,
    normalize,
)
from .sources import (
    SourceError,
    load_question_catalog,
    load_roster,
    load_submissions,
)

__all__ = [
    # Records
    "KnownStudent",
    "PlaceholderStudent",
    "Student",
    "Question",
    "Response",
    "SkipReason",
    "RosterIndex",
    "NormalizedData",
    # Sources
    "SourceError",
    "load_roster",
    "load_question_catalog",
    "load_submissions",
    # Normalization
    "build_roster",
    "build_questions",
    "build_responses",
    "normalize",
    "log_skipped_rows",
]
