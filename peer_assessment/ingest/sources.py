"""
Read-only access to the tabular store (one CSV file per sheet).

Hard-failure policy: a missing roster or question catalog, or a sheet that
lacks its required columns, raises and aborts the run.  The submissions
sheet is optional; when absent the run continues with zero responses.
"""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from .config import (
    QUESTION_COLUMNS,
    QUESTION_CONFIG_PATH,
    QUESTION_REQUIRED_COLUMNS,
    ROSTER_COLUMNS,
    ROSTER_PATH,
    ROSTER_REQUIRED_COLUMNS,
    SUBMISSION_COLUMNS,
    SUBMISSION_REQUIRED_COLUMNS,
    SUBMISSIONS_PATH,
)


class SourceError(ValueError):
    """A required source is present but unusable (bad headers, no usable rows)."""


# ---------------------------------------------------------------------------
# Generic helpers
# ---------------------------------------------------------------------------

def read_sheet(path: Path) -> pd.DataFrame:
    """
    Load one sheet as an all-string DataFrame.

    Every cell is read as ``str`` with blanks kept as ``""`` (no NaN
    coercion) so identifiers such as ``A012345678`` keep leading zeros.
    Header names are stripped of surrounding whitespace.

    Raises:
        FileNotFoundError: The sheet file does not exist.
    """
    if not path.exists():
        raise FileNotFoundError(f"Sheet not found: {path}")
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [str(c).strip() for c in df.columns]
    return df


def require_columns(df: pd.DataFrame, required: list[str], sheet_name: str) -> None:
    """
    Raise if any required header is absent from ``df``.

    Raises:
        SourceError: Listing the missing headers and those that were found.
    """
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise SourceError(
            f"Required headers ({', '.join(missing)}) missing in \"{sheet_name}\". "
            f"Found: [{', '.join(map(str, df.columns))}]"
        )


def with_optional_columns(df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    """Return a copy of ``df`` where every column in ``columns`` exists (blank if absent)."""
    df = df.copy()
    for col in columns:
        if col not in df.columns:
            df[col] = ""
    return df


# ---------------------------------------------------------------------------
# Sheet loaders
# ---------------------------------------------------------------------------

def load_roster(path: Path = ROSTER_PATH) -> pd.DataFrame:
    """
    Load the master student list.

    Required headers: ``studentId, studentName, status``.  ``unit1``,
    ``unit2`` and ``email`` are optional and filled blank when absent.
    """
    df = read_sheet(path)
    require_columns(df, ROSTER_REQUIRED_COLUMNS, path.stem)
    df = with_optional_columns(df, ROSTER_COLUMNS)
    print(f"Loaded roster: {len(df)} rows from {path.name}")
    return df


def load_question_catalog(path: Path = QUESTION_CONFIG_PATH) -> pd.DataFrame:
    """
    Load the question configuration sheet.

    Required headers: ``QuestionID, QuestionText, QuestionType``.
    """
    df = read_sheet(path)
    require_columns(df, QUESTION_REQUIRED_COLUMNS, path.stem)
    df = with_optional_columns(df, QUESTION_COLUMNS)
    print(f"Loaded question catalog: {len(df)} rows from {path.name}")
    return df


def load_submissions(path: Path = SUBMISSIONS_PATH) -> pd.DataFrame:
    """
    Load raw submission rows.

    A missing file yields an empty frame with the submission headers (the
    run proceeds with zero responses); a file lacking required headers is
    a hard failure.
    """
    if not path.exists():
        print(f"WARNING: submissions not found at {path} — continuing with zero responses.")
        return pd.DataFrame(columns=SUBMISSION_COLUMNS, dtype=str)
    df = read_sheet(path)
    require_columns(df, SUBMISSION_REQUIRED_COLUMNS, path.stem)
    df = with_optional_columns(df, SUBMISSION_COLUMNS)
    print(f"Loaded submissions: {len(df)} rows from {path.name}")
    return df
