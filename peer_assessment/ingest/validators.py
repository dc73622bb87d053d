"""
Well-formedness predicates for student identifiers, institutional emails,
production units, question codes and score values.

Every function here is pure: no I/O, no roster lookups.  Inputs are
coerced with ``str()`` first so that NaN / numeric cells arriving from
CSV reads never raise.
"""

from __future__ import annotations

import math
import re

from .config import (
    ACTIVE_STATUSES,
    INSTITUTION_EMAIL_DOMAIN,
    INSTITUTION_EMAIL_PATTERN,
    QUESTION_ID_PATTERN,
    SCORE_MAX,
    SCORE_MIN,
    STUDENT_ID_PATTERN,
    UNIT_PREFIX,
    VALID_UNITS,
)

_STUDENT_ID_RE = re.compile(STUDENT_ID_PATTERN)
_QUESTION_ID_RE = re.compile(QUESTION_ID_PATTERN)
_EMAIL_RE = re.compile(INSTITUTION_EMAIL_PATTERN)


# ---------------------------------------------------------------------------
# Cell helpers
# ---------------------------------------------------------------------------

def clean_cell(value: object) -> str:
    """
    Return a cell value as a stripped string; blanks and NaN become "".

    Args:
        value: Raw cell from a pandas row (str, float NaN, None, number).

    Returns:
        Stripped string representation.
    """
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


# ---------------------------------------------------------------------------
# Identity predicates
# ---------------------------------------------------------------------------

def is_valid_student_id(student_id: object) -> bool:
    """True when ``student_id`` is one letter followed by nine digits (uppercase)."""
    return isinstance(student_id, str) and bool(_STUDENT_ID_RE.match(student_id))


def is_valid_email(email: object) -> bool:
    """
    Check an address against the institutional student email format.

    Case-insensitive: ``A123456789@MAIL.SHU.EDU.TW`` is accepted.
    """
    if not isinstance(email, str):
        return False
    return bool(_EMAIL_RE.match(email.strip().lower()))


def extract_student_id_from_email(email: object) -> str | None:
    """
    Extract the uppercase student id from an institutional email.

    Returns:
        The local part uppercased, or ``None`` if the email is not valid.
    """
    if not is_valid_email(email):
        return None
    return email.strip().split("@")[0].upper()


def derive_email_from_id(student_id: object) -> str | None:
    """
    Build the institutional email for a canonical student id.

    Returns:
        ``<id lowercased>@<domain>``, or ``None`` if the id does not follow
        the canonical pattern.
    """
    if not is_valid_student_id(student_id):
        return None
    email = f"{student_id.lower()}@{INSTITUTION_EMAIL_DOMAIN}"
    return email if is_valid_email(email) else None


def is_active_status(status: object) -> bool:
    """True for ``active`` / ``enrolled`` in any letter case."""
    return clean_cell(status).lower() in ACTIVE_STATUSES


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------

def normalize_unit(raw: object) -> str:
    """
    Uppercase a unit cell and strip a leading ``UNIT `` prefix.

    ``"unit b"`` → ``"B"``; ``" C "`` → ``"C"``.  Does not validate.
    """
    unit = clean_cell(raw).upper()
    if unit.startswith(UNIT_PREFIX) and len(unit) > len(UNIT_PREFIX):
        unit = unit[len(UNIT_PREFIX):].strip()
    return unit


def is_valid_unit(unit: object) -> bool:
    """True when ``unit`` is exactly one of the production unit tags."""
    return isinstance(unit, str) and unit.upper() in VALID_UNITS and len(unit) == 1


# ---------------------------------------------------------------------------
# Questions and scores
# ---------------------------------------------------------------------------

def is_valid_question_id(question_id: object) -> bool:
    """True for short codes such as ``Q1`` / ``Q01`` / ``q12``."""
    return isinstance(question_id, str) and bool(_QUESTION_ID_RE.match(question_id.upper()))


def parse_score(raw: object) -> float | None:
    """
    Parse a score cell into a finite float.

    Returns:
        The parsed value, or ``None`` for blanks, text, NaN and infinities.
    """
    text = clean_cell(raw)
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def is_valid_score(value: object) -> bool:
    """True when ``value`` is a finite number inside the closed score range."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and SCORE_MIN <= value <= SCORE_MAX
