"""
Canonical records produced by the normalizer and consumed downstream.

Student is a tagged variant: a ``KnownStudent`` comes from the active
roster, a ``PlaceholderStudent`` is synthesized for an evaluated id that
the roster does not know.  Callers branch with ``isinstance`` rather than
probing optional fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Union

from .config import PLACEHOLDER_EMAIL, PLACEHOLDER_NAME
from .validators import is_valid_email


# ---------------------------------------------------------------------------
# Students
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class KnownStudent:
    """An active roster member."""

    id: str
    name: str
    email: str
    units: tuple[str, ...] = ()
    status: str = "active"

    @property
    def primary_unit(self) -> str | None:
        return self.units[0] if self.units else None

    @property
    def has_deliverable_email(self) -> bool:
        return is_valid_email(self.email)


@dataclass(frozen=True)
class PlaceholderStudent:
    """An evaluated identity referenced by a submission but absent from the roster."""

    id: str
    name: str

    @property
    def email(self) -> str:
        return PLACEHOLDER_EMAIL.format(student_id=self.id)

    @property
    def units(self) -> tuple[str, ...]:
        return ()

    @classmethod
    def synthesize(cls, student_id: str, name: str = "") -> "PlaceholderStudent":
        return cls(id=student_id, name=name or PLACEHOLDER_NAME.format(student_id=student_id))


Student = Union[KnownStudent, PlaceholderStudent]


# ---------------------------------------------------------------------------
# Questions and responses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Question:
    id: str
    prompt: str
    type: str = "LikertScale"
    choices: tuple[str, ...] = ()
    instruction: str = ""


@dataclass(frozen=True)
class Response:
    """One submitted SCORE or COMMENT row after normalization."""

    id: str
    question_id: str
    value: float | str
    type: str
    evaluator_id: str
    evaluated_id: str
    timestamp: str
    unit_context: str = ""

    @property
    def is_score(self) -> bool:
        return self.type == "SCORE"

    @property
    def is_comment(self) -> bool:
        return self.type == "COMMENT"


@dataclass(frozen=True)
class SkipReason:
    """Audit-trail entry for a submission row dropped during normalization."""

    row_number: int
    reason: str
    evaluator_id: str = ""
    evaluated_id: str = ""
    question_id: str = ""
    detail: str = ""

    def to_record(self) -> dict:
        return {
            "row_number": self.row_number,
            "reason": self.reason,
            "evaluator_id": self.evaluator_id,
            "evaluated_id": self.evaluated_id,
            "question_id": self.question_id,
            "detail": self.detail,
        }


# ---------------------------------------------------------------------------
# Roster index
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RosterIndex:
    """
    Immutable lookup over the active roster, built once per run.

    ``by_id`` is a read-only mapping proxy; use :meth:`from_students` to
    construct one.
    """

    by_id: Mapping[str, KnownStudent]

    @classmethod
    def from_students(cls, students: list[KnownStudent]) -> "RosterIndex":
        """Index students by id; the first occurrence of an id wins."""
        by_id: dict[str, KnownStudent] = {}
        for student in students:
            by_id.setdefault(student.id, student)
        return cls(by_id=MappingProxyType(by_id))

    def __contains__(self, student_id: object) -> bool:
        return student_id in self.by_id

    def __len__(self) -> int:
        return len(self.by_id)

    def __iter__(self):
        return iter(self.by_id.values())

    def get(self, student_id: str) -> KnownStudent | None:
        return self.by_id.get(student_id)

    def members_of(self, unit: str) -> list[str]:
        """Ids of students belonging to ``unit``, in roster order."""
        return [s.id for s in self.by_id.values() if unit in s.units]

    def units(self) -> list[str]:
        """Every unit tag held by at least one student, sorted."""
        return sorted({u for s in self.by_id.values() for u in s.units})

    def sorted_by_name(self) -> list[KnownStudent]:
        return sorted(self.by_id.values(), key=lambda s: (s.name, s.id))


# ---------------------------------------------------------------------------
# Normalizer output
# ---------------------------------------------------------------------------

@dataclass
class NormalizedData:
    """Records plus the soft-failure audit trail of one normalization pass."""

    roster: RosterIndex
    questions: dict[str, Question]
    responses: list[Response] = field(default_factory=list)
    placeholders: dict[str, PlaceholderStudent] = field(default_factory=dict)
    skipped: list[SkipReason] = field(default_factory=list)

    def resolve(self, student_id: str) -> Student | None:
        """Look up a roster student first, then a synthesized placeholder."""
        return self.roster.get(student_id) or self.placeholders.get(student_id)

    def skip_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for skip in self.skipped:
            counts[skip.reason] = counts.get(skip.reason, 0) + 1
        return counts
