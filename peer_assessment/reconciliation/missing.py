"""
Missing peer assessments.

Within each unit every member is expected to assess every other member.
An assessment counts toward a unit when the response carries a valid unit
context, else toward the evaluator's primary unit; responses with neither
are ignored.  The gap between the expected and the actual
(evaluator, unit, peer) triples is the missing-assessment report.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass

import pandas as pd

from ..ingest.models import Response, RosterIndex
from ..ingest.validators import is_valid_unit

MISSING_ASSESSMENTS_SHEET = "PaReportMissingAssessments"

MISSING_ASSESSMENT_COLUMNS: list[str] = [
    "evaluatorId", "evaluatorName", "evaluatorEmail",
    "evaluatorUnitContext", "peerNotAssessedId", "peerNotAssessedName",
]

Triple = tuple[str, str, str]


@dataclass(frozen=True, order=True)
class MissingAssessmentEntry:
    """An expected evaluation with no matching response."""

    evaluator_id: str
    unit: str
    peer_id: str


def students_by_unit(roster: RosterIndex) -> dict[str, list[str]]:
    """Unit tag → member ids in roster order.  A student in two units appears in both."""
    return {unit: roster.members_of(unit) for unit in roster.units()}


def expected_assessments(roster: RosterIndex) -> set[Triple]:
    """
    Every ordered ``(evaluator, unit, peer)`` with both in the unit and evaluator ≠ peer.

    A unit of N members contributes exactly N·(N−1) triples.
    """
    expected: set[Triple] = set()
    for unit, members in students_by_unit(roster).items():
        for evaluator_id in members:
            for peer_id in members:
                if peer_id != evaluator_id:
                    expected.add((evaluator_id, unit, peer_id))
    return expected


def assessment_unit(response: Response, roster: RosterIndex) -> str | None:
    """Unit a response counts toward: its explicit context, else the evaluator's primary unit."""
    if response.unit_context and is_valid_unit(response.unit_context):
        return response.unit_context
    evaluator = roster.get(response.evaluator_id)
    return evaluator.primary_unit if evaluator is not None else None


def assessments_made(roster: RosterIndex, responses: list[Response]) -> set[Triple]:
    """Actual ``(evaluator, unit, peer)`` triples derived from SCORE and COMMENT responses."""
    made: set[Triple] = set()
    for r in responses:
        unit = assessment_unit(r, roster)
        if unit is None:
            continue
        made.add((r.evaluator_id, unit, r.evaluated_id))
    return made


def find_missing_assessments(
    roster: RosterIndex,
    responses: list[Response],
) -> list[MissingAssessmentEntry]:
    """
    Expected assessments with no matching response.

    Returns:
        Entries sorted by evaluator id, then unit, then peer id.
    """
    missing = expected_assessments(roster) - assessments_made(roster, responses)
    entries = sorted(MissingAssessmentEntry(*triple) for triple in missing)

    by_evaluator: dict[str, int] = defaultdict(int)
    for entry in entries:
        by_evaluator[entry.evaluator_id] += 1
    print(f"Missing assessments: {len(entries)} across {len(by_evaluator)} evaluators")
    return entries


def missing_assessments_frame(
    entries: list[MissingAssessmentEntry],
    roster: RosterIndex,
) -> pd.DataFrame:
    """Render entries with evaluator name/email and peer name."""
    rows = []
    for entry in entries:
        evaluator = roster.get(entry.evaluator_id)
        peer = roster.get(entry.peer_id)
        rows.append({
            "evaluatorId": entry.evaluator_id,
            "evaluatorName": evaluator.name if evaluator else "",
            "evaluatorEmail": evaluator.email if evaluator else "",
            "evaluatorUnitContext": entry.unit,
            "peerNotAssessedId": entry.peer_id,
            "peerNotAssessedName": peer.name if peer else f"[Unknown Peer ID: {entry.peer_id}]",
        })
    return pd.DataFrame(rows, columns=MISSING_ASSESSMENT_COLUMNS)
