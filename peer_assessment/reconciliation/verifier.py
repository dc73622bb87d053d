"""
Verification of a previously generated missing-assessment report.

Re-derives the actual assessments from current data and checks every
report entry: an entry whose (evaluator, unit, peer) triple is now
assessed is a discrepancy (the report is stale); every other entry is
still correctly missing.  ``N/A`` peer entries are counted as correct
and never flagged.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pandas as pd

from ..ingest.models import Response, RosterIndex
from ..ingest.sources import require_columns
from ..ingest.validators import clean_cell, normalize_unit
from .missing import (
    MISSING_ASSESSMENTS_SHEET,
    MissingAssessmentEntry,
    assessments_made,
)

VERIFICATION_SHEET = "PaVerificationMissingAssessments"

VERIFICATION_REQUIRED_COLUMNS: list[str] = [
    "evaluatorId", "evaluatorUnitContext", "peerNotAssessedId",
]

VERIFICATION_COLUMNS: list[str] = [
    "reportedEvaluatorId", "evaluatorName", "reportedUnitContext",
    "reportedPeerNotAssessedId", "peerName", "verificationStatus",
]

NOT_APPLICABLE_PEERS: frozenset[str] = frozenset({"N/A", "N/A (CHECK SETUP)"})

DISCREPANCY_STATUS = "ERROR: Reported as MISSING, but current data shows assessment WAS MADE."


@dataclass
class VerificationResult:
    total_checked: int = 0
    correctly_missing: int = 0
    malformed_rows: int = 0
    discrepancies: list[MissingAssessmentEntry] = field(default_factory=list)

    @property
    def discrepancy_count(self) -> int:
        return len(self.discrepancies)

    def summary(self) -> dict:
        return {
            "total_checked": self.total_checked,
            "correctly_missing_or_na": self.correctly_missing,
            "discrepancies": self.discrepancy_count,
            "malformed_rows": self.malformed_rows,
        }


def verify_missing_assessments_report(
    report_df: pd.DataFrame,
    roster: RosterIndex,
    responses: list[Response],
) -> VerificationResult:
    """
    Check each entry of a missing-assessment report against current responses.

    Blank rows are ignored; rows missing the evaluator, unit or peer are
    counted as malformed and skipped.

    Args:
        report_df: Previously written missing-assessment report.
        roster: Active roster index.
        responses: Current normalized responses.

    Returns:
        :class:`VerificationResult` with counts and discrepancy entries.

    Raises:
        SourceError: The report lacks a required column.
    """
    require_columns(report_df, VERIFICATION_REQUIRED_COLUMNS, MISSING_ASSESSMENTS_SHEET)
    made = assessments_made(roster, responses)
    result = VerificationResult()

    for i, row in enumerate(report_df.to_dict("records"), start=2):
        if all(not clean_cell(v) for v in row.values()):
            continue
        evaluator_id = clean_cell(row.get("evaluatorId")).upper()
        unit = normalize_unit(row.get("evaluatorUnitContext"))
        peer_id = clean_cell(row.get("peerNotAssessedId")).upper()

        if not (evaluator_id and unit and peer_id):
            print(f"  WARNING: report row {i} skipped (missing evaluator, unit or peer).")
            result.malformed_rows += 1
            continue

        result.total_checked += 1
        if peer_id in NOT_APPLICABLE_PEERS:
            result.correctly_missing += 1
        elif (evaluator_id, unit, peer_id) in made:
            result.discrepancies.append(MissingAssessmentEntry(evaluator_id, unit, peer_id))
        else:
            result.correctly_missing += 1

    print(f"Verification: {result.total_checked} entries checked, "
          f"{result.correctly_missing} correctly missing or N/A, "
          f"{result.discrepancy_count} discrepancies")
    return result


def verification_frame(result: VerificationResult, roster: RosterIndex) -> pd.DataFrame:
    """Render the discrepancy entries with names and a status message."""
    rows = []
    for entry in result.discrepancies:
        evaluator = roster.get(entry.evaluator_id)
        peer = roster.get(entry.peer_id)
        rows.append({
            "reportedEvaluatorId": entry.evaluator_id,
            "evaluatorName": evaluator.name if evaluator else f"[Unknown: {entry.evaluator_id}]",
            "reportedUnitContext": entry.unit,
            "reportedPeerNotAssessedId": entry.peer_id,
            "peerName": peer.name if peer else f"[Unknown: {entry.peer_id}]",
            "verificationStatus": DISCREPANCY_STATUS,
        })
    return pd.DataFrame(rows, columns=VERIFICATION_COLUMNS)
