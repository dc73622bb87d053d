"""
peer_assessment/reconciliation — Expected vs. actual peer assessments.

    missing.py   — per-unit expected pairs, assessments made, gap report
    verifier.py  — re-check a previously written gap report for stale entries
"""

from .missing import (
    MissingAssessmentEntry,
    assessments_made,
    expected_assessments,
    find_missing_assessments,
    missing_assessments_frame,
    students_by_unit,
)
from .verifier import (
    VerificationResult,
    verification_frame,
    verify_missing_assessments_report,
)

__all__ = [
    "MissingAssessmentEntry",
    "students_by_unit",
    "expected_assessments",
    "assessments_made",
    "find_missing_assessments",
    "missing_assessments_frame",
    "VerificationResult",
    "verify_missing_assessments_report",
    "verification_frame",
]
