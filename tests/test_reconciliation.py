"""
Unit tests for peer_assessment/reconciliation (missing + verifier).

Covers expected-pair counts, unit attribution of responses, completeness
of assessed ∪ missing per evaluator, the two-unit scenario, and verifier
soundness against stale reports.
"""

from __future__ import annotations

import pandas as pd
import pytest

from conftest import make_comment, make_response, make_roster, make_student, sid
from peer_assessment.ingest.sources import SourceError
from peer_assessment.reconciliation.missing import (
    MISSING_ASSESSMENT_COLUMNS,
    MissingAssessmentEntry,
    assessments_made,
    expected_assessments,
    find_missing_assessments,
    missing_assessments_frame,
    students_by_unit,
)
from peer_assessment.reconciliation.verifier import (
    DISCREPANCY_STATUS,
    VERIFICATION_COLUMNS,
    verification_frame,
    verify_missing_assessments_report,
)


@pytest.fixture
def roster():
    """Unit A: 1, 2, 3, 4.  Unit B: 4, 5.  Student 6 has no unit."""
    return make_roster(
        make_student(1, "Alice", units=("A",)),
        make_student(2, "Bob", units=("A",)),
        make_student(3, "Carol", units=("A",)),
        make_student(4, "Dana", units=("A", "B")),
        make_student(5, "Eli", units=("B",)),
        make_student(6, "Fay", units=()),
    )


# ---------------------------------------------------------------------------
# Expected pairs
# ---------------------------------------------------------------------------

class TestExpectedAssessments:

    def test_students_by_unit(self, roster):
        assert students_by_unit(roster) == {
            "A": [sid(1), sid(2), sid(3), sid(4)],
            "B": [sid(4), sid(5)],
        }

    def test_pair_count_is_n_times_n_minus_one(self, roster):
        expected = expected_assessments(roster)
        assert sum(1 for _, unit, _ in expected if unit == "A") == 4 * 3
        assert sum(1 for _, unit, _ in expected if unit == "B") == 2 * 1

    def test_no_self_assessment(self, roster):
        assert all(evaluator != peer for evaluator, _, peer in expected_assessments(roster))

    def test_unitless_student_expects_nothing(self, roster):
        assert not any(sid(6) in (e, p) for e, _, p in expected_assessments(roster))


# ---------------------------------------------------------------------------
# Actual assessments
# ---------------------------------------------------------------------------

class TestAssessmentsMade:

    def test_explicit_unit_context(self, roster):
        made = assessments_made(roster, [make_response(sid(4), sid(5), unit_context="B")])
        assert made == {(sid(4), "B", sid(5))}

    def test_falls_back_to_primary_unit(self, roster):
        made = assessments_made(roster, [make_response(sid(4), sid(1))])
        assert made == {(sid(4), "A", sid(1))}

    def test_comments_count_as_assessments(self, roster):
        made = assessments_made(roster, [make_comment(sid(1), sid(2))])
        assert made == {(sid(1), "A", sid(2))}

    def test_no_unit_available_ignored(self, roster):
        assert assessments_made(roster, [make_response(sid(6), sid(1))]) == set()


# ---------------------------------------------------------------------------
# Missing assessments
# ---------------------------------------------------------------------------

class TestFindMissingAssessments:

    def test_nothing_submitted_means_everything_missing(self, roster):
        missing = find_missing_assessments(roster, [])
        assert len(missing) == len(expected_assessments(roster)) == 14

    def test_sorted_by_evaluator_unit_peer(self, roster):
        missing = find_missing_assessments(roster, [])
        keys = [(m.evaluator_id, m.unit, m.peer_id) for m in missing]
        assert keys == sorted(keys)

    def test_assessed_pairs_removed(self, roster):
        responses = [make_response(sid(1), sid(2)), make_response(sid(1), sid(3))]
        missing = find_missing_assessments(roster, responses)
        assert [m.peer_id for m in missing if m.evaluator_id == sid(1)] == [sid(4)]

    def test_assessment_in_other_unit_does_not_count(self, roster):
        # Dana assesses Eli under unit A context, which is not the unit they share
        responses = [make_response(sid(4), sid(5), unit_context="A")]
        missing = find_missing_assessments(roster, responses)
        assert MissingAssessmentEntry(sid(4), "B", sid(5)) in missing

    def test_assessed_and_missing_cover_peers_exactly(self, roster):
        responses = [
            make_response(sid(1), sid(2)),
            make_response(sid(2), sid(3)),
            make_response(sid(4), sid(5), unit_context="B"),
            make_response(sid(4), sid(2), unit_context="A"),
        ]
        made = assessments_made(roster, responses)
        missing = find_missing_assessments(roster, responses)
        for unit, members in students_by_unit(roster).items():
            for evaluator in members:
                assessed = {p for e, u, p in made if e == evaluator and u == unit}
                not_assessed = {m.peer_id for m in missing
                                if m.evaluator_id == evaluator and m.unit == unit}
                assert assessed | not_assessed == set(members) - {evaluator}
                assert not assessed & not_assessed

    def test_two_member_unit_and_single_member_unit(self):
        roster = make_roster(
            make_student(1, units=("A",)),
            make_student(2, units=("A",)),
            make_student(3, units=("B",)),
        )
        missing = find_missing_assessments(roster, [make_response(sid(1), sid(2), "Q1", 3.0)])
        assert [m for m in missing if m.evaluator_id == sid(1)] == []
        assert [m for m in missing if m.evaluator_id == sid(3)] == []
        assert missing == [MissingAssessmentEntry(sid(2), "A", sid(1))]

    def test_fully_assessed_pair_yields_no_entries(self):
        roster = make_roster(make_student(1, units=("A",)), make_student(2, units=("A",)))
        responses = [make_response(sid(1), sid(2)), make_response(sid(2), sid(1))]
        assert find_missing_assessments(roster, responses) == []


class TestMissingAssessmentsFrame:

    def test_columns_and_values(self, roster):
        df = missing_assessments_frame([MissingAssessmentEntry(sid(1), "A", sid(2))], roster)
        assert list(df.columns) == MISSING_ASSESSMENT_COLUMNS
        row = df.iloc[0]
        assert row["evaluatorName"] == "Alice"
        assert row["evaluatorEmail"] == f"{sid(1).lower()}@mail.shu.edu.tw"
        assert row["evaluatorUnitContext"] == "A"
        assert row["peerNotAssessedName"] == "Bob"

    def test_empty(self, roster):
        df = missing_assessments_frame([], roster)
        assert df.empty
        assert list(df.columns) == MISSING_ASSESSMENT_COLUMNS


# ---------------------------------------------------------------------------
# Verifier
# ---------------------------------------------------------------------------

def _report(rows):
    return pd.DataFrame(rows, columns=MISSING_ASSESSMENT_COLUMNS).fillna("")


class TestVerifier:

    def test_stale_entries_flagged(self, roster):
        report = missing_assessments_frame(find_missing_assessments(roster, []), roster)
        responses = [make_response(sid(1), sid(2)), make_response(sid(4), sid(5), unit_context="B")]

        result = verify_missing_assessments_report(report.astype(str), roster, responses)

        assert result.total_checked == 14
        assert result.discrepancy_count == 2
        assert result.correctly_missing == 12
        assert set(result.discrepancies) == {
            MissingAssessmentEntry(sid(1), "A", sid(2)),
            MissingAssessmentEntry(sid(4), "B", sid(5)),
        }

    def test_every_assessed_entry_is_flagged(self, roster):
        report = missing_assessments_frame(find_missing_assessments(roster, []), roster)
        responses = [
            make_response(sid(e), sid(p))
            for e, p in [(1, 2), (2, 3), (3, 4), (4, 1), (2, 1)]
        ]
        made = assessments_made(roster, responses)
        result = verify_missing_assessments_report(report.astype(str), roster, responses)
        flagged = {(d.evaluator_id, d.unit, d.peer_id) for d in result.discrepancies}
        reported = set(zip(report["evaluatorId"], report["evaluatorUnitContext"],
                           report["peerNotAssessedId"]))
        assert flagged == made & reported

    def test_current_report_has_no_discrepancies(self, roster):
        responses = [make_response(sid(1), sid(2))]
        report = missing_assessments_frame(find_missing_assessments(roster, responses), roster)
        result = verify_missing_assessments_report(report.astype(str), roster, responses)
        assert result.discrepancy_count == 0
        assert result.correctly_missing == result.total_checked == 13

    def test_na_entries_counted_not_flagged(self, roster):
        report = _report([
            {"evaluatorId": sid(1), "evaluatorUnitContext": "A", "peerNotAssessedId": "N/A"},
            {"evaluatorId": sid(1), "evaluatorUnitContext": "A",
             "peerNotAssessedId": "N/A (CHECK SETUP)"},
        ])
        result = verify_missing_assessments_report(report, roster, [])
        assert result.total_checked == 2
        assert result.correctly_missing == 2
        assert result.discrepancy_count == 0

    def test_blank_and_malformed_rows_skipped(self, roster):
        report = _report([
            {},
            {"evaluatorId": sid(1), "evaluatorUnitContext": "", "peerNotAssessedId": sid(2)},
            {"evaluatorId": sid(1), "evaluatorUnitContext": "A", "peerNotAssessedId": sid(3)},
        ])
        result = verify_missing_assessments_report(report, roster, [])
        assert result.total_checked == 1
        assert result.malformed_rows == 1

    def test_unit_prefix_and_case_normalized(self, roster):
        report = _report([
            {"evaluatorId": sid(1).lower(), "evaluatorUnitContext": "unit a",
             "peerNotAssessedId": sid(2)},
        ])
        result = verify_missing_assessments_report(report, roster, [make_response(sid(1), sid(2))])
        assert result.discrepancies == [MissingAssessmentEntry(sid(1), "A", sid(2))]

    def test_missing_required_column_is_fatal(self, roster):
        report = pd.DataFrame({"evaluatorId": [sid(1)], "peerNotAssessedId": [sid(2)]})
        with pytest.raises(SourceError, match="evaluatorUnitContext"):
            verify_missing_assessments_report(report, roster, [])

    def test_summary(self, roster):
        result = verify_missing_assessments_report(_report([]), roster, [])
        assert result.summary() == {
            "total_checked": 0,
            "correctly_missing_or_na": 0,
            "discrepancies": 0,
            "malformed_rows": 0,
        }


class TestVerificationFrame:

    def test_discrepancy_rows(self, roster):
        report = _report([
            {"evaluatorId": sid(1), "evaluatorUnitContext": "A", "peerNotAssessedId": sid(2)},
        ])
        result = verify_missing_assessments_report(report, roster, [make_response(sid(1), sid(2))])
        df = verification_frame(result, roster)
        assert list(df.columns) == VERIFICATION_COLUMNS
        row = df.iloc[0]
        assert row["evaluatorName"] == "Alice"
        assert row["peerName"] == "Bob"
        assert row["verificationStatus"] == DISCREPANCY_STATUS

    def test_unknown_ids_named(self, roster):
        report = _report([
            {"evaluatorId": sid(9), "evaluatorUnitContext": "A", "peerNotAssessedId": sid(8)},
        ])
        result = verify_missing_assessments_report(
            report, roster, [make_response(sid(9), sid(8), unit_context="A")]
        )
        row = verification_frame(result, roster).iloc[0]
        assert row["evaluatorName"] == f"[Unknown: {sid(9)}]"
        assert row["peerName"] == f"[Unknown: {sid(8)}]"
