"""
Orchestrates the peer-assessment run end to end.

Pipeline steps:
  Step 1 — Load and normalize roster, question catalog and submissions
  Step 2 — Evaluator metrics and trust weights
  Step 3 — Weighted per-question scores and overall medians
  Step 4 — Missing-assessment reconciliation
  Step 5 — Write every report under the output-directory run lock

Every report is computed before the lock is taken, so a fatal source
problem aborts the run without touching existing reports.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from .ingest.config import (
    DATA_DIR,
    QUESTION_CONFIG_SHEET,
    RESULTS_DIR,
    ROSTER_SHEET,
    SKIPPED_ROWS_LOG,
    SUBMISSIONS_SHEET,
)
from .ingest.models import NormalizedData
from .ingest.normalizer import log_skipped_rows, normalize
from .ingest.sources import (
    load_question_catalog,
    load_roster,
    load_submissions,
    read_sheet,
)
from .reconciliation.missing import (
    MISSING_ASSESSMENTS_SHEET,
    find_missing_assessments,
    missing_assessments_frame,
)
from .reconciliation.verifier import (
    VERIFICATION_SHEET,
    verification_frame,
    verify_missing_assessments_report,
)
from .reporting.responses import all_responses_frame
from .reporting.sink import ReportSink
from .scoring.aggregation import aggregate_scores, final_scores_frame
from .scoring.config import (
    ALL_RESPONSES_SHEET,
    DEFAULT_WEIGHT_POLICY,
    EVALUATOR_ANALYTICS_SHEET,
    FINAL_SCORES_SHEET,
    WeightPolicy,
)
from .scoring.metrics import collect_evaluator_metrics, evaluator_analytics_frame
from .scoring.weights import calculate_evaluator_weights, weight_adjustments

SEP = "=" * 70


def _step(title: str) -> None:
    print(f"\n{'—'*50}")
    print(title)
    print(f"{'—'*50}")


def load_normalized_data(
    data_dir: Path = DATA_DIR,
    skipped_log_path: Path | None = SKIPPED_ROWS_LOG,
) -> NormalizedData:
    """
    Load the three source sheets from ``data_dir`` and normalize them.

    Args:
        data_dir: Directory holding one CSV per source sheet.
        skipped_log_path: JSONL audit log for skipped rows; ``None`` disables it.

    Raises:
        FileNotFoundError: Roster or question catalog missing.
        SourceError: A sheet lacks required columns or has no usable rows.
    """
    data_dir = Path(data_dir)
    roster_df = load_roster(data_dir / f"{ROSTER_SHEET}.csv")
    questions_df = load_question_catalog(data_dir / f"{QUESTION_CONFIG_SHEET}.csv")
    submissions_df = load_submissions(data_dir / f"{SUBMISSIONS_SHEET}.csv")

    data = normalize(roster_df, questions_df, submissions_df)
    if skipped_log_path is not None:
        log_skipped_rows(data.skipped, skipped_log_path)
    return data


def run_peer_assessment_pipeline(
    data_dir: Path = DATA_DIR,
    output_dir: Path = RESULTS_DIR,
    policy: WeightPolicy = DEFAULT_WEIGHT_POLICY,
    skipped_log_path: Path | None = SKIPPED_ROWS_LOG,
) -> dict:
    """
    Execute the full peer-assessment pipeline and write every report.

    Args:
        data_dir: Directory with the roster, question and submission CSVs.
        output_dir: Directory receiving the report CSVs.
        policy: Trust-weighting thresholds.
        skipped_log_path: JSONL audit log for skipped rows; ``None`` disables it.

    Returns:
        Dict with counts (students, questions, responses, skipped rows,
        placeholders, missing assessments), the weights, and output paths.

    Raises:
        FileNotFoundError: A required source is absent.
        SourceError: A source is malformed.
        ReportLockError: Another run holds the output lock.
    """
    pipeline_start = datetime.now()

    print(f"\n{SEP}")
    print("PEER ASSESSMENT PIPELINE — START")
    print(f"  Data directory:   {data_dir}")
    print(f"  Output directory: {output_dir}")
    print(f"{SEP}\n")

    # ------------------------------------------------------------------
    # Step 1: Load and normalize
    # ------------------------------------------------------------------
    _step("STEP 1: Load and Normalize Sources")
    data = load_normalized_data(data_dir, skipped_log_path)

    # ------------------------------------------------------------------
    # Step 2: Evaluator metrics and weights
    # ------------------------------------------------------------------
    _step("STEP 2: Evaluator Metrics and Trust Weights")
    metrics = collect_evaluator_metrics(data.roster, data.responses)
    weights = calculate_evaluator_weights(metrics, policy)
    adjustments = {eid: weight_adjustments(m, policy) for eid, m in metrics.items()}
    analytics_df = evaluator_analytics_frame(metrics, weights, data.roster, adjustments)

    # ------------------------------------------------------------------
    # Step 3: Weighted aggregation
    # ------------------------------------------------------------------
    _step("STEP 3: Weighted Score Aggregation")
    aggregates = aggregate_scores(data.responses, weights)
    final_df = final_scores_frame(data.roster, data.placeholders, data.questions, aggregates)
    responses_df = all_responses_frame(data, weights)

    # ------------------------------------------------------------------
    # Step 4: Missing assessments
    # ------------------------------------------------------------------
    _step("STEP 4: Missing-Assessment Reconciliation")
    missing = find_missing_assessments(data.roster, data.responses)
    missing_df = missing_assessments_frame(missing, data.roster)

    # ------------------------------------------------------------------
    # Step 5: Write reports
    # ------------------------------------------------------------------
    _step("STEP 5: Write Reports")
    sink = ReportSink(output_dir)
    with sink.run_lock():
        outputs = {
            "evaluator_analytics": sink.write(EVALUATOR_ANALYTICS_SHEET, analytics_df),
            "final_scores": sink.write(FINAL_SCORES_SHEET, final_df),
            "all_responses": sink.write(ALL_RESPONSES_SHEET, responses_df),
            "missing_assessments": sink.write(MISSING_ASSESSMENTS_SHEET, missing_df),
        }

    duration = (datetime.now() - pipeline_start).total_seconds()
    summary = {
        "n_students": len(data.roster),
        "n_questions": len(data.questions),
        "n_responses": len(data.responses),
        "n_skipped_rows": len(data.skipped),
        "skip_reasons": data.skip_counts(),
        "n_placeholders": len(data.placeholders),
        "n_scored_cells": len(aggregates),
        "n_missing_assessments": len(missing),
        "weights": weights,
        "duration_seconds": round(duration, 1),
        "output_files": {name: str(path) for name, path in outputs.items()},
    }

    print(f"\n{SEP}")
    print("PEER ASSESSMENT PIPELINE — COMPLETE")
    print(f"  Duration:               {duration:.1f}s")
    print(f"  Active students:        {summary['n_students']}")
    print(f"  Responses accepted:     {summary['n_responses']:,}")
    print(f"  Rows skipped:           {summary['n_skipped_rows']:,}")
    print(f"  Placeholder students:   {summary['n_placeholders']}")
    print(f"  Missing assessments:    {summary['n_missing_assessments']}")
    print(f"{SEP}\n")

    return summary


def run_verification(
    data_dir: Path = DATA_DIR,
    output_dir: Path = RESULTS_DIR,
    report_path: Path | None = None,
    skipped_log_path: Path | None = None,
) -> dict:
    """
    Re-check a missing-assessment report against current submissions.

    Args:
        data_dir: Directory with the roster, question and submission CSVs.
        output_dir: Directory holding the report; receives the verification CSV.
        report_path: Report to verify; defaults to the one in ``output_dir``.
        skipped_log_path: JSONL audit log for skipped rows; ``None`` disables it.

    Returns:
        Dict with total_checked, correctly_missing_or_na, discrepancies,
        malformed_rows and the verification output path.

    Raises:
        FileNotFoundError: A required source or the report is absent.
        SourceError: A source or the report is malformed.
        ReportLockError: Another run holds the output lock.
    """
    print(f"\n{SEP}")
    print("MISSING-ASSESSMENT VERIFICATION — START")
    print(f"{SEP}\n")

    sink = ReportSink(output_dir)
    report_df = read_sheet(Path(report_path)) if report_path else sink.read(MISSING_ASSESSMENTS_SHEET)
    print(f"Loaded report: {len(report_df)} rows")

    data = load_normalized_data(data_dir, skipped_log_path)
    result = verify_missing_assessments_report(report_df, data.roster, data.responses)

    with sink.run_lock():
        output = sink.write(VERIFICATION_SHEET, verification_frame(result, data.roster))

    summary = {**result.summary(), "output_file": str(output)}

    print(f"\n{SEP}")
    print("MISSING-ASSESSMENT VERIFICATION — COMPLETE")
    print(f"  Entries checked:                {summary['total_checked']}")
    print(f"  Correctly missing (or N/A):     {summary['correctly_missing_or_na']}")
    print(f"  Discrepancies:                  {summary['discrepancies']}")
    print(f"{SEP}\n")

    return summary
