"""
Command-line entry point.

Usage (paths resolve against the current directory):
    python -m peer_assessment.runner run [--data-dir DIR] [--output-dir DIR] [--policy FILE] [--skipped-log FILE]
    python -m peer_assessment.runner verify [--data-dir DIR] [--output-dir DIR] [--report FILE] [--skipped-log FILE]

Or, once installed:
    peer-assessment run
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .ingest.config import DATA_DIR, RESULTS_DIR, SKIPPED_ROWS_LOG
from .pipeline import run_peer_assessment_pipeline, run_verification
from .reporting.sink import ReportLockError
from .scoring.config import DEFAULT_WEIGHT_POLICY, WeightPolicy


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--data-dir", type=Path, default=DATA_DIR,
                        help=f"Directory with the source CSVs (default: {DATA_DIR})")
    common.add_argument("--output-dir", type=Path, default=RESULTS_DIR,
                        help=f"Directory for report CSVs (default: {RESULTS_DIR})")

    parser = argparse.ArgumentParser(
        prog="peer-assessment",
        description="Weighted peer-assessment scoring and missing-assessment reports.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", parents=[common],
                         help="Run the full pipeline and write every report")
    run.add_argument("--policy", type=Path, default=None,
                     help="JSON file overriding weight policy thresholds")
    run.add_argument("--skipped-log", type=Path, default=SKIPPED_ROWS_LOG,
                     help=f"JSONL audit log for skipped rows (default: {SKIPPED_ROWS_LOG})")

    verify = sub.add_parser("verify", parents=[common],
                            help="Re-check a missing-assessment report")
    verify.add_argument("--report", type=Path, default=None,
                        help="Report CSV to verify (default: the one in --output-dir)")
    verify.add_argument("--skipped-log", type=Path, default=None,
                        help="JSONL audit log for rows skipped while re-reading submissions")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        if args.command == "run":
            policy = WeightPolicy.from_json(args.policy) if args.policy else DEFAULT_WEIGHT_POLICY
            run_peer_assessment_pipeline(
                data_dir=args.data_dir,
                output_dir=args.output_dir,
                policy=policy,
                skipped_log_path=args.skipped_log,
            )
        else:
            run_verification(
                data_dir=args.data_dir,
                output_dir=args.output_dir,
                report_path=args.report,
                skipped_log_path=args.skipped_log,
            )
    except (FileNotFoundError, ReportLockError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
