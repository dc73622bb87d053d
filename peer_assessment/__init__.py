"""
peer_assessment — Peer-evaluation normalization, evaluator trust weighting,
weighted score aggregation and missing-assessment reconciliation.

Subpackages
-----------
ingest/          — Sheet loading and normalization into canonical records
scoring/         — Evaluator metrics, trust weights, weighted aggregation
reconciliation/  — Missing-assessment detection and report verification
reporting/       — Locked, atomic CSV report sink and report frames

Entry points
------------
    run_peer_assessment_pipeline()   full run, writes every report
    run_verification()               re-check a missing-assessment report
"""

__version__ = "1.0.0"

from .pipeline import run_peer_assessment_pipeline, run_verification

__all__ = ["run_peer_assessment_pipeline", "run_verification", "__version__"]
