"""
peer_assessment/reporting — Report output.

    sink.py       — ReportSink: run lock + atomic per-sheet CSV writes
    responses.py  — all-responses report frame
"""

from .responses import all_responses_frame
from .sink import ReportLockError, ReportSink

__all__ = ["ReportSink", "ReportLockError", "all_responses_frame"]
