"""
Report sink: CSV reports in an output directory, one file per sheet.

Writes happen inside an advisory run lock (an exclusively created
``.peer_assessment.lock`` file in the output directory), so a second
concurrent run fails fast instead of interleaving writes.  Each report is
written to a temporary file and moved into place with ``os.replace``;
readers see either the previous report or the complete new one.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

import pandas as pd

from ..ingest.config import RESULTS_DIR
from ..ingest.sources import read_sheet

LOCK_FILENAME = ".peer_assessment.lock"


class ReportLockError(RuntimeError):
    """Another run holds the report lock for this output directory."""


class ReportSink:
    """
    Named-sheet CSV writer rooted at ``output_dir``.

    Usage::

        sink = ReportSink(output_dir)
        with sink.run_lock():
            sink.write("PaFinalScores", final_df)
    """

    def __init__(self, output_dir: Path = RESULTS_DIR) -> None:
        self.output_dir = Path(output_dir)
        self._locked = False

    @property
    def lock_path(self) -> Path:
        return self.output_dir / LOCK_FILENAME

    def path_for(self, sheet_name: str) -> Path:
        return self.output_dir / f"{sheet_name}.csv"

    @contextmanager
    def run_lock(self) -> Iterator["ReportSink"]:
        """
        Hold the output-directory lock for the duration of the block.

        The lock file records the holder's pid and start time and is
        removed on exit, whether the block succeeds or raises.

        Raises:
            ReportLockError: The lock file already exists.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            raise ReportLockError(
                f"Another run holds {self.lock_path}. "
                "Wait for it to finish, or delete the file if that run crashed."
            ) from None
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(f"pid={os.getpid()} started={datetime.now().isoformat(timespec='seconds')}\n")

        self._locked = True
        try:
            yield self
        finally:
            self._locked = False
            self.lock_path.unlink(missing_ok=True)

    def write(self, sheet_name: str, df: pd.DataFrame) -> Path:
        """
        Atomically replace the CSV for ``sheet_name`` with ``df``.

        Raises:
            ReportLockError: Called outside :meth:`run_lock`.
        """
        if not self._locked:
            raise ReportLockError("Reports may only be written while holding the run lock.")
        path = self.path_for(sheet_name)
        tmp_path = path.with_name(f".{path.name}.{os.getpid()}.tmp")
        try:
            df.to_csv(tmp_path, index=False)
            os.replace(tmp_path, path)
        finally:
            tmp_path.unlink(missing_ok=True)
        print(f"  Wrote {sheet_name}: {len(df)} rows → {path}")
        return path

    def read(self, sheet_name: str) -> pd.DataFrame:
        """
        Read back a previously written report as an all-string frame.

        Raises:
            FileNotFoundError: No report with that name exists.
        """
        return read_sheet(self.path_for(sheet_name))
