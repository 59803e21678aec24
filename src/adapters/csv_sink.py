"""CSV edit sink adapter.

Implements the core FeedListener port: every event is parsed, non-edit lines
are dropped, and each edit becomes one CSV row that is on disk before
on_event returns.
"""

from __future__ import annotations

import csv
from datetime import datetime
import io
import logging
import os
import threading
from typing import TextIO

from core.edit_parser import parse_edit
from core.models import FeedEvent
from core.rows import CSV_COLUMNS, edit_row

LOGGER = logging.getLogger(__name__)


def _fsync(handle: TextIO) -> None:
    try:
        fileno = handle.fileno()
    except (AttributeError, io.UnsupportedOperation):
        # In-memory buffers have nothing to sync.
        return
    os.fsync(fileno)


class CsvEditSink:
    """FeedListener that writes one CSV row per parsed edit."""

    def __init__(self, handle: TextIO, header: bool = False) -> None:
        self._handle = handle
        self._writer = csv.writer(handle, delimiter=",", lineterminator="\n")
        self._lock = threading.Lock()
        self.rows_written = 0
        if header:
            with self._lock:
                self._writer.writerow(CSV_COLUMNS)
                self._flush()

    def _flush(self) -> None:
        self._handle.flush()
        _fsync(self._handle)

    def on_event(self, event: FeedEvent) -> None:
        record = parse_edit(event.raw)
        if record is None:
            LOGGER.debug("Not an edit line from %s, skipped", event.channel)
            return

        with self._lock:
            self._writer.writerow(edit_row(event, record))
            self._flush()
            self.rows_written += 1

    def close(self) -> None:
        with self._lock:
            if not self._handle.closed:
                self._handle.close()


def csv_file_name(prefix: str, now: datetime) -> str:
    """Return a per-run file name such as wikipedia-activities-20240101T120000.123.csv."""

    stamp = now.strftime("%Y%m%dT%H%M%S") + f".{now.microsecond // 1000:03d}"
    return f"{prefix}-{stamp}.csv"


def open_csv_sink(directory: str, prefix: str, header: bool = False) -> CsvEditSink:
    """Create a timestamped CSV file under directory and return its sink."""

    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, csv_file_name(prefix, datetime.now()))
    try:
        # newline="" lets the csv module control line endings.
        handle = open(path, "w", encoding="utf-8", newline="")
    except OSError as exc:
        raise RuntimeError(f"Cannot create CSV file {path}") from exc
    LOGGER.info("Writing edits to %s", path)
    return CsvEditSink(handle, header=header)
