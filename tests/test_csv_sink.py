from __future__ import annotations

import csv
import io
from datetime import datetime

from adapters.csv_sink import CsvEditSink, csv_file_name, open_csv_sink
from core.edit_parser import parse_edit
from core.models import FeedEvent
from core.rows import CSV_COLUMNS, edit_row

EDIT_LINE = "[[Some Page]] MB! https://x/diff * Some User * (+42) Fixed typo, again"


def _event(raw: str, time: int = 1700000000000) -> FeedEvent:
    return FeedEvent(time=time, channel="#en.wikipedia", source="rc-pmtpa", raw=raw)


def _rows(buffer: io.StringIO) -> list[list[str]]:
    return list(csv.reader(io.StringIO(buffer.getvalue())))


def test_edit_row_column_order() -> None:
    record = parse_edit("[[Page]] NxS https://x * User * (-5) gone")
    assert record is not None

    row = edit_row(_event("ignored"), record)

    assert len(row) == len(CSV_COLUMNS) == 15
    assert row == [
        "#en.wikipedia",
        "rc-pmtpa",
        "1700000000000",
        "Page",
        "User",
        "-5",
        "https://x",
        "gone",
        "false",
        "false",
        "false",
        "true",
        "false",
        "true",
        "x",
    ]


def test_sink_writes_only_parseable_events() -> None:
    buffer = io.StringIO()
    sink = CsvEditSink(buffer)

    sink.on_event(_event(EDIT_LINE))
    sink.on_event(_event("random chatter, not an edit"))

    rows = _rows(buffer)
    assert sink.rows_written == 1
    assert len(rows) == 1
    assert rows[0][:8] == [
        "#en.wikipedia",
        "rc-pmtpa",
        "1700000000000",
        "Some Page",
        "Some User",
        "42",
        "https://x/diff",
        "Fixed typo, again",
    ]
    assert rows[0][8:] == ["true", "false", "true", "false", "true", "false", ""]


def test_sink_keeps_arrival_order() -> None:
    buffer = io.StringIO()
    sink = CsvEditSink(buffer)

    for index in range(3):
        sink.on_event(_event(f"[[Page {index}]]  https://x * U * (+{index}) s", time=index))

    assert [row[3] for row in _rows(buffer)] == ["Page 0", "Page 1", "Page 2"]


def test_sink_header_row() -> None:
    buffer = io.StringIO()
    sink = CsvEditSink(buffer, header=True)
    sink.on_event(_event(EDIT_LINE))

    rows = _rows(buffer)
    assert rows[0] == list(CSV_COLUMNS)
    assert len(rows) == 2


def test_open_csv_sink_writes_file(tmp_path) -> None:
    sink = open_csv_sink(str(tmp_path / "out"), "wikipedia-activities")
    sink.on_event(_event(EDIT_LINE))
    sink.close()

    files = list((tmp_path / "out").glob("wikipedia-activities-*.csv"))
    assert len(files) == 1
    with open(files[0], newline="", encoding="utf-8") as handle:
        rows = list(csv.reader(handle))
    assert len(rows) == 1
    assert rows[0][3] == "Some Page"


def test_csv_file_name_includes_millis() -> None:
    name = csv_file_name("edits", datetime(2024, 1, 2, 3, 4, 5, 678000))
    assert name == "edits-20240102T030405.678.csv"
