from __future__ import annotations

import io

import pytest

from adapters.csv_sink import CsvEditSink
from adapters.jsonl_sink import JsonLinesEventSink, read_events, replay_events
from core.errors import MalformedEncoding
from core.models import FeedEvent


def _event(channel: str, raw: str, time: int) -> FeedEvent:
    return FeedEvent(time=time, channel=channel, source="rc-pmtpa", raw=raw)


def test_capture_then_read_back() -> None:
    buffer = io.StringIO()
    sink = JsonLinesEventSink(buffer)
    events = [
        _event("#en.wikipedia", "[[A]] M https://x * U * (+1) s", 1),
        _event("#de.wikipedia", "chatter", 2),
    ]
    for event in events:
        sink.on_event(event)

    lines = buffer.getvalue().splitlines()
    assert len(lines) == 2
    assert list(read_events(io.StringIO(buffer.getvalue()))) == events


def test_read_events_skips_blank_lines_and_reports_bad_ones() -> None:
    good = _event("#en.wikipedia", "x", 1).to_text()

    assert len(list(read_events(["", good, "   \n"]))) == 1
    with pytest.raises(MalformedEncoding, match="Line 2"):
        list(read_events([good, '{"time": 1}']))


def test_replay_feeds_every_channel_into_the_sink() -> None:
    events = [
        _event("#en.wikipedia", "[[A]] M https://x * U * (+1) s", 1),
        _event("#de.wikipedia", "[[B]]  https://y * V * (-2) t", 2),
        _event("#en.wikipedia", "not an edit", 3),
    ]
    buffer = io.StringIO()
    sink = CsvEditSink(buffer)

    count = replay_events(events, sink)

    assert count == 3
    assert sink.rows_written == 2
    assert buffer.getvalue().splitlines()[1].startswith("#de.wikipedia,rc-pmtpa,2,B,V,-2")
