"""JSON-lines event capture and replay.

A capture file holds one FeedEvent text encoding per line, so a live feed can
be recorded once and replayed through the registry offline.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Iterator, TextIO

from core.errors import MalformedEncoding
from core.models import FeedEvent
from core.ports import FeedListener
from core.registry import ChannelRegistry

LOGGER = logging.getLogger(__name__)


class JsonLinesEventSink:
    """FeedListener that appends every event as one JSON line."""

    def __init__(self, handle: TextIO) -> None:
        self._handle = handle
        self._lock = threading.Lock()

    def on_event(self, event: FeedEvent) -> None:
        line = event.to_text()
        with self._lock:
            self._handle.write(line + "\n")
            self._handle.flush()

    def close(self) -> None:
        with self._lock:
            if not self._handle.closed:
                self._handle.close()


def read_events(lines: Iterable[str]) -> Iterator[FeedEvent]:
    """Yield events from JSON lines, skipping blank ones."""

    for number, line in enumerate(lines, start=1):
        text = line.strip()
        if not text:
            continue
        try:
            yield FeedEvent.from_text(text)
        except MalformedEncoding as exc:
            raise MalformedEncoding(f"Line {number}: {exc}") from exc


class _ReplayCommands:
    """Channel commands for offline replay; there is no server to talk to."""

    def send_join(self, channel: str) -> None:
        LOGGER.debug("Replay: JOIN %s", channel)

    def send_leave(self, channel: str) -> None:
        LOGGER.debug("Replay: PART %s", channel)


def replay_events(events: Iterable[FeedEvent], listener: FeedListener) -> int:
    """Dispatch captured events through a fresh registry; return the event count.

    Every channel seen in the capture gets listener subscribed, in capture
    order, so the listener sees exactly what it would have seen live.
    """

    registry = ChannelRegistry(_ReplayCommands())
    count = 0
    for event in events:
        if event.channel not in registry.channels():
            registry.listen(event.channel, listener)
        registry.dispatch(event.channel, event)
        count += 1
    registry.close()
    return count
