"""Channel subscription registry and event fan-out.

The registry maps channel -> listeners and is the only shared mutable state
between the transport thread and whoever changes subscriptions. JOIN is sent
on the first listener of a channel and PART on the last one leaving, never
per listener.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from core.errors import AlreadySubscribed, ListenerNotFound, NotSubscribed
from core.models import FeedEvent
from core.ports import ChannelCommandPort, FeedListener

LOGGER = logging.getLogger(__name__)


def _now_millis() -> int:
    return int(time.time() * 1000)


def _contains(listeners: list[FeedListener], listener: FeedListener) -> bool:
    # Identity, not equality: two equal sinks are still two listeners.
    return any(item is listener for item in listeners)


class ChannelRegistry:
    """Tracks listeners per channel and delivers inbound messages to them."""

    def __init__(
        self,
        commands: ChannelCommandPort,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._commands = commands
        self._clock = clock or _now_millis
        self._lock = threading.Lock()
        self._listeners: dict[str, list[FeedListener]] = {}
        self._closed = False

    def listen(self, channel: str, listener: FeedListener) -> None:
        """Register a listener, joining the channel if it is the first one."""

        with self._lock:
            listeners = self._listeners.get(channel)
            if listeners is None:
                # JOIN is issued under the lock so JOIN/PART for a channel go
                # out in the same order as the transitions that caused them.
                self._commands.send_join(channel)
                self._listeners[channel] = [listener]
                LOGGER.info("First listener for %s, JOIN sent", channel)
                return
            if _contains(listeners, listener):
                raise AlreadySubscribed(channel)
            listeners.append(listener)

    def unlisten(self, channel: str, listener: FeedListener) -> None:
        """Remove a listener, leaving the channel once nobody listens."""

        with self._lock:
            listeners = self._listeners.get(channel)
            if listeners is None:
                raise NotSubscribed(channel)
            if not _contains(listeners, listener):
                raise ListenerNotFound(channel)

            listeners[:] = [item for item in listeners if item is not listener]
            if not listeners:
                del self._listeners[channel]
                self._commands.send_leave(channel)
                LOGGER.info("Last listener left %s, PART sent", channel)

    def dispatch(self, channel: str, event: FeedEvent) -> int:
        """Deliver event to every listener of channel; return deliveries made.

        Messages for channels without listeners are dropped silently; this is
        normal while a JOIN or PART is still in flight.
        """

        with self._lock:
            if self._closed:
                return 0
            listeners = self._listeners.get(channel)
            snapshot = tuple(listeners) if listeners else ()

        # Listeners run outside the lock so slow sinks never block subscriptions.
        delivered = 0
        for listener in snapshot:
            try:
                listener.on_event(event)
            except Exception:
                LOGGER.exception("Listener %r failed on event from %s", listener, channel)
                continue
            delivered += 1
        return delivered

    def on_channel_message(self, channel: str, source: str, text: str) -> int:
        """Transport callback: stamp, wrap and dispatch one channel line."""

        LOGGER.debug("%s> %s: %s", channel, source, text)
        if not channel or not source:
            return 0
        event = FeedEvent(time=self._clock(), channel=channel, source=source, raw=text)
        return self.dispatch(channel, event)

    def channels(self) -> set[str]:
        with self._lock:
            return set(self._listeners)

    def listeners(self, channel: str) -> tuple[FeedListener, ...]:
        with self._lock:
            return tuple(self._listeners.get(channel, ()))

    def close(self) -> None:
        """Stop delivering.

        Dispatches already past their snapshot may still finish; any dispatch
        that starts after this returns delivers nothing.
        """

        with self._lock:
            self._closed = True

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed
