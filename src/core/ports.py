"""Ports (interfaces) used by the core registry.

Ports define the minimal contracts for the transport and for event sinks so
that the core can be reused with different networks and outputs.
"""

from __future__ import annotations

from typing import Protocol

from core.models import FeedEvent


class FeedListener(Protocol):
    """Anything that wants FeedEvents for the channels it listens to."""

    def on_event(self, event: FeedEvent) -> None:
        ...


class ChannelCommandPort(Protocol):
    """Outbound channel commands; fire-and-forget, must not block."""

    def send_join(self, channel: str) -> None:
        ...

    def send_leave(self, channel: str) -> None:
        ...
