"""Exceptions raised by the core feed logic."""

from __future__ import annotations


class FeedError(Exception):
    """Base class for wikifeed errors."""


class SubscriptionError(FeedError):
    """Misuse of the channel registry by a caller."""

    def __init__(self, channel: str, message: str) -> None:
        super().__init__(f"{message}: {channel}")
        self.channel = channel


class NotSubscribed(SubscriptionError):
    def __init__(self, channel: str) -> None:
        super().__init__(channel, "Channel has no listeners")


class ListenerNotFound(SubscriptionError):
    def __init__(self, channel: str) -> None:
        super().__init__(channel, "Listener is not listening to channel")


class AlreadySubscribed(SubscriptionError):
    def __init__(self, channel: str) -> None:
        super().__init__(channel, "Listener is already listening to channel")


class MalformedEncoding(FeedError, ValueError):
    """A persisted or transmitted FeedEvent could not be decoded."""
