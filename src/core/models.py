"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to IRC-specific types. FeedEvent also owns its persisted forms: a
plain record dict and a JSON text encoding with the keys time, channel,
source and raw.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any, Mapping

from core.errors import MalformedEncoding

RECORD_KEYS = ("time", "channel", "source", "raw")


@dataclass(frozen=True)
class FeedEvent:
    """One inbound channel message, stamped at receipt."""

    time: int
    channel: str
    source: str
    raw: str

    def __post_init__(self) -> None:
        if isinstance(self.time, bool) or not isinstance(self.time, int):
            raise ValueError(f"FeedEvent time must be an int, got {type(self.time).__name__}")
        for name in ("channel", "source"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ValueError(f"FeedEvent {name} must be a non-empty string")
        if not isinstance(self.raw, str):
            raise ValueError("FeedEvent raw must be a string")

    def to_record(self) -> dict[str, Any]:
        return {
            "time": self.time,
            "channel": self.channel,
            "source": self.source,
            "raw": self.raw,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "FeedEvent":
        """Build an event from a record, rejecting missing, extra or mistyped keys."""

        if not isinstance(record, Mapping):
            raise MalformedEncoding(f"Expected an object, got {type(record).__name__}")

        missing = [key for key in RECORD_KEYS if key not in record]
        if missing:
            raise MalformedEncoding(f"Missing key(s): {', '.join(missing)}")
        extra = sorted(str(key) for key in record if key not in RECORD_KEYS)
        if extra:
            raise MalformedEncoding(f"Unexpected key(s): {', '.join(extra)}")

        time = record["time"]
        if isinstance(time, bool) or not isinstance(time, int):
            raise MalformedEncoding(f"Key 'time' must be an integer, got {type(time).__name__}")
        for key in ("channel", "source", "raw"):
            if not isinstance(record[key], str):
                raise MalformedEncoding(
                    f"Key '{key}' must be a string, got {type(record[key]).__name__}"
                )

        try:
            return cls(
                time=time,
                channel=record["channel"],
                source=record["source"],
                raw=record["raw"],
            )
        except ValueError as exc:
            raise MalformedEncoding(str(exc)) from exc

    def to_text(self) -> str:
        return json.dumps(self.to_record(), ensure_ascii=False, separators=(",", ":"))

    @classmethod
    def from_text(cls, text: str) -> "FeedEvent":
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedEncoding(f"Invalid JSON: {exc.msg}") from exc
        return cls.from_record(payload)


@dataclass(frozen=True)
class EditFlags:
    """The six named edit flags; a flag missing from the line is False."""

    is_minor: bool = False
    is_talk: bool = False
    is_bot_edit: bool = False
    is_new: bool = False
    is_unpatrolled: bool = False
    is_special: bool = False


@dataclass(frozen=True)
class EditRecord:
    """Structured result of parsing one edit notification line."""

    title: str
    user: str
    diff_bytes: int
    diff_url: str
    summary: str
    flags: EditFlags = field(default_factory=EditFlags)
    unparsed_flags: str = ""
