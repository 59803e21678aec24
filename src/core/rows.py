"""CSV row contract for parsed edits."""

from __future__ import annotations

from core.models import EditRecord, FeedEvent

CSV_COLUMNS = (
    "channel",
    "source",
    "time",
    "title",
    "user",
    "diffBytes",
    "diffUrl",
    "summary",
    "isMinor",
    "isTalk",
    "isBotEdit",
    "isNew",
    "isUnpatrolled",
    "isSpecial",
    "unparsedFlags",
)


def _bool_text(value: bool) -> str:
    return "true" if value else "false"


def edit_row(event: FeedEvent, record: EditRecord) -> list[str]:
    """Return the ordered CSV fields for one parsed edit."""

    flags = record.flags
    return [
        event.channel,
        event.source,
        str(event.time),
        record.title,
        record.user,
        str(record.diff_bytes),
        record.diff_url,
        record.summary,
        _bool_text(flags.is_minor),
        _bool_text(flags.is_talk),
        _bool_text(flags.is_bot_edit),
        _bool_text(flags.is_new),
        _bool_text(flags.is_unpatrolled),
        _bool_text(flags.is_special),
        record.unparsed_flags,
    ]
