"""Edit-line parsing (core domain).

The recent-changes feed announces every edit as one IRC line. After mIRC
formatting codes are removed, grammar version 1 is:

    [[<title>]] <flags> <diff-url> * <user> * (<bytes>) <summary>

- segments are separated by single spaces
- <flags> and <diff-url> are single tokens and may be empty
- <title> and <user> must be non-empty after trimming
- <bytes> is a signed decimal integer, e.g. +42, -7, 0
- <summary> is the rest of the line and may be empty

Any drift in the upstream format makes lines come back as None, so keep the
grammar version in sync with the tests.
"""

from __future__ import annotations

import re
from typing import Optional

from core.models import EditFlags, EditRecord

EDIT_LINE_GRAMMAR_VERSION = 1

# flag character -> EditFlags field
FLAG_CHARS = {
    "M": "is_minor",
    "T": "is_talk",
    "B": "is_bot_edit",
    "N": "is_new",
    "!": "is_unpatrolled",
    "S": "is_special",
}

# Bold, colour (with optional fg[,bg]), reset, reverse, italic, strike, underline.
_FORMATTING_RE = re.compile(r"\x03(?:\d{1,2}(?:,\d{1,2})?)?|[\x02\x0f\x16\x1d\x1e\x1f]")

_EDIT_LINE_RE = re.compile(
    r"^\[\[(?P<title>.+?)\]\]"
    r" (?P<flags>\S*)"
    r" (?P<diff_url>\S*)"
    r" \* (?P<user>.+?) \*"
    r" \((?P<diff_bytes>[^()]*)\)"
    r"(?: (?P<summary>.*))?$",
    re.DOTALL,
)

_DIFF_BYTES_RE = re.compile(r"[+-]?[0-9]+")


def strip_formatting(text: str) -> str:
    """Remove mIRC bold/colour/style control codes."""

    return _FORMATTING_RE.sub("", text)


def parse_flags(token: str) -> tuple[EditFlags, str]:
    """Split a flag token into known flags and the leftover characters."""

    found: dict[str, bool] = {}
    unparsed: list[str] = []
    for char in token:
        name = FLAG_CHARS.get(char)
        if name is None:
            unparsed.append(char)
        else:
            found[name] = True
    return EditFlags(**found), "".join(unparsed)


def parse_edit(raw_text: str) -> Optional[EditRecord]:
    """Parse one feed line into an EditRecord.

    Returns None for anything that is not an edit line; malformed input never
    raises. The result only depends on raw_text.
    """

    if not isinstance(raw_text, str):
        raise TypeError(f"parse_edit expects str, got {type(raw_text).__name__}")

    line = strip_formatting(raw_text).strip()
    match = _EDIT_LINE_RE.match(line)
    if match is None:
        return None

    title = match.group("title").strip()
    user = match.group("user").strip()
    if not title or not user:
        return None

    diff_bytes_token = match.group("diff_bytes").strip()
    if not _DIFF_BYTES_RE.fullmatch(diff_bytes_token):
        return None

    flags, unparsed_flags = parse_flags(match.group("flags"))
    return EditRecord(
        title=title,
        user=user,
        diff_bytes=int(diff_bytes_token),
        diff_url=match.group("diff_url").strip(),
        summary=(match.group("summary") or "").strip(),
        flags=flags,
        unparsed_flags=unparsed_flags,
    )
