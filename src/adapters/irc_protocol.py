"""IRC line framing helpers (RFC 1459 style, IRCv3 tags ignored)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

CHANNEL_PREFIXES = ("#", "&")


@dataclass(frozen=True)
class IrcMessage:
    """One parsed IRC protocol line."""

    prefix: Optional[str]
    command: str
    params: tuple[str, ...]

    @property
    def trailing(self) -> str:
        return self.params[-1] if self.params else ""


def parse_irc_line(line: str) -> Optional[IrcMessage]:
    """Split a raw line into prefix, command and params; None if empty."""

    line = line.rstrip("\r\n")
    if line.startswith("@"):
        # IRCv3 message tags are not used by the feed.
        _, _, line = line.partition(" ")

    prefix = None
    if line.startswith(":"):
        prefix, _, line = line[1:].partition(" ")

    line = line.lstrip(" ")
    if not line:
        return None

    trailing = None
    if " :" in line:
        line, _, trailing = line.partition(" :")
    elif line.startswith(":"):
        line, trailing = "", line[1:]

    parts = line.split()
    if not parts:
        return None
    command = parts[0].upper()
    params = parts[1:]
    if trailing is not None:
        params.append(trailing)
    return IrcMessage(prefix=prefix or None, command=command, params=tuple(params))


def nick_from_prefix(prefix: Optional[str]) -> str:
    """Return the nick part of nick!user@host ("" for server prefixes)."""

    if not prefix:
        return ""
    nick, bang, _ = prefix.partition("!")
    if not bang and "." in nick:
        # Server names contain dots, nicks cannot.
        return ""
    return nick.partition("@")[0]


def is_channel(target: str) -> bool:
    return target.startswith(CHANNEL_PREFIXES)


def format_command(command: str, *params: str) -> str:
    """Build a protocol line; the last param becomes trailing when needed."""

    if not params:
        return command
    head, last = list(params[:-1]), params[-1]
    if not last or " " in last or last.startswith(":"):
        last = f":{last}"
    return " ".join([command, *head, last])
