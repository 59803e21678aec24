"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the adapters expect so the app layer can build them safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class IrcConfig:
    """Connection settings for the IRC transport."""

    host: str
    port: int
    nick: str
    password: Optional[str] = None


@dataclass(frozen=True)
class CsvConfig:
    """Output settings for the CSV edit sink."""

    directory: str
    prefix: str
    header: bool
