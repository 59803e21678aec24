"""IRC client factory for wikifeed.

We explicitly manage the connection lifecycle (run/stop) so it is obvious
when the socket is opened and when it ends.
"""

from __future__ import annotations

import logging
import os
import random

from dotenv import load_dotenv

import settings
from adapters.irc_client import IrcConnection
from core.config import IrcConfig


def _default_nick() -> str:
    return f"{settings.IRC_NICK_PREFIX}-{random.randint(0, 2**31 - 1)}"


def build_irc_config() -> IrcConfig:
    """Create the IRC config from config.json with environment overrides.

    IRC_HOST/IRC_PORT/IRC_NICK/IRC_PASSWORD are read via python-dotenv so
    credentials stay out of the repo.
    """

    load_dotenv()

    host = os.getenv("IRC_HOST") or settings.IRC_HOST
    port_raw = os.getenv("IRC_PORT") or settings.IRC_PORT
    nick = os.getenv("IRC_NICK") or _default_nick()
    password = os.getenv("IRC_PASSWORD") or None

    try:
        port = int(port_raw)
    except (TypeError, ValueError) as exc:
        raise RuntimeError(f"Invalid IRC port: {port_raw!r}") from exc

    if not host:
        raise RuntimeError("Missing IRC host in config.json or IRC_HOST")

    return IrcConfig(host=host, port=port, nick=nick, password=password)


def build_irc_connection() -> IrcConnection:
    config = build_irc_config()
    logging.getLogger(__name__).info("Initializing IRC client for %s:%s", config.host, config.port)
    return IrcConnection(config)
