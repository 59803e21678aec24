"""Asyncio IRC transport.

This keeps the socket, registration, and keep-alive details out of the core.
Channel messages are handed to a plain callback (normally
ChannelRegistry.on_channel_message); JOIN/PART are fire-and-forget and safe
to call from any thread.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable, Optional

from adapters.irc_protocol import (
    IrcMessage,
    format_command,
    is_channel,
    nick_from_prefix,
    parse_irc_line,
)
from core.config import IrcConfig

LOGGER = logging.getLogger(__name__)

MessageCallback = Callable[[str, str, str], object]

RPL_WELCOME = "001"


class IrcConnection:
    """Single IRC connection that satisfies the ChannelCommandPort contract."""

    def __init__(self, config: IrcConfig, on_message: Optional[MessageCallback] = None) -> None:
        self._config = config
        self._on_message = on_message
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._registered = False
        # Commands issued before RPL_WELCOME wait here; servers reject JOIN earlier.
        self._pending: list[str] = []
        self._state_lock = threading.Lock()
        self._stopping = False
        # Set once run() returns; nothing reconnects after that.
        self._finished = False
        self._handlers: dict[str, Callable[[IrcMessage], None]] = {
            "PING": self._on_ping,
            "PRIVMSG": self._on_privmsg,
            "JOIN": self._on_join,
            "PART": self._on_part,
            "KICK": self._on_kick,
            "NOTICE": self._on_notice,
            "MODE": self._on_mode,
            "TOPIC": self._on_topic,
            "NICK": self._on_nick,
            "QUIT": self._on_quit,
            "ERROR": self._on_error,
        }

    @property
    def nick(self) -> str:
        return self._config.nick

    @property
    def registered(self) -> bool:
        return self._registered

    def set_message_callback(self, on_message: MessageCallback) -> None:
        self._on_message = on_message

    # ChannelCommandPort

    def send_join(self, channel: str) -> None:
        self._enqueue(format_command("JOIN", channel))

    def send_leave(self, channel: str) -> None:
        self._enqueue(format_command("PART", channel))

    def _enqueue(self, line: str) -> None:
        with self._state_lock:
            if self._finished:
                LOGGER.warning("Dropping command, connection has ended: %s", line)
                return
            if not self._registered or self._loop is None:
                self._pending.append(line)
                return
            loop = self._loop
        if _running_in(loop):
            self._write_line(line)
        else:
            loop.call_soon_threadsafe(self._write_line, line)

    def _write_line(self, line: str) -> None:
        if self._writer is None or self._writer.is_closing():
            LOGGER.warning("Dropping command, connection is closed: %s", line)
            return
        LOGGER.debug(">> %s", line)
        self._writer.write(line.encode("utf-8") + b"\r\n")

    async def run(self) -> None:
        """Connect, register, and read lines until the server or stop() ends it."""

        host, port = self._config.host, self._config.port
        self._loop = asyncio.get_running_loop()
        try:
            reader, writer = await asyncio.open_connection(host, port)
        except OSError as exc:
            with self._state_lock:
                self._finished = True
            raise RuntimeError(f"Unable to connect to {host}:{port}.") from exc
        self._writer = writer
        LOGGER.info("Connected to %s:%s as %s", host, port, self.nick)

        if self._config.password:
            self._write_line(format_command("PASS", self._config.password))
        self._write_line(format_command("NICK", self.nick))
        self._write_line(format_command("USER", self.nick, "0", "*", self.nick))
        await writer.drain()

        try:
            while not self._stopping:
                try:
                    raw = await reader.readline()
                except ConnectionError:
                    if self._stopping:
                        break
                    raise
                if not raw:
                    break
                self._handle_line(raw.decode("utf-8", errors="replace"))
                await writer.drain()
        finally:
            with self._state_lock:
                self._registered = False
                self._finished = True
                if self._pending:
                    LOGGER.warning("Dropping %s unsent command(s)", len(self._pending))
                self._pending = []
            if not writer.is_closing():
                writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                # Peer already dropped the socket.
                pass
            LOGGER.info("Disconnected from %s:%s", host, port)

    def stop(self) -> None:
        """Ask the read loop to finish; safe to call from any thread."""

        self._stopping = True
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        if _running_in(loop):
            self._close_writer()
        else:
            loop.call_soon_threadsafe(self._close_writer)

    def _close_writer(self) -> None:
        if self._writer is not None and not self._writer.is_closing():
            self._write_line(format_command("QUIT", "bye"))
            self._writer.close()

    def _handle_line(self, line: str) -> None:
        message = parse_irc_line(line)
        if message is None:
            return

        handler = self._handlers.get(message.command)
        if handler is not None:
            handler(message)
        elif message.command.isdigit():
            self._on_numeric(message)
        else:
            LOGGER.warning("UNKNOWN: %s", line.rstrip("\r\n"))

    def _on_ping(self, message: IrcMessage) -> None:
        self._write_line(format_command("PONG", message.trailing))

    def _on_privmsg(self, message: IrcMessage) -> None:
        if len(message.params) < 2 or not is_channel(message.params[0]):
            return
        if self._on_message is None:
            return
        channel, text = message.params[0], message.params[-1]
        try:
            self._on_message(channel, nick_from_prefix(message.prefix), text)
        except Exception:
            LOGGER.exception("Message callback failed for %s", channel)

    def _on_numeric(self, message: IrcMessage) -> None:
        if message.command == RPL_WELCOME:
            with self._state_lock:
                self._registered = True
                pending, self._pending = self._pending, []
            LOGGER.info("Registered as %s", self.nick)
            for line in pending:
                self._write_line(line)
            return
        if message.command.startswith(("4", "5")):
            LOGGER.info("Error #%s: %s", message.command, " ".join(message.params[1:]))
            return
        LOGGER.info("Reply #%s: %s", message.command, " ".join(message.params[1:]))

    def _on_join(self, message: IrcMessage) -> None:
        LOGGER.info("%s> %s joins", message.trailing, nick_from_prefix(message.prefix))

    def _on_part(self, message: IrcMessage) -> None:
        channel = message.params[0] if message.params else ""
        LOGGER.info("%s> %s parts", channel, nick_from_prefix(message.prefix))

    def _on_kick(self, message: IrcMessage) -> None:
        channel, kicked = (list(message.params) + ["", ""])[:2]
        LOGGER.info("%s> %s kicks %s", channel, nick_from_prefix(message.prefix), kicked)

    def _on_notice(self, message: IrcMessage) -> None:
        target = message.params[0] if message.params else ""
        source = nick_from_prefix(message.prefix) or message.prefix or ""
        LOGGER.info("%s> %s (notice): %s", target, source, message.trailing)

    def _on_mode(self, message: IrcMessage) -> None:
        LOGGER.info("Mode: %s sets %s", nick_from_prefix(message.prefix), " ".join(message.params))

    def _on_topic(self, message: IrcMessage) -> None:
        channel = message.params[0] if message.params else ""
        LOGGER.info("%s> topic: %s", channel, message.trailing)

    def _on_nick(self, message: IrcMessage) -> None:
        LOGGER.info("Nick: %s is now known as %s", nick_from_prefix(message.prefix), message.trailing)

    def _on_quit(self, message: IrcMessage) -> None:
        LOGGER.info("Quit: %s", nick_from_prefix(message.prefix))

    def _on_error(self, message: IrcMessage) -> None:
        LOGGER.info("Error: %s", message.trailing)


def _running_in(loop: asyncio.AbstractEventLoop) -> bool:
    try:
        return asyncio.get_running_loop() is loop
    except RuntimeError:
        return False
