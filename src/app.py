"""Application entry point for the wikifeed watcher."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv

import settings
from adapters.csv_sink import open_csv_sink
from adapters.irc_client import IrcConnection
from adapters.jsonl_sink import JsonLinesEventSink, read_events, replay_events
from client import build_irc_connection
from core.registry import ChannelRegistry

NAME = "WIKIFEED"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/wikifeed.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.CONFIG_DIR, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _open_capture_sink() -> Optional[JsonLinesEventSink]:
    if not settings.JSONL_ENABLED:
        return None
    directory = os.path.dirname(settings.JSONL_PATH)
    if directory:
        os.makedirs(directory, exist_ok=True)
    handle = open(settings.JSONL_PATH, "a", encoding="utf-8")
    logging.getLogger(__name__).info("Capturing raw events to %s", settings.JSONL_PATH)
    return JsonLinesEventSink(handle)


async def _watch(connection: IrcConnection, registry: ChannelRegistry, duration: float) -> None:
    """Run the connection for duration seconds (forever when 0), then stop it."""

    task = asyncio.create_task(connection.run())
    try:
        if duration > 0:
            await asyncio.wait({task}, timeout=duration)
        else:
            await task
    finally:
        # Close the registry first: no dispatch may land once we report stopped.
        registry.close()
        connection.stop()
        if not task.done():
            await task
    # Surface connect/read failures.
    task.result()


def _run(channels: list[str], duration: float) -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    if not channels:
        raise RuntimeError("No channels configured; add some to config.json or pass --channel")

    logger.info("Starting wikifeed")

    connection = build_irc_connection()
    registry = ChannelRegistry(connection)
    connection.set_message_callback(registry.on_channel_message)

    csv_sink = open_csv_sink(settings.CSV_DIRECTORY, settings.CSV_PREFIX, settings.CSV_HEADER)
    capture_sink = _open_capture_sink()
    try:
        # Subscribing before connecting queues the JOINs until registration.
        for channel in channels:
            registry.listen(channel, csv_sink)
            if capture_sink is not None:
                registry.listen(channel, capture_sink)
        logger.info("Listening to %s channel(s): %s", len(channels), ", ".join(channels))

        try:
            asyncio.run(_watch(connection, registry, duration))
        except KeyboardInterrupt:
            registry.close()
            logger.info("Interrupted, shutting down")
    finally:
        csv_sink.close()
        if capture_sink is not None:
            capture_sink.close()
        logger.info("Stopped. %s edit rows written", csv_sink.rows_written)


def _replay(path: str) -> None:
    _print_banner()
    _configure_logging()

    sink = open_csv_sink(settings.CSV_DIRECTORY, settings.CSV_PREFIX, settings.CSV_HEADER)
    try:
        with open(path, "r", encoding="utf-8") as handle:
            count = replay_events(read_events(handle), sink)
    finally:
        sink.close()
    print(f"Replayed {count} events, wrote {sink.rows_written} edit rows.")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="wikifeed")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Start the watcher")
    run_parser.add_argument(
        "--channel",
        action="append",
        dest="channels",
        help="Channel to listen to (repeatable); defaults to config.json",
    )
    run_parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Seconds to run before stopping; 0 runs until interrupted",
    )

    replay_parser = subparsers.add_parser(
        "replay",
        help="Convert a captured JSONL event file to CSV without connecting.",
    )
    replay_parser.add_argument("path", help="Path to a JSONL capture file")

    args = parser.parse_args(argv)
    if args.command == "replay":
        _replay(args.path)
        return

    channels = settings.normalize_channels(getattr(args, "channels", None) or []) or settings.CHANNELS
    duration = getattr(args, "duration", None)
    if duration is None:
        duration = settings.RUN_DURATION_SECONDS
    _run(channels, duration)


if __name__ == "__main__":
    main()
