"""Static configuration for wikifeed.

All user-editable settings (server, channels, output, logging) live in a
single JSON file for quick edits without touching Python.
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


def _default_config_path(project_root: str, cwd: str) -> str:
    """Prefer the checkout's config.json, else the one in the working directory.

    A non-editable install puts the modules in site-packages, where the
    project root holds no config.json.
    """

    bundled = os.path.join(project_root, "config.json")
    if os.path.exists(bundled):
        return bundled
    return os.path.join(cwd, "config.json")


CONFIG_PATH = os.getenv("WIKIFEED_CONFIG") or _default_config_path(PROJECT_ROOT, os.getcwd())

# Relative output and log paths resolve against the config file's directory.
CONFIG_DIR = os.path.dirname(os.path.abspath(CONFIG_PATH))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def normalize_channels(raw_channels: list) -> list[str]:
    """Return enabled channel names, in config order, without duplicates."""

    channels: list[str] = []
    for entry in raw_channels:
        if isinstance(entry, str):
            entry = {"name": entry}
        name = (entry.get("name") or "").strip()
        if not name or not entry.get("enabled", True):
            continue
        if not name.startswith(("#", "&")):
            name = f"#{name}"
        if name not in channels:
            channels.append(name)
    return channels


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(CONFIG_DIR, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# IRC server; the Wikimedia recent-changes server by default.
_irc = _CONFIG.get("irc", {})
IRC_HOST = _irc.get("host", "irc.wikimedia.org")
IRC_PORT = int(_irc.get("port", 6667))
IRC_NICK_PREFIX = _irc.get("nick_prefix", "wikifeed-bot")

# Channels the run command subscribes the sinks to.
CHANNELS = normalize_channels(_CONFIG.get("channels", []))

# CSV output: one timestamped file per run under CSV_DIRECTORY.
_csv = _CONFIG.get("csv", {})
CSV_DIRECTORY = _resolve_path(_csv.get("directory", "output"))
CSV_PREFIX = _csv.get("prefix", "wikipedia-activities")
CSV_HEADER = bool(_csv.get("header", False))

# Optional raw event capture that the replay command can read back.
_jsonl = _CONFIG.get("jsonl", {})
JSONL_ENABLED = bool(_jsonl.get("enabled", False))
JSONL_PATH = _resolve_path(_jsonl.get("path", "output/events.jsonl"))

# 0 keeps the watcher running until interrupted.
RUN_DURATION_SECONDS = float(_CONFIG.get("run", {}).get("duration_seconds", 0))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
