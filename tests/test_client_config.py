from __future__ import annotations

import os

import pytest

import settings
from client import build_irc_config


def test_normalize_channels_skips_disabled_and_duplicates() -> None:
    channels = settings.normalize_channels(
        [
            {"name": "#en.wikipedia", "enabled": True},
            {"name": "de.wikipedia"},
            {"name": "#fr.wikipedia", "enabled": False},
            "en.wikipedia",
            {"name": "  "},
        ]
    )

    assert channels == ["#en.wikipedia", "#de.wikipedia"]


def test_build_irc_config_prefers_environment(monkeypatch) -> None:
    monkeypatch.setenv("IRC_HOST", "irc.example.org")
    monkeypatch.setenv("IRC_PORT", "6697")
    monkeypatch.setenv("IRC_NICK", "edit-watcher")
    monkeypatch.setenv("IRC_PASSWORD", "s3cret")

    config = build_irc_config()

    assert config.host == "irc.example.org"
    assert config.port == 6697
    assert config.nick == "edit-watcher"
    assert config.password == "s3cret"


def test_build_irc_config_generates_nick(monkeypatch) -> None:
    monkeypatch.delenv("IRC_HOST", raising=False)
    monkeypatch.delenv("IRC_PORT", raising=False)
    monkeypatch.delenv("IRC_NICK", raising=False)
    monkeypatch.delenv("IRC_PASSWORD", raising=False)

    config = build_irc_config()

    assert config.host == settings.IRC_HOST
    assert config.port == settings.IRC_PORT
    assert config.nick.startswith(f"{settings.IRC_NICK_PREFIX}-")
    assert config.password is None


def test_build_irc_config_rejects_bad_port(monkeypatch) -> None:
    monkeypatch.setenv("IRC_PORT", "not-a-port")

    with pytest.raises(RuntimeError):
        build_irc_config()


def test_config_path_prefers_the_checkout(tmp_path) -> None:
    checkout = tmp_path / "checkout"
    checkout.mkdir()
    (checkout / "config.json").write_text("{}", encoding="utf-8")
    cwd = tmp_path / "cwd"
    cwd.mkdir()
    (cwd / "config.json").write_text("{}", encoding="utf-8")

    assert settings._default_config_path(str(checkout), str(cwd)) == str(checkout / "config.json")


def test_config_path_falls_back_to_working_directory(tmp_path) -> None:
    # An installed copy has no config.json beside site-packages.
    site_packages = tmp_path / "lib"
    site_packages.mkdir()
    cwd = tmp_path / "cwd"
    cwd.mkdir()

    assert settings._default_config_path(str(site_packages), str(cwd)) == str(cwd / "config.json")


def test_relative_outputs_resolve_beside_the_config_file() -> None:
    assert settings.CONFIG_DIR == os.path.dirname(os.path.abspath(settings.CONFIG_PATH))
    assert settings.CSV_DIRECTORY == os.path.join(settings.CONFIG_DIR, "output")
