"""
User settings, read from ``~/.config/fdnotify/config.ini``::

    [notify]
    app_name = backup
    app_icon = drive-harddisk
    timeout = 5000
    transport = dbus
    log_level = info
"""

import configparser
import logging
import os
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)

TRANSPORTS = ("dbus", "aio")
LOG_LEVELS = ("debug", "info", "warning", "error")


def config_dir():
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "fdnotify"


def config_path():
    override = os.environ.get("FDNOTIFY_CONFIG")
    if override:
        return Path(override)
    return config_dir() / "config.ini"


@dataclass(frozen=True)
class Settings:
    app_name: str = "fdnotify"
    app_icon: str = ""
    timeout: int = -1
    transport: str = "dbus"
    log_level: str = "warning"


def load_settings(path=None) -> Settings:
    """
    Settings from *path* (default :func:`config_path`). A missing file
    gives the defaults; a bad value raises :exc:`ValueError`.
    """
    path = Path(path) if path is not None else config_path()
    parser = configparser.ConfigParser()
    if not parser.read(path, encoding="utf-8"):
        log.debug("no config at %s, using defaults", path)
        return Settings()
    if not parser.has_section("notify"):
        return Settings()
    section = parser["notify"]
    defaults = Settings()

    try:
        timeout = section.getint("timeout", fallback=defaults.timeout)
    except ValueError:
        raise ValueError(f"{path}: timeout must be an integer") from None
    transport = section.get("transport", defaults.transport).strip().lower()
    if transport not in TRANSPORTS:
        raise ValueError(f"{path}: transport must be one of {', '.join(TRANSPORTS)}")
    log_level = section.get("log_level", defaults.log_level).strip().lower()
    if log_level not in LOG_LEVELS:
        raise ValueError(f"{path}: log_level must be one of {', '.join(LOG_LEVELS)}")

    return Settings(
        app_name=section.get("app_name", defaults.app_name),
        app_icon=section.get("app_icon", defaults.app_icon),
        timeout=timeout,
        transport=transport,
        log_level=log_level,
    )


def open_channel(transport):
    """Connect with the named transport."""
    if transport == "dbus":
        from .dbus_channel import DBusChannel
        return DBusChannel()
    if transport == "aio":
        from .aio_channel import AioChannel
        return AioChannel()
    raise ValueError(f"unknown transport {transport!r}")
