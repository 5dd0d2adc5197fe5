"""Persisted credentials and user settings.

Files live in ``$XDG_CONFIG_HOME/rtm/`` (``~/.config/rtm/`` by default):
    rtm_auth.json  - API key and secret, user token and identity
    config.json    - user-editable settings such as the default filter
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from rememberthemilk.exceptions import ConfigError, DecodeError
from rememberthemilk.session import Perms, User

logger = logging.getLogger(__name__)

APP_NAME = "rtm"
AUTH_FILE = "rtm_auth.json"
SETTINGS_FILE = "config.json"

DEFAULT_FILTER = "status:incomplete AND (dueBefore:today OR due:today)"


def config_dir() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / APP_NAME


@dataclass
class RTMConfig:
    """Application credentials plus (optionally) an authorised user."""

    api_key: str | None = None
    api_secret: str | None = None
    token: str | None = None
    user: User | None = None
    perms: Perms | None = None

    @classmethod
    def from_dict(cls, d: dict) -> RTMConfig:
        user = d.get("user")
        perms = d.get("perms")
        try:
            return cls(
                api_key=d.get("api_key"),
                api_secret=d.get("api_secret"),
                token=d.get("token"),
                user=User.from_dict(user) if user else None,
                perms=Perms.parse(perms) if perms else None,
            )
        except (DecodeError, ValueError, AttributeError) as e:
            raise ConfigError(f"Invalid auth record: {e}") from e

    def to_dict(self) -> dict:
        return {
            "api_key": self.api_key,
            "api_secret": self.api_secret,
            "token": self.token,
            "user": self.user.to_dict() if self.user else None,
            "perms": self.perms.value if self.perms else None,
        }

    def clear_user_data(self) -> None:
        self.token = None
        self.user = None
        self.perms = None


@dataclass
class Settings:
    filter: str = DEFAULT_FILTER

    @classmethod
    def from_dict(cls, d: dict) -> Settings:
        return cls(filter=d.get("filter") or DEFAULT_FILTER)

    def to_dict(self) -> dict:
        return {"filter": self.filter}


def _read_json(path: Path) -> dict | None:
    if not path.exists():
        return None
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} does not contain a JSON object")
    return data


def _write_json(path: Path, data: dict, private: bool = False) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if private:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        f = os.fdopen(fd, "w")
    else:
        f = open(path, "w")
    with f:
        json.dump(data, f, indent=2)
    if private:
        # O_CREAT only applies the mode to new files.
        os.chmod(path, 0o600)
    logger.debug("Wrote %s", path)


def load_config(directory: Path | None = None) -> RTMConfig:
    data = _read_json((directory or config_dir()) / AUTH_FILE)
    return RTMConfig.from_dict(data) if data else RTMConfig()


def save_config(config: RTMConfig, directory: Path | None = None) -> None:
    _write_json((directory or config_dir()) / AUTH_FILE, config.to_dict(), private=True)


def load_settings(directory: Path | None = None) -> Settings:
    """Load settings, writing the defaults on first use so they can be edited."""
    path = (directory or config_dir()) / SETTINGS_FILE
    data = _read_json(path)
    if data is None:
        settings = Settings()
        _write_json(path, settings.to_dict())
        return settings
    return Settings.from_dict(data)
