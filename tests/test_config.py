"""Unit tests for rememberthemilk.config."""

from __future__ import annotations

import json
import os
import stat

import pytest

from rememberthemilk.config import (
    AUTH_FILE,
    DEFAULT_FILTER,
    SETTINGS_FILE,
    RTMConfig,
    Settings,
    config_dir,
    load_config,
    load_settings,
    save_config,
)
from rememberthemilk.exceptions import ConfigError
from rememberthemilk.session import Perms, User


def test_config_dir_honours_xdg(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert config_dir() == tmp_path / "rtm"


def test_load_missing_config(tmp_path):
    assert load_config(tmp_path) == RTMConfig()


def test_save_and_load(tmp_path):
    config = RTMConfig(
        api_key="k",
        api_secret="s",
        token="t",
        user=User(id="1", username="bob", fullname="Bob"),
        perms=Perms.WRITE,
    )
    save_config(config, tmp_path)
    assert load_config(tmp_path) == config


@pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
def test_auth_file_is_private(tmp_path):
    save_config(RTMConfig(api_key="k", api_secret="s"), tmp_path)
    mode = stat.S_IMODE((tmp_path / AUTH_FILE).stat().st_mode)
    assert mode & 0o077 == 0


@pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
def test_existing_auth_file_is_made_private(tmp_path):
    path = tmp_path / AUTH_FILE
    path.write_text("{}")
    path.chmod(0o644)
    save_config(RTMConfig(api_key="k", api_secret="s", token="t"), tmp_path)
    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    assert load_config(tmp_path).token == "t"


def test_save_creates_directory(tmp_path):
    target = tmp_path / "nested" / "rtm"
    save_config(RTMConfig(api_key="k"), target)
    assert (target / AUTH_FILE).exists()


def test_clear_user_data(tmp_path):
    config = RTMConfig(api_key="k", api_secret="s", token="t", perms=Perms.READ)
    config.clear_user_data()
    assert config == RTMConfig(api_key="k", api_secret="s")


def test_invalid_json(tmp_path):
    (tmp_path / AUTH_FILE).write_text("{not json")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_not_an_object(tmp_path):
    (tmp_path / AUTH_FILE).write_text("[1, 2]")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_bad_perms(tmp_path):
    (tmp_path / AUTH_FILE).write_text(json.dumps({"api_key": "k", "perms": "root"}))
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_settings_written_on_first_load(tmp_path):
    settings = load_settings(tmp_path)
    assert settings == Settings()
    assert json.loads((tmp_path / SETTINGS_FILE).read_text()) == {"filter": DEFAULT_FILTER}


def test_settings_custom_filter(tmp_path):
    (tmp_path / SETTINGS_FILE).write_text(json.dumps({"filter": "tag:work"}))
    assert load_settings(tmp_path).filter == "tag:work"


def test_user_without_id(tmp_path):
    (tmp_path / AUTH_FILE).write_text(json.dumps({"api_key": "k", "user": {"username": "bob"}}))
    with pytest.raises(ConfigError):
        load_config(tmp_path)
