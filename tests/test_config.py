"""Tests for ims_oauth.config -- XDG paths, atomic writes, environment precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from ims_oauth.config import (
    _atomic_write,
    get_cli_env,
    get_config_dir,
    get_data_dir,
    load_global_config,
    parse_env,
    resolve_credential,
    save_global_config,
)
from ims_oauth.exceptions import ConfigError
from ims_oauth.models import Environment, GlobalConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("ims_oauth.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "ims-oauth"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_config"
        monkeypatch.setattr("ims_oauth.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(custom))

        result = get_config_dir()
        assert result == custom / "ims-oauth"
        assert result.is_dir()

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("ims_oauth.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "ims-oauth"
        assert result.is_dir()

    def test_config_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("ims_oauth.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".ims-oauth"
        assert result.is_dir()

    def test_data_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("ims_oauth.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".ims-oauth" / "logs"
        assert result.is_dir()


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        _atomic_write(target, "hello world")
        assert target.read_text(encoding="utf-8") == "hello world"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        target.write_text("old content", encoding="utf-8")
        _atomic_write(target, "new content")
        assert target.read_text(encoding="utf-8") == "new content"

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "test.txt"
        _atomic_write(target, "deep write")
        assert target.read_text(encoding="utf-8") == "deep write"

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        with patch("ims_oauth.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                _atomic_write(target, "will fail")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_load_returns_defaults_when_missing(self, isolated_config: Path) -> None:
        cfg = load_global_config()
        assert cfg == GlobalConfig()
        assert cfg.env == Environment.PROD
        assert cfg.timeout == 120
        assert cfg.browser is None

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        original = GlobalConfig(env=Environment.STAGE, timeout=30, browser="firefox")
        save_global_config(original)
        assert load_global_config() == original

    def test_saved_config_is_valid_json(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(env=Environment.STAGE))
        path = isolated_config / "config" / "ims-oauth" / "config.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["env"] == "stage"

    def test_load_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        path = isolated_config / "config" / "ims-oauth" / "config.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{invalid json!!!", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_load_invalid_env_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "config" / "ims-oauth" / "config.json", {"env": "qa"})

        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()


# ---------------------------------------------------------------------------
# Environment selection
# ---------------------------------------------------------------------------


class TestParseEnv:
    def test_known_values(self) -> None:
        assert parse_env("prod") is Environment.PROD
        assert parse_env("stage") is Environment.STAGE
        assert parse_env(Environment.STAGE) is Environment.STAGE

    def test_unknown_value_raises(self) -> None:
        with pytest.raises(ConfigError, match="Unknown IMS environment 'qa'"):
            parse_env("qa")


class TestGetCliEnv:
    def test_defaults_to_prod(self, isolated_config: Path) -> None:
        assert get_cli_env() is Environment.PROD

    def test_global_config_used(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(env=Environment.STAGE))
        assert get_cli_env() is Environment.STAGE

    def test_env_var_overrides_global(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        save_global_config(GlobalConfig(env=Environment.PROD))
        monkeypatch.setenv("IMS_OAUTH_ENV", "stage")
        assert get_cli_env() is Environment.STAGE

    def test_argument_overrides_env_var(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("IMS_OAUTH_ENV", "stage")
        assert get_cli_env("prod") is Environment.PROD

    def test_unknown_env_var_raises(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("IMS_OAUTH_ENV", "dev")
        with pytest.raises(ConfigError):
            get_cli_env()


# ---------------------------------------------------------------------------
# Credential resolution
# ---------------------------------------------------------------------------


class TestResolveCredential:
    def test_env_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_SECRET", "secret123")
        assert resolve_credential("env:MY_SECRET") == "secret123"

    def test_env_source_missing_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR", raising=False)
        with pytest.raises(ConfigError, match="not set"):
            resolve_credential("env:NONEXISTENT_VAR")

    def test_file_source(self, tmp_path: Path) -> None:
        cred_file = tmp_path / "secret.txt"
        cred_file.write_text("  my-client-secret  \n", encoding="utf-8")
        assert resolve_credential(f"file:{cred_file}") == "my-client-secret"

    def test_file_source_missing_raises(self) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential("file:/nonexistent/path/secret.txt")

    def test_file_source_unreadable_raises(self, tmp_path: Path) -> None:
        cred_file = tmp_path / "unreadable.txt"
        cred_file.write_text("secret", encoding="utf-8")
        with patch.object(Path, "read_text", side_effect=PermissionError("denied")):
            with pytest.raises(ConfigError, match="Cannot read"):
                resolve_credential(f"file:{cred_file}")

    def test_prompt_source_with_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: True)
        monkeypatch.setattr("getpass.getpass", lambda prompt: "user-typed-secret")

        assert resolve_credential("prompt") == "user-typed-secret"

    def test_prompt_source_non_tty_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: False)

        with pytest.raises(ConfigError, match="not a TTY"):
            resolve_credential("prompt")

    def test_unknown_source_raises(self) -> None:
        with pytest.raises(ConfigError, match="Unknown credential source"):
            resolve_credential("magic:wand")
