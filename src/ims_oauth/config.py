"""Configuration management with XDG paths, atomic writes, and environment selection.

This module handles the persistent configuration of ims-oauth:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.ims-oauth/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- a single :class:`~ims_oauth.models.GlobalConfig`
  JSON file storing the default IMS environment, login timeout and browser.
* **Environment selection** -- :func:`get_cli_env` resolves ``prod`` or
  ``stage`` from the CLI flag, the ``IMS_OAUTH_ENV`` variable and the
  global config, in that order.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  such as client secrets from env vars, files, or interactive prompts.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Optional, Union

from ims_oauth.exceptions import ConfigError
from ims_oauth.models import Environment, GlobalConfig

_APP_NAME = "ims-oauth"
_CONFIG_FILENAME = "config.json"

ENV_VAR = "IMS_OAUTH_ENV"
"""Environment variable that selects the IMS environment."""


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/ims-oauth/`` (default ``~/.config/ims-oauth/``).
    On macOS/Windows: ``~/.ims-oauth/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/ims-oauth/`` (default ``~/.local/share/ims-oauth/``).
    On macOS/Windows: ``~/.ims-oauth/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file lives in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. The temp file is
    removed on any failure.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~ims_oauth.models.GlobalConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Environment selection ---


def parse_env(value: Union[str, Environment]) -> Environment:
    """Convert *value* to an :class:`~ims_oauth.models.Environment`.

    Raises:
        ConfigError: If *value* names no known environment.
    """
    try:
        return Environment(value)
    except ValueError:
        known = ", ".join(e.value for e in Environment)
        raise ConfigError(
            f"Unknown IMS environment '{value}'. Expected one of: {known}"
        ) from None


def get_cli_env(cli_env: Optional[Union[str, Environment]] = None) -> Environment:
    """Resolve the IMS environment with full precedence.

    Precedence (high to low):
        1. ``cli_env`` (the ``--env`` flag or an explicit argument)
        2. The ``IMS_OAUTH_ENV`` environment variable
        3. ``env`` in the global config file
        4. ``prod``

    Raises:
        ConfigError: If the chosen value is not a known environment.
    """
    if cli_env is not None:
        return parse_env(cli_env)
    env_value = os.environ.get(ENV_VAR)
    if env_value:
        return parse_env(env_value)
    return load_global_config().env


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts user interactively (requires a TTY)

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter client secret: ")

    raise ConfigError(f"Unknown credential source format: {source}")
