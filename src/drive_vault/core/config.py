"""Configuration loading and management for drive-vault.

Configuration sources (highest to lowest priority):
  1. Arguments passed directly by the caller
  2. Environment variables (DRIVE_VAULT_* prefix)
  3. Config file (~/.config/drive-vault/config.toml)
  4. Defaults
"""

from __future__ import annotations

import contextlib
import os
import sys
import tomllib
from pathlib import Path
from typing import Any

import tomli_w
from pydantic import ValidationError

from drive_vault.core.exceptions import ConfigError
from drive_vault.core.models import AppConfig, LoggingConfig, LogFormat, StoreConfig

# ──────────────────── Paths ──────────────────────────────

_APP_NAME = "drive-vault"


def _get_config_dir() -> Path:
    """Return the platform-appropriate config directory."""
    if sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    elif sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / _APP_NAME


CONFIG_DIR = _get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.toml"

# ──────────────────── Environment Loading ────────────────

_ENV_PREFIX = "DRIVE_VAULT_"


def _env(key: str, default: str | None = None) -> str | None:
    """Read an environment variable with the DRIVE_VAULT_ prefix."""
    return os.environ.get(f"{_ENV_PREFIX}{key}", default)


def _load_store_from_env() -> dict[str, Any]:
    """Load remote store config overrides from environment."""
    overrides: dict[str, Any] = {}
    if url := _env("API_URL"):
        overrides["api_url"] = url
    if token := _env("ACCESS_TOKEN"):
        overrides["access_token"] = token
    try:
        if cs := _env("UPLOAD_CHUNK_SIZE"):
            overrides["upload_chunk_size"] = int(cs)
        if to := _env("TIMEOUT"):
            overrides["timeout"] = float(to)
    except ValueError as exc:
        raise ConfigError(f"Invalid store config in environment: {exc}") from exc
    return overrides


def _load_logging_from_env() -> dict[str, Any]:
    """Load logging config overrides from environment."""
    overrides: dict[str, Any] = {}
    if ll := _env("LOG_LEVEL"):
        overrides["level"] = ll.upper()
    if lf := _env("LOG_FILE"):
        overrides["log_file"] = Path(lf)
    if fmt := _env("LOG_FORMAT"):
        try:
            overrides["format"] = LogFormat(fmt.lower())
        except ValueError as exc:
            raise ConfigError(f"Invalid log format in environment: {fmt}") from exc
    return overrides


# ──────────────────── TOML File Loading ──────────────────


def load_config_file(path: Path | None = None) -> dict[str, Any]:
    """Load and return the raw TOML config dict. Returns empty dict if file missing."""
    config_path = path or CONFIG_FILE
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {config_path}: {exc}") from exc


def save_config_file(config: AppConfig, path: Path | None = None) -> Path:
    """Save AppConfig to a TOML file."""
    config_path = path or CONFIG_FILE
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = _config_to_toml_dict(config)
    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)

    # The file may hold an access token
    with contextlib.suppress(OSError):
        config_path.chmod(0o600)

    return config_path


def _config_to_toml_dict(config: AppConfig) -> dict[str, Any]:
    """Convert an AppConfig to a TOML-serialisable dict."""
    store_dict = config.store.model_dump(exclude_none=True)
    if config.store.access_token:
        store_dict["access_token"] = config.store.access_token.get_secret_value()

    log_dict = config.logging.model_dump(exclude_none=True)
    log_dict["format"] = config.logging.format.value
    if config.logging.log_file:
        log_dict["log_file"] = str(config.logging.log_file)

    return {"store": store_dict, "logging": log_dict}


# ──────────────────── Main Loader ────────────────────────


def load_config(config_path: Path | None = None, **store_overrides: Any) -> AppConfig:
    """Load the full application config (file + env + explicit overrides)."""
    raw = load_config_file(config_path)

    store_data = raw.get("store", {})
    store_data.update(_load_store_from_env())
    store_data.update({k: v for k, v in store_overrides.items() if v is not None})

    log_data = raw.get("logging", {})
    log_data.update(_load_logging_from_env())

    try:
        return AppConfig(
            store=StoreConfig(**store_data),
            logging=LoggingConfig(**log_data),
        )
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
