"""Configuration loading for gitprism (.gitprism.yml plus environment overrides)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .archive import DEFAULT_MAX_FILE_COUNT, DEFAULT_MAX_OUTPUT_BYTES

CONFIG_FILENAME = ".gitprism.yml"
DEFAULT_MAX_ZIP_BYTES = 50 * 1024 * 1024
DEFAULT_API_BASE_URL = "https://api.github.com"
DEFAULT_USER_AGENT = "GitPrism/1.0"

_ENV_OVERRIDES = {
    "max_zip_bytes": "GITPRISM_MAX_ZIP_BYTES",
    "max_output_bytes": "GITPRISM_MAX_OUTPUT_BYTES",
    "max_file_count": "GITPRISM_MAX_FILE_COUNT",
    "api_base_url": "GITPRISM_API_BASE_URL",
    "request_timeout": "GITPRISM_REQUEST_TIMEOUT",
}


class ConfigError(RuntimeError):
    """Raised when the configuration file or environment cannot be parsed."""


@dataclass
class GitPrismConfig:
    """Effective limits and GitHub access settings."""

    max_zip_bytes: int = DEFAULT_MAX_ZIP_BYTES
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES
    max_file_count: int = DEFAULT_MAX_FILE_COUNT
    github_token: Optional[str] = None
    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout: float = 60.0
    user_agent: str = DEFAULT_USER_AGENT


def load_config(
    config_path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> GitPrismConfig:
    """Load configuration from ``.gitprism.yml`` (if any) and the environment."""
    env = os.environ if env is None else env
    data: Dict[str, Any] = {}
    if config_path is not None:
        config_file = _resolve_config_path(config_path)
        if config_file.exists():
            data = _read_config(config_file)

    limits = _as_dict(data.get("limits"))
    github = _as_dict(data.get("github"))

    config = GitPrismConfig(
        max_zip_bytes=_positive_int(limits.get("max_zip_bytes"), "limits.max_zip_bytes", DEFAULT_MAX_ZIP_BYTES),
        max_output_bytes=_positive_int(
            limits.get("max_output_bytes"), "limits.max_output_bytes", DEFAULT_MAX_OUTPUT_BYTES
        ),
        max_file_count=_positive_int(
            limits.get("max_file_count"), "limits.max_file_count", DEFAULT_MAX_FILE_COUNT
        ),
        github_token=_as_str(github.get("token")),
        api_base_url=_as_str(github.get("api_base_url")) or DEFAULT_API_BASE_URL,
        request_timeout=_positive_float(github.get("request_timeout"), "github.request_timeout", 60.0),
        user_agent=_as_str(github.get("user_agent")) or DEFAULT_USER_AGENT,
    )

    token = env.get("GITHUB_TOKEN")
    if token:
        config.github_token = token

    for attribute, key in _ENV_OVERRIDES.items():
        raw = env.get(key)
        if raw is None or not raw.strip():
            continue
        if attribute == "api_base_url":
            config.api_base_url = raw.strip()
        elif attribute == "request_timeout":
            config.request_timeout = _positive_float(raw, key, config.request_timeout)
        else:
            setattr(config, attribute, _positive_int(raw, key, getattr(config, attribute)))

    config.api_base_url = config.api_base_url.rstrip("/")
    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value.strip() or None
    return None


def _positive_int(value: Any, name: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a positive integer")
    try:
        number = int(str(value).strip()) if not isinstance(value, int) else value
    except ValueError:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}") from None
    if number <= 0:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    return number


def _positive_float(value: Any, name: str, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a positive number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a positive number, got {value!r}") from None
    if number <= 0:
        raise ConfigError(f"{name} must be a positive number, got {value!r}")
    return number


__all__ = ["CONFIG_FILENAME", "ConfigError", "GitPrismConfig", "load_config"]
