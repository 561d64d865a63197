"""Application-wide configuration loaded from JSON resources."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Mapping

_CONFIG_RESOURCE = "app.json"
_CONFIG_PATH_ENV = "PLUGIN_UPDATER_CONFIG"
_APP_CONFIG_CACHE: AppConfig | None = None

_DEFAULT_PLUGIN_EXTENSION = ".jar"
_DEFAULT_PLUGINS_DIRNAME = "plugins"
_DEFAULT_UPDATE_FOLDER = "update"
_DEFAULT_MAX_WORKERS = 8
_DEFAULT_VERBOSITY = "info"
_VERBOSITY_NAMES = {"disabled", "error", "warning", "info", "verbose"}

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DistributionSettings:
    """Defaults applied to every distribution run."""

    plugin_extension: str = _DEFAULT_PLUGIN_EXTENSION
    plugins_dirname: str = _DEFAULT_PLUGINS_DIRNAME
    update_folder_name: str = _DEFAULT_UPDATE_FOLDER
    max_workers: int = _DEFAULT_MAX_WORKERS


@dataclass(frozen=True)
class LoggingSettings:
    verbosity: str = _DEFAULT_VERBOSITY


@dataclass(frozen=True)
class AppConfig:
    """Structured configuration values for the command line tool."""

    distribution: DistributionSettings
    logging: LoggingSettings


def get_app_config() -> AppConfig:
    """Return the cached application configuration."""

    global _APP_CONFIG_CACHE
    if _APP_CONFIG_CACHE is None:
        _APP_CONFIG_CACHE = load_app_config()
    return _APP_CONFIG_CACHE


def reset_app_config_cache() -> None:
    """Reset the cached configuration for subsequent reloads."""

    global _APP_CONFIG_CACHE
    _APP_CONFIG_CACHE = None


def load_app_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from ``path``, ``$PLUGIN_UPDATER_CONFIG`` or the bundled resource."""

    data = _read_config_data(path)
    distribution = _parse_distribution_section(data.get("distribution"))
    logging_settings = _parse_logging_section(data.get("logging"))
    return AppConfig(distribution=distribution, logging=logging_settings)


def _read_config_data(path: str | Path | None) -> Mapping[str, Any]:
    if path is None:
        env_path = os.environ.get(_CONFIG_PATH_ENV)
        if env_path:
            path = env_path
    if path is not None:
        return _load_json_from_path(Path(path).expanduser())
    return _load_default_config_data()


def _load_json_from_path(path: Path) -> Mapping[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        _LOGGER.warning("Could not read configuration file %s: %s", path, exc)
        return {}
    return _parse_json(raw)


def _load_default_config_data() -> Mapping[str, Any]:
    try:
        resource = resources.files(__package__).joinpath(_CONFIG_RESOURCE)
        raw = resource.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError):
        return {}
    return _parse_json(raw)


def _parse_json(raw: str) -> Mapping[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        _LOGGER.warning("Ignoring malformed configuration: %s", exc)
        return {}
    if isinstance(parsed, Mapping):
        return parsed
    return {}


def _parse_distribution_section(section: Any) -> DistributionSettings:
    if not isinstance(section, Mapping):
        return DistributionSettings()
    return DistributionSettings(
        plugin_extension=_coerce_extension(
            section.get("plugin_extension"), default=_DEFAULT_PLUGIN_EXTENSION
        ),
        plugins_dirname=_coerce_name(
            section.get("plugins_dirname"), default=_DEFAULT_PLUGINS_DIRNAME
        ),
        update_folder_name=_coerce_name(
            section.get("update_folder_name"), default=_DEFAULT_UPDATE_FOLDER
        ),
        max_workers=_coerce_positive_int(section.get("max_workers"), default=_DEFAULT_MAX_WORKERS),
    )


def _parse_logging_section(section: Any) -> LoggingSettings:
    if not isinstance(section, Mapping):
        return LoggingSettings()
    verbosity = section.get("verbosity")
    if isinstance(verbosity, str) and verbosity.strip().lower() in _VERBOSITY_NAMES:
        return LoggingSettings(verbosity=verbosity.strip().lower())
    return LoggingSettings()


def _coerce_positive_int(value: Any, *, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        candidate = int(value)
    elif isinstance(value, str):
        try:
            candidate = int(float(value))
        except ValueError:
            return default
    else:
        return default
    if candidate <= 0:
        return default
    return candidate


def _coerce_name(value: Any, *, default: str) -> str:
    if not isinstance(value, str):
        return default
    candidate = value.strip()
    if not candidate or candidate in {".", ".."} or "/" in candidate or "\\" in candidate:
        return default
    return candidate


def _coerce_extension(value: Any, *, default: str) -> str:
    if not isinstance(value, str):
        return default
    candidate = value.strip()
    if not candidate or candidate == ".":
        return default
    if not candidate.startswith("."):
        candidate = "." + candidate
    return candidate


__all__ = [
    "AppConfig",
    "DistributionSettings",
    "LoggingSettings",
    "get_app_config",
    "load_app_config",
    "reset_app_config_cache",
]
