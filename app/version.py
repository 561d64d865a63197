"""Tool version helpers."""

from __future__ import annotations

from functools import lru_cache
from importlib import metadata, resources
import os

_DISTRIBUTION_NAME = "plugin-updater"
_FALLBACK_VERSION = "0.0.0-dev"
_VERSION_ENV = "PLUGIN_UPDATER_VERSION"


def _version_from_env() -> str | None:
    raw = os.environ.get(_VERSION_ENV, "").strip()
    if not raw:
        return None
    return raw[1:] if raw.startswith("v") else raw


def _read_version_file() -> str | None:
    try:
        text = resources.files(__package__).joinpath("VERSION").read_text(encoding="utf-8")
    except (FileNotFoundError, ModuleNotFoundError):
        return None
    return text.strip() or None


def _version_from_metadata() -> str | None:
    try:
        return metadata.version(_DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return None


@lru_cache(maxsize=1)
def get_app_version() -> str:
    """Return the version reported by ``plugin-updater --version``.

    ``PLUGIN_UPDATER_VERSION`` wins over the ``VERSION`` file shipped with the
    package, which wins over the installed distribution metadata.
    """

    for resolver in (_version_from_env, _read_version_file, _version_from_metadata):
        version = resolver()
        if version:
            return version
    return _FALLBACK_VERSION


__all__ = ["get_app_version"]
