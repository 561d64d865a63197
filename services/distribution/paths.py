"""Discovery and validation of server directories and plugin archives."""

from __future__ import annotations

import logging
import stat
from concurrent.futures import Executor
from pathlib import Path

from services.distribution.constants import DEFAULT_PLUGIN_EXTENSION, PLUGINS_DIRNAME
from services.distribution.models import DirectoryReadError, PathKind


_LOGGER = logging.getLogger(__name__)


def validate_path(
    kind: PathKind,
    path: Path,
    *,
    plugin_extension: str = DEFAULT_PLUGIN_EXTENSION,
    plugins_dirname: str = PLUGINS_DIRNAME,
) -> Path | None:
    """Return ``path`` when it qualifies as ``kind`` or ``None`` otherwise.

    Stat failures (missing files, permission problems, dangling symlinks) are
    logged and treated as "does not qualify".
    """

    path = Path(path)
    try:
        info = path.stat()
    except OSError as exc:
        _LOGGER.debug("Could not stat %s, skipping: %s", path, exc)
        return None

    if kind is PathKind.SERVER:
        if not stat.S_ISDIR(info.st_mode):
            _LOGGER.debug("Skipping %s: not a directory", path)
            return None
        try:
            has_plugins = (path / plugins_dirname).exists()
        except OSError as exc:
            _LOGGER.debug("Could not inspect %s, skipping: %s", path, exc)
            return None
        if not has_plugins:
            _LOGGER.debug("Skipping %s: no %s directory", path, plugins_dirname)
            return None
        _LOGGER.debug("Found server directory %s", path)
        return path

    if not stat.S_ISREG(info.st_mode):
        _LOGGER.debug("Skipping %s: not a regular file", path)
        return None
    if not path.name.endswith(plugin_extension) or path.name == plugin_extension:
        _LOGGER.debug("Skipping %s: extension is not %s", path, plugin_extension)
        return None
    if info.st_size == 0:
        _LOGGER.debug("Skipping %s: plugin file is empty", path)
        return None
    _LOGGER.debug("Found plugin file %s", path)
    return path


def resolve_paths(
    kind: PathKind,
    *,
    explicit_path: Path | None = None,
    directory: Path | None = None,
    plugin_extension: str = DEFAULT_PLUGIN_EXTENSION,
    plugins_dirname: str = PLUGINS_DIRNAME,
    executor: Executor | None = None,
) -> list[Path]:
    """Resolve the validated paths of ``kind``.

    An ``explicit_path`` is validated on its own and yields an empty list if it
    does not qualify.  Otherwise the immediate entries of ``directory`` are
    validated independently; :class:`DirectoryReadError` is raised when the
    directory itself cannot be listed.
    """

    options = {"plugin_extension": plugin_extension, "plugins_dirname": plugins_dirname}

    if explicit_path is not None:
        validated = validate_path(kind, Path(explicit_path), **options)
        if validated is None:
            _LOGGER.warning("Ignoring invalid %s path %s", kind.value, explicit_path)
            return []
        return [validated]

    if directory is None:
        raise ValueError("Either an explicit path or a directory is required")

    base = Path(directory)
    try:
        entries = sorted(base.iterdir(), key=lambda entry: entry.name)
    except OSError as exc:
        raise DirectoryReadError(kind, base, exc.strerror or str(exc)) from exc
    _LOGGER.debug("Scanning %s entries in %s directory %s", len(entries), kind.value, base)

    def _check(entry: Path) -> Path | None:
        return validate_path(kind, entry, **options)

    if executor is None:
        checked = [_check(entry) for entry in entries]
    else:
        checked = list(executor.map(_check, entries))

    resolved = [entry for entry in checked if entry is not None]
    _LOGGER.info("Resolved %s %s path(s) in %s", len(resolved), kind.value, base)
    return resolved


__all__ = ["resolve_paths", "validate_path"]
