"""Read plugin name and version from the metadata embedded in an archive."""

from __future__ import annotations

import logging
import threading
import zipfile
import zlib
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml

from services.distribution import constants
from services.distribution.models import (
    DescriptorError,
    MetadataMalformedError,
    MetadataMissingError,
    NotAnArchiveError,
    PluginDescriptor,
)


_LOGGER = logging.getLogger(__name__)

DescriptorReader = Callable[[Path], PluginDescriptor]


def read_descriptor(archive_path: Path) -> PluginDescriptor:
    """Return the :class:`PluginDescriptor` stored in ``archive_path``.

    Raises :class:`NotAnArchiveError` when the file is not a readable zip
    archive, :class:`MetadataMissingError` when no plugin metadata entry is
    present and :class:`MetadataMalformedError` when the metadata is encrypted,
    uses an unsupported compression method, cannot be parsed or lacks a name
    or version.
    """

    archive_path = Path(archive_path)
    try:
        with zipfile.ZipFile(archive_path) as archive:
            raw = _read_metadata_entry(archive, archive_path)
    except DescriptorError:
        raise
    except (OSError, EOFError, zipfile.BadZipFile, zlib.error) as exc:
        raise NotAnArchiveError(f"{archive_path} is not a readable plugin archive: {exc}") from exc
    except RuntimeError as exc:
        # zipfile signals encrypted entries with RuntimeError and unsupported
        # compression methods with NotImplementedError
        raise MetadataMalformedError(
            f"Plugin metadata in {archive_path} cannot be extracted: {exc}"
        ) from exc

    metadata = _parse_metadata(raw, archive_path)
    descriptor = PluginDescriptor(
        name=_require_field(metadata, "name", archive_path),
        version=_require_field(metadata, "version", archive_path),
    )
    _LOGGER.debug(
        "Read descriptor %s %s from %s", descriptor.name, descriptor.version, archive_path
    )
    return descriptor


def _read_metadata_entry(archive: zipfile.ZipFile, archive_path: Path) -> bytes:
    members = archive.infolist()
    if len(members) > constants.MAX_ARCHIVE_ENTRIES:
        raise NotAnArchiveError(f"{archive_path} contains too many entries")
    by_name = {member.filename: member for member in members if not member.is_dir()}
    for entry_name in constants.PLUGIN_METADATA_ENTRIES:
        member = by_name.get(entry_name)
        if member is None:
            continue
        if member.file_size > constants.MAX_METADATA_FILE_SIZE:
            raise MetadataMalformedError(
                f"{entry_name} in {archive_path} exceeds {constants.MAX_METADATA_FILE_SIZE} bytes"
            )
        _LOGGER.debug("Found %s in plugin file %s", entry_name, archive_path)
        return archive.read(member)
    raise MetadataMissingError(f"Could not find plugin metadata in {archive_path}")


def _parse_metadata(raw: bytes, archive_path: Path) -> Mapping[str, Any]:
    try:
        text = raw.decode("utf-8-sig")
        parsed = yaml.safe_load(text)
    except (UnicodeDecodeError, yaml.YAMLError) as exc:
        raise MetadataMalformedError(f"Invalid plugin metadata in {archive_path}: {exc}") from exc
    if not isinstance(parsed, Mapping):
        raise MetadataMalformedError(f"Plugin metadata in {archive_path} is not a mapping")
    return parsed


def _require_field(metadata: Mapping[str, Any], key: str, archive_path: Path) -> str:
    value = metadata.get(key)
    # YAML turns unquoted values such as ``version: 2`` into numbers.
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise MetadataMalformedError(f"Plugin metadata in {archive_path} has no valid {key!r}")
    text = str(value).strip()
    if not text:
        raise MetadataMalformedError(f"Plugin metadata in {archive_path} has an empty {key!r}")
    return text


class CachingDescriptorReader:
    """Memoise descriptor reads for the lifetime of a single run.

    Each archive is read at most once even when several pairs ask for it
    concurrently.  Failures are cached as well and re-raised on every lookup
    so cached and uncached reads produce the same decisions.
    """

    def __init__(self, reader: DescriptorReader = read_descriptor) -> None:
        self._reader = reader
        self._lock = threading.Lock()
        self._key_locks: dict[Path, threading.Lock] = {}
        self._entries: dict[Path, PluginDescriptor | DescriptorError] = {}

    def __call__(self, archive_path: Path) -> PluginDescriptor:
        key = Path(archive_path).absolute()
        with self._lock:
            key_lock = self._key_locks.setdefault(key, threading.Lock())
        with key_lock:
            cached = self._entries.get(key)
            if cached is None:
                try:
                    cached = self._reader(archive_path)
                except DescriptorError as exc:
                    cached = exc
                self._entries[key] = cached
            else:
                _LOGGER.debug("Using cached descriptor for %s", key)
        if isinstance(cached, DescriptorError):
            raise cached
        return cached

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["CachingDescriptorReader", "DescriptorReader", "read_descriptor"]
