"""Decide whether a plugin archive should be staged on a server."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from services.distribution.constants import DEFAULT_PLUGIN_EXTENSION, PLUGINS_DIRNAME
from services.distribution.descriptor import DescriptorReader, read_descriptor
from services.distribution.models import (
    DecisionKind,
    DescriptorError,
    InvalidVersionError,
    UpdateDecision,
)
from services.distribution.versioning import compare_versions


_LOGGER = logging.getLogger(__name__)


def is_plugin_installed(
    server: Path,
    plugin_name: str,
    *,
    plugins_dirname: str = PLUGINS_DIRNAME,
    plugin_extension: str = DEFAULT_PLUGIN_EXTENSION,
) -> bool:
    """Return ``True`` if ``server`` has a plugin file named ``plugin_name``.

    The comparison is an exact basename match; ``plugin_name`` may omit the
    plugin extension.  Raises :class:`OSError` if the plugins directory
    cannot be listed.
    """

    file_name = plugin_name if plugin_name.endswith(plugin_extension) else plugin_name + plugin_extension
    plugins_dir = Path(server) / plugins_dirname
    with os.scandir(plugins_dir) as entries:
        for entry in entries:
            if entry.name == file_name and entry.is_file():
                return True
    return False


def check_eligibility(
    server: Path,
    plugin_source: Path,
    *,
    skip_checks: bool = False,
    descriptor_reader: DescriptorReader = read_descriptor,
    plugins_dirname: str = PLUGINS_DIRNAME,
    plugin_extension: str = DEFAULT_PLUGIN_EXTENSION,
) -> UpdateDecision:
    """Return the :class:`UpdateDecision` for staging ``plugin_source`` on ``server``.

    Plugins are only ever updated, never introduced: a server that does not
    already carry a file with the same name is skipped.  Metadata failures and
    malformed versions are reported as ``SKIPPED_ERROR`` decisions instead of
    being raised.
    """

    server = Path(server)
    plugin_source = Path(plugin_source)

    if skip_checks:
        _LOGGER.debug("Checks skipped for %s on %s", plugin_source.name, server)
        return UpdateDecision.proceed("checks skipped")

    try:
        installed = is_plugin_installed(
            server,
            plugin_source.name,
            plugins_dirname=plugins_dirname,
            plugin_extension=plugin_extension,
        )
    except OSError as exc:
        return UpdateDecision.error(f"cannot list {plugins_dirname} directory: {exc}")
    if not installed:
        _LOGGER.debug("Plugin %s is not installed on %s", plugin_source.name, server)
        return UpdateDecision.skipped(DecisionKind.SKIPPED_NOT_INSTALLED, "not installed")

    installed_path = server / plugins_dirname / plugin_source.name
    try:
        installed_descriptor = descriptor_reader(installed_path)
        source_descriptor = descriptor_reader(plugin_source)
    except DescriptorError as exc:
        _LOGGER.warning("Could not read plugin metadata: %s", exc)
        return UpdateDecision.error(str(exc))
    except OSError as exc:
        _LOGGER.warning("Could not read plugin archive: %s", exc)
        return UpdateDecision.error(str(exc))

    if installed_descriptor.name.casefold() != source_descriptor.name.casefold():
        return UpdateDecision.skipped(
            DecisionKind.SKIPPED_NAME_MISMATCH,
            f"installed plugin is {installed_descriptor.name!r}, "
            f"update is {source_descriptor.name!r}",
        )

    try:
        comparison = compare_versions(installed_descriptor.version, source_descriptor.version)
    except InvalidVersionError as exc:
        _LOGGER.warning("Cannot compare versions of %s: %s", plugin_source.name, exc)
        return UpdateDecision.error(str(exc))

    versions = f"{installed_descriptor.version} -> {source_descriptor.version}"
    if comparison == 0:
        return UpdateDecision.skipped(
            DecisionKind.SKIPPED_SAME_VERSION, f"already at {installed_descriptor.version}"
        )
    if comparison < 0:
        return UpdateDecision.skipped(DecisionKind.SKIPPED_OLDER_UPDATE, versions)
    _LOGGER.info("Update available for %s on %s: %s", source_descriptor.name, server, versions)
    return UpdateDecision.proceed(versions)


__all__ = ["check_eligibility", "is_plugin_installed"]
