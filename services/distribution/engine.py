"""Engine that stages plugin updates across server installations."""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable

from services.distribution.constants import (
    DEFAULT_MAX_WORKERS,
    DEFAULT_PLUGIN_EXTENSION,
    PLUGINS_DIRNAME,
)
from services.distribution.descriptor import (
    CachingDescriptorReader,
    DescriptorReader,
    read_descriptor,
)
from services.distribution.eligibility import check_eligibility
from services.distribution.models import (
    CopyStatus,
    DirectoryReadError,
    NoPluginsFoundError,
    NoServersFoundError,
    PairOutcome,
    PathKind,
    RunConfiguration,
    RunResult,
    RunState,
    UpdateDecision,
)
from services.distribution.paths import resolve_paths


_LOGGER = logging.getLogger(__name__)

FileCopier = Callable[[Path, Path], object]


class DistributionEngine:
    """Resolve servers and plugins, then stage every eligible update.

    Each (plugin, server) pair is evaluated independently on a thread pool.
    Failures of a single pair are recorded in its :class:`PairOutcome` and
    never abort the run; only an empty server or plugin set or an unreadable
    base directory does.
    """

    def __init__(
        self,
        *,
        descriptor_reader: DescriptorReader = read_descriptor,
        copier: FileCopier = shutil.copy2,
        plugin_extension: str = DEFAULT_PLUGIN_EXTENSION,
        plugins_dirname: str = PLUGINS_DIRNAME,
        max_workers: int = DEFAULT_MAX_WORKERS,
        cache_descriptors: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self._descriptor_reader = descriptor_reader
        self._copier = copier
        self._plugin_extension = plugin_extension
        self._plugins_dirname = plugins_dirname
        self._max_workers = max(1, int(max_workers))
        self._cache_descriptors = cache_descriptors
        self._logger = logger or _LOGGER

    def run(self, config: RunConfiguration) -> RunResult:
        """Execute a distribution run described by ``config``."""

        self._logger.debug("Running plugin distribution with %s", config)
        with ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="plugin-distribution"
        ) as executor:
            self._enter(RunState.RESOLVING_PATHS)
            try:
                servers, plugins = self.resolve(config, executor)
            except DirectoryReadError:
                self._enter(RunState.PATH_RESOLUTION_FAILED)
                raise

            self._enter(RunState.VALIDATING_COUNTS)
            self._logger.info("Servers: %s", ", ".join(str(s) for s in servers) or "-")
            self._logger.info("Plugins: %s", ", ".join(str(p) for p in plugins) or "-")
            if not servers:
                self._enter(RunState.NO_SERVERS_FOUND)
                raise NoServersFoundError("No server found")
            if not plugins:
                self._enter(RunState.NO_PLUGINS_FOUND)
                raise NoPluginsFoundError("No plugin found")

            self._enter(RunState.DISTRIBUTING)
            reader = self._descriptor_reader
            if self._cache_descriptors:
                reader = CachingDescriptorReader(reader)
            futures = [
                executor.submit(self._settle_pair, server, plugin, config, reader)
                for plugin in plugins
                for server in servers
            ]
            outcomes = tuple(future.result() for future in futures)

        self._enter(RunState.DONE)
        result = RunResult(
            servers=tuple(servers),
            plugins=tuple(plugins),
            outcomes=outcomes,
            simulate=config.simulate,
        )
        self._logger.info(
            "Update done: %s copied, %s planned, %s skipped, %s failed",
            len(result.copied),
            len(result.planned_copies),
            len(result.skipped),
            len(result.failures),
        )
        return result

    def resolve(
        self, config: RunConfiguration, executor: ThreadPoolExecutor | None = None
    ) -> tuple[list[Path], list[Path]]:
        """Return the validated server and plugin paths for ``config``.

        Both sets are resolved concurrently; a :class:`DirectoryReadError`
        from either side propagates.
        """

        options = {
            "plugin_extension": self._plugin_extension,
            "plugins_dirname": self._plugins_dirname,
            "executor": executor,
        }
        # Entry validation runs on ``executor``; the two resolutions get their
        # own pool so they never wait on a slot they are occupying.
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="plugin-resolve") as resolvers:
            servers_future = resolvers.submit(
                resolve_paths,
                PathKind.SERVER,
                explicit_path=config.server_path,
                directory=config.server_directory,
                **options,
            )
            plugins_future = resolvers.submit(
                resolve_paths,
                PathKind.PLUGIN,
                explicit_path=config.plugin_path,
                directory=config.plugin_directory,
                **options,
            )
            return servers_future.result(), plugins_future.result()

    def destination_for(self, server: Path, plugin: Path, update_folder_name: str) -> Path:
        return Path(server) / self._plugins_dirname / update_folder_name / Path(plugin).name

    def _settle_pair(
        self,
        server: Path,
        plugin: Path,
        config: RunConfiguration,
        reader: DescriptorReader,
    ) -> PairOutcome:
        try:
            return self._update_plugin(server, plugin, config, reader)
        except Exception as exc:  # isolation boundary for a single pair
            self._logger.exception("Unexpected error updating %s on %s", plugin, server)
            return PairOutcome(
                server=server,
                plugin=plugin,
                decision=UpdateDecision.error(f"unexpected error: {exc}"),
                error=str(exc),
            )

    def _update_plugin(
        self,
        server: Path,
        plugin: Path,
        config: RunConfiguration,
        reader: DescriptorReader,
    ) -> PairOutcome:
        self._logger.debug("Evaluating %s for %s", plugin, server)
        decision = check_eligibility(
            server,
            plugin,
            skip_checks=config.skip_checks,
            descriptor_reader=reader,
            plugins_dirname=self._plugins_dirname,
            plugin_extension=self._plugin_extension,
        )
        if not decision.should_copy:
            self._logger.info(
                "Skipping %s on %s (%s%s)",
                plugin.name,
                server,
                decision.kind.value,
                f": {decision.reason}" if decision.reason else "",
            )
            return PairOutcome(server=server, plugin=plugin, decision=decision)

        destination = self.destination_for(server, plugin, config.update_folder_name)
        if config.simulate:
            self._logger.info("Would copy %s to %s", plugin, destination)
            return PairOutcome(
                server=server,
                plugin=plugin,
                decision=decision,
                copy_status=CopyStatus.SIMULATED,
                destination=destination,
            )

        try:
            self._stage_copy(plugin, destination)
        except OSError as exc:
            self._logger.error("Failed to copy %s to %s: %s", plugin, destination, exc)
            return PairOutcome(
                server=server,
                plugin=plugin,
                decision=decision,
                copy_status=CopyStatus.FAILED,
                destination=destination,
                error=str(exc),
            )

        self._logger.info("Copied %s to %s", plugin, destination)
        return PairOutcome(
            server=server,
            plugin=plugin,
            decision=decision,
            copy_status=CopyStatus.COPIED,
            destination=destination,
        )

    def _stage_copy(self, plugin: Path, destination: Path) -> None:
        """Copy ``plugin`` next to ``destination`` and move it into place.

        The copy lands in a temporary file in the update folder first, so an
        interrupted or failed copy never leaves a truncated archive under the
        final name.  The partial file is removed before the error propagates.
        """

        destination.parent.mkdir(parents=True, exist_ok=True)
        handle, staging_name = tempfile.mkstemp(
            dir=destination.parent, prefix=f".{destination.name}.", suffix=".part"
        )
        os.close(handle)
        staging = Path(staging_name)
        try:
            self._copier(plugin, staging)
            os.replace(staging, destination)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                staging.unlink()
            raise

    def _enter(self, state: RunState) -> None:
        self._logger.debug("Distribution run state: %s", state.value)


__all__ = ["DistributionEngine", "FileCopier"]
