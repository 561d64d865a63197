"""Data models and errors used by the distribution engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from services.distribution.constants import DEFAULT_UPDATE_FOLDER


class PathKind(str, Enum):
    """Kinds of paths handled by the resolver."""

    SERVER = "server"
    PLUGIN = "plugin"


class RunState(str, Enum):
    """Phases a distribution run moves through.

    A run ends in :attr:`DONE` or in one of the terminal failure states, which
    are entered right before the matching error is raised.
    """

    RESOLVING_PATHS = "resolving_paths"
    VALIDATING_COUNTS = "validating_counts"
    DISTRIBUTING = "distributing"
    DONE = "done"
    PATH_RESOLUTION_FAILED = "path_resolution_failed"
    NO_SERVERS_FOUND = "no_servers_found"
    NO_PLUGINS_FOUND = "no_plugins_found"


class ConfigurationError(ValueError):
    """Raised when a :class:`RunConfiguration` is inconsistent."""


class InvalidVersionError(ValueError):
    """Raised when a string is not a valid semantic version."""


class DistributionError(RuntimeError):
    """Raised when a distribution run cannot continue."""


class DirectoryReadError(DistributionError):
    """Raised when a base directory for server or plugin discovery cannot be listed."""

    def __init__(self, kind: PathKind, path: Path, reason: str) -> None:
        super().__init__(f"Cannot read {kind.value} directory {path}: {reason}")
        self.kind = kind
        self.path = path
        self.reason = reason


class NoServersFoundError(DistributionError):
    """Raised when no valid server directory was resolved."""


class NoPluginsFoundError(DistributionError):
    """Raised when no valid plugin file was resolved."""


class DescriptorError(DistributionError):
    """Raised when plugin metadata cannot be read from an archive."""


class NotAnArchiveError(DescriptorError):
    pass


class MetadataMissingError(DescriptorError):
    pass


class MetadataMalformedError(DescriptorError):
    pass


@dataclass(frozen=True)
class RunConfiguration:
    """Immutable input describing a single distribution run.

    Exactly one of ``server_path``/``server_directory`` and exactly one of
    ``plugin_path``/``plugin_directory`` must be provided.
    """

    server_path: Path | None = None
    server_directory: Path | None = None
    plugin_path: Path | None = None
    plugin_directory: Path | None = None
    update_folder_name: str = DEFAULT_UPDATE_FOLDER
    simulate: bool = False
    skip_checks: bool = False

    def __post_init__(self) -> None:
        for name in ("server_path", "server_directory", "plugin_path", "plugin_directory"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, Path):
                object.__setattr__(self, name, Path(value))

        if (self.server_path is None) == (self.server_directory is None):
            raise ConfigurationError(
                "Exactly one of a server path or a server directory must be given"
            )
        if (self.plugin_path is None) == (self.plugin_directory is None):
            raise ConfigurationError(
                "Exactly one of a plugin path or a plugin directory must be given"
            )

        folder = self.update_folder_name
        if (
            not folder
            or folder in {".", ".."}
            or "/" in folder
            or "\\" in folder
        ):
            raise ConfigurationError(f"Invalid update folder name: {folder!r}")


@dataclass(frozen=True)
class PluginDescriptor:
    """Name and version read from a plugin archive's metadata."""

    name: str
    version: str


class DecisionKind(str, Enum):
    PROCEED = "proceed"
    SKIPPED_NOT_INSTALLED = "skipped_not_installed"
    SKIPPED_NAME_MISMATCH = "skipped_name_mismatch"
    SKIPPED_SAME_VERSION = "skipped_same_version"
    SKIPPED_OLDER_UPDATE = "skipped_older_update"
    SKIPPED_ERROR = "skipped_error"


@dataclass(frozen=True)
class UpdateDecision:
    """Verdict for a single server/plugin pair."""

    kind: DecisionKind
    reason: str | None = None

    @classmethod
    def proceed(cls, reason: str | None = None) -> "UpdateDecision":
        return cls(DecisionKind.PROCEED, reason)

    @classmethod
    def skipped(cls, kind: DecisionKind, reason: str | None = None) -> "UpdateDecision":
        return cls(kind, reason)

    @classmethod
    def error(cls, reason: str) -> "UpdateDecision":
        return cls(DecisionKind.SKIPPED_ERROR, reason)

    @property
    def should_copy(self) -> bool:
        return self.kind is DecisionKind.PROCEED


class CopyStatus(str, Enum):
    """What happened to the file transfer of a pair."""

    NOT_ATTEMPTED = "not_attempted"
    COPIED = "copied"
    SIMULATED = "simulated"
    FAILED = "failed"


@dataclass(frozen=True)
class PairOutcome:
    """Settled result for one (server, plugin) combination."""

    server: Path
    plugin: Path
    decision: UpdateDecision
    copy_status: CopyStatus = CopyStatus.NOT_ATTEMPTED
    destination: Path | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return (
            self.copy_status is CopyStatus.FAILED
            or self.decision.kind is DecisionKind.SKIPPED_ERROR
        )


@dataclass(frozen=True)
class RunResult:
    """Aggregate outcome of a distribution run."""

    servers: tuple[Path, ...]
    plugins: tuple[Path, ...]
    outcomes: tuple[PairOutcome, ...] = field(default_factory=tuple)
    simulate: bool = False

    @property
    def copied(self) -> tuple[PairOutcome, ...]:
        return tuple(o for o in self.outcomes if o.copy_status is CopyStatus.COPIED)

    @property
    def planned_copies(self) -> tuple[tuple[Path, Path], ...]:
        """Source/destination pairs a simulated run would have copied."""

        return tuple(
            (o.plugin, o.destination)
            for o in self.outcomes
            if o.copy_status is CopyStatus.SIMULATED and o.destination is not None
        )

    @property
    def failures(self) -> tuple[PairOutcome, ...]:
        return tuple(o for o in self.outcomes if o.failed)

    @property
    def skipped(self) -> tuple[PairOutcome, ...]:
        return tuple(
            o
            for o in self.outcomes
            if not o.decision.should_copy and not o.failed
        )

    def outcome_for(self, server: Path, plugin: Path) -> PairOutcome | None:
        for outcome in self.outcomes:
            if outcome.server == server and outcome.plugin == plugin:
                return outcome
        return None
