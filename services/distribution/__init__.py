"""Public API for the plugin distribution package."""

from __future__ import annotations

from services.distribution.builder import build_distribution_engine
from services.distribution.constants import (
    DEFAULT_MAX_WORKERS,
    DEFAULT_PLUGIN_EXTENSION,
    DEFAULT_UPDATE_FOLDER,
    PLUGIN_METADATA_ENTRIES,
    PLUGINS_DIRNAME,
)
from services.distribution.descriptor import CachingDescriptorReader, read_descriptor
from services.distribution.eligibility import check_eligibility, is_plugin_installed
from services.distribution.engine import DistributionEngine
from services.distribution.models import (
    ConfigurationError,
    CopyStatus,
    DecisionKind,
    DescriptorError,
    DirectoryReadError,
    DistributionError,
    InvalidVersionError,
    MetadataMalformedError,
    MetadataMissingError,
    NoPluginsFoundError,
    NoServersFoundError,
    NotAnArchiveError,
    PairOutcome,
    PathKind,
    PluginDescriptor,
    RunConfiguration,
    RunResult,
    RunState,
    UpdateDecision,
)
from services.distribution.paths import resolve_paths, validate_path
from services.distribution.reporting import format_run_report, run_result_to_dict
from services.distribution.versioning import compare_versions, parse_version

__all__ = [
    "DEFAULT_MAX_WORKERS",
    "DEFAULT_PLUGIN_EXTENSION",
    "DEFAULT_UPDATE_FOLDER",
    "PLUGIN_METADATA_ENTRIES",
    "PLUGINS_DIRNAME",
    "CachingDescriptorReader",
    "ConfigurationError",
    "CopyStatus",
    "DecisionKind",
    "DescriptorError",
    "DirectoryReadError",
    "DistributionEngine",
    "DistributionError",
    "InvalidVersionError",
    "MetadataMalformedError",
    "MetadataMissingError",
    "NoPluginsFoundError",
    "NoServersFoundError",
    "NotAnArchiveError",
    "PairOutcome",
    "PathKind",
    "PluginDescriptor",
    "RunConfiguration",
    "RunResult",
    "RunState",
    "UpdateDecision",
    "build_distribution_engine",
    "check_eligibility",
    "compare_versions",
    "format_run_report",
    "is_plugin_installed",
    "parse_version",
    "read_descriptor",
    "resolve_paths",
    "run_result_to_dict",
    "validate_path",
]
