"""Constants shared across the plugin distribution modules."""

from __future__ import annotations

DEFAULT_PLUGIN_EXTENSION = ".jar"
PLUGINS_DIRNAME = "plugins"
DEFAULT_UPDATE_FOLDER = "update"

# Looked up at the archive root, first match wins.
PLUGIN_METADATA_ENTRIES = ("plugin.yml", "paper-plugin.yml")

MAX_METADATA_FILE_SIZE = 1024 * 1024  # 1 MiB
MAX_ARCHIVE_ENTRIES = 20000

DEFAULT_MAX_WORKERS = 8
