"""Central logging configuration for the plugin updater.

The command line configures Python's logging framework once per process: a
file handler that records diagnostics in a deterministic location and, when
stderr is interactive (or explicitly requested), a console handler.  Calling
the helpers repeatedly never installs duplicate handlers.

Two environment variables allow customising where the log file is written:

``PLUGIN_UPDATER_LOG_FILE``
    Absolute path to the log file that should be created.

``PLUGIN_UPDATER_LOG_DIR``
    Directory where the default log file name will be created.  Ignored when
    ``PLUGIN_UPDATER_LOG_FILE`` is present.
"""

from __future__ import annotations

import logging
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Iterable

_LOG_FILE_ENV = "PLUGIN_UPDATER_LOG_FILE"
_LOG_DIR_ENV = "PLUGIN_UPDATER_LOG_DIR"
_DEFAULT_DIRNAME = ".plugin_updater"
_DEFAULT_LOGNAME = "updater.log"
_HANDLER_TAG = "_plugin_updater_logging_handler"

_CONFIGURED = False
_LOG_PATH: Path | None = None
_FILE_HANDLER: logging.FileHandler | None = None
_CONSOLE_HANDLER: logging.StreamHandler | None = None


class LogVerbosity(str, Enum):
    """Verbosity levels supported by the log handlers."""

    DISABLED = "disabled"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    VERBOSE = "verbose"


_VERBOSITY_LEVELS: dict[LogVerbosity, int] = {
    LogVerbosity.DISABLED: logging.CRITICAL + 1,
    LogVerbosity.ERROR: logging.ERROR,
    LogVerbosity.WARNING: logging.WARNING,
    LogVerbosity.INFO: logging.INFO,
    LogVerbosity.VERBOSE: logging.DEBUG,
}

_DEFAULT_VERBOSITY = LogVerbosity.INFO
_CURRENT_VERBOSITY = _DEFAULT_VERBOSITY


def ensure_app_logging(*, console: bool | None = None) -> Path:
    """Configure the root logger for the command line tool.

    The first invocation installs a file handler and, when ``console`` is
    true (or ``None`` and stderr is a terminal), a stderr handler.  Later
    calls are no-ops and return the already configured log file path.
    """

    global _CONFIGURED, _LOG_PATH, _FILE_HANDLER, _CONSOLE_HANDLER

    if _CONFIGURED and _LOG_PATH is not None:
        return _LOG_PATH

    log_path = _resolve_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    file_formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(_VERBOSITY_LEVELS[_CURRENT_VERBOSITY])
    file_handler.setFormatter(file_formatter)
    setattr(file_handler, _HANDLER_TAG, True)
    root.addHandler(file_handler)
    _FILE_HANDLER = file_handler

    if console is None:
        console = _should_log_to_stderr(root.handlers)
    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(_VERBOSITY_LEVELS[_CURRENT_VERBOSITY])
        stream_handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        setattr(stream_handler, _HANDLER_TAG, True)
        root.addHandler(stream_handler)
        _CONSOLE_HANDLER = stream_handler

    _CONFIGURED = True
    _LOG_PATH = log_path

    logging.getLogger(__name__).debug(
        "Writing logs to %s (verbosity=%s)", log_path, _CURRENT_VERBOSITY.value
    )
    return log_path


def set_log_verbosity(verbosity: LogVerbosity | str) -> None:
    """Adjust the minimum severity recorded by the managed handlers."""

    global _CURRENT_VERBOSITY

    if isinstance(verbosity, str) and not isinstance(verbosity, LogVerbosity):
        try:
            verbosity = LogVerbosity(verbosity.lower())
        except ValueError as exc:
            raise ValueError(f"Unsupported log verbosity: {verbosity}") from exc

    ensure_app_logging()
    _CURRENT_VERBOSITY = verbosity
    level = _VERBOSITY_LEVELS[verbosity]
    for handler in (_FILE_HANDLER, _CONSOLE_HANDLER):
        if handler is not None:
            handler.setLevel(level)
    logging.getLogger(__name__).debug("Log verbosity set to %s", verbosity.value)


def get_log_verbosity() -> LogVerbosity:
    return _CURRENT_VERBOSITY


def _resolve_log_path() -> Path:
    env_file = os.environ.get(_LOG_FILE_ENV)
    if env_file:
        return Path(env_file).expanduser()

    env_dir = os.environ.get(_LOG_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser() / _DEFAULT_LOGNAME

    return Path.home() / _DEFAULT_DIRNAME / "logs" / _DEFAULT_LOGNAME


def _should_log_to_stderr(handlers: Iterable[logging.Handler]) -> bool:
    stderr = getattr(sys, "stderr", None)
    if stderr is None:
        return False
    is_tty = getattr(stderr, "isatty", None)
    if not callable(is_tty):
        return False
    try:
        if not is_tty():
            return False
    except (OSError, ValueError):
        return False

    for handler in handlers:
        if isinstance(handler, logging.StreamHandler) and handler.stream is stderr:
            return False
    return True


def _reset_for_tests() -> None:
    """Remove handlers installed by :func:`ensure_app_logging`."""

    global _CONFIGURED, _LOG_PATH, _FILE_HANDLER, _CONSOLE_HANDLER, _CURRENT_VERBOSITY

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    _CONFIGURED = False
    _LOG_PATH = None
    _FILE_HANDLER = None
    _CONSOLE_HANDLER = None
    _CURRENT_VERBOSITY = _DEFAULT_VERBOSITY


__all__ = [
    "LogVerbosity",
    "ensure_app_logging",
    "get_log_verbosity",
    "set_log_verbosity",
]
