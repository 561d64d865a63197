"""Command line entry point for staging plugin updates on game servers."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from app.config import AppConfig, get_app_config, load_app_config
from app.version import get_app_version
from services.distribution import (
    ConfigurationError,
    DistributionError,
    RunConfiguration,
    build_distribution_engine,
    format_run_report,
    run_result_to_dict,
)
from shared.logging_config import LogVerbosity, ensure_app_logging, set_log_verbosity


_LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1  # No servers/plugins found or a base directory is unreadable
EXIT_USAGE = 2
EXIT_PARTIAL = 3  # Run completed but at least one pair failed


def build_parser(config: AppConfig | None = None) -> argparse.ArgumentParser:
    settings = (config or get_app_config()).distribution
    parser = argparse.ArgumentParser(
        prog="plugin-updater",
        description=(
            "Copy updated plugin archives into the update folder of every "
            "server that already has the plugin installed."
        ),
    )
    servers = parser.add_mutually_exclusive_group(required=True)
    servers.add_argument("-s", "--server", type=Path, help="Path to a single server directory.")
    servers.add_argument(
        "-S", "--server-dir", type=Path, help="Directory containing server directories."
    )
    plugins = parser.add_mutually_exclusive_group(required=True)
    plugins.add_argument("-p", "--plugin", type=Path, help="Path to a single plugin file.")
    plugins.add_argument(
        "-P", "--plugin-dir", type=Path, help="Directory containing plugin files."
    )
    parser.add_argument(
        "-u",
        "--update-folder",
        default=settings.update_folder_name,
        help="Name of the update folder inside the plugins directory (default: %(default)s).",
    )
    parser.add_argument(
        "-n",
        "--simulate",
        action="store_true",
        help="Only report which files would be copied.",
    )
    parser.add_argument(
        "--skip-checks",
        action="store_true",
        help="Copy without checking installation, plugin name or version.",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Print debug output.")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON.")
    parser.add_argument("--config", type=Path, help="Path to a JSON configuration file.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_app_version()}")
    return parser


def parse_run_configuration(args: argparse.Namespace) -> RunConfiguration:
    return RunConfiguration(
        server_path=args.server,
        server_directory=args.server_dir,
        plugin_path=args.plugin,
        plugin_directory=args.plugin_dir,
        update_folder_name=args.update_folder,
        simulate=args.simulate,
        skip_checks=args.skip_checks,
    )


def _preparse_config_path(argv: Sequence[str]) -> Path | None:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", type=Path)
    known, _ = pre.parse_known_args(argv)
    return known.config


def main(argv: Sequence[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    config_path = _preparse_config_path(argv)
    app_config = load_app_config(config_path) if config_path else get_app_config()

    parser = build_parser(app_config)
    args = parser.parse_args(argv)

    ensure_app_logging(console=args.debug)
    set_log_verbosity(LogVerbosity.VERBOSE if args.debug else app_config.logging.verbosity)

    try:
        run_config = parse_run_configuration(args)
    except ConfigurationError as exc:
        parser.error(str(exc))

    engine = build_distribution_engine(app_config)
    try:
        result = engine.run(run_config)
    except DistributionError as exc:
        _LOGGER.error("Distribution aborted: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FATAL

    if args.json:
        print(json.dumps(run_result_to_dict(result), indent=2))
    else:
        print(format_run_report(result))

    return EXIT_PARTIAL if result.failures else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
