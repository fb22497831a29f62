"""Command line entry point for oomguard."""

import argparse
import logging
import os
from collections.abc import Callable, Mapping, Sequence
from importlib.metadata import PackageNotFoundError, version
from typing import Any

from textual.logging import TextualHandler

from oomguard.models import WatchConfig
from oomguard.watchdog import Watchdog

logger = logging.getLogger(__name__)

ENV_PREFIX = "OOMGUARD_"


def _parse_bool(value: str) -> bool:
    """Parse boolean from string."""
    return str(value).lower() in ("true", "yes", "1", "on")


def _non_negative_int(value: str) -> int:
    """Parse an integer that must not be negative."""
    number = int(value)
    if number < 0:
        raise ValueError(f"{value} is negative")
    return number


def _positive_float(value: str) -> float:
    """Parse a float that must be above zero."""
    number = float(value)
    if number <= 0:
        raise ValueError(f"{value} is not positive")
    return number


# config key -> (type converter, environment variable)
CONFIG_SCHEMA: dict[str, tuple[Callable[[str], Any], str]] = {
    "threshold": (_non_negative_int, f"{ENV_PREFIX}THRESHOLD"),
    "ignore_adj": (_parse_bool, f"{ENV_PREFIX}IGNORE_ADJ"),
    "prefer": (str, f"{ENV_PREFIX}PREFER"),
    "simulate": (_parse_bool, f"{ENV_PREFIX}SIMULATE"),
    "verbose": (_parse_bool, f"{ENV_PREFIX}VERBOSE"),
    "interval": (_positive_float, f"{ENV_PREFIX}INTERVAL"),
    "tui": (_parse_bool, f"{ENV_PREFIX}TUI"),
    "notify": (_parse_bool, f"{ENV_PREFIX}NOTIFY"),
}


def _version() -> str:
    """Get the installed package version."""
    try:
        return version("oomguard")
    except PackageNotFoundError:
        return "0.0.0.dev"


def _argparse_type(converter: Callable[[str], Any]) -> Callable[[str], Any]:
    """Wrap a converter so argparse reports its ValueError as a usage error."""

    def convert(value: str) -> Any:
        try:
            return converter(value)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(str(exc)) from exc

    return convert


def load_from_env(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Load configuration from OOMGUARD_* environment variables."""
    env = os.environ if environ is None else environ
    env_config: dict[str, Any] = {}
    for key, (converter, env_var) in CONFIG_SCHEMA.items():
        value = env.get(env_var)
        if value is None:
            continue
        try:
            env_config[key] = converter(value)
        except ValueError as exc:
            logger.warning("Invalid value for %s: %s - %s", env_var, value, exc)
    return env_config


def create_argument_parser() -> argparse.ArgumentParser:
    """Create argument parser with all configuration options."""
    p = argparse.ArgumentParser(
        prog="oomguard",
        description="Kill the worst process of the current user when available memory runs low",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration priority (highest to lowest):
  1. Command-line arguments
  2. Environment variables (OOMGUARD_*)
  3. Built-in defaults

Example usage:
  oomguard -t 10
  oomguard -t 5 -p chrome -s
""",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {_version()}")
    p.add_argument(
        "-t",
        "--threshold",
        type=_argparse_type(_non_negative_int),
        default=None,
        help="Available memory threshold in percent (default: 0, never kill)",
    )
    p.add_argument(
        "-i",
        "--ignore-adj",
        dest="ignore_adj",
        action="store_true",
        default=None,
        help="Subtract a positive oom_score_adj from the badness score",
    )
    p.add_argument(
        "-p",
        "--prefer",
        default=None,
        metavar="NAME",
        help="Preferred process name (substring of the command line) to kill",
    )
    p.add_argument(
        "-s",
        "--simulate",
        action="store_true",
        default=None,
        help="Do everything except sending the kill signal",
    )
    p.add_argument("-v", "--verbose", action="store_true", default=None, help="Verbose output")
    p.add_argument(
        "--interval",
        type=_argparse_type(_positive_float),
        default=None,
        help="Seconds between memory checks (default: 2.0)",
    )
    p.add_argument("--tui", action="store_true", default=None, help="Use the full-screen interface")
    p.add_argument(
        "--no-notify",
        dest="notify",
        action="store_false",
        default=None,
        help="Do not send desktop notifications",
    )
    return p


def load_config(args: argparse.Namespace, environ: Mapping[str, str] | None = None) -> WatchConfig:
    """Merge config from defaults <- env <- CLI."""
    final: dict[str, Any] = load_from_env(environ)
    for key in CONFIG_SCHEMA:
        value = getattr(args, key, None)
        if value is not None:
            final[key] = value
    return WatchConfig(**final)


def setup_logging(verbose: bool, tui: bool = False) -> None:
    """
    Configure the root logger.

    Args:
        verbose: Log debug records instead of warnings and above.
        tui: Route records through Textual, which owns the terminal while
            the full-screen interface runs.
    """
    handlers = [TextualHandler()] if tui else None
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for oomguard."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)
    config = load_config(args)
    setup_logging(config.verbose, tui=config.tui)
    logger.debug("starting with %s", config)

    if config.tui:
        from oomguard.app import OomGuardApp

        OomGuardApp(config).run()
        return 0

    Watchdog(config).run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
