"""Command-line entry point.

Exit codes:
    0 - the version is supported and has no known vulnerabilities
    1 - the version is end-of-life or vulnerable
    2 - the check itself failed
"""

import argparse
import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Sequence

from . import __version__
from .async_downloaders import load_feeds_parallel
from .config import CheckerConfig, load_config
from .exceptions import EOLRadarError
from .logging_config import setup_logging
from .report import format_eol, format_header, format_report
from .schedule import is_end_of_life
from .vulnerability import check_platform, current_platform, list_vulnerabilities

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAIL = 1
EXIT_ERROR = 2

SKIP_ENV = "EOLRADAR_SKIP_CHECK"


def detect_node_version() -> str:
    """Ask the local ``node`` binary for its version.

    Raises:
        EOLRadarError: ``node`` is missing or failed.
    """
    try:
        cp = subprocess.run(["node", "--version"], check=True, capture_output=True, text=True, timeout=10)
    except (OSError, subprocess.SubprocessError) as e:
        raise EOLRadarError(f"Could not determine the Node.js version (pass it explicitly): {e}") from e
    return cp.stdout.strip()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="eolradar",
        description="Check a Node.js version against the release schedule and security advisories.",
    )
    p.add_argument("node_version", nargs="?", help="Version to check (default: output of `node --version`)")
    p.add_argument("--platform", default=None, help="Platform to check for (default: this machine)")
    p.add_argument("--config", type=Path, default=None, help="YAML or JSON configuration file")
    p.add_argument("--cache-dir", type=Path, default=None, help="Directory for cached feeds")
    p.add_argument("-v", "--verbose", action="store_true", help="Show debug output (also DEBUG=1)")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def _resolve_config(args: argparse.Namespace) -> CheckerConfig:
    config = load_config(args.config) if args.config else CheckerConfig()
    if args.cache_dir:
        config = config.model_copy(update={"cache_dir": args.cache_dir.expanduser()})
    return config


def run_check(version: str, platform: str, config: CheckerConfig) -> int:
    """Run the EOL and vulnerability checks and print the verdict.

    Returns:
        ``EXIT_OK`` or ``EXIT_FAIL``.  Failures propagate as exceptions.
    """
    check_platform(platform)
    print(format_header(version, platform))

    results = load_feeds_parallel(config)

    if is_end_of_life(version, results.schedule_or_raise()):
        print(format_eol(version), file=sys.stderr)
        return EXIT_FAIL

    vulnerabilities = list_vulnerabilities(version, platform, results.security_or_raise())
    if vulnerabilities:
        print(format_report(version, vulnerabilities), file=sys.stderr)
        return EXIT_FAIL

    print(format_report(version, vulnerabilities))
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    debug = args.verbose or os.environ.get("DEBUG") == "1"
    setup_logging("DEBUG" if debug else "WARNING")

    if os.environ.get(SKIP_ENV) == "1":
        logger.warning("[SKIP] Security check skipped (%s=1)", SKIP_ENV)
        return EXIT_OK

    try:
        config = _resolve_config(args)
        version = args.node_version or detect_node_version()
        platform = args.platform or current_platform()
        return run_check(version, platform, config)
    except EOLRadarError as e:
        logger.error("[ERROR] Security check failed: %s", e)
        return EXIT_ERROR
    except Exception:
        logger.exception("[ERROR] Security check failed unexpectedly")
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
