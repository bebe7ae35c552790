# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""pwopen CLI: open URLs in Chromium and optionally preview them as Sixel.

Usage:
    pwopen [--headed] [--screenshot] [--full-page] [--no-sandbox] URL [URL ...]
    some-command | pwopen [--screenshot]

Exit status: 0 on completion (per-URL failures are warnings), 1 on a
startup/configuration error, 130 on SIGINT, 143 on SIGTERM.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from . import RuntimeOptions, __version__
from .config import load_config
from .errors import ConfigError, SessionInterrupted
from .logging_config import configure
from .urls import collect_inputs, validate_urls

logger = logging.getLogger("pwopen")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pwopen",
        description="Playwright-based URL opener with Sixel screenshot",
        epilog="""\
examples:
  %(prog)s https://example.com                  Open a page headless
  %(prog)s --screenshot --full-page URL         Preview the whole page in the terminal
  grep -o 'http[^ ]*' notes.txt | %(prog)s      Read URLs from stdin""",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("urls", nargs="*", metavar="URL", help="URLs to open (default: read from stdin)")
    parser.add_argument("--headed", action="store_true", help="Show browser window (default: headless)")
    parser.add_argument("--screenshot", action="store_true", help="Render a Sixel screenshot after page load")
    parser.add_argument("--full-page", action="store_true", help="Capture full page when taking a screenshot")
    parser.add_argument(
        "--sandbox",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Enable Chromium sandbox (default: on)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--log-json", action="store_true", help="Emit JSON log lines on stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def runtime_options(args: argparse.Namespace) -> RuntimeOptions:
    return RuntimeOptions(
        headed=bool(args.headed),
        sandbox=bool(args.sandbox),
        screenshot=bool(args.screenshot),
        full_page=bool(args.full_page),
    )


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    configure(json_output=args.log_json, level="DEBUG" if args.verbose else "INFO")

    try:
        config = load_config()
    except ConfigError as e:
        logger.error("%s", e)
        sys.exit(1)

    from .browser_session import open_urls

    try:
        urls = validate_urls(collect_inputs(args.urls))
        if not urls:
            logger.warning("No valid URLs provided.")
            return
        asyncio.run(open_urls(urls, runtime_options(args), config))
    except SessionInterrupted as e:
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except SystemExit:
        raise
    except Exception as e:
        logger.error("%s", e)
        if args.verbose:
            import traceback

            traceback.print_exc(file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
