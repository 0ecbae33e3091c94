"""CLI entry point for vinet."""

import argparse
import logging
import os
import sys
from pathlib import Path

import vinet.io.logging_setup
import vinet.settings
from vinet.capture.cdp import DEFAULT_CDP_URL, CdpCaptureSource
from vinet.tui.app import VinetApp

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("har", "json")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vinet",
        description="Vim-style network request inspector for a Chrome DevTools target",
    )
    parser.add_argument(
        "--cdp-url",
        type=str,
        default=os.environ.get("VINET_CDP_URL", DEFAULT_CDP_URL),
        help=f"DevTools HTTP endpoint (default: $VINET_CDP_URL or {DEFAULT_CDP_URL})",
    )
    parser.add_argument(
        "--target",
        type=str,
        default=None,
        help="Target id or URL substring to attach to (default: first page target)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level (default: $VINET_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--export-dir",
        type=Path,
        default=None,
        help="Directory for ctrl+s exports (default: current directory)",
    )
    parser.add_argument(
        "--export-format",
        choices=EXPORT_FORMATS,
        default="har",
        help="Export file format (default: har)",
    )
    parser.add_argument(
        "--no-persist",
        action="store_true",
        help="Do not read or write saved filter preferences",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # [LAW:single-enforcer] Runtime logger configuration is centralized in io.logging_setup.
    log_runtime = vinet.io.logging_setup.configure(args.log_level)
    logger.info(
        "logging configured level=%s file=%s",
        log_runtime.level_name,
        log_runtime.file_path,
    )

    prefs = vinet.settings.MemoryPrefs() if args.no_persist else vinet.settings.SettingsPrefs()
    source = CdpCaptureSource(args.cdp_url, args.target)
    logger.info("using DevTools endpoint %s target=%s", args.cdp_url, args.target or "<first page>")

    app = VinetApp(
        source,
        prefs,
        export_dir=args.export_dir,
        export_format=args.export_format,
    )
    app.run()
    return app.return_code or 0


if __name__ == "__main__":
    sys.exit(main())
