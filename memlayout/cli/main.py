"""
CLI entry point for memlayout.

Usage
─────
  # Resolve a layout document for one version of the target
  memlayout df-structures/ "v0.50.11 linux64" memory-layout.xml > symbols.ini

  # Same, without the [info] header and with the ABI forced
  python -m memlayout --no-info --abi win64 corpus/ "v0.50.11 win64" layout.xml

The report goes to stdout; diagnostics go to stderr through logging.
Exit status is 0 only when every entry resolved.

The work is done by cmd_report() so it can be unit-tested without argparse.
"""

import argparse
import logging
import sys
from typing import Optional, TextIO

from memlayout.config import ReportConfig
from memlayout.exceptions import CorpusError, MemlayoutError, VersionNotFoundError
from memlayout.report import ReportEmitter, load_document, run_report
from memlayout.structures import load_structures

__all__ = ["build_parser", "cmd_report", "main"]

logger = logging.getLogger(__name__)


# ── Argument parser ────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="memlayout",
        description="Resolve a memory-layout document against a structure corpus",
    )
    parser.add_argument(
        "structures",
        metavar="STRUCTURES",
        help="Structure corpus directory (or single .xml file)",
    )
    parser.add_argument(
        "version",
        metavar="VERSION_NAME",
        help='Version to resolve, e.g. "v0.50.11 linux64"',
    )
    parser.add_argument(
        "layout",
        metavar="MEMORY_LAYOUT_XML",
        help="Memory-layout document listing the facts to report",
    )
    parser.add_argument(
        "--no-info",
        action="store_true",
        default=False,
        help="Do not print the [info] header",
    )
    parser.add_argument(
        "--abi",
        default="",
        metavar="NAME",
        help="Force the ABI (linux32/64, osx32/64, win32/64) instead of deriving it",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable verbose debug logging",
    )
    return parser


# ── Command implementation ────────────────────────────────────────────────────


def cmd_report(
    structures_path: str,
    version_name: str,
    layout_path: str,
    config: ReportConfig,
    stream: Optional[TextIO] = None,
) -> int:
    """
    Load the corpus and the document, then resolve and emit the report.

    Returns:
        0 if every entry resolved, 1 otherwise.

    Raises:
        CorpusError, DocumentError, VersionNotFoundError,
        InvalidVersionIdError, UnsupportedABIError: fatal conditions,
        all raised before any report output.
    """
    structures = load_structures(structures_path)
    document = load_document(layout_path)
    outcome = run_report(structures, version_name, document, ReportEmitter(stream), config)
    return outcome.exit_code


# ── Entry point ───────────────────────────────────────────────────────────────


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point. Returns exit code."""
    parser = build_parser()
    ns = parser.parse_args(argv)

    level = logging.DEBUG if ns.debug else logging.INFO
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)

    config = ReportConfig.from_env()
    if ns.no_info:
        config.print_info = False
    if ns.abi:
        config.abi_name = ns.abi

    try:
        return cmd_report(ns.structures, ns.version, ns.layout, config, sys.stdout)
    except VersionNotFoundError as exc:
        logger.error("%s", exc)
        logger.error("Available versions are:")
        for name in exc.available:
            logger.error(" - %s", name)
    except CorpusError as exc:
        logger.debug("corpus load failed", exc_info=True)
        logger.error("Could not load structures: %s", exc)
    except MemlayoutError as exc:
        logger.error("%s", exc)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
