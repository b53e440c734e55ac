# src/main.py — v2
"""CLI entry point — cache maintenance and one-off rendering.

Usage:
    reportcache stats
    reportcache sweep
    reportcache reset
    reportcache render <file.html> -o <out.pdf> [--key KEY]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from reportcache.config.settings import ConfigurationError
from reportcache.version import __version__

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_UNAVAILABLE = 2


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        _setup_logging(args.verbose)
    except (ConfigurationError, ValueError, OSError) as exc:
        print(f"Cannot configure logging: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_FAILURE

    try:
        return args.func(args)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return EXIT_FAILURE


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="reportcache",
        description=f"reportcache v{__version__} — fingerprinted PDF artifact cache",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--cache-root", type=Path, default=None,
        help="Cache directory (default: CACHE_ROOT setting)",
    )

    subparsers = parser.add_subparsers(dest="command")

    p_stats = subparsers.add_parser("stats", help="Show cache occupancy")
    p_stats.set_defaults(func=_cmd_stats)

    p_sweep = subparsers.add_parser("sweep", help="Remove expired entries")
    p_sweep.set_defaults(func=_cmd_sweep)

    p_reset = subparsers.add_parser("reset", help="Delete every cached artifact")
    p_reset.set_defaults(func=_cmd_reset)

    p_render = subparsers.add_parser(
        "render", help="Render an HTML file to PDF through the cache",
    )
    p_render.add_argument("file", type=Path, help="HTML file to render")
    p_render.add_argument(
        "-o", "--output", type=Path, required=True,
        help="Where to write the PDF",
    )
    p_render.add_argument(
        "--key", default=None,
        help="Cache key (default: derived from the file path)",
    )
    p_render.set_defaults(func=_cmd_render)

    return parser


def _load_settings(args: argparse.Namespace, **overrides: object):
    from reportcache.config.settings import load_settings

    if args.cache_root is not None:
        overrides["cache_root"] = args.cache_root
    return load_settings(**overrides)


def _open_cache(args: argparse.Namespace):
    from reportcache.cache.cache_factory import create_disk_cache

    return create_disk_cache(_load_settings(args, cache_enabled=True))


def _cmd_stats(args: argparse.Namespace) -> int:
    """Print cache occupancy as JSON."""
    stats = _open_cache(args).stats()
    print(stats.model_dump_json(indent=2))
    return EXIT_OK


def _cmd_sweep(args: argparse.Namespace) -> int:
    removed = _open_cache(args).sweep_expired()
    print(json.dumps({"removed": removed}))
    return EXIT_OK


def _cmd_reset(args: argparse.Namespace) -> int:
    cache = _open_cache(args)
    cache.reset()
    print(f"Cache cleared: {cache.root}")
    return EXIT_OK


def _cmd_render(args: argparse.Namespace) -> int:
    """Render one HTML file, reusing the cached PDF when unchanged."""
    from reportcache.api.facade import ReportService, copy_artifact, public_message
    from reportcache.render.generator import GenerationError, MissingDependency
    from reportcache.render.html_document import HtmlDocument

    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return EXIT_FAILURE

    service = ReportService(_load_settings(args))
    try:
        result = service.render(HtmlDocument(file_path, key=args.key))
    except MissingDependency as exc:
        logger.error("%s (%s)", public_message(exc), exc)
        return EXIT_UNAVAILABLE
    except GenerationError as exc:
        logger.error("%s (%s)", public_message(exc), exc)
        return EXIT_FAILURE

    cached, size = result.cached, result.size_bytes
    destination = copy_artifact(result, args.output)
    print(f"Wrote {destination} ({size} bytes, cached={cached})")
    return EXIT_OK


def _setup_logging(verbose: bool) -> None:
    """Configure logging from the LOG_* settings; -v forces DEBUG."""
    from reportcache.config.settings import load_settings
    from reportcache.logging.logger import setup_logging_from_settings

    overrides: dict[str, object] = {"log_level": "DEBUG"} if verbose else {}
    setup_logging_from_settings(load_settings(**overrides))


if __name__ == "__main__":
    sys.exit(main())
