"""Command-line entry point for contentful-sync."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import requests
from dotenv import load_dotenv

from . import __version__
from .config import Config, load_config
from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import UnifiedConfig, build_config
from .core.async_utils import run_sync
from .core.client import ContentfulClient, StoreError
from .logger import setup_logging
from .sync import SyncEngine, SyncError, format_sync_report, report_to_json
from .sync.models import SyncReport

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Print message to stderr so stdout stays free for the report."""
    print(msg, file=sys.stderr, flush=True)


def load_settings(
    config_overrides: dict[str, Any] | None = None,
) -> tuple[Config, UnifiedConfig]:
    """
    Resolve the run configuration from every source.

    Loads .env first (so YAML ``${VAR}`` interpolation can see its
    values), then the YAML config files, then merges everything through
    ``load_config()``: CLI > env vars > .env > YAML > defaults.

    Args:
        config_overrides: Values from the command line.

    Returns:
        Tuple of (validated Config, parsed YAML config).

    Raises:
        ValueError: If required settings are missing or malformed.
    """
    load_dotenv()

    config_files = discover_config_files()
    unified = build_config(load_hierarchical_config() if config_files else {})

    overrides = config_overrides or {}
    config = load_config(
        space_id=overrides.get("space_id"),
        environment_id=overrides.get("environment_id"),
        access_token=overrides.get("access_token"),
        content_root=overrides.get("content_root"),
        delete_all=overrides.get("delete_all", False),
        debug=overrides.get("debug", False),
        content_types=overrides.get("content_types"),
        yaml_fallbacks=unified.contentful_fallbacks(),
        sync_fallbacks=unified.sync_fallbacks(),
    )
    if config_files:
        logger.info("Configuration file: %s", config_files[0])
    return config, unified


async def main(config: Config, store: ContentfulClient | None = None) -> SyncReport:
    """
    Connect to the store and run a sync or a bulk delete.

    Args:
        config: Validated run configuration.
        store: Pre-built store (defaults to a ``ContentfulClient``).

    Returns:
        The run's ``SyncReport``.

    Raises:
        StoreError: If the environment cannot be reached.
        SyncError: On the first fatal sync error.
    """
    if store is None:
        store = ContentfulClient(config)

    logger.info(
        "Validating connection to space %s (environment %s)...",
        config.space_id,
        config.environment_id,
    )
    name = await run_sync(store.validate_connection)
    logger.info("Connected to environment %s", name)

    engine = SyncEngine(
        store,
        content_root=Path(config.content_root),
        locale=config.locale,
        page_size=config.page_size,
        default_tz_offset=config.default_tz_offset,
        content_types=config.content_types,
        field_mappings=config.field_mappings,
    )

    if config.delete_all:
        return await engine.delete_all()
    return await engine.run()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contentful-sync",
        description="Synchronise a tree of markdown documents into a Contentful space",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sync ./content using settings from .env or config.yml
  contentful-sync

  # Sync a different tree into a staging environment
  contentful-sync --content-root site/content --environment staging

  # Only sync the posts/ and authors/ directories
  contentful-sync --type posts --type authors

  # Unpublish and delete every entry in the environment
  contentful-sync --delete-all

Log records are written to stderr; the run report is written to stdout.
        """,
    )
    parser.add_argument(
        "--space-id",
        help="Override the space id (takes precedence over CONTENTFUL_SPACE_ID and config files)",
    )
    parser.add_argument(
        "--environment",
        help="Override the environment id (default: master)",
    )
    parser.add_argument(
        "--access-token",
        help="Override the management token"
        " (visible in process list -- prefer CONTENTFUL_MANAGEMENT_TOKEN)",
    )
    parser.add_argument(
        "--content-root",
        help="Local content directory (default: content)",
    )
    parser.add_argument(
        "--type",
        dest="content_types",
        action="append",
        metavar="NAME",
        help="Only sync this content-type directory (repeatable)",
    )
    parser.add_argument(
        "--delete-all",
        action="store_true",
        help="Unpublish and delete every entry instead of syncing",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-file",
        help="Also append log records to this file",
    )
    parser.add_argument(
        "--log-format",
        choices=("text", "json"),
        default="text",
        help="Log record format (default: text)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the run report as JSON",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"contentful-sync version {__version__}",
    )
    return parser


def run(argv: list[str] | None = None) -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    args = _build_parser().parse_args(argv)

    config_overrides: dict[str, Any] = {}
    if args.space_id:
        config_overrides["space_id"] = args.space_id
    if args.environment:
        config_overrides["environment_id"] = args.environment
    if args.access_token:
        config_overrides["access_token"] = args.access_token
    if args.content_root:
        config_overrides["content_root"] = args.content_root
    if args.content_types:
        config_overrides["content_types"] = args.content_types
    if args.delete_all:
        config_overrides["delete_all"] = True
    if args.debug:
        config_overrides["debug"] = True

    try:
        config, unified = load_settings(config_overrides)
    except ValueError as e:
        _stderr_print(f"ERROR: Configuration error: {e}")
        sys.exit(1)

    setup_logging(
        debug=config.debug,
        log_file=args.log_file or unified.logging.file,
        debug_format=args.log_format,
        level=unified.logging.level,
    )

    try:
        report = asyncio.run(main(config))
    except StoreError as e:
        logger.error("Store request failed: %s", e)
        _stderr_print(f"ERROR: {e}")
        sys.exit(1)
    except SyncError as e:
        logger.error("Sync aborted: %s", e)
        _stderr_print(f"ERROR: {e}")
        sys.exit(1)
    except requests.RequestException as e:
        logger.error("Connection failed: %s", e)
        _stderr_print(f"ERROR: Connection failed: {e}")
        _stderr_print("  Check CONTENTFUL_SPACE_ID and network access.")
        sys.exit(1)
    except OSError as e:
        logger.error("I/O error: %s", e)
        _stderr_print(f"ERROR: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        _stderr_print("\nInterrupted.")
        sys.exit(130)

    if args.json:
        print(json.dumps(report_to_json(report), indent=2))
    else:
        print(format_sync_report(report))


if __name__ == "__main__":
    run()
