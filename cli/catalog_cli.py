"""Command line entry point for the MCP server catalog."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from mcpcatalog.config import Settings
from mcpcatalog.database import open_catalog
from mcpcatalog.services import catalog_service
from mcpcatalog.services.discovery_service import run_discovery
from mcpcatalog.services.sync_service import sync_all
from mcpcatalog.sources.registry import build_sources, list_sources
from mcpcatalog.targets.registry import build_s3_target, build_targets

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    """Configure process logging."""
    level = logging.DEBUG if debug else logging.INFO
    fmt = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if debug else logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcp-catalog",
        description="Discover MCP servers and sync the catalog to Notion and S3",
    )
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("scan", help="Discover servers from all sources")
    subparsers.add_parser("sync", help="Push the catalog to Notion and S3")
    subparsers.add_parser("restore", help="Import the newest S3 snapshot")
    backups = subparsers.add_parser("backups", help="List S3 backups")
    backups.add_argument("--limit", type=int, default=20)
    download = subparsers.add_parser("download", help="Download one S3 backup")
    download.add_argument("key", help="Object key")
    download.add_argument("path", help="Local destination path")
    list_cmd = subparsers.add_parser("list", help="List catalog servers")
    list_cmd.add_argument("--installed", action="store_true", help="Only installed servers")
    subparsers.add_parser("stats", help="Show catalog statistics")
    subparsers.add_parser("sources", help="Show discovery sources and whether each is enabled")
    return parser


async def _list_servers(session: AsyncSession, installed_only: bool) -> None:
    if installed_only:
        servers = await catalog_service.list_installed_servers(session)
    else:
        servers = await catalog_service.list_servers(session)
    for server in servers:
        marker = "*" if server.installed else " "
        print(f" {marker} {server.name} {server.version or ''} [{server.package_manager}]")
    print(f"{len(servers)} server(s)")


async def _print_stats(session: AsyncSession) -> None:
    stats = await catalog_service.get_stats(session)
    print(f"Servers:   {stats.total_servers}")
    print(f"Installed: {stats.installed_servers}")
    if stats.last_scan is not None:
        print(f"Last scan: {stats.last_scan.scan_date} ({stats.last_scan.status})")
    if stats.last_sync is not None:
        print(f"Last sync: {stats.last_sync.sync_date} ({stats.last_sync.status})")


def _print_sources(settings: Settings) -> None:
    enabled = {source.source for source in build_sources(settings)}
    for name in list_sources():
        print(f"  {name:<12} {'enabled' if name in enabled else 'disabled'}")


async def run_command(args: argparse.Namespace, settings: Settings) -> int:
    """Execute one command. Returns the process exit code."""
    if args.command == "sources":
        _print_sources(settings)
        return 0
    async with open_catalog(settings) as session:
        if args.command == "scan":
            result = await run_discovery(session, build_sources(settings))
            print(
                f"{result.total_found} servers found, {result.new_servers} new, "
                f"{result.updated_servers} updated ({result.duration_ms}ms)"
            )
        elif args.command == "sync":
            targets = build_targets(settings)
            if not targets:
                print("No sync targets configured (set NOTION_* or AWS_* settings)")
            sync_result = await sync_all(session, targets)
            print(f"{sync_result.records_synced} records synced")
        elif args.command in ("restore", "backups", "download"):
            s3 = build_s3_target(settings)
            if s3 is None:
                print("Error: cloud storage not configured")
                return 1
            if args.command == "restore":
                imported = await s3.restore_latest(session)
                print(f"{imported} servers restored")
            elif args.command == "backups":
                for obj in await s3.list_backups(args.limit):
                    print(f"  {obj.last_modified.isoformat()}  {obj.kind:<16} {obj.key}")
            else:
                saved = await s3.download_backup(args.key, Path(args.path))
                print(f"Downloaded {args.key} to {saved}")
        elif args.command == "list":
            await _list_servers(session, args.installed)
        elif args.command == "stats":
            await _print_stats(session)
        else:
            return 2
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(2)

    overrides: dict[str, object] = {}
    if args.database_url:
        overrides["database_url"] = args.database_url
    if args.debug:
        overrides["debug"] = True
    settings = Settings(**overrides)  # type: ignore[arg-type]
    configure_logging(settings.debug)

    try:
        settings.validate_runtime()
        code = asyncio.run(run_command(args, settings))
    except Exception as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
