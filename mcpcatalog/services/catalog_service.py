"""Canonical store: server records plus scan and sync audit logs."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from mcpcatalog.models.history import ScanHistory, SyncLog
from mcpcatalog.models.server import McpServer
from mcpcatalog.schemas.catalog import CatalogStats, ScanHistorySchema, SyncLogSchema
from mcpcatalog.services.datetime_service import format_datetime, now_utc
from mcpcatalog.sources.base import PACKAGE_MANAGERS, SERVER_STATUSES

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from mcpcatalog.sources.base import ServerCandidate

logger = logging.getLogger(__name__)


def _check_status(status: str) -> None:
    if status not in SERVER_STATUSES:
        msg = f"Unknown server status {status!r}"
        raise ValueError(msg)


def _row_values(candidate: ServerCandidate) -> dict[str, Any]:
    """Column values for a full-row write, keyed by column name."""
    return {
        "name": candidate.name,
        "version": candidate.version,
        "description": candidate.description,
        "author": candidate.author,
        "repository_url": candidate.repository_url,
        "package_manager": candidate.package_manager,
        "install_command": candidate.install_command,
        "config_path": candidate.config_path,
        "status": candidate.status,
        "installed": candidate.installed,
        "metadata": json.dumps(candidate.metadata, default=str),
    }


async def add_or_replace(session: AsyncSession, candidate: ServerCandidate) -> McpServer:
    """Insert a server, or replace every field of the existing row with the same name.

    ``created_at`` is only set on first insert; ``last_updated`` is stamped on
    every write. The write is a single INSERT ... ON CONFLICT statement.
    """
    if not candidate.name:
        msg = "Server name must not be empty"
        raise ValueError(msg)
    if candidate.package_manager not in PACKAGE_MANAGERS:
        msg = f"Unknown package manager {candidate.package_manager!r} for {candidate.name}"
        raise ValueError(msg)
    _check_status(candidate.status)

    now = format_datetime(now_utc())
    values = _row_values(candidate)
    table = McpServer.__table__
    stmt = sqlite_insert(table).values(**values, last_updated=now, created_at=now)
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.name],
        set_={**values, "last_updated": now},
    )
    await session.execute(stmt)
    await session.commit()

    server = await get_server(session, candidate.name)
    if server is None:  # pragma: no cover - the row was just written
        msg = f"Server {candidate.name!r} vanished after write"
        raise RuntimeError(msg)
    return server


async def get_server(session: AsyncSession, name: str) -> McpServer | None:
    """Look up a server by its exact (case-sensitive) name."""
    stmt = (
        select(McpServer)
        .where(McpServer.name == name)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_servers(session: AsyncSession) -> list[McpServer]:
    """All servers ordered by name."""
    stmt = select(McpServer).order_by(McpServer.name.asc()).execution_options(
        populate_existing=True
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_installed_servers(session: AsyncSession) -> list[McpServer]:
    """Installed servers ordered by name."""
    stmt = (
        select(McpServer)
        .where(McpServer.installed.is_(True))
        .order_by(McpServer.name.asc())
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def update_status(
    session: AsyncSession,
    name: str,
    status: str,
    installed: bool | None = None,
) -> bool:
    """Set a server's status (and optionally its installed flag).

    Returns True if a row was updated.
    """
    _check_status(status)
    values: dict[str, Any] = {
        "status": status,
        "last_updated": format_datetime(now_utc()),
    }
    if installed is not None:
        values["installed"] = installed

    stmt = update(McpServer).where(McpServer.name == name).values(**values)
    result = await session.execute(stmt)
    await session.commit()
    return bool(result.rowcount)  # type: ignore[attr-defined]


async def delete_server(session: AsyncSession, name: str) -> bool:
    """Delete a server. Returns True if found and deleted."""
    result = await session.execute(delete(McpServer).where(McpServer.name == name))
    await session.commit()
    return bool(result.rowcount)  # type: ignore[attr-defined]


async def add_scan_history(
    session: AsyncSession,
    scan_type: str,
    *,
    servers_found: int = 0,
    new_servers: int = 0,
    updated_servers: int = 0,
    scan_duration: int = 0,
    status: str = "completed",
    details: str = "",
) -> ScanHistory:
    """Append a scan history entry."""
    entry = ScanHistory(
        scan_type=scan_type,
        scan_date=format_datetime(now_utc()),
        servers_found=servers_found,
        new_servers=new_servers,
        updated_servers=updated_servers,
        scan_duration=scan_duration,
        status=status,
        details=details,
    )
    session.add(entry)
    await session.commit()
    await session.refresh(entry)
    return entry


async def list_scan_history(session: AsyncSession, limit: int = 50) -> list[ScanHistory]:
    """Scan history, newest first."""
    stmt = (
        select(ScanHistory)
        .order_by(ScanHistory.scan_date.desc(), ScanHistory.id.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def add_sync_log(
    session: AsyncSession,
    sync_type: str,
    *,
    status: str = "pending",
    records_synced: int = 0,
    error_message: str | None = None,
    details: str = "",
) -> int:
    """Insert a sync log entry and return its generated id."""
    entry = SyncLog(
        sync_type=sync_type,
        sync_date=format_datetime(now_utc()),
        status=status,
        records_synced=records_synced,
        error_message=error_message,
        details=details,
    )
    session.add(entry)
    await session.commit()
    await session.refresh(entry)
    return entry.id


async def update_sync_log(
    session: AsyncSession,
    log_id: int,
    *,
    status: str,
    records_synced: int,
    error_message: str | None,
    details: str,
) -> bool:
    """Terminally update a sync log entry in place. Returns True if the row exists."""
    stmt = (
        update(SyncLog)
        .where(SyncLog.id == log_id)
        .values(
            status=status,
            records_synced=records_synced,
            error_message=error_message,
            details=details,
        )
    )
    result = await session.execute(stmt)
    await session.commit()
    return bool(result.rowcount)  # type: ignore[attr-defined]


async def get_sync_log(session: AsyncSession, log_id: int) -> SyncLog | None:
    stmt = select(SyncLog).where(SyncLog.id == log_id).execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_sync_logs(session: AsyncSession, limit: int = 50) -> list[SyncLog]:
    """Sync logs, newest first."""
    stmt = (
        select(SyncLog)
        .order_by(SyncLog.sync_date.desc(), SyncLog.id.desc())
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_stats(session: AsyncSession) -> CatalogStats:
    """Total and installed counts plus the most recent scan and sync entries."""
    total = await session.scalar(select(func.count()).select_from(McpServer))
    installed = await session.scalar(
        select(func.count()).select_from(McpServer).where(McpServer.installed.is_(True))
    )
    scans = await list_scan_history(session, limit=1)
    syncs = await list_sync_logs(session, limit=1)
    return CatalogStats(
        total_servers=total or 0,
        installed_servers=installed or 0,
        last_scan=ScanHistorySchema.model_validate(scans[0]) if scans else None,
        last_sync=SyncLogSchema.model_validate(syncs[0]) if syncs else None,
    )


async def ensure_tables(session: AsyncSession) -> None:
    """Create all tables if they don't exist."""
    from mcpcatalog.models.base import Base

    conn = await session.connection()
    await conn.run_sync(Base.metadata.create_all)
    await session.commit()
    logger.debug("Catalog tables ensured")
