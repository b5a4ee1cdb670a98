"""Full-catalog snapshot export and import."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from mcpcatalog.exceptions import SnapshotError
from mcpcatalog.schemas.catalog import (
    SNAPSHOT_VERSION,
    BackupSnapshot,
    ScanHistorySchema,
    ServerRecordSchema,
    SyncLogSchema,
)
from mcpcatalog.services import catalog_service
from mcpcatalog.services.datetime_service import format_iso, now_utc

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


async def export_catalog(session: AsyncSession) -> BackupSnapshot:
    """Build a snapshot of every server plus both audit logs and stats."""
    servers = await catalog_service.list_servers(session)
    scans = await catalog_service.list_scan_history(session)
    syncs = await catalog_service.list_sync_logs(session)
    stats = await catalog_service.get_stats(session)
    return BackupSnapshot(
        export_date=format_iso(now_utc()),
        version=SNAPSHOT_VERSION,
        stats=stats,
        servers=[ServerRecordSchema.from_model(s).model_dump(mode="json") for s in servers],
        scan_history=[ScanHistorySchema.model_validate(s) for s in scans],
        sync_logs=[SyncLogSchema.model_validate(s) for s in syncs],
    )


def parse_snapshot(payload: str | bytes | dict[str, Any]) -> BackupSnapshot:
    """Validate a snapshot document. Raises SnapshotError when it is unusable."""
    try:
        if isinstance(payload, dict):
            return BackupSnapshot.model_validate(payload)
        return BackupSnapshot.model_validate_json(payload)
    except ValidationError as exc:
        msg = f"Invalid backup snapshot: {exc.error_count()} validation error(s)"
        raise SnapshotError(msg) from exc


async def import_catalog(session: AsyncSession, snapshot: BackupSnapshot) -> int:
    """Write every snapshot server through the regular upsert path.

    Returns the number of servers imported; invalid or failing records are
    logged and skipped.
    """
    imported = 0
    for raw in snapshot.servers:
        name = raw.get("name") if isinstance(raw, dict) else None
        try:
            record = ServerRecordSchema.model_validate(raw)
            await catalog_service.add_or_replace(session, record.to_candidate())
        except (ValidationError, ValueError) as exc:
            logger.warning("Failed to import server %s: %s", name, exc)
            continue
        except Exception:
            logger.exception("Failed to import server %s", name)
            await session.rollback()
            continue
        imported += 1
    logger.info("Imported %d of %d servers from snapshot", imported, len(snapshot.servers))
    return imported
