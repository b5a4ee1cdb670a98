"""Sync orchestration: push the catalog to every configured target."""

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from mcpcatalog.services import catalog_service
from mcpcatalog.targets.base import TargetSyncResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from mcpcatalog.targets.base import SyncTarget

logger = logging.getLogger(__name__)

SYNC_TYPE = "full_sync"


@dataclass
class SyncResult:
    """Outcome of one sync run."""

    success: bool
    records_synced: int
    log_id: int
    targets: list[TargetSyncResult] = field(default_factory=list)


async def sync_all(session: AsyncSession, targets: Sequence[SyncTarget]) -> SyncResult:
    """Run every target in order and record the run in the sync log.

    The log row is written as ``in_progress`` first and updated in place to
    ``completed`` or ``failed``. Failures are re-raised after logging.
    """
    logger.info("Starting sync process (%d targets)", len(targets))
    log_id = await catalog_service.add_sync_log(
        session,
        SYNC_TYPE,
        status="in_progress",
        details="Sync started",
    )

    results: list[TargetSyncResult] = []
    try:
        for target in targets:
            logger.info("Syncing to %s", target.target)
            count = await target.push(session)
            results.append(TargetSyncResult(target=target.target, records_synced=count))
        total = sum(r.records_synced for r in results)

        await catalog_service.update_sync_log(
            session,
            log_id,
            status="completed",
            records_synced=total,
            error_message=None,
            details=f"Successfully synced {total} records",
        )
    except Exception as exc:
        logger.exception("Sync failed")
        await session.rollback()
        await catalog_service.update_sync_log(
            session,
            log_id,
            status="failed",
            records_synced=0,
            error_message=str(exc) or type(exc).__name__,
            details="".join(traceback.format_exception(exc)),
        )
        raise

    logger.info("Sync completed successfully. %d records synced.", total)
    return SyncResult(success=True, records_synced=total, log_id=log_id, targets=results)
