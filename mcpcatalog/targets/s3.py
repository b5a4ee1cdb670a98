"""S3 backup target: catalog snapshots, raw store copies, and restore."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from mcpcatalog.exceptions import SyncTargetError
from mcpcatalog.schemas.catalog import SNAPSHOT_VERSION
from mcpcatalog.services.backup_service import export_catalog, import_catalog, parse_snapshot
from mcpcatalog.services.datetime_service import key_timestamp, now_utc, parse_datetime

if TYPE_CHECKING:
    from datetime import datetime
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "mcp-server-manager"
JSON_BACKUP = "json_backup"
DATABASE_BACKUP = "database_backup"
LIST_LIMIT = 20
RESTORE_LIST_LIMIT = 10


@dataclass
class BackupObject:
    """One object under the backup prefix."""

    key: str
    last_modified: datetime
    size: int
    kind: str


def backup_kind(key: str) -> str:
    return JSON_BACKUP if key.endswith(".json") else DATABASE_BACKUP


def select_latest_snapshot(objects: list[BackupObject]) -> BackupObject | None:
    """Most recently modified JSON snapshot; equal timestamps resolve by key."""
    snapshots = [obj for obj in objects if obj.kind == JSON_BACKUP]
    if not snapshots:
        return None
    return max(snapshots, key=lambda obj: (obj.last_modified, obj.key))


def create_s3_client(access_key_id: str, secret_access_key: str, region: str) -> Any:
    """Create a boto3 S3 client from explicit credentials."""
    import boto3

    return boto3.client(
        "s3",
        aws_access_key_id=access_key_id,
        aws_secret_access_key=secret_access_key,
        region_name=region,
    )


class S3BackupTarget:
    """Uploads snapshots to S3 and restores the newest one.

    Args:
        client: a boto3 S3 client (blocking calls run in a worker thread).
        bucket: bucket name.
        prefix: key prefix shared by all backups.
        database_path: SQLite store file uploaded as a raw copy on backup.
    """

    target: str = "s3"

    def __init__(
        self,
        client: Any,
        bucket: str,
        prefix: str = DEFAULT_PREFIX,
        database_path: Path | None = None,
    ) -> None:
        if not bucket:
            msg = "S3 bucket name is required"
            raise SyncTargetError(msg)
        self.client = client
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self.database_path = database_path

    async def push(self, session: AsyncSession) -> int:
        return await self.backup(session)

    async def backup(self, session: AsyncSession) -> int:
        """Upload a JSON snapshot and a raw copy of the store.

        Returns the number of servers in the snapshot.
        """
        snapshot = await export_catalog(session)
        timestamp = key_timestamp(now_utc())

        json_key = f"{self.prefix}/mcp-servers-backup-{timestamp}.json"
        await asyncio.to_thread(
            self.client.put_object,
            Bucket=self.bucket,
            Key=json_key,
            Body=snapshot.model_dump_json(indent=2).encode("utf-8"),
            ContentType="application/json",
            Metadata={
                "backup-type": "full",
                "timestamp": timestamp,
                "version": SNAPSHOT_VERSION,
            },
        )
        logger.info("Uploaded catalog snapshot s3://%s/%s", self.bucket, json_key)

        if self.database_path is not None and self.database_path.is_file():
            db_key = f"{self.prefix}/database/mcp_servers_{timestamp}.db"
            db_content = await asyncio.to_thread(self.database_path.read_bytes)
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=db_key,
                Body=db_content,
                ContentType="application/x-sqlite3",
            )
            logger.info("Uploaded store copy s3://%s/%s", self.bucket, db_key)
        else:
            logger.warning(
                "No store file at %s, skipping raw database backup", self.database_path
            )

        return len(snapshot.servers)

    async def list_backups(self, limit: int = LIST_LIMIT) -> list[BackupObject]:
        """Objects under the prefix, newest first, at most ``limit``."""
        objects: list[BackupObject] = []
        params: dict[str, Any] = {"Bucket": self.bucket, "Prefix": f"{self.prefix}/"}
        while True:
            resp = await asyncio.to_thread(self.client.list_objects_v2, **params)
            for item in resp.get("Contents") or []:
                key = str(item["Key"])
                objects.append(
                    BackupObject(
                        key=key,
                        last_modified=parse_datetime(item["LastModified"]),
                        size=int(item.get("Size", 0)),
                        kind=backup_kind(key),
                    )
                )
            token = resp.get("NextContinuationToken")
            if not resp.get("IsTruncated") or not token:
                break
            params["ContinuationToken"] = token

        objects.sort(key=lambda obj: (obj.last_modified, obj.key), reverse=True)
        return objects[:limit]

    async def _get_object_bytes(self, key: str) -> bytes:
        resp = await asyncio.to_thread(self.client.get_object, Bucket=self.bucket, Key=key)
        return await asyncio.to_thread(resp["Body"].read)

    async def restore_latest(self, session: AsyncSession) -> int:
        """Import the newest JSON snapshot through the regular upsert path.

        Returns the number of servers imported, 0 when no snapshot exists.
        """
        latest = select_latest_snapshot(await self.list_backups(RESTORE_LIST_LIMIT))
        if latest is None:
            logger.info("No catalog snapshots under s3://%s/%s/", self.bucket, self.prefix)
            return 0

        logger.info("Restoring catalog from s3://%s/%s", self.bucket, latest.key)
        snapshot = parse_snapshot(await self._get_object_bytes(latest.key))
        return await import_catalog(session, snapshot)

    async def download_backup(self, key: str, local_path: Path) -> Path:
        """Save one backup object to ``local_path``."""
        content = await self._get_object_bytes(key)
        local_path.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(local_path.write_bytes, content)
        return local_path
