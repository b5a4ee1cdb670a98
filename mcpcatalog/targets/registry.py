"""Sync target registry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mcpcatalog.targets.notion import NotionTarget
from mcpcatalog.targets.s3 import S3BackupTarget, create_s3_client

if TYPE_CHECKING:
    from mcpcatalog.config import Settings
    from mcpcatalog.targets.base import SyncTarget


def build_notion_target(settings: Settings) -> NotionTarget | None:
    if not settings.notion_enabled:
        return None
    return NotionTarget(settings.notion_api_key, settings.notion_database_id)


def build_s3_target(settings: Settings) -> S3BackupTarget | None:
    if not settings.s3_enabled:
        return None
    client = create_s3_client(
        settings.aws_access_key_id,
        settings.aws_secret_access_key,
        settings.aws_region,
    )
    return S3BackupTarget(
        client,
        bucket=settings.aws_bucket_name,
        prefix=settings.backup_prefix,
        database_path=settings.database_path,
    )


def build_targets(settings: Settings) -> list[SyncTarget]:
    """Configured targets in sync order: Notion first, then S3.

    An unconfigured target is left out rather than treated as an error.
    """
    targets: list[SyncTarget] = []
    notion = build_notion_target(settings)
    if notion is not None:
        targets.append(notion)
    s3 = build_s3_target(settings)
    if s3 is not None:
        targets.append(s3)
    return targets
