"""Catalog export schemas: stats, audit entries and backup snapshots."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mcpcatalog.sources.base import ServerCandidate

if TYPE_CHECKING:
    from mcpcatalog.models.server import McpServer

SNAPSHOT_VERSION = "1.0"


class ServerRecordSchema(BaseModel):
    """Serialized server record, as exported to and imported from snapshots."""

    id: int | None = None
    name: str = Field(min_length=1)
    version: str | None = None
    description: str | None = None
    author: str | None = None
    repository_url: str | None = None
    package_manager: str | None = None
    install_command: str | None = None
    config_path: str | None = None
    status: str = "discovered"
    installed: bool = False
    last_updated: str | None = None
    created_at: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("metadata", mode="before")
    @classmethod
    def decode_metadata(cls, value: Any) -> Any:
        """Accept metadata stored as a JSON string by older exports."""
        if value is None:
            return {}
        if isinstance(value, str):
            try:
                decoded = json.loads(value or "{}")
            except ValueError:
                return {}
            return decoded if isinstance(decoded, dict) else {}
        return value

    @classmethod
    def from_model(cls, server: McpServer) -> ServerRecordSchema:
        return cls(
            id=server.id,
            name=server.name,
            version=server.version,
            description=server.description,
            author=server.author,
            repository_url=server.repository_url,
            package_manager=server.package_manager,
            install_command=server.install_command,
            config_path=server.config_path,
            status=server.status,
            installed=server.installed,
            last_updated=server.last_updated,
            created_at=server.created_at,
            metadata=server.server_metadata,
        )

    def to_candidate(self) -> ServerCandidate:
        """Canonical write shape; store-assigned fields are dropped."""
        return ServerCandidate(
            name=self.name,
            version=self.version if self.version is not None else "unknown",
            description=self.description or "",
            author=self.author or "",
            repository_url=self.repository_url or "",
            package_manager=self.package_manager or "npm",
            install_command=self.install_command or "",
            config_path=self.config_path or "",
            status=self.status,
            installed=self.installed,
            metadata=dict(self.metadata),
        )


class ScanHistorySchema(BaseModel):
    """Scan history entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    scan_type: str
    scan_date: str | None = None
    servers_found: int = Field(default=0, ge=0)
    new_servers: int = Field(default=0, ge=0)
    updated_servers: int = Field(default=0, ge=0)
    scan_duration: int | None = None
    status: str = "completed"
    details: str | None = None


class SyncLogSchema(BaseModel):
    """Sync log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    sync_type: str
    sync_date: str | None = None
    status: str = "pending"
    records_synced: int = Field(default=0, ge=0)
    error_message: str | None = None
    details: str | None = None


class CatalogStats(BaseModel):
    """Aggregate catalog counters plus the most recent audit entries."""

    total_servers: int = Field(default=0, ge=0)
    installed_servers: int = Field(default=0, ge=0)
    last_scan: ScanHistorySchema | None = None
    last_sync: SyncLogSchema | None = None


class BackupSnapshot(BaseModel):
    """Full-catalog export.

    ``servers`` stays loosely typed so one malformed record does not reject
    the whole snapshot; records are validated one by one on import.
    """

    export_date: str
    version: str = SNAPSHOT_VERSION
    stats: CatalogStats = Field(default_factory=CatalogStats)
    servers: list[dict[str, Any]] = Field(default_factory=list)
    scan_history: list[ScanHistorySchema] = Field(default_factory=list)
    sync_logs: list[SyncLogSchema] = Field(default_factory=list)
