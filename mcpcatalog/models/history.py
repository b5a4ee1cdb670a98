"""Scan and sync audit log models."""

from __future__ import annotations

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from mcpcatalog.models.base import Base


class ScanHistory(Base):
    """Append-only record of one discovery run."""

    __tablename__ = "scan_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    scan_type: Mapped[str] = mapped_column(String, nullable=False)
    scan_date: Mapped[str] = mapped_column(Text, nullable=False)
    servers_found: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    new_servers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_servers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    scan_duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String, nullable=False, default="completed")
    details: Mapped[str] = mapped_column(Text, nullable=False, default="")

    __table_args__ = (Index("idx_scan_history_date", "scan_date"),)


class SyncLog(Base):
    """Record of one sync run, updated in place when the run ends."""

    __tablename__ = "sync_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sync_type: Mapped[str] = mapped_column(String, nullable=False)
    sync_date: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    records_synced: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[str] = mapped_column(Text, nullable=False, default="")

    __table_args__ = (Index("idx_sync_logs_date", "sync_date"),)
