"""Canonical server record model."""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy import Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from mcpcatalog.models.base import Base


class McpServer(Base):
    """One catalog entry, unique by name."""

    __tablename__ = "mcp_servers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    version: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    author: Mapped[str | None] = mapped_column(Text, nullable=True)
    repository_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    package_manager: Mapped[str | None] = mapped_column(String, nullable=True)
    install_command: Mapped[str | None] = mapped_column(Text, nullable=True)
    config_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="discovered")
    installed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_updated: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    # "metadata" is reserved on declarative classes
    metadata_json: Mapped[str] = mapped_column("metadata", Text, nullable=False, default="{}")

    __table_args__ = (Index("idx_mcp_servers_installed", "installed"),)

    @property
    def server_metadata(self) -> dict[str, Any]:
        """Decoded metadata bag; unreadable JSON decodes to an empty dict."""
        try:
            value = json.loads(self.metadata_json or "{}")
        except ValueError:
            return {}
        return value if isinstance(value, dict) else {}
