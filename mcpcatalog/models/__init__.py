"""SQLAlchemy ORM models for the MCP catalog."""

from mcpcatalog.models.base import Base
from mcpcatalog.models.history import ScanHistory, SyncLog
from mcpcatalog.models.server import McpServer

__all__ = [
    "Base",
    "McpServer",
    "ScanHistory",
    "SyncLog",
]
