"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url

DEFAULT_DISCOVERY_PATHS = [
    "/usr/local/lib/node_modules",
    "~/.config/mcp",
    "./mcp-servers",
    "~/.npm-global/lib/node_modules",
]


class Settings(BaseSettings):
    """MCP catalog settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///data/mcp_servers.db"

    # Discovery
    discovery_paths: list[str] = Field(default_factory=lambda: list(DEFAULT_DISCOVERY_PATHS))
    github_search_enabled: bool = True
    github_token: str = ""
    github_api_url: str = "https://api.github.com"
    github_request_delay: float = Field(default=1.0, ge=0)
    github_per_page: int = Field(default=30, ge=1, le=100)
    npm_command: str = "npm"
    npm_search_limit: int = Field(default=50, ge=1)
    npm_search_timeout: float = Field(default=30.0, gt=0)
    npm_list_timeout: float = Field(default=15.0, gt=0)

    # Notion
    notion_api_key: str = ""
    notion_database_id: str = ""

    # Cloud storage
    cloud_provider: str = ""
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "us-east-1"
    aws_bucket_name: str = ""
    backup_prefix: str = "mcp-server-manager"

    @property
    def database_path(self) -> Path | None:
        """Filesystem path of the SQLite store, or None for in-memory/non-SQLite URLs."""
        url = make_url(self.database_url)
        if not url.get_backend_name().startswith("sqlite"):
            return None
        if not url.database or url.database == ":memory:":
            return None
        return Path(url.database)

    @property
    def notion_enabled(self) -> bool:
        return bool(self.notion_api_key and self.notion_database_id)

    @property
    def s3_enabled(self) -> bool:
        return (
            self.cloud_provider == "aws"
            and bool(self.aws_access_key_id)
            and bool(self.aws_bucket_name)
        )

    def validate_runtime(self) -> None:
        """Reject half-configured sync targets."""
        violations: list[str] = []
        if self.notion_api_key and not self.notion_database_id:
            violations.append("NOTION_DATABASE_ID must be set when NOTION_API_KEY is set")
        if self.cloud_provider and self.cloud_provider != "aws":
            violations.append(f"Unsupported CLOUD_PROVIDER: {self.cloud_provider!r}")
        if self.cloud_provider == "aws" and not self.aws_bucket_name:
            violations.append("AWS_BUCKET_NAME must be set when CLOUD_PROVIDER is 'aws'")

        if violations:
            joined = "; ".join(violations)
            raise ValueError(f"Invalid configuration: {joined}")
