"""Tests for application configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from mcpcatalog.config import DEFAULT_DISCOVERY_PATHS, Settings


class TestSettings:
    def test_default_settings(self) -> None:
        s = Settings(_env_file=None)
        assert s.debug is False
        assert s.database_url == "sqlite+aiosqlite:///data/mcp_servers.db"
        assert s.discovery_paths == DEFAULT_DISCOVERY_PATHS
        assert s.github_search_enabled is True
        assert s.backup_prefix == "mcp-server-manager"

    def test_settings_from_fixture(self, test_settings: Settings) -> None:
        assert test_settings.debug is True
        assert test_settings.github_request_delay == 0
        assert not test_settings.notion_enabled
        assert not test_settings.s3_enabled

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NOTION_API_KEY", "secret")
        monkeypatch.setenv("NOTION_DATABASE_ID", "db")
        monkeypatch.setenv("DISCOVERY_PATHS", '["/opt/servers"]')
        s = Settings(_env_file=None)
        assert s.notion_enabled
        assert s.discovery_paths == ["/opt/servers"]


class TestDatabasePath:
    def test_file_backed_sqlite(self, tmp_path: Path) -> None:
        s = Settings(_env_file=None, database_url=f"sqlite+aiosqlite:///{tmp_path}/x.db")
        assert s.database_path == tmp_path / "x.db"

    def test_in_memory_has_no_path(self) -> None:
        s = Settings(_env_file=None, database_url="sqlite+aiosqlite:///:memory:")
        assert s.database_path is None

    def test_non_sqlite_has_no_path(self) -> None:
        s = Settings(_env_file=None, database_url="postgresql+asyncpg://u:p@localhost/db")
        assert s.database_path is None


class TestTargetSettings:
    def test_s3_enabled_requires_provider_key_and_bucket(self) -> None:
        s = Settings(
            _env_file=None,
            cloud_provider="aws",
            aws_access_key_id="AKIA",
            aws_bucket_name="bucket",
        )
        assert s.s3_enabled
        s = Settings(_env_file=None, aws_access_key_id="AKIA", aws_bucket_name="bucket")
        assert not s.s3_enabled

    def test_validate_runtime_accepts_empty_config(self) -> None:
        Settings(_env_file=None).validate_runtime()

    def test_notion_key_without_database_rejected(self) -> None:
        s = Settings(_env_file=None, notion_api_key="secret")
        with pytest.raises(ValueError, match="NOTION_DATABASE_ID"):
            s.validate_runtime()

    def test_unknown_provider_rejected(self) -> None:
        s = Settings(_env_file=None, cloud_provider="gcp")
        with pytest.raises(ValueError, match="Unsupported CLOUD_PROVIDER"):
            s.validate_runtime()

    def test_aws_without_bucket_rejected(self) -> None:
        s = Settings(_env_file=None, cloud_provider="aws", aws_access_key_id="AKIA")
        with pytest.raises(ValueError, match="AWS_BUCKET_NAME"):
            s.validate_runtime()

    def test_negative_request_delay_rejected(self) -> None:
        with pytest.raises(ValueError):
            Settings(_env_file=None, github_request_delay=-1)
