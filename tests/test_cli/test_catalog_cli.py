"""Tests for the mcp-catalog command line."""

from __future__ import annotations

import argparse
import json
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from cli.catalog_cli import build_parser, main, run_command
from mcpcatalog.config import Settings
from mcpcatalog.database import open_catalog
from mcpcatalog.services import catalog_service
from mcpcatalog.sources.base import ServerCandidate

if TYPE_CHECKING:
    from pathlib import Path


async def _seed(settings: Settings) -> None:
    async with open_catalog(settings) as session:
        await catalog_service.add_or_replace(
            session, ServerCandidate(name="alpha-mcp", version="1.0.0")
        )
        await catalog_service.add_or_replace(
            session, ServerCandidate(name="beta-mcp", installed=True, status="installed")
        )


class TestParser:
    def test_subcommands(self) -> None:
        parser = build_parser()
        assert parser.parse_args(["scan"]).command == "scan"
        args = parser.parse_args(["--debug", "list", "--installed"])
        assert args.debug is True
        assert args.installed is True
        args = parser.parse_args(["download", "prefix/a.json", "/tmp/a.json"])
        assert (args.key, args.path) == ("prefix/a.json", "/tmp/a.json")
        assert parser.parse_args(["backups"]).limit == 20
        assert parser.parse_args(["sources"]).command == "sources"

    def test_unknown_command_rejected(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["explode"])


class TestRunCommand:
    @pytest.mark.asyncio
    async def test_list(self, test_settings: Settings, capsys: pytest.CaptureFixture[str]) -> None:
        await _seed(test_settings)
        code = await run_command(argparse.Namespace(command="list", installed=False), test_settings)
        out = capsys.readouterr().out
        assert code == 0
        assert "alpha-mcp 1.0.0" in out
        assert "* beta-mcp" in out
        assert "2 server(s)" in out

    @pytest.mark.asyncio
    async def test_list_installed(
        self, test_settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        await _seed(test_settings)
        await run_command(argparse.Namespace(command="list", installed=True), test_settings)
        out = capsys.readouterr().out
        assert "alpha-mcp" not in out
        assert "1 server(s)" in out

    @pytest.mark.asyncio
    async def test_stats(self, test_settings: Settings, capsys: pytest.CaptureFixture[str]) -> None:
        await _seed(test_settings)
        await run_command(argparse.Namespace(command="stats"), test_settings)
        out = capsys.readouterr().out
        assert "Servers:   2" in out
        assert "Installed: 1" in out

    @pytest.mark.asyncio
    async def test_scan_uses_configured_sources(
        self, test_settings: Settings, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        root = tmp_path / "servers" / "demo"
        root.mkdir(parents=True)
        (root / "package.json").write_text(json.dumps({"name": "demo-mcp", "version": "1.0.0"}))

        from mcpcatalog.sources.filesystem import FilesystemSource

        sources = [FilesystemSource(test_settings.discovery_paths)]
        with patch("cli.catalog_cli.build_sources", return_value=sources):
            code = await run_command(argparse.Namespace(command="scan"), test_settings)
        assert code == 0
        assert "1 servers found, 1 new, 0 updated" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_sync_without_targets(
        self, test_settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = await run_command(argparse.Namespace(command="sync"), test_settings)
        out = capsys.readouterr().out
        assert code == 0
        assert "No sync targets configured" in out
        assert "0 records synced" in out

    @pytest.mark.asyncio
    async def test_restore_without_storage(
        self, test_settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = await run_command(argparse.Namespace(command="restore"), test_settings)
        assert code == 1
        assert "cloud storage not configured" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_sources_shows_disabled_github(
        self, test_settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        settings = test_settings.model_copy(update={"github_search_enabled": False})
        code = await run_command(argparse.Namespace(command="sources"), settings)
        lines = capsys.readouterr().out.splitlines()
        assert code == 0
        assert [line.split() for line in lines] == [
            ["local", "enabled"],
            ["npm_search", "enabled"],
            ["github", "disabled"],
            ["global", "enabled"],
        ]


class TestMain:
    def test_no_command_prints_help(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2

    def test_invalid_configuration_exits_nonzero(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("CLOUD_PROVIDER", "azure")
        with pytest.raises(SystemExit) as exc_info, patch("cli.catalog_cli.configure_logging"):
            main(["--database-url", f"sqlite+aiosqlite:///{tmp_path}/c.db", "stats"])
        assert exc_info.value.code == 1
        assert "Unsupported CLOUD_PROVIDER" in capsys.readouterr().out

    def test_stats_end_to_end(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit) as exc_info, patch("cli.catalog_cli.configure_logging"):
            main(["--database-url", f"sqlite+aiosqlite:///{tmp_path}/c.db", "stats"])
        assert exc_info.value.code == 0
        assert "Servers:   0" in capsys.readouterr().out
