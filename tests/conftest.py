"""Shared test fixtures for the MCP catalog."""

from __future__ import annotations

import io
import json
import uuid
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import httpx
import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from mcpcatalog.config import Settings
from mcpcatalog.services.catalog_service import ensure_tables
from mcpcatalog.sources.npm_cli import NpmCommandError
from mcpcatalog.targets.notion import REQUIRED_PROPERTIES

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

    from mcpcatalog.sources.base import ServerCandidate


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create test settings with temporary paths and no external targets."""
    db_path = tmp_path / "db" / "test.db"
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        debug=True,
        database_url=f"sqlite+aiosqlite:///{db_path}",
        discovery_paths=[str(tmp_path / "servers")],
        github_request_delay=0,
    )


@pytest.fixture
async def db_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine]:
    """Create a test database engine."""
    db_path = test_settings.database_path
    assert db_path is not None
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_async_engine(
        test_settings.database_url,
        echo=False,
    )
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(
    db_engine: AsyncEngine,
) -> AsyncGenerator[AsyncSession]:
    """Create a test database session with all catalog tables."""
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        await ensure_tables(session)
        yield session


class StaticSource:
    """Source returning fixed candidates, or raising a fixed error."""

    def __init__(
        self,
        source: str,
        candidates: list[ServerCandidate] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.source = source
        self.candidates = candidates or []
        self.error = error
        self.calls = 0

    async def scan(self) -> list[ServerCandidate]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.candidates)


class FakeNpm:
    """Stands in for NpmCli; answers by argument tuple."""

    def __init__(self, responses: dict[tuple[str, ...], Any] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[tuple[str, ...]] = []

    async def run_json(self, *args: str, timeout: float) -> Any:
        self.calls.append(args)
        if args not in self.responses:
            raise NpmCommandError(f"unexpected npm call: {args}")
        value = self.responses[args]
        if isinstance(value, Exception):
            raise value
        return value


class FakeS3Client:
    """In-memory subset of the boto3 S3 client API."""

    def __init__(self) -> None:
        self.objects: dict[str, dict[str, Any]] = {}
        self._clock = datetime(2026, 1, 1, tzinfo=UTC)

    def add_object(self, key: str, body: bytes | str, last_modified: datetime) -> None:
        data = body.encode("utf-8") if isinstance(body, str) else body
        self.objects[key] = {"Body": data, "LastModified": last_modified}

    def put_object(self, *, Bucket: str, Key: str, Body: bytes, **kwargs: Any) -> dict[str, Any]:
        self._clock += timedelta(seconds=1)
        self.objects[Key] = {"Body": Body, "LastModified": self._clock, **kwargs}
        return {"ETag": uuid.uuid4().hex}

    def list_objects_v2(self, *, Bucket: str, Prefix: str, **kwargs: Any) -> dict[str, Any]:
        contents = [
            {"Key": key, "LastModified": obj["LastModified"], "Size": len(obj["Body"])}
            for key, obj in sorted(self.objects.items())
            if key.startswith(Prefix)
        ]
        return {"Contents": contents, "IsTruncated": False, "KeyCount": len(contents)}

    def get_object(self, *, Bucket: str, Key: str) -> dict[str, Any]:
        return {"Body": io.BytesIO(self.objects[Key]["Body"])}


class FakeNotion:
    """Notion database API served through ``httpx.MockTransport``."""

    def __init__(
        self,
        database_id: str = "db-1",
        properties: dict[str, str] | None = None,
        fail_titles: set[str] | None = None,
    ) -> None:
        self.database_id = database_id
        self.properties = dict(REQUIRED_PROPERTIES) if properties is None else properties
        self.fail_titles = fail_titles or set()
        self.pages: dict[str, dict[str, Any]] = {}
        self.created: list[str] = []
        self.updated: list[str] = []

    @staticmethod
    def _title(properties: dict[str, Any]) -> str:
        return properties["Name"]["title"][0]["text"]["content"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "GET" and path == f"/v1/databases/{self.database_id}":
            props = {name: {"type": kind} for name, kind in self.properties.items()}
            return httpx.Response(200, json={"id": self.database_id, "properties": props})

        if request.method == "POST" and path == f"/v1/databases/{self.database_id}/query":
            title = json.loads(request.content)["filter"]["title"]["equals"]
            if title in self.fail_titles:
                return httpx.Response(500, json={"message": "boom"})
            results = [
                {"id": page_id}
                for page_id, props in self.pages.items()
                if self._title(props) == title
            ]
            return httpx.Response(200, json={"results": results})

        if request.method == "POST" and path == "/v1/pages":
            body = json.loads(request.content)
            page_id = uuid.uuid4().hex
            self.pages[page_id] = body["properties"]
            self.created.append(page_id)
            return httpx.Response(200, json={"id": page_id})

        if request.method == "PATCH" and path.startswith("/v1/pages/"):
            page_id = path.rsplit("/", 1)[-1]
            if page_id not in self.pages:
                return httpx.Response(404, json={"message": "not found"})
            self.pages[page_id].update(json.loads(request.content)["properties"])
            self.updated.append(page_id)
            return httpx.Response(200, json={"id": page_id})

        return httpx.Response(404, json={"message": f"unhandled {request.method} {path}"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_s3() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def fake_notion() -> FakeNotion:
    return FakeNotion()


@pytest.fixture
def make_source() -> type[StaticSource]:
    return StaticSource


@pytest.fixture
def make_npm() -> type[FakeNpm]:
    return FakeNpm


@pytest.fixture
def make_notion() -> type[FakeNotion]:
    return FakeNotion
