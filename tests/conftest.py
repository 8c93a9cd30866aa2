"""Shared pytest fixtures for service, store and API tests."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from shortener.config import Settings
from shortener.database import create_engine
from shortener.dependencies import ServiceManager
from shortener.main import app
from shortener.store import MappingStore

TEST_BASE_URL = "http://sho.rt"


def sqlite_url(path: Path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        DATABASE_URL=sqlite_url(tmp_path / "shortener.db"),
        BASE_URL=TEST_BASE_URL,
        ALIAS_LENGTH=6,
        ALIAS_MAX_ATTEMPTS=5,
        LOG_LEVEL="DEBUG",
    )


@pytest_asyncio.fixture
async def store(settings: Settings) -> AsyncGenerator[MappingStore, None]:
    mapping_store = MappingStore(create_engine(settings))
    await mapping_store.initialize()
    yield mapping_store
    await mapping_store.close()


@pytest_asyncio.fixture
async def unique_url_store(tmp_path: Path) -> AsyncGenerator[MappingStore, None]:
    engine = create_engine(Settings(DATABASE_URL=sqlite_url(tmp_path / "unique_url.db")))
    mapping_store = MappingStore(engine, enforce_unique_url=True)
    await mapping_store.initialize()
    yield mapping_store
    await mapping_store.close()


@pytest.fixture
def mock_store() -> AsyncMock:
    """Mapping store double: free aliases, successful writes."""
    store = AsyncMock(spec=MappingStore)
    store.exists_by_alias.return_value = False
    store.insert.return_value = 1
    store.delete_by_alias.return_value = 1
    return store


@pytest.fixture
def mock_logger() -> MagicMock:
    return MagicMock()


@pytest.fixture
def manager(settings: Settings, store: MappingStore) -> ServiceManager:
    return ServiceManager(settings, store=store)


@pytest_asyncio.fixture
async def client(manager: ServiceManager) -> AsyncGenerator[AsyncClient, None]:
    app.state.manager = manager

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    del app.state.manager
