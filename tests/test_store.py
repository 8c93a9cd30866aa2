"""Mapping store tests against a temporary SQLite database."""

from pathlib import Path

import pytest
from sqlalchemy.exc import IntegrityError

from shortener.config import Settings
from shortener.database import create_engine
from shortener.enums import DuplicateField, StoreErrorKind
from shortener.errors import DuplicateKeyError, RecordNotFoundError, StoreError
from shortener.store import MappingStore, _classify_integrity_error


@pytest.mark.asyncio
async def test_initialize_is_idempotent(store: MappingStore) -> None:
    await store.initialize()
    await store.insert("https://example.com", "custom")
    await store.initialize()
    assert await store.find_by_alias("custom") == "https://example.com"


@pytest.mark.asyncio
async def test_insert_and_find(store: MappingStore) -> None:
    first = await store.insert("https://example.com", "custom")
    second = await store.insert("https://www.python.org", "py")

    assert second != first
    assert await store.find_by_alias("custom") == "https://example.com"
    assert await store.find_by_alias("py") == "https://www.python.org"


@pytest.mark.asyncio
async def test_url_is_stored_as_submitted(store: MappingStore) -> None:
    url = "HTTPS://Example.com/Path/?b=2&a=1#frag"
    await store.insert(url, "raw")
    assert await store.find_by_alias("raw") == url


@pytest.mark.asyncio
async def test_find_missing_alias(store: MappingStore) -> None:
    with pytest.raises(RecordNotFoundError) as exc_info:
        await store.find_by_alias("missing")
    assert exc_info.value.kind is StoreErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_exists_by_alias(store: MappingStore) -> None:
    assert await store.exists_by_alias("custom") is False
    await store.insert("https://example.com", "custom")
    assert await store.exists_by_alias("custom") is True


@pytest.mark.asyncio
async def test_duplicate_alias_is_rejected(store: MappingStore) -> None:
    await store.insert("https://example.com", "custom")

    with pytest.raises(DuplicateKeyError) as exc_info:
        await store.insert("https://other.example.org", "custom")

    assert exc_info.value.field is DuplicateField.ALIAS
    assert exc_info.value.kind is StoreErrorKind.DUPLICATE_KEY
    assert await store.find_by_alias("custom") == "https://example.com"


@pytest.mark.asyncio
async def test_duplicate_url_allowed_by_default(store: MappingStore) -> None:
    await store.insert("https://example.com", "one")
    await store.insert("https://example.com", "two")
    assert await store.find_by_alias("two") == "https://example.com"


@pytest.mark.asyncio
async def test_duplicate_url_rejected_when_enforced(unique_url_store: MappingStore) -> None:
    await unique_url_store.insert("https://example.com", "one")

    with pytest.raises(DuplicateKeyError) as exc_info:
        await unique_url_store.insert("https://example.com", "two")

    assert exc_info.value.field is DuplicateField.URL
    assert await unique_url_store.exists_by_alias("two") is False


@pytest.mark.asyncio
async def test_delete_by_alias(store: MappingStore) -> None:
    await store.insert("https://example.com", "custom")

    assert await store.delete_by_alias("custom") == 1
    assert await store.delete_by_alias("custom") == 0
    with pytest.raises(RecordNotFoundError):
        await store.find_by_alias("custom")


@pytest.mark.asyncio
async def test_ping(store: MappingStore) -> None:
    await store.ping()


@pytest.mark.asyncio
async def test_unreachable_database_is_unavailable(tmp_path: Path) -> None:
    missing = tmp_path / "no-such-dir" / "shortener.db"
    store = MappingStore(create_engine(Settings(DATABASE_URL=f"sqlite+aiosqlite:///{missing}")))

    with pytest.raises(StoreError) as exc_info:
        await store.ping()
    assert exc_info.value.kind is StoreErrorKind.UNAVAILABLE

    with pytest.raises(StoreError):
        await store.initialize()
    await store.close()


class TestIntegrityClassification:
    @staticmethod
    def _error(message: str) -> IntegrityError:
        return IntegrityError("INSERT INTO mappings ...", {}, Exception(message))

    def test_postgres_alias_violation(self):
        exc = self._error('duplicate key value violates unique constraint "uq_mappings_alias"')
        result = _classify_integrity_error(exc)
        assert isinstance(result, DuplicateKeyError)
        assert result.field is DuplicateField.ALIAS

    def test_postgres_url_violation(self):
        exc = self._error('duplicate key value violates unique constraint "uq_mappings_url"')
        assert _classify_integrity_error(exc).field is DuplicateField.URL

    def test_sqlite_url_violation(self):
        exc = self._error("UNIQUE constraint failed: mappings.url")
        assert _classify_integrity_error(exc).field is DuplicateField.URL

    def test_not_null_violation_is_not_a_duplicate(self):
        exc = self._error("NOT NULL constraint failed: mappings.url")
        result = _classify_integrity_error(exc)
        assert not isinstance(result, DuplicateKeyError)
        assert result.kind is StoreErrorKind.UNAVAILABLE
