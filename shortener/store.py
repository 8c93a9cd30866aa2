"""Mapping store: durable alias → URL persistence with a unique alias index.

This is the only module that talks to SQLAlchemy. Driver failures are
converted here into the closed ``StoreErrorKind`` set so the service layer
never inspects driver exceptions.

Flow Diagram — insert()
=======================
::
    ┌─────────────┐
    │ insert(url, │
    │ alias)      │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ INSERT row  │
    │ + COMMIT    │
    └──────┬──────┘
    OK?    │
    ┌──────┴──────────────┬──────────────────┐
    │ YES                 │ IntegrityError   │ other DB / OS fault
    ▼                     ▼                  ▼
┌─────────┐        ┌──────────────┐   ┌──────────────┐
│ return  │        │ DuplicateKey │   │ StoreError   │
│ id      │        │ (alias|url)  │   │ (UNAVAILABLE)│
└─────────┘        └──────────────┘   └──────────────┘

Key Behaviours
===============
- Every operation runs in its own session/transaction; one store instance is
  safe to share between concurrent requests.
- delete_by_alias() succeeds whether or not a row matched.
- initialize() is idempotent and runs on every process start.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import delete, exists, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from shortener.database import Base, create_session_factory
from shortener.enums import DuplicateField
from shortener.errors import DuplicateKeyError, RecordNotFoundError, StoreError
from shortener.models import ALIAS_INDEX_NAME, URL_INDEX_NAME, Mapping

__all__ = ["MappingStore"]

logger = logging.getLogger("shortener.store")

# Substrings identifying the violated index in PostgreSQL and SQLite messages.
_UNIQUE_MARKERS: dict[DuplicateField, tuple[str, ...]] = {
    DuplicateField.URL: (URL_INDEX_NAME, f"{Mapping.__tablename__}.url"),
    DuplicateField.ALIAS: (ALIAS_INDEX_NAME, f"{Mapping.__tablename__}.alias"),
}


def _classify_integrity_error(exc: IntegrityError) -> StoreError:
    message = str(exc.orig)
    lowered = message.lower()
    if "unique" not in lowered and "duplicate key" not in lowered:
        return StoreError(f"integrity error: {message}")
    for field, markers in _UNIQUE_MARKERS.items():
        if any(marker in message for marker in markers):
            return DuplicateKeyError(field)
    return DuplicateKeyError(DuplicateField.ALIAS, f"unique violation: {message}")


class MappingStore:
    """Async SQLAlchemy implementation of the mapping store contract."""

    def __init__(self, engine: AsyncEngine, enforce_unique_url: bool = False) -> None:
        self._engine = engine
        self._sessions = create_session_factory(engine)
        self.enforce_unique_url = enforce_unique_url

    @asynccontextmanager
    async def _session(self, op: str) -> AsyncIterator[AsyncSession]:
        async with self._sessions() as session:
            try:
                yield session
            except IntegrityError as exc:
                await session.rollback()
                raise _classify_integrity_error(exc) from exc
            except (SQLAlchemyError, OSError) as exc:
                logger.error(f"{op} failed: {exc}")
                raise StoreError(f"{op}: {exc}") from exc

    async def initialize(self) -> None:
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
                if self.enforce_unique_url:
                    await conn.execute(
                        text(
                            f"CREATE UNIQUE INDEX IF NOT EXISTS {URL_INDEX_NAME} "
                            f"ON {Mapping.__tablename__} (url)"
                        )
                    )
        except (SQLAlchemyError, OSError) as exc:
            raise StoreError(f"initialize: {exc}") from exc
        logger.info(f"Mapping table ready (unique url: {self.enforce_unique_url})")

    async def insert(self, url: str, alias: str) -> int:
        async with self._session("insert") as session:
            mapping = Mapping(url=url, alias=alias)
            session.add(mapping)
            await session.flush()
            mapping_id = mapping.id
            await session.commit()
        return mapping_id

    async def find_by_alias(self, alias: str) -> str:
        async with self._session("find_by_alias") as session:
            result = await session.execute(select(Mapping.url).where(Mapping.alias == alias))
            url = result.scalar_one_or_none()
        if url is None:
            raise RecordNotFoundError(f"no mapping for alias '{alias}'")
        return url

    async def exists_by_alias(self, alias: str) -> bool:
        async with self._session("exists_by_alias") as session:
            result = await session.execute(select(exists().where(Mapping.alias == alias)))
            return bool(result.scalar())

    async def delete_by_alias(self, alias: str) -> int:
        async with self._session("delete_by_alias") as session:
            result = await session.execute(delete(Mapping).where(Mapping.alias == alias))
            await session.commit()
        return result.rowcount or 0

    async def ping(self) -> None:
        async with self._session("ping") as session:
            await session.execute(text("SELECT 1"))

    async def close(self) -> None:
        await self._engine.dispose()
