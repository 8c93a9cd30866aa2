"""Database engine and session factory for the URL alias service.

This module provides SQLAlchemy async engine setup and the declarative base
shared by all models. PostgreSQL (asyncpg) is the production backend; the
test suite points DATABASE_URL at a temporary SQLite file (aiosqlite).

Flow Diagram — Engine Lifecycle
===============================
::
    ┌─────────────┐
    │ lifespan()   │
    │ startup      │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ create_     │
    │ engine()    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ MappingStore│
    │ owns engine │
    │ + sessions  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ store.close │
    │ (dispose)   │
    └─────────────┘

How to Use
===========
**Step 1 — Build an engine from settings**::
    engine = create_engine(get_settings())

**Step 2 — Open sessions**::
    sessions = create_session_factory(engine)
    async with sessions() as session:
        await session.execute(select(Mapping))

Key Behaviours
===============
- Connection pooling is configured for PostgreSQL; SQLite keeps its defaults.
- pool_pre_ping drops dead connections before they reach a query.
- Sessions do not expire attributes on commit.

Classes:
    Base:  SQLAlchemy declarative base for all models.

Functions:
    create_engine():  Builds the async engine from settings.
    create_session_factory():  Builds the session maker bound to an engine.
"""

from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from shortener.config import Settings

__all__ = ["Base", "create_engine", "create_session_factory"]


class Base(DeclarativeBase):
    pass


def create_engine(settings: Settings) -> AsyncEngine:
    options: dict[str, Any] = {"echo": settings.DB_ECHO, "pool_pre_ping": True}
    if make_url(settings.DATABASE_URL).get_backend_name() != "sqlite":
        options.update(pool_size=settings.DB_POOL_SIZE, max_overflow=settings.DB_MAX_OVERFLOW)
    return create_async_engine(settings.DATABASE_URL, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
