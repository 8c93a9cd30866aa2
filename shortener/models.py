"""SQLAlchemy ORM model for alias mappings.

Data Model Layout
=================
::
    mappings table
    ├─ id (SERIAL PRIMARY KEY)
    ├─ url (TEXT NOT NULL)
    ├─ alias (VARCHAR(100) NOT NULL, UNIQUE INDEX uq_mappings_alias)
    └─ created_at (TIMESTAMPTZ, DEFAULT NOW())

    optional: UNIQUE INDEX uq_mappings_url ON mappings (url)
              created by MappingStore.initialize() when ENFORCE_UNIQUE_URL is set

How to Use
===========
**Insert**::
    session.add(Mapping(url="https://example.com", alias="custom"))
    await session.commit()

**Query**::
    result = await session.execute(select(Mapping.url).where(Mapping.alias == "custom"))
    url = result.scalar_one_or_none()

Key Behaviours
===============
- The unique alias index is the source of truth for alias uniqueness.
- url is stored exactly as submitted.
- created_at is filled in by the database.
"""

import datetime

from sqlalchemy import DateTime, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from shortener.database import Base

__all__ = ["Mapping", "ALIAS_MAX_LENGTH", "ALIAS_INDEX_NAME", "URL_INDEX_NAME"]

ALIAS_MAX_LENGTH = 100
ALIAS_INDEX_NAME = "uq_mappings_alias"
URL_INDEX_NAME = "uq_mappings_url"


class Mapping(Base):
    __tablename__ = "mappings"
    __table_args__ = (Index(ALIAS_INDEX_NAME, "alias", unique=True),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    alias: Mapped[str] = mapped_column(String(ALIAS_MAX_LENGTH), nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Mapping(id={self.id}, alias='{self.alias}')>"
