"""Alias Service - Core Business Logic

This module decides the final alias for a URL, persists the mapping through the
mapping store, resolves aliases back to URLs and removes mappings.

Architecture Overview
=====================
::
    ┌───────────────────────────────────────────────┐
    │                 Alias Service                 │
    │  ┌───────────────────┐  ┌──────────────────┐  │
    │  │ create_mapping    │  │ resolve_alias    │  │
    │  │ • explicit alias  │  │ delete_mapping   │  │
    │  │ • generated alias │  │                  │  │
    │  └───────────────────┘  └──────────────────┘  │
    └───────────────────────┬───────────────────────┘
                            ▼
                 ┌─────────────────────┐
                 │    MappingStore     │
                 │ (unique alias index)│
                 └─────────────────────┘

Mapping Creation Flow
---------------------
::
    ┌──────────────┐
    │ create_      │
    │ mapping()    │
    └──────┬───────┘
    alias given?
    ┌──────┴────────────────────┐
    │ YES                       │ NO
    ▼                           ▼
┌──────────────┐        ┌──────────────────┐
│ exists?      │        │ generate alias   │◄─────┐
│ → Conflict   │        │ exists? → retry  │──────┤
└──────┬───────┘        └────────┬─────────┘      │
       ▼                         ▼                │
┌──────────────┐        ┌──────────────────┐      │
│ insert       │        │ insert           │      │
│ dup alias →  │        │ dup alias → retry│──────┘
│   Conflict   │        │ (bounded)        │
└──────┬───────┘        └────────┬─────────┘
       └───────────┬─────────────┘
                   ▼
            ┌──────────────┐
            │ return alias │
            └──────────────┘

Error Mapping
=============
::
    store DuplicateKey(alias)  → AliasConflictError   (explicit alias)
    store DuplicateKey(url)    → URLAlreadyExistsError
    store RecordNotFound       → AliasNotFoundError   (resolve only)
    any other store failure    → StorageError

Key Behaviours
==============
- The existence check is only a friendlier early answer; the store's unique
  index decides races.
- Generated aliases are retried up to ``max_attempts`` times, so a single
  collision costs exactly one regeneration. Generated candidates that name a
  fixed route are skipped like taken ones.
- Deleting an unknown alias succeeds.
- Store failures are never retried.

Usage Example
=============
```python
store = MappingStore(engine)
service = AliasService(store, alias_length=6, max_attempts=5)
alias = await service.create_mapping("https://example.com", "custom")
url = await service.resolve_alias(alias)
await service.delete_mapping(alias)
```
"""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from prometheus_client import Counter

from shortener.alias import generate_alias, is_reserved
from shortener.enums import DuplicateField, RequestStatus
from shortener.errors import (
    AliasConflictError,
    AliasNotFoundError,
    DuplicateKeyError,
    InvalidRequestError,
    RecordNotFoundError,
    StorageError,
    StoreError,
    URLAlreadyExistsError,
)
from shortener.models import ALIAS_MAX_LENGTH
from shortener.store import MappingStore

if TYPE_CHECKING:
    from shortener.dependencies import RequestContext

__all__ = ["AliasService"]


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

MAPPING_CREATIONS_TOTAL = Counter(
    "shortener_mapping_creations_total",
    "Total mapping creation requests",
    ["status"],
)
ALIAS_COLLISIONS_TOTAL = Counter(
    "shortener_alias_collisions_total",
    "Generated aliases rejected because they were already taken",
)
ALIAS_RESOLUTIONS_TOTAL = Counter(
    "shortener_alias_resolutions_total",
    "Total alias resolution requests",
    ["status"],
)
MAPPING_DELETIONS_TOTAL = Counter(
    "shortener_mapping_deletions_total",
    "Total mapping deletion requests",
    ["status"],
)


# ============================================================================
# CORE SERVICE CLASS
# ============================================================================


class AliasService:
    """Alias assignment, resolution and removal on top of a mapping store.

    The service is stateless between calls; every dependency is passed in, so
    one instance can serve concurrent requests.

    Example:
        >>> service = AliasService(store, alias_length=6)
        >>> await service.create_mapping("https://example.com", "custom")
        'custom'
    """

    def __init__(
        self,
        store: MappingStore,
        alias_length: int = 6,
        max_attempts: int = 5,
        generator: Callable[[int], str] = generate_alias,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            store: Mapping store handle shared by all operations
            alias_length: Length of generated aliases
            max_attempts: Upper bound on generated aliases tried per request
            generator: Callable producing a random alias of the given length
            logger: Logger or request-scoped adapter
        """
        assert alias_length > 0, f"alias_length must be positive, got {alias_length!r}"
        assert max_attempts > 0, f"max_attempts must be positive, got {max_attempts!r}"
        self._store = store
        self._alias_length = alias_length
        self._max_attempts = max_attempts
        self._generate = generator
        self._logger = logger or logging.getLogger("shortener")

    @classmethod
    def from_context(cls, ctx: "RequestContext") -> "AliasService":
        """Build a service bound to the request's logger and the shared store.

        Args:
            ctx: Request context with the service manager and request logger

        Returns:
            AliasService: Service instance for this request
        """
        settings = ctx.settings
        return cls(
            ctx.store,
            alias_length=settings.ALIAS_LENGTH,
            max_attempts=settings.ALIAS_MAX_ATTEMPTS,
            logger=ctx.logger,
        )

    # ========================================================================
    # PUBLIC API METHODS
    # ========================================================================

    async def create_mapping(self, url: str, alias: str | None = None) -> str:
        """Persist a mapping for ``url`` and return its alias.

        Args:
            url: Absolute URL, already validated by the caller
            alias: Requested alias; empty or None asks for a generated one

        Returns:
            str: The alias now mapped to ``url``

        Raises:
            InvalidRequestError: Empty URL or over-long alias
            AliasConflictError: Requested alias is taken
            URLAlreadyExistsError: URL already mapped and URL uniqueness is enforced
            StorageError: Store failure, or no free alias within ``max_attempts``
        """
        if not url:
            MAPPING_CREATIONS_TOTAL.labels(status=RequestStatus.INVALID).inc()
            raise InvalidRequestError("url must not be empty")
        if alias and len(alias) > ALIAS_MAX_LENGTH:
            MAPPING_CREATIONS_TOTAL.labels(status=RequestStatus.INVALID).inc()
            raise InvalidRequestError(f"alias must be at most {ALIAS_MAX_LENGTH} characters")

        try:
            if alias:
                final_alias = await self._create_with_alias(url, alias)
            else:
                final_alias = await self._create_with_generated_alias(url)
        except (AliasConflictError, URLAlreadyExistsError) as exc:
            MAPPING_CREATIONS_TOTAL.labels(status=RequestStatus.CONFLICT).inc()
            self._logger.info(f"Mapping not created: {exc}")
            raise
        except StorageError as exc:
            MAPPING_CREATIONS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            self._logger.error(f"Mapping creation failed: {exc}")
            raise

        MAPPING_CREATIONS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.info(f"Mapping created: {final_alias} -> {url}")
        return final_alias

    async def resolve_alias(self, alias: str) -> str:
        """Return the URL mapped to ``alias``.

        Raises:
            InvalidRequestError: Empty alias
            AliasNotFoundError: No mapping for ``alias``
            StorageError: Store failure
        """
        if not alias:
            ALIAS_RESOLUTIONS_TOTAL.labels(status=RequestStatus.INVALID).inc()
            raise InvalidRequestError("alias must not be empty")

        try:
            url = await self._store.find_by_alias(alias)
        except RecordNotFoundError as exc:
            ALIAS_RESOLUTIONS_TOTAL.labels(status=RequestStatus.NOT_FOUND).inc()
            self._logger.info(f"Alias not found: {alias}")
            raise AliasNotFoundError(f"alias '{alias}' not found") from exc
        except StoreError as exc:
            ALIAS_RESOLUTIONS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            self._logger.error(f"Alias resolution failed for {alias}: {exc}")
            raise StorageError(f"failed to resolve alias '{alias}'") from exc

        ALIAS_RESOLUTIONS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.debug(f"Alias resolved: {alias} -> {url}")
        return url

    async def delete_mapping(self, alias: str) -> None:
        """Remove the mapping for ``alias``; an unknown alias is not an error.

        Raises:
            InvalidRequestError: Empty alias
            StorageError: Store failure
        """
        if not alias:
            MAPPING_DELETIONS_TOTAL.labels(status=RequestStatus.INVALID).inc()
            self._logger.info("Delete rejected: alias is empty")
            raise InvalidRequestError("alias must not be empty")

        try:
            removed = await self._store.delete_by_alias(alias)
        except StoreError as exc:
            MAPPING_DELETIONS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            self._logger.error(f"Delete failed for {alias}: {exc}")
            raise StorageError(f"failed to delete alias '{alias}'") from exc

        MAPPING_DELETIONS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        if removed:
            self._logger.info(f"Mapping deleted: {alias}")
        else:
            self._logger.debug(f"Delete of unknown alias ignored: {alias}")

    # ========================================================================
    # PRIVATE HELPER METHODS
    # ========================================================================

    async def _create_with_alias(self, url: str, alias: str) -> str:
        if await self._alias_exists(alias):
            raise AliasConflictError(f"alias '{alias}' already exists")
        try:
            await self._insert(url, alias)
        except DuplicateKeyError as exc:
            if exc.field is DuplicateField.URL:
                raise URLAlreadyExistsError(f"url '{url}' already exists") from exc
            # Another request took the alias between the check and the insert.
            raise AliasConflictError(f"alias '{alias}' already exists") from exc
        return alias

    async def _create_with_generated_alias(self, url: str) -> str:
        for attempt in range(1, self._max_attempts + 1):
            candidate = self._generate(self._alias_length)
            if is_reserved(candidate):
                self._logger.debug(f"Generated alias {candidate} is reserved (attempt {attempt})")
                continue
            if await self._alias_exists(candidate):
                ALIAS_COLLISIONS_TOTAL.inc()
                self._logger.debug(f"Generated alias {candidate} taken (attempt {attempt})")
                continue
            try:
                await self._insert(url, candidate)
            except DuplicateKeyError as exc:
                if exc.field is DuplicateField.URL:
                    raise URLAlreadyExistsError(f"url '{url}' already exists") from exc
                ALIAS_COLLISIONS_TOTAL.inc()
                self._logger.debug(f"Generated alias {candidate} lost insert race (attempt {attempt})")
                continue
            return candidate

        raise StorageError(f"no free alias found after {self._max_attempts} attempts")

    async def _alias_exists(self, alias: str) -> bool:
        try:
            return await self._store.exists_by_alias(alias)
        except StoreError as exc:
            raise StorageError(f"failed to check alias '{alias}'") from exc

    async def _insert(self, url: str, alias: str) -> int:
        try:
            mapping_id = await self._store.insert(url, alias)
        except DuplicateKeyError:
            raise
        except StoreError as exc:
            raise StorageError(f"failed to save url '{url}'") from exc
        self._logger.debug(f"Mapping row inserted: id={mapping_id}")
        return mapping_id
