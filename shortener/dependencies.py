"""Dependency injection for the URL alias service.

A ServiceManager owns the per-process resources (settings, logger, database
engine and mapping store). It is created in the application lifespan and
published on ``app.state.manager``; request handlers reach it through the
dependency functions below instead of a module-level singleton.
"""

import json
import logging
import sys
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Request

from shortener.alias_service import AliasService
from shortener.config import Settings, get_settings
from shortener.database import create_engine
from shortener.enums import AppEnv
from shortener.store import MappingStore

__all__ = [
    "ServiceManager",
    "RequestContext",
    "setup_logger",
    "JsonFormatter",
    "ContextLoggerAdapter",
    "get_service_manager",
    "get_request_context",
    "get_alias_service",
]

LOGGER_NAME = "shortener"

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"

_ENV_LEVELS = {
    AppEnv.LOCAL: logging.DEBUG,
    AppEnv.DEV: logging.DEBUG,
    AppEnv.PROD: logging.INFO,
}

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


# ============================================================================
# LOGGING
# ============================================================================


class _RequestIdFilter(logging.Filter):
    """Fill in ``request_id`` for records logged outside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message and extras.

    Fields passed through ``extra`` (request_id, client_ip, operation,
    duration_ms...) become top-level keys. Values json cannot encode are
    rendered with ``str``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and key not in entry:
                entry[key] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ContextLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter whose per-call ``extra`` is merged over the context's."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def setup_logger(settings: Settings) -> logging.Logger:
    """Configure the ``shortener`` logger for the deployment environment.

    local: readable text at DEBUG. dev: JSON lines at DEBUG. prod: JSON lines
    at INFO. LOG_LEVEL, when set, overrides the level.
    """
    if settings.LOG_LEVEL:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    else:
        level = _ENV_LEVELS[settings.APP_ENV]
    if settings.APP_ENV is AppEnv.LOCAL:
        formatter = logging.Formatter(TEXT_FORMAT)
    else:
        formatter = JsonFormatter()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(_RequestIdFilter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger


# ============================================================================
# SERVICE MANAGER
# ============================================================================


class ServiceManager:
    """Owner of the resources shared by all requests of one process."""

    def __init__(self, settings: Settings | None = None, store: MappingStore | None = None) -> None:
        self.settings = settings or get_settings()
        self.logger = setup_logger(self.settings)
        self.store = store or MappingStore(
            create_engine(self.settings),
            enforce_unique_url=self.settings.ENFORCE_UNIQUE_URL,
        )

    async def initialize(self) -> None:
        """Ensure the mapping table exists; safe on every start."""
        await self.store.initialize()
        self.logger.info(f"{self.settings.APP_NAME} started (env={self.settings.APP_ENV})")

    async def cleanup(self) -> None:
        await self.store.close()
        self.logger.info(f"{self.settings.APP_NAME} stopped")


# ============================================================================
# REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request view of the shared resources plus tracking data.

    Attributes:
        service_manager: Process-wide resources
        request_id: Identifier propagated through X-Request-ID
        user_agent: Client user agent string
        client_ip: Client IP address
        start_time: Request start timestamp
    """

    service_manager: ServiceManager
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    start_time: float = field(default_factory=time.perf_counter)

    @property
    def store(self) -> MappingStore:
        return self.service_manager.store

    @property
    def settings(self) -> Settings:
        return self.service_manager.settings

    @property
    def logger(self) -> ContextLoggerAdapter:
        """Shared logger tagged with this request's identifiers."""
        return ContextLoggerAdapter(
            self.service_manager.logger,
            {
                "request_id": self.request_id,
                "client_ip": self.client_ip,
                "user_agent": self.user_agent,
            },
        )

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.perf_counter() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


def get_service_manager(request: Request) -> ServiceManager:
    return request.app.state.manager


def get_request_context(
    request: Request,
    manager: ServiceManager = Depends(get_service_manager),
) -> RequestContext:
    """Build the request context from client information and headers.

    The request id is taken from the logging middleware when it ran, then
    from the X-Request-ID header, and generated otherwise.
    """
    request_id = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
    ctx = RequestContext(
        service_manager=manager,
        user_agent=request.headers.get("user-agent"),
        client_ip=request.client.host if request.client else None,
    )
    if request_id:
        ctx.request_id = request_id
    return ctx


def get_alias_service(ctx: RequestContext = Depends(get_request_context)) -> AliasService:
    return AliasService.from_context(ctx)
