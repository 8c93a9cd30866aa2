"""FastAPI application entry point for the URL alias service.

Application Lifecycle Diagram
=============================
::
    ┌──────────────┐
    │  uvicorn     │
    │  startup     │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ lifespan()   │
    │ ServiceManager│
    │ store.init() │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ Serve HTTP   │
    │ requests     │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ lifespan()   │
    │ shutdown:    │
    │ store.close()│
    └──────────────┘

How to Use
===========
**Run with uvicorn**::
    uvicorn shortener.main:app --host 0.0.0.0 --port 8082

**Or through the console script**::
    shortener

**Make API calls**::
    curl -X POST http://localhost:8082/url \
         -H "Content-Type: application/json" \
         -d '{"url": "https://example.com", "alias": "example"}'
    curl -i http://localhost:8082/example
    curl -X DELETE http://localhost:8082/example

Key Behaviours
===============
- The mapping table and its unique alias index are created on startup.
- A manager already placed on app.state (tests) is reused and not rebuilt.
- Prometheus metrics are exposed at /metrics.
- Every response carries an X-Request-ID header.
"""

__all__ = ["app", "run"]

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from shortener.config import get_settings
from shortener.dependencies import ServiceManager
from shortener.middleware import RequestLoggingMiddleware
from shortener.routes import router

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    manager = getattr(app.state, "manager", None)
    if manager is None:
        manager = ServiceManager(settings)
        app.state.manager = manager
    await manager.initialize()
    yield
    # Shutdown
    await manager.cleanup()


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="URL shortener: create, resolve and delete aliases",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)

Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_respect_env_var=False,
).instrument(app).expose(app)

app.include_router(router)


def run() -> None:
    uvicorn.run(
        "shortener.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=(settings.LOG_LEVEL or "info").lower(),
        timeout_keep_alive=settings.KEEP_ALIVE_TIMEOUT,
    )


if __name__ == "__main__":
    run()
