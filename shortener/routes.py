"""FastAPI route definitions for the URL alias service.

API Endpoint Overview
=====================
::
    GET    /health
        └─ HealthResponse (200)

    POST   /url
        ├─ MappingCreate (request body)
        └─ MappingResponse (201) or 409/422/503

    GET    /:alias
        └─ 307 Redirect or 404/503

    DELETE /:alias
        └─ 204 (also for unknown aliases) or 400/503

Error Mapping
=============
::
    InvalidRequestError    → 400
    AliasConflictError     → 409
    URLAlreadyExistsError  → 409
    AliasNotFoundError     → 404
    StorageError           → 503

Key Behaviours
===============
- Request bodies are validated by Pydantic before the service is called.
- Service errors carry an ErrorKind; one table maps kinds to status codes.
- 307 redirects preserve the HTTP method.
- Every log line carries the request id.
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import RedirectResponse

from shortener.alias_service import AliasService
from shortener.dependencies import RequestContext, get_alias_service, get_request_context
from shortener.enums import ErrorKind, HealthStatus
from shortener.errors import AliasServiceError, StoreError
from shortener.schemas import HealthResponse, MappingCreate, MappingResponse

__all__ = ["router"]

router = APIRouter()

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INVALID_REQUEST: 400,
    ErrorKind.ALIAS_CONFLICT: 409,
    ErrorKind.URL_ALREADY_EXISTS: 409,
    ErrorKind.ALIAS_NOT_FOUND: 404,
    ErrorKind.STORAGE_ERROR: 503,
}


def _http_error(exc: AliasServiceError) -> HTTPException:
    return HTTPException(status_code=_STATUS_BY_KIND[exc.kind], detail=str(exc))


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    db_status = HealthStatus.HEALTHY
    try:
        await ctx.store.ping()
    except StoreError as e:
        ctx.logger.error(f"Database health check failed: {e}")
        db_status = HealthStatus.UNHEALTHY

    return HealthResponse(status=db_status, database=db_status)


@router.post("/url", response_model=MappingResponse, status_code=201, tags=["mappings"])
async def save_url(
    payload: MappingCreate,
    ctx: RequestContext = Depends(get_request_context),
    service: AliasService = Depends(get_alias_service),
) -> MappingResponse:
    ctx.logger.info(
        f"Save requested: {payload.url}",
        extra={"operation": "create_mapping", "alias": payload.alias},
    )
    try:
        alias = await service.create_mapping(payload.url, payload.alias)
    except AliasServiceError as exc:
        ctx.logger.warning(
            f"Save failed: {exc}",
            extra={"operation": "create_mapping", "error": exc.kind.value, "duration_ms": ctx.get_duration()},
        )
        raise _http_error(exc) from exc

    return MappingResponse(alias=alias, short_url=f"{ctx.settings.BASE_URL.rstrip('/')}/{alias}")


@router.get("/{alias}", tags=["redirect"])
async def redirect_to_url(
    alias: str,
    ctx: RequestContext = Depends(get_request_context),
    service: AliasService = Depends(get_alias_service),
) -> RedirectResponse:
    try:
        url = await service.resolve_alias(alias)
    except AliasServiceError as exc:
        ctx.logger.warning(
            f"Redirect failed for {alias}: {exc}",
            extra={"operation": "redirect", "error": exc.kind.value, "duration_ms": ctx.get_duration()},
        )
        raise _http_error(exc) from exc

    ctx.logger.info(f"Redirect: {alias} -> {url}", extra={"operation": "redirect"})
    return RedirectResponse(url=url, status_code=307)


@router.delete("/{alias}", status_code=204, tags=["mappings"])
async def delete_url(
    alias: str,
    ctx: RequestContext = Depends(get_request_context),
    service: AliasService = Depends(get_alias_service),
) -> Response:
    try:
        await service.delete_mapping(alias)
    except AliasServiceError as exc:
        ctx.logger.warning(
            f"Delete failed for {alias}: {exc}",
            extra={"operation": "delete_mapping", "error": exc.kind.value},
        )
        raise _http_error(exc) from exc

    return Response(status_code=204)
