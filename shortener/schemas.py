"""Pydantic schemas for request/response validation in the URL alias service.

Schema Hierarchy
================
::
    MappingCreate (Input)
    ├─ url: str (validated absolute URL)
    └─ alias: str | None (optional; "" treated as absent)

    MappingResponse (Output)
    ├─ status: str ("OK")
    ├─ alias: str
    └─ short_url: str (computed)

    HealthResponse (Output)
    ├─ status: HealthStatus
    └─ database: HealthStatus

How to Use
===========
**Input validation**::
    @router.post("/url")
    async def save_url(payload: MappingCreate):
        # payload is already validated
        return await service.create_mapping(payload.url, payload.alias)

Key Behaviours
===============
- URL validation uses the validators library for RFC compliance.
- Aliases are 1-100 characters of letters, digits, '-' and '_'.
- Aliases that shadow fixed routes (health, metrics, docs...) are rejected.
- Invalid input is answered with 422 by FastAPI before the service is called.
"""

import re

import validators
from pydantic import BaseModel, field_validator

from shortener.alias import RESERVED_ALIASES, is_reserved
from shortener.enums import HealthStatus
from shortener.models import ALIAS_MAX_LENGTH

__all__ = ["MappingCreate", "MappingResponse", "HealthResponse", "RESERVED_ALIASES"]

ALIAS_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


class MappingCreate(BaseModel):
    url: str
    alias: str | None = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not validators.url(v):
            raise ValueError("Invalid URL provided")
        return v

    @field_validator("alias")
    @classmethod
    def validate_alias(cls, v: str | None) -> str | None:
        if not v:
            return None
        if len(v) > ALIAS_MAX_LENGTH:
            raise ValueError(f"Alias must be at most {ALIAS_MAX_LENGTH} characters")
        if not ALIAS_PATTERN.fullmatch(v):
            raise ValueError("Alias may only contain letters, digits, '-' and '_'")
        if is_reserved(v):
            raise ValueError(f"Alias '{v}' is reserved")
        return v


class MappingResponse(BaseModel):
    status: str = "OK"
    alias: str
    short_url: str


class HealthResponse(BaseModel):
    status: HealthStatus
    database: HealthStatus
