"""
Tenant directory backed by Redis.

Workspaces are addressed by subdomain. Redis holds the secondary index
``subdomain:{name}`` -> JSON ``{organizationId, organizationName,
organizationSlug, createdAt}`` written when an organization is provisioned.
"""

from __future__ import annotations

import re
import time
from typing import Optional

import redis.asyncio as redis
import structlog
from pydantic import BaseModel, ConfigDict, Field

from app.core.config import get_settings

settings = get_settings()
log = structlog.get_logger()

SUBDOMAIN_KEY_PREFIX = "subdomain:"
_UNSAFE_CHARS = re.compile(r"[^a-z0-9-]")

_redis_pool: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    """Get or create the shared Redis client."""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = redis.from_url(settings.redis_url, decode_responses=True)
    return _redis_pool


async def close_redis() -> None:
    global _redis_pool
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None


class SubdomainData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    organization_id: str = Field(alias="organizationId")
    organization_name: str = Field(default="Unknown", alias="organizationName")
    organization_slug: str = Field(default="", alias="organizationSlug")
    created_at: Optional[int] = Field(default=None, alias="createdAt")  # epoch millis


def sanitize_subdomain(subdomain: str) -> str:
    return _UNSAFE_CHARS.sub("", subdomain.lower())


async def get_subdomain_data(subdomain: str) -> SubdomainData | None:
    """Look up the organization that owns a subdomain. None if unknown."""
    name = sanitize_subdomain(subdomain)
    if not name:
        return None
    client = await get_redis()
    raw = await client.get(f"{SUBDOMAIN_KEY_PREFIX}{name}")
    if not raw:
        return None
    return SubdomainData.model_validate_json(raw)


async def register_subdomain(
    subdomain: str,
    organization_id: str,
    organization_name: str,
) -> SubdomainData:
    """Write the subdomain index entry (used by provisioning and dev seeding)."""
    name = sanitize_subdomain(subdomain)
    data = SubdomainData(
        organization_id=organization_id,
        organization_name=organization_name,
        organization_slug=name,
        created_at=int(time.time() * 1000),
    )
    client = await get_redis()
    await client.set(f"{SUBDOMAIN_KEY_PREFIX}{name}", data.model_dump_json(by_alias=True))
    log.info("tenancy.subdomain_registered", subdomain=name, org_id=organization_id)
    return data
