"""
Activity feed endpoint.

- GET /feed: the caller's materialized feed, newest first, keyset-paginated
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Identity, require_org_member
from app.core.database import get_session
from app.services.feed import list_feed_for_user
from corkboard_shared.schemas.events import FeedPage

router = APIRouter()


@router.get("", response_model=FeedPage)
async def list_feed_endpoint(
    subdomain: str,
    cursor: Optional[str] = None,
    num_items: Optional[int] = Query(None, ge=1),
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    """
    List the caller's feed for this organization.

    Omit ``cursor`` for the newest page; pass the previous page's
    ``continue_cursor`` to continue until ``is_done`` is true.
    """
    return await list_feed_for_user(
        session, auth.org_id, auth.user_id, cursor=cursor, num_items=num_items
    )
