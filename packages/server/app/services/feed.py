"""
Feed reader: a user's materialized activity feed, newest first.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy import and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.pagination import clamp_page_size, decode_cursor, encode_cursor
from app.models.card_event import CardEvent
from app.models.feed_item import FeedItem
from app.services.card_events import to_event_read
from corkboard_shared.schemas.events import FeedEntry, FeedItemRead, FeedPage

log = structlog.get_logger()


async def list_feed_for_user(
    session: AsyncSession,
    org_id: Optional[str],
    user_id: Optional[str],
    cursor: Optional[str] = None,
    num_items: Optional[int] = None,
) -> FeedPage:
    """One page of ``user_id``'s feed in ``org_id``.

    Ordered by the stamped event time (ties broken by feed item id). An event
    that is gone or belongs to another organization comes back as
    ``event=None`` rather than failing the page.
    """
    if not user_id or not org_id:
        return FeedPage(page=[], is_done=True, continue_cursor="")

    settings = get_settings()
    limit = clamp_page_size(num_items, settings.feed_page_size, settings.feed_max_page_size)

    stmt = select(FeedItem).where(FeedItem.user_id == user_id, FeedItem.org_id == org_id)
    if cursor:
        ts, last_id = decode_cursor(cursor)
        stmt = stmt.where(
            or_(
                FeedItem.event_time < ts,
                and_(FeedItem.event_time == ts, FeedItem.id < last_id),
            )
        )
    stmt = stmt.order_by(FeedItem.event_time.desc(), FeedItem.id.desc()).limit(limit + 1)

    result = await session.execute(stmt)
    items = list(result.scalars().all())
    is_done = len(items) <= limit
    items = items[:limit]

    events: dict = {}
    if items:
        result = await session.execute(
            select(CardEvent).where(CardEvent.id.in_(list({i.event_id for i in items})))
        )
        events = {e.id: e for e in result.scalars().all()}

    page = []
    for item in items:
        event = events.get(item.event_id)
        if event is not None and event.org_id != org_id:
            log.warning(
                "feed.cross_tenant_event",
                feed_item_id=str(item.id),
                event_id=str(item.event_id),
            )
            event = None
        page.append(
            FeedEntry(
                feed_item=FeedItemRead.model_validate(item),
                event=to_event_read(event) if event is not None else None,
            )
        )

    return FeedPage(
        page=page,
        is_done=is_done,
        continue_cursor=encode_cursor(items[-1].event_time, items[-1].id) if items else "",
    )
