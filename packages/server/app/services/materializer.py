"""
Feed materializer: fan a freshly recorded event out into per-user feed rows.

The audience is computed once, from the intervals active at the event's
creation time, and written in the same transaction as the event. Later
follow/mute changes never rewrite past feed rows.
"""

from __future__ import annotations

import uuid
from typing import Iterable, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.models.card_event import CardEvent
from app.models.feed_item import FeedItem
from app.services.subscriptions import resolve_audience

log = structlog.get_logger()


async def materialize_event(
    session: AsyncSession,
    event: CardEvent,
    board_context_ids: Iterable[Optional[uuid.UUID]],
    *,
    include_actor: Optional[bool] = None,
) -> list[FeedItem]:
    """Insert one FeedItem per audience member of ``event``.

    Re-running for the same event only adds rows for recipients that are
    still missing, so a recipient never gets the same event twice.
    """
    if include_actor is None:
        include_actor = get_settings().feed_include_actor

    audience = await resolve_audience(
        session, event.org_id, event.card_id, board_context_ids, at=event.created_at
    )
    if not include_actor:
        audience.discard(event.actor_id)

    result = await session.execute(
        select(FeedItem.user_id).where(FeedItem.event_id == event.id)
    )
    already = {row[0] for row in result.all()}

    items = [
        FeedItem(
            org_id=event.org_id,
            user_id=user_id,
            event_id=event.id,
            event_time=event.created_at,
            card_id=event.card_id,
            board_id=event.board_id,
        )
        for user_id in sorted(audience - already)
    ]
    session.add_all(items)
    await session.flush()

    log.info(
        "feed.materialized",
        event_id=str(event.id),
        kind=event.kind,
        card_id=str(event.card_id),
        recipients=len(items),
    )
    return items
