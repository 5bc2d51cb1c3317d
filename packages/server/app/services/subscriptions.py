"""
Subscription resolver.

A user receives a card's activity when they follow the card or follow one of
the card's boards, unless they mute that specific card. A card mute always
wins over a board follow.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import as_utc_naive, utcnow
from app.models.card import Card
from app.models.follow import BoardFollowInterval, CardFollowInterval
from app.services.intervals import active_user_ids
from corkboard_shared.schemas.common import FollowMode


async def resolve_audience(
    session: AsyncSession,
    org_id: str,
    card_id: uuid.UUID,
    board_context_ids: Iterable[Optional[uuid.UUID]],
    at: Optional[datetime] = None,
) -> set[str]:
    """Everyone who should see activity on ``card_id`` at time ``at``.

    (board followers of the context boards) | (card followers) - (card muters)
    """
    at = as_utc_naive(at) if at else utcnow()
    boards = [b for b in board_context_ids if b is not None]

    card_followers = await active_user_ids(
        session, CardFollowInterval, org_id, [card_id], FollowMode.FOLLOW.value, at
    )
    muted = await active_user_ids(
        session, CardFollowInterval, org_id, [card_id], FollowMode.MUTE.value, at
    )
    board_followers = await active_user_ids(session, BoardFollowInterval, org_id, boards, None, at)

    return (card_followers | board_followers) - muted


async def is_subscribed(
    session: AsyncSession,
    org_id: str,
    user_id: str,
    card: Card,
    at: Optional[datetime] = None,
) -> bool:
    """Whether ``user_id`` currently receives activity for ``card``."""
    audience = await resolve_audience(session, org_id, card.id, [card.board_id], at)
    return user_id in audience


async def list_board_followers(
    session: AsyncSession,
    org_id: str,
    board_id: uuid.UUID,
    at: Optional[datetime] = None,
) -> list[str]:
    followers = await active_user_ids(session, BoardFollowInterval, org_id, [board_id], None, at)
    return sorted(followers)


async def list_card_watchers(
    session: AsyncSession,
    org_id: str,
    card: Card,
    at: Optional[datetime] = None,
) -> list[str]:
    """Users who would receive the next event on ``card``."""
    return sorted(await resolve_audience(session, org_id, card.id, [card.board_id], at))
