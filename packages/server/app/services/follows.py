"""
Follow / mute operations for boards and cards.

Every operation takes the caller's ``(org_id, user_id)`` explicitly. Toggles
are idempotent: following twice leaves a single open interval, unfollowing
something not followed is a no-op. Following a card ends an open mute on it
and muting ends an open follow, both within the caller's transaction.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AccessDenied, Unauthorized
from app.models.base import as_utc_naive, utcnow
from app.models.board import Board
from app.models.card import Card
from app.models.follow import BoardFollowInterval, CardFollowInterval
from app.services.boards import get_board_or_404
from app.services.cards import get_card_or_404
from app.services.intervals import (
    close_interval,
    find_open_interval,
    is_interval_active,
    list_intervals,
    open_interval,
)
from corkboard_shared.schemas.common import FollowMode
from corkboard_shared.schemas.follows import BoardFollowState, CardFollowState, IntervalRead

log = structlog.get_logger()

FOLLOW = FollowMode.FOLLOW.value
MUTE = FollowMode.MUTE.value


def _require_identity(org_id: Optional[str], user_id: Optional[str]) -> None:
    if not user_id or not org_id:
        raise Unauthorized("Must be signed in with an active organization")


async def _ensure_not_foreign(session: AsyncSession, model, target_id: uuid.UUID, org_id: str) -> None:
    """Reject a target owned by another org. A deleted target passes."""
    target = await session.get(model, target_id)
    if target is not None and target.org_id != org_id:
        raise AccessDenied(f"{model.__name__} belongs to another organization")


# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------


async def follow_board(
    session: AsyncSession,
    org_id: str,
    user_id: str,
    board_id: uuid.UUID,
    at: Optional[datetime] = None,
) -> None:
    _require_identity(org_id, user_id)
    await get_board_or_404(session, board_id, org_id)
    await open_interval(session, BoardFollowInterval, org_id, user_id, board_id, at=at)


async def unfollow_board(
    session: AsyncSession,
    org_id: str,
    user_id: str,
    board_id: uuid.UUID,
    at: Optional[datetime] = None,
) -> None:
    # Unfollowing a deleted board must still close the interval
    _require_identity(org_id, user_id)
    await _ensure_not_foreign(session, Board, board_id, org_id)
    await close_interval(session, BoardFollowInterval, org_id, user_id, board_id, at=at)


async def is_following_board(
    session: AsyncSession,
    org_id: Optional[str],
    user_id: Optional[str],
    board_id: uuid.UUID,
    at: Optional[datetime] = None,
) -> BoardFollowState:
    if not user_id or not org_id:
        return BoardFollowState()
    interval = await find_open_interval(session, BoardFollowInterval, org_id, user_id, board_id)
    at = as_utc_naive(at) if at else utcnow()
    return BoardFollowState(
        is_following_board=interval is not None and is_interval_active(interval, at)
    )


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------


async def follow_card(
    session: AsyncSession,
    org_id: str,
    user_id: str,
    card_id: uuid.UUID,
    at: Optional[datetime] = None,
) -> None:
    """Follow a card, even without following its board. Ends an open mute."""
    _require_identity(org_id, user_id)
    await get_card_or_404(session, card_id, org_id)
    await close_interval(session, CardFollowInterval, org_id, user_id, card_id, MUTE, at=at)
    await open_interval(session, CardFollowInterval, org_id, user_id, card_id, FOLLOW, at=at)


async def unfollow_card(
    session: AsyncSession,
    org_id: str,
    user_id: str,
    card_id: uuid.UUID,
    at: Optional[datetime] = None,
) -> None:
    _require_identity(org_id, user_id)
    await _ensure_not_foreign(session, Card, card_id, org_id)
    await close_interval(session, CardFollowInterval, org_id, user_id, card_id, FOLLOW, at=at)


async def mute_card(
    session: AsyncSession,
    org_id: str,
    user_id: str,
    card_id: uuid.UUID,
    at: Optional[datetime] = None,
) -> None:
    """Stop a card's activity reaching the feed, even while following its board."""
    _require_identity(org_id, user_id)
    await get_card_or_404(session, card_id, org_id)
    await close_interval(session, CardFollowInterval, org_id, user_id, card_id, FOLLOW, at=at)
    await open_interval(session, CardFollowInterval, org_id, user_id, card_id, MUTE, at=at)


async def unmute_card(
    session: AsyncSession,
    org_id: str,
    user_id: str,
    card_id: uuid.UUID,
    at: Optional[datetime] = None,
) -> None:
    _require_identity(org_id, user_id)
    await _ensure_not_foreign(session, Card, card_id, org_id)
    await close_interval(session, CardFollowInterval, org_id, user_id, card_id, MUTE, at=at)


async def get_my_follows_for_card(
    session: AsyncSession,
    org_id: Optional[str],
    user_id: Optional[str],
    card_id: uuid.UUID,
    at: Optional[datetime] = None,
) -> CardFollowState:
    """Current follow/mute toggles. Anonymous callers get both False."""
    if not user_id or not org_id:
        return CardFollowState()

    at = as_utc_naive(at) if at else utcnow()
    intervals = await list_intervals(session, CardFollowInterval, org_id, user_id, card_id)
    return CardFollowState(
        is_following_card=any(i.mode == FOLLOW and is_interval_active(i, at) for i in intervals),
        is_muting_card=any(i.mode == MUTE and is_interval_active(i, at) for i in intervals),
    )


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


def _to_interval_read(interval, target_id: uuid.UUID) -> IntervalRead:
    return IntervalRead(
        id=interval.id,
        org_id=interval.org_id,
        user_id=interval.user_id,
        target_id=target_id,
        mode=getattr(interval, "mode", FOLLOW),
        started_at=interval.started_at,
        ended_at=interval.ended_at,
    )


async def board_follow_history(
    session: AsyncSession, org_id: str, user_id: str, board_id: uuid.UUID
) -> list[IntervalRead]:
    _require_identity(org_id, user_id)
    intervals = await list_intervals(session, BoardFollowInterval, org_id, user_id, board_id)
    return [_to_interval_read(i, board_id) for i in intervals]


async def card_follow_history(
    session: AsyncSession, org_id: str, user_id: str, card_id: uuid.UUID
) -> list[IntervalRead]:
    _require_identity(org_id, user_id)
    intervals = await list_intervals(session, CardFollowInterval, org_id, user_id, card_id)
    return [_to_interval_read(i, card_id) for i in intervals]
