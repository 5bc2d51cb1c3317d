"""
Follow / mute endpoints.

- POST/DELETE /boards/{board_id}/follow: follow or unfollow a board
- GET /boards/{board_id}/follow: caller's board follow state
- GET /boards/{board_id}/followers: users currently following the board
- POST/DELETE /cards/{card_id}/follow: follow or unfollow a card
- POST/DELETE /cards/{card_id}/mute: mute or unmute a card
- GET /cards/{card_id}/follows: caller's follow/mute toggles for a card
- GET /cards/{card_id}/watchers: users who receive the card's activity
- GET .../follows/history: the caller's interval history for a target
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Identity, require_org_member
from app.core.database import get_session
from app.services import follows as follow_service
from app.services.boards import get_board_or_404
from app.services.cards import get_card_or_404
from app.services.subscriptions import list_board_followers, list_card_watchers
from corkboard_shared.schemas.follows import (
    BoardFollowState,
    CardFollowState,
    IntervalRead,
    UserIdList,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------


@router.post("/boards/{board_id}/follow")
async def follow_board_endpoint(
    subdomain: str,
    board_id: uuid.UUID,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    """Follow a board: receive feed items for activity on its cards."""
    await follow_service.follow_board(session, auth.org_id, auth.user_id, board_id)
    return {"ok": True}


@router.delete("/boards/{board_id}/follow")
async def unfollow_board_endpoint(
    subdomain: str,
    board_id: uuid.UUID,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    await follow_service.unfollow_board(session, auth.org_id, auth.user_id, board_id)
    return {"ok": True}


@router.get("/boards/{board_id}/follow", response_model=BoardFollowState)
async def get_board_follow_endpoint(
    subdomain: str,
    board_id: uuid.UUID,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    return await follow_service.is_following_board(session, auth.org_id, auth.user_id, board_id)


@router.get("/boards/{board_id}/followers", response_model=UserIdList)
async def list_board_followers_endpoint(
    subdomain: str,
    board_id: uuid.UUID,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    board = await get_board_or_404(session, board_id, auth.org_id)
    return UserIdList(user_ids=await list_board_followers(session, auth.org_id, board.id))


@router.get("/boards/{board_id}/follows/history", response_model=List[IntervalRead])
async def board_follow_history_endpoint(
    subdomain: str,
    board_id: uuid.UUID,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    return await follow_service.board_follow_history(session, auth.org_id, auth.user_id, board_id)


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------


@router.post("/cards/{card_id}/follow")
async def follow_card_endpoint(
    subdomain: str,
    card_id: uuid.UUID,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    """Follow a single card. Ends an active mute on it."""
    await follow_service.follow_card(session, auth.org_id, auth.user_id, card_id)
    return {"ok": True}


@router.delete("/cards/{card_id}/follow")
async def unfollow_card_endpoint(
    subdomain: str,
    card_id: uuid.UUID,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    await follow_service.unfollow_card(session, auth.org_id, auth.user_id, card_id)
    return {"ok": True}


@router.post("/cards/{card_id}/mute")
async def mute_card_endpoint(
    subdomain: str,
    card_id: uuid.UUID,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    """Mute a card. Overrides a board follow and ends an active card follow."""
    await follow_service.mute_card(session, auth.org_id, auth.user_id, card_id)
    return {"ok": True}


@router.delete("/cards/{card_id}/mute")
async def unmute_card_endpoint(
    subdomain: str,
    card_id: uuid.UUID,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    await follow_service.unmute_card(session, auth.org_id, auth.user_id, card_id)
    return {"ok": True}


@router.get("/cards/{card_id}/follows", response_model=CardFollowState)
async def get_card_follows_endpoint(
    subdomain: str,
    card_id: uuid.UUID,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    return await follow_service.get_my_follows_for_card(
        session, auth.org_id, auth.user_id, card_id
    )


@router.get("/cards/{card_id}/watchers", response_model=UserIdList)
async def list_card_watchers_endpoint(
    subdomain: str,
    card_id: uuid.UUID,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    card = await get_card_or_404(session, card_id, auth.org_id)
    return UserIdList(user_ids=await list_card_watchers(session, auth.org_id, card))


@router.get("/cards/{card_id}/follows/history", response_model=List[IntervalRead])
async def card_follow_history_endpoint(
    subdomain: str,
    card_id: uuid.UUID,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    return await follow_service.card_follow_history(session, auth.org_id, auth.user_id, card_id)
