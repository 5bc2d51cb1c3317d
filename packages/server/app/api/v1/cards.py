"""
Card endpoints: CRUD, comments, event history.

Every change records a card event that reaches the feeds of the card's
audience: card followers plus followers of its board, minus muters.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Identity, require_org_member
from app.core.database import get_session
from app.services.card_events import list_card_events
from app.services.cards import add_comment, create_card, delete_card, get_card_or_404, update_card
from corkboard_shared.schemas.cards import (
    CardCreate,
    CardRead,
    CardUpdate,
    CommentCreate,
    CommentRead,
)
from corkboard_shared.schemas.events import CardEventPage

router = APIRouter()


# ---------------------------------------------------------------------------
# Card CRUD
# ---------------------------------------------------------------------------


@router.post("/", response_model=CardRead, status_code=201)
async def create_card_endpoint(
    subdomain: str,
    body: CardCreate,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    card = await create_card(session, body, auth.org_id, auth.user_id)
    return CardRead.model_validate(card)


@router.get("/{card_id}", response_model=CardRead)
async def get_card_endpoint(
    subdomain: str,
    card_id: uuid.UUID,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    card = await get_card_or_404(session, card_id, auth.org_id)
    return CardRead.model_validate(card)


@router.patch("/{card_id}", response_model=CardRead)
async def update_card_endpoint(
    subdomain: str,
    card_id: uuid.UUID,
    body: CardUpdate,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    """Partial update. Board moves notify followers of both boards."""
    card = await get_card_or_404(session, card_id, auth.org_id)
    card = await update_card(session, card, body, auth.user_id)
    return CardRead.model_validate(card)


@router.delete("/{card_id}")
async def delete_card_endpoint(
    subdomain: str,
    card_id: uuid.UUID,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    card = await get_card_or_404(session, card_id, auth.org_id)
    await delete_card(session, card, auth.user_id)
    return {"ok": True}


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


@router.post("/{card_id}/comments", response_model=CommentRead, status_code=201)
async def add_comment_endpoint(
    subdomain: str,
    card_id: uuid.UUID,
    body: CommentCreate,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    card = await get_card_or_404(session, card_id, auth.org_id)
    comment = await add_comment(session, card, body.content, auth.user_id)
    return CommentRead.model_validate(comment)


# ---------------------------------------------------------------------------
# Event history
# ---------------------------------------------------------------------------


@router.get("/{card_id}/events", response_model=CardEventPage)
async def list_card_events_endpoint(
    subdomain: str,
    card_id: uuid.UUID,
    cursor: Optional[str] = None,
    num_items: Optional[int] = Query(None, ge=1),
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    """Newest-first history for one card. Deleted cards keep their history."""
    return await list_card_events(
        session, auth.org_id, card_id, cursor=cursor, num_items=num_items
    )
