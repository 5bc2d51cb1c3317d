"""
Card service layer: card CRUD and comments.

Every user-visible change records a card event, which fans out into the
activity feeds of the card's audience in the same transaction.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AccessDenied, NotFound
from app.models.base import as_utc_naive, utcnow
from app.models.card import Card
from app.models.comment import Comment
from app.models.follow import CardFollowInterval
from app.services.boards import get_board_or_404
from app.services.card_events import record_card_event
from app.services.intervals import close_open_intervals
from corkboard_shared.schemas.cards import CardCreate, CardUpdate
from corkboard_shared.schemas.common import CardEventKind

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def get_card_or_404(
    session: AsyncSession, card_id: uuid.UUID, org_id: str
) -> Card:
    card = await session.get(Card, card_id)
    if not card:
        raise NotFound("Card not found")
    if card.org_id != org_id:
        raise AccessDenied("Card belongs to another organization")
    return card


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


async def create_card(
    session: AsyncSession,
    card_in: CardCreate,
    org_id: str,
    actor_id: str,
    at: Optional[datetime] = None,
) -> Card:
    if card_in.board_id is not None:
        await get_board_or_404(session, card_in.board_id, org_id)

    at = as_utc_naive(at) if at else utcnow()
    card = Card(
        org_id=org_id,
        board_id=card_in.board_id,
        title=card_in.title,
        description=card_in.description,
        status=card_in.status,
        author_id=actor_id,
        assigned_to=card_in.assigned_to,
        created_at=at,
        updated_at=at,
    )
    session.add(card)
    await session.flush()

    await record_card_event(
        session,
        org_id=org_id,
        actor_id=actor_id,
        card_id=card.id,
        board_id=card.board_id,
        kind=CardEventKind.CARD_CREATED,
        payload={"title": card.title},
        at=at,
    )
    return card


async def update_card(
    session: AsyncSession,
    card: Card,
    card_in: CardUpdate,
    actor_id: str,
    at: Optional[datetime] = None,
) -> Card:
    """Apply a partial update and record one event per changed tracked field."""
    data = card_in.model_dump(exclude_unset=True)
    at = as_utc_naive(at) if at else utcnow()
    pending: list[tuple[CardEventKind, dict, Optional[list]]] = []

    # Board move: followers of both the old and the new board hear about it
    if "board_id" in data and data["board_id"] != card.board_id:
        to_board = data["board_id"]
        if to_board is not None:
            await get_board_or_404(session, to_board, card.org_id)
        from_board = card.board_id
        card.board_id = to_board
        pending.append((
            CardEventKind.CARD_BOARD_CHANGED,
            {"from_board_id": from_board, "to_board_id": to_board},
            [from_board, to_board],
        ))

    if data.get("title") is not None and data["title"] != card.title:
        card.title = data["title"]
        pending.append((CardEventKind.CARD_TITLE_CHANGED, {"title": card.title}, None))

    if data.get("description") is not None:
        card.description = data["description"]

    if data.get("status") is not None and data["status"] != card.status:
        card.status = data["status"]
        pending.append((CardEventKind.CARD_STATUS_CHANGED, {"to_status": card.status}, None))

    if "assigned_to" in data and data["assigned_to"] != card.assigned_to:
        card.assigned_to = data["assigned_to"]
        pending.append((
            CardEventKind.CARD_ASSIGNEE_CHANGED,
            {"to_assignee": card.assigned_to},
            None,
        ))

    card.updated_at = at
    session.add(card)
    await session.flush()

    for kind, payload, context in pending:
        await record_card_event(
            session,
            org_id=card.org_id,
            actor_id=actor_id,
            card_id=card.id,
            board_id=card.board_id,
            kind=kind,
            payload=payload,
            board_context_ids=context,
            at=at,
        )
    return card


async def delete_card(
    session: AsyncSession,
    card: Card,
    actor_id: str,
    at: Optional[datetime] = None,
) -> None:
    """Record a terminal ``card_deleted`` event, then remove the card and its comments.

    Follow and mute intervals on the card are closed so it drops out of every
    watcher's state.
    """
    at = as_utc_naive(at) if at else utcnow()
    await record_card_event(
        session,
        org_id=card.org_id,
        actor_id=actor_id,
        card_id=card.id,
        board_id=card.board_id,
        kind=CardEventKind.CARD_DELETED,
        payload={"deleted_title": card.title},
        at=at,
    )
    await session.execute(delete(Comment).where(Comment.card_id == card.id))
    await close_open_intervals(session, CardFollowInterval, [card.id], at=at)
    await session.delete(card)
    await session.flush()
    log.info("card.deleted", card_id=str(card.id))


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


async def add_comment(
    session: AsyncSession,
    card: Card,
    content: str,
    actor_id: str,
    at: Optional[datetime] = None,
) -> Comment:
    at = as_utc_naive(at) if at else utcnow()
    comment = Comment(
        org_id=card.org_id,
        card_id=card.id,
        author_id=actor_id,
        content=content,
        created_at=at,
        updated_at=at,
    )
    session.add(comment)
    card.updated_at = at
    session.add(card)
    await session.flush()

    await record_card_event(
        session,
        org_id=card.org_id,
        actor_id=actor_id,
        card_id=card.id,
        board_id=card.board_id,
        kind=CardEventKind.COMMENT_CREATED,
        payload={"comment_id": comment.id},
        at=at,
    )
    return comment
