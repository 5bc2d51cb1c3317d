"""
Board service layer.

Handles:
- Org-scoped board lookup
- Creation (the creator automatically follows the new board)
- Listing with card counts
- Deletion: every card gets a terminal ``card_deleted`` event before removal
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import AccessDenied, NotFound
from app.models.base import as_utc_naive, utcnow
from app.models.board import Board
from app.models.card import Card
from app.models.comment import Comment
from app.models.follow import BoardFollowInterval, CardFollowInterval
from app.services.card_events import record_cards_deleted
from app.services.intervals import close_open_intervals, open_interval
from corkboard_shared.schemas.boards import BoardCreate, BoardRead

log = structlog.get_logger()


async def get_board_or_404(
    session: AsyncSession, board_id: uuid.UUID, org_id: str
) -> Board:
    board = await session.get(Board, board_id)
    if not board:
        raise NotFound("Board not found")
    if board.org_id != org_id:
        raise AccessDenied("Board belongs to another organization")
    return board


async def create_board(
    session: AsyncSession,
    board_in: BoardCreate,
    org_id: str,
    user_id: str,
    at: Optional[datetime] = None,
) -> Board:
    at = as_utc_naive(at) if at else utcnow()
    board = Board(
        org_id=org_id,
        name=board_in.name,
        visibility=board_in.visibility.value,
        created_by=user_id,
        created_at=at,
        updated_at=at,
    )
    session.add(board)
    await session.flush()

    await open_interval(session, BoardFollowInterval, org_id, user_id, board.id, at=at)
    log.info("board.created", board_id=str(board.id), org_id=org_id)
    return board


async def list_boards(session: AsyncSession, org_id: str) -> list[BoardRead]:
    result = await session.execute(
        select(Board).where(Board.org_id == org_id).order_by(Board.updated_at.desc())
    )
    boards = list(result.scalars().all())

    counts: dict[uuid.UUID, int] = {}
    if boards:
        result = await session.execute(
            select(Card.board_id, func.count(Card.id))
            .where(Card.board_id.in_([b.id for b in boards]))
            .group_by(Card.board_id)
        )
        counts = {row[0]: row[1] for row in result.all()}

    return [
        BoardRead(
            id=b.id,
            org_id=b.org_id,
            name=b.name,
            visibility=b.visibility,
            created_by=b.created_by,
            card_count=counts.get(b.id, 0),
            created_at=b.created_at,
            updated_at=b.updated_at,
        )
        for b in boards
    ]


async def delete_board(
    session: AsyncSession,
    board: Board,
    actor_id: str,
    at: Optional[datetime] = None,
) -> int:
    """Delete a board and its cards. Returns the number of cards removed.

    Follow and mute intervals on the board and its cards are closed, not deleted.
    """
    at = as_utc_naive(at) if at else utcnow()

    result = await session.execute(select(Card).where(Card.board_id == board.id))
    cards = list(result.scalars().all())

    # Events first: followers are resolved while the board context still exists
    await record_cards_deleted(
        session, org_id=board.org_id, actor_id=actor_id, cards=cards, at=at
    )

    card_ids = [c.id for c in cards]
    if card_ids:
        await session.execute(delete(Comment).where(Comment.card_id.in_(card_ids)))
        await session.execute(delete(Card).where(Card.id.in_(card_ids)))

    await close_open_intervals(session, BoardFollowInterval, [board.id], at=at)
    await close_open_intervals(session, CardFollowInterval, card_ids, at=at)

    await session.delete(board)
    await session.flush()

    log.info("board.deleted", board_id=str(board.id), cards=len(cards))
    return len(cards)
