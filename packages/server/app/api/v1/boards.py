"""
Board endpoints.

- POST /: create a board (the creator follows it)
- GET /: list the organization's boards with card counts
- DELETE /{board_id}: delete a board; each card gets a ``card_deleted`` event
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Identity, require_org_member
from app.core.database import get_session
from app.services.boards import create_board, delete_board, get_board_or_404, list_boards
from corkboard_shared.schemas.boards import BoardCreate, BoardDeleted, BoardRead

router = APIRouter()


@router.get("/", response_model=List[BoardRead])
async def list_boards_endpoint(
    subdomain: str,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    return await list_boards(session, auth.org_id)


@router.post("/", response_model=BoardRead, status_code=201)
async def create_board_endpoint(
    subdomain: str,
    body: BoardCreate,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    board = await create_board(session, body, auth.org_id, auth.user_id)
    return BoardRead.model_validate(board)


@router.delete("/{board_id}", response_model=BoardDeleted)
async def delete_board_endpoint(
    subdomain: str,
    board_id: uuid.UUID,
    auth: Identity = Depends(require_org_member),
    session: AsyncSession = Depends(get_session),
):
    """Delete a board and all of its cards."""
    board = await get_board_or_404(session, board_id, auth.org_id)
    name = board.name
    count = await delete_board(session, board, auth.user_id)
    return BoardDeleted(id=board_id, deleted_card_count=count, name=name)
