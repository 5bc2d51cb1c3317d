"""Card and comment schemas shared by the server and frontend codegen."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field
from pydantic import UUID4

from .common import CardStatus


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------

class CardBase(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""


class CardCreate(CardBase):
    board_id: Optional[UUID4] = None
    status: str = CardStatus.SOMEDAY.value
    assigned_to: Optional[str] = None


class CardUpdate(BaseModel):
    """Partial update. ``board_id`` and ``assigned_to`` accept explicit null."""
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[str] = None
    assigned_to: Optional[str] = None
    board_id: Optional[UUID4] = None


class CardRead(CardBase):
    id: UUID4
    org_id: str
    board_id: Optional[UUID4] = None
    status: str
    author_id: str
    assigned_to: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

class CommentCreate(BaseModel):
    content: str = Field(min_length=1)


class CommentRead(BaseModel):
    id: UUID4
    org_id: str
    card_id: UUID4
    author_id: str
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}
