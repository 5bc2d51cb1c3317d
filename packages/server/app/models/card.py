"""Card model (org-scoped). A card may sit outside any board."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Card(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "cards"

    org_id: str = Field(nullable=False, index=True)
    board_id: Optional[uuid.UUID] = Field(default=None, foreign_key="boards.id", index=True)
    title: str = Field(nullable=False)
    description: str = Field(default="", nullable=False)
    status: str = Field(default="someday", nullable=False)  # someday | next_up | done | custom column id
    author_id: str = Field(nullable=False)
    assigned_to: Optional[str] = None
