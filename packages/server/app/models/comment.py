"""Comment model (org-scoped)."""

import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Comment(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "comments"

    org_id: str = Field(nullable=False, index=True)
    card_id: uuid.UUID = Field(foreign_key="cards.id", nullable=False, index=True)
    author_id: str = Field(nullable=False)
    content: str = Field(nullable=False)
