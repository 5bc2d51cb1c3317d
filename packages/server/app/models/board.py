"""Board model (org-scoped)."""

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Board(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "boards"

    org_id: str = Field(nullable=False, index=True)
    name: str = Field(nullable=False)
    visibility: str = Field(default="private", nullable=False)  # public | private
    created_by: str = Field(nullable=False)
