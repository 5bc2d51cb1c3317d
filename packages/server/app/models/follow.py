"""Follow / mute intervals (org-scoped, append-only).

An interval is open while ``ended_at`` is NULL. Toggling off closes the open
interval; rows are never deleted so the history stays queryable. Board and
card ids carry no foreign key: the history outlives the target.
"""

from datetime import datetime
from typing import ClassVar, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow

_OPEN = sa.text("ended_at IS NULL")


class BoardFollowInterval(UUIDMixin, SQLModel, table=True):
    """Board follows have a single mode and no ``mode`` column."""

    __tablename__ = "board_follow_intervals"
    __table_args__ = (
        sa.Index(
            "uq_board_follow_intervals_open",
            "user_id",
            "board_id",
            unique=True,
            postgresql_where=_OPEN,
            sqlite_where=_OPEN,
        ),
        sa.Index("ix_board_follow_intervals_board_open", "board_id", "ended_at"),
    )

    target_field: ClassVar[str] = "board_id"

    org_id: str = Field(nullable=False, index=True)
    user_id: str = Field(nullable=False)
    board_id: uuid.UUID = Field(nullable=False)
    started_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=sa.DateTime())
    ended_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())


class CardFollowInterval(UUIDMixin, SQLModel, table=True):
    """At most one open interval per (user, card), whatever its mode."""

    __tablename__ = "card_follow_intervals"
    __table_args__ = (
        sa.Index(
            "uq_card_follow_intervals_open",
            "user_id",
            "card_id",
            unique=True,
            postgresql_where=_OPEN,
            sqlite_where=_OPEN,
        ),
        sa.Index("ix_card_follow_intervals_card_open", "card_id", "ended_at"),
        sa.CheckConstraint("mode IN ('follow', 'mute')", name="ck_card_follow_intervals_mode"),
    )

    target_field: ClassVar[str] = "card_id"

    org_id: str = Field(nullable=False, index=True)
    user_id: str = Field(nullable=False)
    card_id: uuid.UUID = Field(nullable=False)
    mode: str = Field(nullable=False)  # follow | mute
    started_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=sa.DateTime())
    ended_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())
