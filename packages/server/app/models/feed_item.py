"""Materialized activity feed rows: one per (recipient, event)."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin


class FeedItem(UUIDMixin, SQLModel, table=True):
    __tablename__ = "feed_items"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "event_id", name="uq_feed_items_user_event"),
        sa.Index("ix_feed_items_user_org_time", "user_id", "org_id", "event_time"),
    )

    org_id: str = Field(nullable=False)
    user_id: str = Field(nullable=False)
    event_id: uuid.UUID = Field(foreign_key="card_events.id", nullable=False)
    event_time: datetime = Field(nullable=False, sa_type=sa.DateTime())  # copy of the event's created_at
    card_id: uuid.UUID = Field(nullable=False)
    board_id: Optional[uuid.UUID] = None
