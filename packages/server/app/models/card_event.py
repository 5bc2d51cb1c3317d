"""Card event model (org-scoped, immutable).

Events are appended and never updated or deleted, including after the card
itself is removed; ``card_id`` therefore has no foreign key. ``board_id`` is
the card's board at event time.
"""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import JSONType, UUIDMixin, utcnow


class CardEvent(UUIDMixin, SQLModel, table=True):
    __tablename__ = "card_events"

    org_id: str = Field(nullable=False, index=True)
    card_id: uuid.UUID = Field(nullable=False, index=True)
    board_id: Optional[uuid.UUID] = Field(default=None, index=True)
    actor_id: str = Field(nullable=False)
    kind: str = Field(nullable=False)  # see CardEventKind
    payload: dict = Field(default_factory=dict, sa_type=JSONType, nullable=False)
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        index=True,
        sa_type=sa.DateTime(),
    )
