"""Card event and activity feed schemas.

Each event kind carries exactly the payload fields relevant to it. The
payload models form a discriminated union on ``kind`` and reject unknown
fields, so a title change can never smuggle in a status.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .common import CardEventKind


# ---------------------------------------------------------------------------
# Payloads (one per event kind)
# ---------------------------------------------------------------------------

class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid")


class CardCreatedPayload(_Payload):
    kind: Literal["card_created"] = "card_created"
    title: str


class CardDeletedPayload(_Payload):
    """Keeps the last known title so the feed can render it after deletion."""
    kind: Literal["card_deleted"] = "card_deleted"
    deleted_title: str


class CardTitleChangedPayload(_Payload):
    kind: Literal["card_title_changed"] = "card_title_changed"
    title: str


class CardStatusChangedPayload(_Payload):
    kind: Literal["card_status_changed"] = "card_status_changed"
    to_status: str


class CardAssigneeChangedPayload(_Payload):
    kind: Literal["card_assignee_changed"] = "card_assignee_changed"
    to_assignee: Optional[str]


class CardBoardChangedPayload(_Payload):
    kind: Literal["card_board_changed"] = "card_board_changed"
    from_board_id: Optional[UUID]
    to_board_id: Optional[UUID]


class CommentCreatedPayload(_Payload):
    kind: Literal["comment_created"] = "comment_created"
    comment_id: UUID


CardEventPayload = Annotated[
    Union[
        CardCreatedPayload,
        CardDeletedPayload,
        CardTitleChangedPayload,
        CardStatusChangedPayload,
        CardAssigneeChangedPayload,
        CardBoardChangedPayload,
        CommentCreatedPayload,
    ],
    Field(discriminator="kind"),
]

card_event_payload_adapter: TypeAdapter[CardEventPayload] = TypeAdapter(CardEventPayload)


def parse_payload(kind: CardEventKind | str, payload: dict | None) -> CardEventPayload:
    """Validate a raw payload dict against the model for ``kind``.

    Raises pydantic.ValidationError on unknown kinds, missing fields or
    fields that do not belong to the kind.
    """
    data = dict(payload or {})
    data["kind"] = getattr(kind, "value", kind)
    return card_event_payload_adapter.validate_python(data)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

class CardEventRead(BaseModel):
    id: UUID
    org_id: str
    card_id: UUID
    board_id: Optional[UUID] = None
    actor_id: str
    kind: CardEventKind
    payload: CardEventPayload
    created_at: datetime


class CardEventPage(BaseModel):
    page: List[CardEventRead] = Field(default_factory=list)
    is_done: bool = True
    continue_cursor: str = ""


class FeedItemRead(BaseModel):
    id: UUID
    org_id: str
    user_id: str
    event_id: UUID
    event_time: datetime
    card_id: UUID
    board_id: Optional[UUID] = None

    model_config = {"from_attributes": True}


class FeedEntry(BaseModel):
    feed_item: FeedItemRead
    event: Optional[CardEventRead] = None


class FeedPage(BaseModel):
    page: List[FeedEntry] = Field(default_factory=list)
    is_done: bool = True
    continue_cursor: str = ""
