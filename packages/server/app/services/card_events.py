"""
Card event recorder.

Appends immutable card events and fans each one out into feeds within the
caller's transaction. Payloads are checked against the closed set of fields
allowed for the event kind.

Handles:
- Single events with an optional list of extra board contexts (board moves)
- Batch ``card_deleted`` events for board deletion
- Per-card event history, newest first
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional, Sequence

import structlog
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.errors import ValidationError
from app.core.pagination import clamp_page_size, decode_cursor, encode_cursor
from app.models.base import as_utc_naive, utcnow
from app.models.card import Card
from app.models.card_event import CardEvent
from app.services.materializer import materialize_event
from corkboard_shared.schemas.common import CardEventKind
from corkboard_shared.schemas.events import CardEventPage, CardEventRead, parse_payload

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def to_event_read(event: CardEvent) -> CardEventRead:
    return CardEventRead(
        id=event.id,
        org_id=event.org_id,
        card_id=event.card_id,
        board_id=event.board_id,
        actor_id=event.actor_id,
        kind=event.kind,
        payload=parse_payload(event.kind, event.payload),
        created_at=event.created_at,
    )


def _describe(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p)
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", ""))
    return "; ".join(parts)


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------


async def record_card_event(
    session: AsyncSession,
    *,
    org_id: str,
    actor_id: str,
    card_id: uuid.UUID,
    board_id: Optional[uuid.UUID],
    kind: CardEventKind | str,
    payload: Optional[dict] = None,
    board_context_ids: Optional[Sequence[Optional[uuid.UUID]]] = None,
    at: Optional[datetime] = None,
    include_actor: Optional[bool] = None,
) -> CardEvent:
    """Append one event and materialize it into feeds.

    ``board_id`` is the card's board at event time. ``board_context_ids``
    lists the boards whose followers are notified; it defaults to
    ``[board_id]`` (or nothing for an unassigned card).
    """
    try:
        parsed = parse_payload(kind, payload)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid payload for event kind '{getattr(kind, 'value', kind)}': {_describe(exc)}")

    if board_context_ids is None:
        board_context_ids = [board_id] if board_id else []

    event = CardEvent(
        org_id=org_id,
        card_id=card_id,
        board_id=board_id,
        actor_id=actor_id,
        kind=parsed.kind,
        payload=parsed.model_dump(mode="json", exclude={"kind"}),
        created_at=as_utc_naive(at) if at else utcnow(),
    )
    session.add(event)
    await session.flush()

    log.info(
        "card_event.recorded",
        event_id=str(event.id),
        kind=event.kind,
        card_id=str(card_id),
        actor_id=actor_id,
    )

    await materialize_event(session, event, board_context_ids, include_actor=include_actor)
    return event


async def record_cards_deleted(
    session: AsyncSession,
    *,
    org_id: str,
    actor_id: str,
    cards: Sequence[Card],
    at: Optional[datetime] = None,
) -> list[CardEvent]:
    """One terminal ``card_deleted`` event per card, all stamped with the same time."""
    at = as_utc_naive(at) if at else utcnow()
    events = []
    for card in cards:
        events.append(
            await record_card_event(
                session,
                org_id=org_id,
                actor_id=actor_id,
                card_id=card.id,
                board_id=card.board_id,
                kind=CardEventKind.CARD_DELETED,
                payload={"deleted_title": card.title},
                at=at,
            )
        )
    return events


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


async def list_card_events(
    session: AsyncSession,
    org_id: str,
    card_id: uuid.UUID,
    cursor: Optional[str] = None,
    num_items: Optional[int] = None,
) -> CardEventPage:
    """Events for one card, newest first. Still readable after the card is deleted."""
    settings = get_settings()
    limit = clamp_page_size(num_items, settings.feed_page_size, settings.feed_max_page_size)

    stmt = select(CardEvent).where(CardEvent.org_id == org_id, CardEvent.card_id == card_id)
    if cursor:
        ts, last_id = decode_cursor(cursor)
        stmt = stmt.where(
            or_(
                CardEvent.created_at < ts,
                and_(CardEvent.created_at == ts, CardEvent.id < last_id),
            )
        )
    stmt = stmt.order_by(CardEvent.created_at.desc(), CardEvent.id.desc()).limit(limit + 1)

    result = await session.execute(stmt)
    rows = list(result.scalars().all())
    is_done = len(rows) <= limit
    rows = rows[:limit]

    return CardEventPage(
        page=[to_event_read(e) for e in rows],
        is_done=is_done,
        continue_cursor=encode_cursor(rows[-1].created_at, rows[-1].id) if rows else "",
    )
