"""
Interval store: open/close follow and mute intervals.

Works on either interval table (``BoardFollowInterval`` or
``CardFollowInterval``); the model's ``target_field`` names the target column.
Board intervals have no mode, so ``mode`` must be ``None`` for them.

Nothing here commits. Callers run inside a request-scoped session, which
makes "close the opposite mode, then open" a single atomic unit.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Iterable, Optional, Union

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import Conflict
from app.models.base import as_utc_naive, utcnow
from app.models.follow import BoardFollowInterval, CardFollowInterval

log = structlog.get_logger()

Interval = Union[BoardFollowInterval, CardFollowInterval]
IntervalModel = Union[type[BoardFollowInterval], type[CardFollowInterval]]


def is_interval_active(interval: Interval, at: datetime) -> bool:
    return interval.started_at <= as_utc_naive(at) and interval.ended_at is None


def _target(model: IntervalModel):
    return getattr(model, model.target_field)


def _scoped(
    model: IntervalModel,
    org_id: str,
    user_id: str,
    target_id: uuid.UUID,
    mode: Optional[str],
):
    stmt = select(model).where(
        model.org_id == org_id,
        model.user_id == user_id,
        _target(model) == target_id,
    )
    if mode is not None:
        stmt = stmt.where(model.mode == mode)
    return stmt


async def find_open_interval(
    session: AsyncSession,
    model: IntervalModel,
    org_id: str,
    user_id: str,
    target_id: uuid.UUID,
    mode: Optional[str] = None,
    *,
    for_update: bool = False,
) -> Optional[Interval]:
    stmt = _scoped(model, org_id, user_id, target_id, mode).where(model.ended_at.is_(None))
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    return result.scalars().first()


async def open_interval(
    session: AsyncSession,
    model: IntervalModel,
    org_id: str,
    user_id: str,
    target_id: uuid.UUID,
    mode: Optional[str] = None,
    at: Optional[datetime] = None,
) -> Interval:
    """Open an interval, or return the one already open (idempotent)."""
    existing = await find_open_interval(
        session, model, org_id, user_id, target_id, mode, for_update=True
    )
    if existing:
        return existing

    values = {
        "org_id": org_id,
        "user_id": user_id,
        model.target_field: target_id,
        "started_at": as_utc_naive(at) if at else utcnow(),
        "ended_at": None,
    }
    if mode is not None:
        values["mode"] = mode
    interval = model(**values)
    session.add(interval)
    try:
        await session.flush()
    except IntegrityError:
        # Another transaction opened the same interval between our read and write
        raise Conflict("Subscription changed concurrently, retry the request")

    log.info(
        "interval.opened",
        table=model.__tablename__,
        user_id=user_id,
        target_id=str(target_id),
        mode=mode or "follow",
    )
    return interval


async def close_interval(
    session: AsyncSession,
    model: IntervalModel,
    org_id: str,
    user_id: str,
    target_id: uuid.UUID,
    mode: Optional[str] = None,
    at: Optional[datetime] = None,
) -> Optional[Interval]:
    """Close the open interval. Returns None when nothing was open."""
    interval = await find_open_interval(
        session, model, org_id, user_id, target_id, mode, for_update=True
    )
    if not interval:
        return None

    ended_at = as_utc_naive(at) if at else utcnow()
    interval.ended_at = max(ended_at, interval.started_at)
    session.add(interval)
    await session.flush()

    log.info(
        "interval.closed",
        table=model.__tablename__,
        user_id=user_id,
        target_id=str(target_id),
        mode=mode or "follow",
    )
    return interval


async def close_open_intervals(
    session: AsyncSession,
    model: IntervalModel,
    target_ids: Iterable[uuid.UUID],
    at: Optional[datetime] = None,
) -> int:
    """Close every open interval on ``target_ids``, for all users and modes."""
    targets = list(dict.fromkeys(target_ids))
    if not targets:
        return 0

    ended_at = as_utc_naive(at) if at else utcnow()
    result = await session.execute(
        select(model)
        .where(_target(model).in_(targets), model.ended_at.is_(None))
        .with_for_update()
    )
    intervals = list(result.scalars().all())
    for interval in intervals:
        interval.ended_at = max(ended_at, interval.started_at)
        session.add(interval)
    await session.flush()

    if intervals:
        log.info("interval.closed_for_targets", table=model.__tablename__, count=len(intervals))
    return len(intervals)


async def list_intervals(
    session: AsyncSession,
    model: IntervalModel,
    org_id: str,
    user_id: str,
    target_id: uuid.UUID,
) -> list[Interval]:
    """Full history for (user, target), oldest first. Includes closed intervals."""
    stmt = _scoped(model, org_id, user_id, target_id, None).order_by(model.started_at)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def active_user_ids(
    session: AsyncSession,
    model: IntervalModel,
    org_id: str,
    target_ids: Iterable[uuid.UUID],
    mode: Optional[str] = None,
    at: Optional[datetime] = None,
) -> set[str]:
    """Users holding an active interval on any of ``target_ids`` at ``at``."""
    targets = list(dict.fromkeys(target_ids))
    if not targets:
        return set()

    at = as_utc_naive(at) if at else utcnow()
    stmt = select(model.user_id).where(
        model.org_id == org_id,
        _target(model).in_(targets),
        model.ended_at.is_(None),
        model.started_at <= at,
    )
    if mode is not None:
        stmt = stmt.where(model.mode == mode)
    result = await session.execute(stmt)
    return {row[0] for row in result.all()}
