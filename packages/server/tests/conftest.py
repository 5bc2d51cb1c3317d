"""
Shared fixtures: in-memory SQLite database, fake tenant directory, identities.
"""

from __future__ import annotations

import os

os.environ.setdefault("CB_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("CB_LOG_FORMAT", "text")

import uuid
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import app.models  # noqa: F401  populate metadata
from app.core.auth import create_jwt
from app.core.database import get_session
from app.core.tenancy import SUBDOMAIN_KEY_PREFIX, SubdomainData

ORG_A = "org_acme"
ORG_B = "org_globex"
SUBDOMAIN_A = "acme"
SUBDOMAIN_B = "globex"

T0 = datetime(2026, 1, 1, 12, 0, 0)


def at(seconds: int) -> datetime:
    """A fixed timestamp ``seconds`` after T0."""
    return T0 + timedelta(seconds=seconds)


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the tenant directory."""

    def __init__(self):
        self.data: dict[str, str] = {}

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value):
        self.data[key] = value
        return True

    async def ping(self):
        return True


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def fake_redis():
    redis = FakeRedis()
    for subdomain, org_id in ((SUBDOMAIN_A, ORG_A), (SUBDOMAIN_B, ORG_B)):
        data = SubdomainData(
            organization_id=org_id,
            organization_name=subdomain.title(),
            organization_slug=subdomain,
            created_at=1767268800000,
        )
        redis.data[f"{SUBDOMAIN_KEY_PREFIX}{subdomain}"] = data.model_dump_json(by_alias=True)
    with patch("app.core.tenancy.get_redis", AsyncMock(return_value=redis)):
        yield redis


@pytest.fixture
async def client(session_factory, fake_redis):
    """HTTP client against the real app, one committed transaction per request."""
    from app.main import app

    async def _session_override():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = _session_override
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth_headers(user_id: str, org_id: str = ORG_A) -> dict[str, str]:
    token, _ = create_jwt(user_id, org_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice() -> str:
    return f"user_alice_{uuid.uuid4().hex[:6]}"


@pytest.fixture
def bob() -> str:
    return f"user_bob_{uuid.uuid4().hex[:6]}"


@pytest.fixture
def carol() -> str:
    return f"user_carol_{uuid.uuid4().hex[:6]}"


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

async def make_board(session, owner: str, org_id: str = ORG_A, name: str = "Roadmap", when=None):
    from app.services.boards import create_board
    from corkboard_shared.schemas.boards import BoardCreate

    return await create_board(session, BoardCreate(name=name), org_id, owner, at=when or at(-100))


async def make_card(session, author: str, board=None, org_id: str = ORG_A, title: str = "Ship it", when=None):
    from app.services.cards import create_card
    from corkboard_shared.schemas.cards import CardCreate

    card_in = CardCreate(title=title, board_id=board.id if board is not None else None)
    return await create_card(session, card_in, org_id, author, at=when or at(-50))
