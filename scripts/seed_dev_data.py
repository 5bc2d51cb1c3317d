#!/usr/bin/env python3
"""Seed a development database with a workspace, boards, cards and follows.

Usage:
    python scripts/seed_dev_data.py

Reads CB_DATABASE_URL and CB_REDIS_URL (defaults to localhost). Creates the
tables if needed, registers the ``acme`` subdomain and prints a session token
per seeded user.
"""

import asyncio

from app.core.auth import create_jwt
from app.core.database import get_session_context, init_db
from app.core.logging import configure_logging
from app.core.tenancy import close_redis, register_subdomain
from app.services.boards import create_board
from app.services.cards import add_comment, create_card, update_card
from app.services.follows import follow_board, follow_card, mute_card
from corkboard_shared.schemas.boards import BoardCreate
from corkboard_shared.schemas.cards import CardCreate, CardUpdate

ORG_ID = "org_acme_dev"
SUBDOMAIN = "acme"
ALICE = "user_alice_dev"
BOB = "user_bob_dev"
CAROL = "user_carol_dev"


async def seed():
    configure_logging("info", "text")
    await init_db()
    await register_subdomain(SUBDOMAIN, ORG_ID, "Acme Robotics")

    async with get_session_context() as session:
        roadmap = await create_board(session, BoardCreate(name="Roadmap"), ORG_ID, ALICE)
        support = await create_board(session, BoardCreate(name="Support"), ORG_ID, BOB)

        await follow_board(session, ORG_ID, BOB, roadmap.id)
        await follow_board(session, ORG_ID, CAROL, support.id)

        cards = []
        for title in ("Public API", "Billing page", "Onboarding emails"):
            cards.append(
                await create_card(session, CardCreate(title=title, board_id=roadmap.id), ORG_ID, ALICE)
            )
        ticket = await create_card(
            session, CardCreate(title="Login loop on Safari", board_id=support.id), ORG_ID, BOB
        )

        await follow_card(session, ORG_ID, CAROL, cards[0].id)
        await mute_card(session, ORG_ID, BOB, cards[2].id)

        await update_card(session, cards[0], CardUpdate(status="next_up", assigned_to=BOB), ALICE)
        await add_comment(session, ticket, "Reproduced on 17.2", CAROL)
        await update_card(session, cards[1], CardUpdate(board_id=support.id), ALICE)

    await close_redis()

    print(f"Seeded workspace '{SUBDOMAIN}' ({ORG_ID})")
    for user in (ALICE, BOB, CAROL):
        token, _ = create_jwt(user, ORG_ID)
        print(f"  {user}: {token}")


if __name__ == "__main__":
    asyncio.run(seed())
