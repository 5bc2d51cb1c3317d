"""
Tests for follow / mute operations on boards and cards.

Covers:
- Idempotent board follow
- Follow/mute switching closes the opposite mode atomically
- Tenancy and identity errors
- Current-state queries and history
"""

from __future__ import annotations

import uuid

import pytest
from sqlmodel import select

from app.core.errors import AccessDenied, NotFound, Unauthorized
from app.models.follow import BoardFollowInterval, CardFollowInterval
from app.services import follows
from app.services.boards import delete_board
from app.services.cards import delete_card
from app.services.subscriptions import is_subscribed, list_board_followers, list_card_watchers
from conftest import ORG_A, ORG_B, at, make_board, make_card


async def _card_intervals(session, user_id, card_id):
    result = await session.execute(
        select(CardFollowInterval)
        .where(CardFollowInterval.user_id == user_id, CardFollowInterval.card_id == card_id)
        .order_by(CardFollowInterval.started_at)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------


class TestBoardFollow:

    @pytest.mark.asyncio
    async def test_follow_board_twice_keeps_one_open_interval(self, session, alice, bob):
        board = await make_board(session, alice)
        await follows.follow_board(session, ORG_A, bob, board.id, at=at(0))
        await follows.follow_board(session, ORG_A, bob, board.id, at=at(1))

        history = await follows.board_follow_history(session, ORG_A, bob, board.id)
        assert len(history) == 1
        assert history[0].ended_at is None
        assert history[0].started_at == at(0)

    @pytest.mark.asyncio
    async def test_creator_follows_new_board(self, session, alice):
        board = await make_board(session, alice)
        state = await follows.is_following_board(session, ORG_A, alice, board.id)
        assert state.is_following_board is True
        assert await list_board_followers(session, ORG_A, board.id) == [alice]

    @pytest.mark.asyncio
    async def test_unfollow_board(self, session, alice, bob):
        board = await make_board(session, alice)
        await follows.follow_board(session, ORG_A, bob, board.id, at=at(0))
        await follows.unfollow_board(session, ORG_A, bob, board.id, at=at(2))

        state = await follows.is_following_board(session, ORG_A, bob, board.id, at=at(3))
        assert state.is_following_board is False
        history = await follows.board_follow_history(session, ORG_A, bob, board.id)
        assert history[0].ended_at == at(2)

    @pytest.mark.asyncio
    async def test_unfollow_when_not_following_is_noop(self, session, alice, bob):
        board = await make_board(session, alice)
        await follows.unfollow_board(session, ORG_A, bob, board.id, at=at(0))
        assert await follows.board_follow_history(session, ORG_A, bob, board.id) == []

    @pytest.mark.asyncio
    async def test_follow_board_in_other_org_is_denied(self, session, alice, bob):
        board = await make_board(session, alice, org_id=ORG_B)
        with pytest.raises(AccessDenied):
            await follows.follow_board(session, ORG_A, bob, board.id)

    @pytest.mark.asyncio
    async def test_unfollow_board_in_other_org_is_denied(self, session, alice, bob):
        board = await make_board(session, alice, org_id=ORG_B)
        with pytest.raises(AccessDenied):
            await follows.unfollow_board(session, ORG_A, bob, board.id)

    @pytest.mark.asyncio
    async def test_follow_missing_board(self, session, bob):
        with pytest.raises(NotFound):
            await follows.follow_board(session, ORG_A, bob, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_follow_without_identity(self, session, alice):
        board = await make_board(session, alice)
        with pytest.raises(Unauthorized):
            await follows.follow_board(session, ORG_A, None, board.id)
        with pytest.raises(Unauthorized):
            await follows.follow_board(session, None, alice, board.id)

    @pytest.mark.asyncio
    async def test_board_delete_closes_follow_intervals(self, session, alice, bob):
        board = await make_board(session, alice)
        await follows.follow_board(session, ORG_A, bob, board.id, at=at(0))
        await delete_board(session, board, alice, at=at(5))

        result = await session.execute(
            select(BoardFollowInterval).where(BoardFollowInterval.board_id == board.id)
        )
        intervals = list(result.scalars().all())
        assert len(intervals) == 2
        assert all(i.ended_at is not None for i in intervals)
        # Unfollowing a deleted board is still accepted
        await follows.unfollow_board(session, ORG_A, bob, board.id)


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------


class TestCardFollowAndMute:

    @pytest.mark.asyncio
    async def test_follow_card_closes_open_mute(self, session, alice, bob):
        card = await make_card(session, alice)
        await follows.mute_card(session, ORG_A, bob, card.id, at=at(0))
        await follows.follow_card(session, ORG_A, bob, card.id, at=at(1))

        intervals = await _card_intervals(session, bob, card.id)
        mutes = [i for i in intervals if i.mode == "mute"]
        open_follows = [i for i in intervals if i.mode == "follow" and i.ended_at is None]
        assert len(mutes) == 1 and mutes[0].ended_at == at(1)
        assert len(open_follows) == 1

    @pytest.mark.asyncio
    async def test_mute_card_closes_open_follow(self, session, alice, bob):
        card = await make_card(session, alice)
        await follows.follow_card(session, ORG_A, bob, card.id, at=at(0))
        await follows.mute_card(session, ORG_A, bob, card.id, at=at(1))

        state = await follows.get_my_follows_for_card(session, ORG_A, bob, card.id, at=at(2))
        assert state.is_following_card is False
        assert state.is_muting_card is True

    @pytest.mark.asyncio
    async def test_follow_card_twice(self, session, alice, bob):
        card = await make_card(session, alice)
        await follows.follow_card(session, ORG_A, bob, card.id, at=at(0))
        await follows.follow_card(session, ORG_A, bob, card.id, at=at(1))
        assert len(await _card_intervals(session, bob, card.id)) == 1

    @pytest.mark.asyncio
    async def test_unfollow_and_unmute(self, session, alice, bob):
        card = await make_card(session, alice)
        await follows.follow_card(session, ORG_A, bob, card.id, at=at(0))
        await follows.unfollow_card(session, ORG_A, bob, card.id, at=at(1))
        await follows.mute_card(session, ORG_A, bob, card.id, at=at(2))
        await follows.unmute_card(session, ORG_A, bob, card.id, at=at(3))

        state = await follows.get_my_follows_for_card(session, ORG_A, bob, card.id, at=at(4))
        assert state.is_following_card is False
        assert state.is_muting_card is False
        history = await follows.card_follow_history(session, ORG_A, bob, card.id)
        assert [(h.mode.value, h.ended_at) for h in history] == [("follow", at(1)), ("mute", at(3))]

    @pytest.mark.asyncio
    async def test_anonymous_state_is_all_false(self, session, alice):
        card = await make_card(session, alice)
        state = await follows.get_my_follows_for_card(session, None, None, card.id)
        assert state.is_following_card is False
        assert state.is_muting_card is False

    @pytest.mark.asyncio
    async def test_mute_card_in_other_org_is_denied(self, session, alice, bob):
        card = await make_card(session, alice, org_id=ORG_B)
        with pytest.raises(AccessDenied):
            await follows.mute_card(session, ORG_A, bob, card.id)

    @pytest.mark.asyncio
    async def test_unfollow_and_unmute_in_other_org_are_denied(self, session, alice, bob):
        card = await make_card(session, alice, org_id=ORG_B)
        with pytest.raises(AccessDenied):
            await follows.unfollow_card(session, ORG_A, bob, card.id)
        with pytest.raises(AccessDenied):
            await follows.unmute_card(session, ORG_A, bob, card.id)

    @pytest.mark.asyncio
    async def test_card_delete_closes_follow_and_mute(self, session, alice, bob, carol):
        card = await make_card(session, alice)
        card_id = card.id
        await follows.follow_card(session, ORG_A, bob, card_id, at=at(0))
        await follows.mute_card(session, ORG_A, carol, card_id, at=at(0))
        await delete_card(session, card, alice, at=at(1))

        bob_state = await follows.get_my_follows_for_card(session, ORG_A, bob, card_id, at=at(2))
        carol_state = await follows.get_my_follows_for_card(session, ORG_A, carol, card_id, at=at(2))
        assert bob_state.is_following_card is False
        assert carol_state.is_muting_card is False
        history = await follows.card_follow_history(session, ORG_A, bob, card_id)
        assert [h.ended_at for h in history] == [at(1)]
        # The deleted card can still be unfollowed
        await follows.unfollow_card(session, ORG_A, bob, card_id)

    @pytest.mark.asyncio
    async def test_follow_missing_card(self, session, bob):
        with pytest.raises(NotFound):
            await follows.follow_card(session, ORG_A, bob, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_mute_without_identity(self, session, alice):
        card = await make_card(session, alice)
        with pytest.raises(Unauthorized):
            await follows.mute_card(session, ORG_A, "", card.id)


# ---------------------------------------------------------------------------
# Subscription resolution
# ---------------------------------------------------------------------------


class TestSubscriptions:

    @pytest.mark.asyncio
    async def test_board_follow_subscribes_to_cards(self, session, alice, bob):
        board = await make_board(session, alice)
        card = await make_card(session, alice, board)
        await follows.follow_board(session, ORG_A, bob, board.id, at=at(0))
        assert await is_subscribed(session, ORG_A, bob, card, at=at(1))

    @pytest.mark.asyncio
    async def test_card_mute_overrides_board_follow(self, session, alice, bob):
        board = await make_board(session, alice)
        card = await make_card(session, alice, board)
        await follows.follow_board(session, ORG_A, bob, board.id, at=at(0))
        await follows.mute_card(session, ORG_A, bob, card.id, at=at(1))
        assert not await is_subscribed(session, ORG_A, bob, card, at=at(2))

    @pytest.mark.asyncio
    async def test_card_follow_without_board(self, session, alice, bob):
        card = await make_card(session, alice)
        await follows.follow_card(session, ORG_A, bob, card.id, at=at(0))
        assert await is_subscribed(session, ORG_A, bob, card, at=at(1))
        assert await list_card_watchers(session, ORG_A, card, at=at(1)) == [bob]
