"""
HTTP tests for the org-scoped API: boards, cards, follows and the feed.

Runs the real app against in-memory SQLite with the tenant directory mocked.
"""

from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient

from conftest import ORG_B, SUBDOMAIN_A, SUBDOMAIN_B, auth_headers

API = f"/api/v1/orgs/{SUBDOMAIN_A}"


async def _create_board(client, user, name="Roadmap"):
    resp = await client.post(f"{API}/boards/", json={"name": name}, headers=auth_headers(user))
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _create_card(client, user, board_id=None, title="Ship it"):
    body = {"title": title}
    if board_id:
        body["board_id"] = board_id
    resp = await client.post(f"{API}/cards/", json=body, headers=auth_headers(user))
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Auth and tenancy
# ---------------------------------------------------------------------------


class TestAccess:

    @pytest.mark.asyncio
    async def test_anonymous_is_unauthorized(self, client: AsyncClient):
        resp = await client.get(f"{API}/feed")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_wrong_org_is_denied(self, client: AsyncClient, alice):
        resp = await client.get(f"{API}/feed", headers=auth_headers(alice, ORG_B))
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "ACCESS_DENIED"

    @pytest.mark.asyncio
    async def test_unknown_subdomain(self, client: AsyncClient, alice):
        resp = await client.get("/api/v1/orgs/initech/feed", headers=auth_headers(alice))
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_cross_org_board_is_denied(self, client: AsyncClient, alice, bob):
        resp = await client.post(
            f"/api/v1/orgs/{SUBDOMAIN_B}/boards/",
            json={"name": "Secret"},
            headers=auth_headers(bob, ORG_B),
        )
        board_id = resp.json()["id"]

        resp = await client.post(f"{API}/boards/{board_id}/follow", headers=auth_headers(alice))
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_card_is_not_found(self, client: AsyncClient, alice):
        resp = await client.post(f"{API}/cards/{uuid.uuid4()}/follow", headers=auth_headers(alice))
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"


# ---------------------------------------------------------------------------
# Boards and cards
# ---------------------------------------------------------------------------


class TestBoardsAndCards:

    @pytest.mark.asyncio
    async def test_board_lifecycle(self, client: AsyncClient, alice):
        board = await _create_board(client, alice)
        assert board["created_by"] == alice
        await _create_card(client, alice, board["id"])

        resp = await client.get(f"{API}/boards/", headers=auth_headers(alice))
        assert [(b["name"], b["card_count"]) for b in resp.json()] == [("Roadmap", 1)]

        resp = await client.delete(f"{API}/boards/{board['id']}", headers=auth_headers(alice))
        assert resp.status_code == 200
        assert resp.json()["deleted_card_count"] == 1

    @pytest.mark.asyncio
    async def test_card_update_and_history(self, client: AsyncClient, alice):
        card = await _create_card(client, alice)
        resp = await client.patch(
            f"{API}/cards/{card['id']}",
            json={"title": "Shipped", "status": "done"},
            headers=auth_headers(alice),
        )
        assert resp.status_code == 200
        assert resp.json()["title"] == "Shipped"

        resp = await client.post(
            f"{API}/cards/{card['id']}/comments",
            json={"content": "nice"},
            headers=auth_headers(alice),
        )
        assert resp.status_code == 201

        resp = await client.get(f"{API}/cards/{card['id']}/events", headers=auth_headers(alice))
        kinds = {e["kind"] for e in resp.json()["page"]}
        assert kinds == {"card_created", "card_title_changed", "card_status_changed", "comment_created"}

    @pytest.mark.asyncio
    async def test_empty_title_is_rejected(self, client: AsyncClient, alice):
        resp = await client.post(f"{API}/cards/", json={"title": ""}, headers=auth_headers(alice))
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_deleted_card_keeps_history(self, client: AsyncClient, alice):
        card = await _create_card(client, alice)
        resp = await client.delete(f"{API}/cards/{card['id']}", headers=auth_headers(alice))
        assert resp.json() == {"ok": True}

        resp = await client.get(f"{API}/cards/{card['id']}", headers=auth_headers(alice))
        assert resp.status_code == 404
        resp = await client.get(f"{API}/cards/{card['id']}/events", headers=auth_headers(alice))
        assert resp.json()["page"][0]["kind"] == "card_deleted"
        assert resp.json()["page"][0]["payload"]["deleted_title"] == "Ship it"


# ---------------------------------------------------------------------------
# Follow / mute
# ---------------------------------------------------------------------------


class TestFollows:

    @pytest.mark.asyncio
    async def test_board_follow_toggle(self, client: AsyncClient, alice, bob):
        board = await _create_board(client, alice)
        url = f"{API}/boards/{board['id']}/follow"

        assert (await client.post(url, headers=auth_headers(bob))).json() == {"ok": True}
        assert (await client.post(url, headers=auth_headers(bob))).json() == {"ok": True}
        state = await client.get(url, headers=auth_headers(bob))
        assert state.json() == {"is_following_board": True}

        resp = await client.get(f"{API}/boards/{board['id']}/followers", headers=auth_headers(bob))
        assert resp.json()["user_ids"] == sorted([alice, bob])

        await client.delete(url, headers=auth_headers(bob))
        state = await client.get(url, headers=auth_headers(bob))
        assert state.json() == {"is_following_board": False}

        resp = await client.get(f"{API}/boards/{board['id']}/follows/history", headers=auth_headers(bob))
        assert len(resp.json()) == 1
        assert resp.json()[0]["ended_at"] is not None

    @pytest.mark.asyncio
    async def test_card_follow_and_mute(self, client: AsyncClient, alice, bob):
        card = await _create_card(client, alice)
        base = f"{API}/cards/{card['id']}"

        await client.post(f"{base}/follow", headers=auth_headers(bob))
        resp = await client.get(f"{base}/follows", headers=auth_headers(bob))
        assert resp.json() == {"is_following_card": True, "is_muting_card": False}

        await client.post(f"{base}/mute", headers=auth_headers(bob))
        resp = await client.get(f"{base}/follows", headers=auth_headers(bob))
        assert resp.json() == {"is_following_card": False, "is_muting_card": True}

        resp = await client.get(f"{base}/follows/history", headers=auth_headers(bob))
        assert [h["mode"] for h in resp.json()] == ["follow", "mute"]

        await client.delete(f"{base}/mute", headers=auth_headers(bob))
        resp = await client.get(f"{base}/follows", headers=auth_headers(bob))
        assert resp.json() == {"is_following_card": False, "is_muting_card": False}

    @pytest.mark.asyncio
    async def test_watchers(self, client: AsyncClient, alice, bob, carol):
        board = await _create_board(client, alice)
        card = await _create_card(client, alice, board["id"])
        await client.post(f"{API}/cards/{card['id']}/follow", headers=auth_headers(bob))
        await client.post(f"{API}/boards/{board['id']}/follow", headers=auth_headers(carol))
        await client.post(f"{API}/cards/{card['id']}/mute", headers=auth_headers(carol))

        resp = await client.get(f"{API}/cards/{card['id']}/watchers", headers=auth_headers(alice))
        assert resp.json()["user_ids"] == sorted([alice, bob])


# ---------------------------------------------------------------------------
# Feed
# ---------------------------------------------------------------------------


class TestFeed:

    @pytest.mark.asyncio
    async def test_feed_end_to_end(self, client: AsyncClient, alice, bob):
        board = await _create_board(client, alice)
        await client.post(f"{API}/boards/{board['id']}/follow", headers=auth_headers(bob))
        card = await _create_card(client, alice, board["id"])
        await client.patch(
            f"{API}/cards/{card['id']}", json={"status": "next_up"}, headers=auth_headers(alice)
        )

        resp = await client.get(f"{API}/feed", headers=auth_headers(bob))
        assert resp.status_code == 200
        data = resp.json()
        assert data["is_done"] is True
        kinds = [e["event"]["kind"] for e in data["page"]]
        assert sorted(kinds) == ["card_created", "card_status_changed"]
        assert all(e["feed_item"]["user_id"] == bob for e in data["page"])

    @pytest.mark.asyncio
    async def test_feed_pages_through_cursor(self, client: AsyncClient, alice, bob):
        board = await _create_board(client, alice)
        await client.post(f"{API}/boards/{board['id']}/follow", headers=auth_headers(bob))
        card = await _create_card(client, alice, board["id"])
        for i in range(4):
            await client.post(
                f"{API}/cards/{card['id']}/comments",
                json={"content": f"c{i}"},
                headers=auth_headers(alice),
            )

        seen = []
        cursor = None
        while True:
            params = {"num_items": 2}
            if cursor:
                params["cursor"] = cursor
            data = (await client.get(f"{API}/feed", params=params, headers=auth_headers(bob))).json()
            seen.extend(e["feed_item"]["id"] for e in data["page"])
            if data["is_done"]:
                break
            cursor = data["continue_cursor"]

        assert len(seen) == 5
        assert len(set(seen)) == 5

    @pytest.mark.asyncio
    async def test_bad_cursor_is_validation_error(self, client: AsyncClient, alice):
        resp = await client.get(f"{API}/feed", params={"cursor": "garbage"}, headers=auth_headers(alice))
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"
