"""Tests for BoardService."""

from __future__ import annotations

import pytest

from debate_core import NPC_ROSTER, BoardRequest
from debate_core.prompts import IGNORE_HISTORY_NOTE
from llm_client import AuthError, UpstreamError, collect_text
from tests.conftest import FakeCompletionClient

STEVE = NPC_ROSTER[0]


class FailingStore:
    async def list_users(self, exclude_id=None):
        raise ConnectionError("database is down")

    async def get_user(self, user_id):
        raise ConnectionError("database is down")


class TestMatch:
    @pytest.mark.asyncio
    async def test_seats_real_users_from_store(self, make_board, fake_client, profile_store):
        board = make_board(fake_client, store=profile_store)
        agents = await board.match("u1")
        assert len(agents) == 3
        assert sum(not a.is_npc for a in agents) == 2
        assert "db_u1" not in [a.id for a in agents]

    @pytest.mark.asyncio
    async def test_store_failure_gives_npc_board(self, make_board, fake_client):
        agents = await make_board(fake_client, store=FailingStore()).match("u1")
        assert len(agents) == 3
        assert all(a.is_npc for a in agents)


class TestStreamTurn:
    @pytest.mark.asyncio
    async def test_round_one_prompt(self, make_board):
        client = FakeCompletionClient(responder=lambda s, u: "Launch in one city")
        run = await make_board(client).stream_turn(
            BoardRequest(action="AUDITION", agent_id=STEVE.id, round=1, user_context="Goal:cafe")
        )
        assert await collect_text(run) == "Launch in one city"
        system = client.call_log[0]["system"]
        assert system.startswith(STEVE.system_prompt)
        assert "Round 1" in system
        assert "Goal:cafe" in system
        assert "real human named" not in system

    @pytest.mark.asyncio
    async def test_round_two_anchors_and_filters_history(self, make_board, fake_client):
        run = await make_board(fake_client).stream_turn(
            BoardRequest(
                action="AUDITION",
                agent_id=STEVE.id,
                round=2,
                target_agent_name="Kevin",
                target_content="[ERROR] Kevin(NPC) generation_failed: no response. hint=Investment",
            )
        )
        await collect_text(run)
        system = fake_client.call_log[0]["system"]
        assert "real human named [Kevin]" in system
        assert IGNORE_HISTORY_NOTE in system
        assert "generation_failed" not in system

    @pytest.mark.asyncio
    async def test_round_two_without_target_name(self, make_board, fake_client):
        run = await make_board(fake_client).stream_turn(
            BoardRequest(action="AUDITION", agent_id=STEVE.id, round=2, target_content="Go B2B")
        )
        await collect_text(run)
        system = fake_client.call_log[0]["system"]
        assert "[Target]: Opponent" in system
        assert '"Go B2B"' in system

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind,phrase", [("critique", "100 words"), ("deep_dive", "120 words")])
    async def test_paid_single_target(self, make_board, fake_client, kind, phrase):
        run = await make_board(fake_client).stream_turn(
            BoardRequest(action="BETTING", type=kind, agent_id=STEVE.id)
        )
        await collect_text(run)
        assert phrase in fake_client.call_log[0]["system"]

    @pytest.mark.asyncio
    async def test_failure_streams_agent_fallback(self, make_board):
        client = FakeCompletionClient(open_error=UpstreamError("down", status_code=502))
        run = await make_board(client).stream_turn(
            BoardRequest(action="AUDITION", agent_id=STEVE.id, round=1)
        )
        text = await collect_text(run)
        assert text == f"[ERROR] {STEVE.name}(NPC) generation_failed: no response. hint=Product"

    @pytest.mark.asyncio
    async def test_missing_credential_raises(self, make_board):
        with pytest.raises(AuthError):
            await make_board(FakeCompletionClient(valid=False)).stream_turn(
                BoardRequest(action="AUDITION", agent_id=STEVE.id, round=1)
            )


class TestSynthesis:
    @pytest.mark.asyncio
    async def test_prompt_covers_both_agents(self, make_board, fake_client, profile_store):
        run = await make_board(fake_client, store=profile_store).stream_synthesis(
            BoardRequest(
                action="BETTING",
                type="synthesis",
                agent_a=STEVE.id,
                agent_b="db_u1",
                user_context="Goal:cafe",
            )
        )
        await collect_text(run)
        call = fake_client.call_log[0]
        assert f"[Agent A] {STEVE.name}" in call["system"]
        assert "[Agent B] Alice" in call["system"]
        assert call["user"] == "Goal:cafe"

    @pytest.mark.asyncio
    async def test_fallback_names_both(self, make_board):
        client = FakeCompletionClient(open_error=UpstreamError("down"))
        run = await make_board(client).stream_synthesis(
            BoardRequest(action="BETTING", type="synthesis", agent_a=STEVE.id, agent_b="db_nobody")
        )
        text = await collect_text(run)
        assert text.startswith(f"[ERROR] {STEVE.name}(NPC) + Anonymous Expert(REAL)")


class TestBettingBatch:
    @pytest.mark.asyncio
    async def test_responses_in_request_order(self, make_board):
        client = FakeCompletionClient(responder=lambda s, u: s.split("\n")[0][:20])
        ids = [NPC_ROSTER[2].id, NPC_ROSTER[0].id]
        responses = await make_board(client).betting_batch(
            BoardRequest(action="BETTING", type="critique", agent_ids=ids)
        )
        assert [r["agentId"] for r in responses] == ids
        assert all(call["mode"] == "once" for call in client.call_log)
        assert responses[0]["content"] == NPC_ROSTER[2].system_prompt[:20]

    @pytest.mark.asyncio
    async def test_upstream_error_becomes_fallback(self, make_board):
        client = FakeCompletionClient(once_error=UpstreamError("down", status_code=500))
        responses = await make_board(client).betting_batch(
            BoardRequest(action="BETTING", type="deep_dive", agent_ids=[STEVE.id])
        )
        assert responses == [
            {
                "agentId": STEVE.id,
                "content": f"[ERROR] {STEVE.name}(NPC) generation_failed: no response. hint=Product",
            }
        ]

    @pytest.mark.asyncio
    async def test_missing_credential_raises(self, make_board):
        with pytest.raises(AuthError):
            await make_board(FakeCompletionClient(valid=False)).betting_batch(
                BoardRequest(action="BETTING", type="critique", agent_ids=[STEVE.id])
            )
