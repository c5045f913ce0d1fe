"""Tests for board matchmaking."""

from __future__ import annotations

import random

import pytest

from debate_core import NPC_ROSTER, MatchMaker, SelfMatchError, UserRecord
from debate_core.resolver import canonical_id


def users(*ids: str) -> list[UserRecord]:
    return [UserRecord(id=i, name=f"User {i}") for i in ids]


class TestMatch:
    def test_two_reals_and_one_npc(self):
        board = MatchMaker(rng=random.Random(1)).match("me", users("a", "b", "c"), NPC_ROSTER)
        assert len(board) == 3
        assert sum(not a.is_npc for a in board) == 2
        assert sum(a.is_npc for a in board) == 1
        assert all(a.id.startswith("db_") for a in board if not a.is_npc)

    @pytest.mark.parametrize("candidates,expected_npcs", [([], 3), (["a"], 2), (["a", "b"], 1)])
    def test_pads_with_distinct_npcs(self, candidates, expected_npcs):
        board = MatchMaker(rng=random.Random(3)).match(None, users(*candidates), NPC_ROSTER)
        npcs = [a.id for a in board if a.is_npc]
        assert len(board) == 3
        assert len(npcs) == expected_npcs
        assert len(set(npcs)) == len(npcs)

    def test_never_seats_the_caller(self):
        candidates = users("me", "a", "b", "c")
        for seed in range(200):
            board = MatchMaker(rng=random.Random(seed)).match("db_me", candidates, NPC_ROSTER)
            assert len(board) == 3
            assert all(canonical_id(a.id) != "me" for a in board)

    def test_only_caller_in_pool_gives_npc_board(self):
        board = MatchMaker(rng=random.Random(5)).match("me", users("me"), NPC_ROSTER)
        assert all(a.is_npc for a in board)

    def test_self_in_npc_roster_raises(self):
        with pytest.raises(SelfMatchError):
            MatchMaker(rng=random.Random(0)).match(NPC_ROSTER[0].id, [], NPC_ROSTER)

    def test_short_roster_rejected(self):
        with pytest.raises(ValueError):
            MatchMaker().match(None, [], NPC_ROSTER[:2])

    def test_single_npc_enough_with_two_reals(self):
        board = MatchMaker(rng=random.Random(2)).match("me", users("me", "a", "b"), NPC_ROSTER[:1])
        assert len(board) == 3
        assert [a.id for a in board if a.is_npc] == [NPC_ROSTER[0].id]

    def test_caller_does_not_count_towards_reals(self):
        with pytest.raises(ValueError):
            MatchMaker().match("me", users("me", "a"), NPC_ROSTER[:1])

    def test_seeded_rng_is_reproducible(self):
        candidates = users("a", "b", "c", "d")
        first = MatchMaker(rng=random.Random(9)).match(None, candidates, NPC_ROSTER)
        second = MatchMaker(rng=random.Random(9)).match(None, candidates, NPC_ROSTER)
        assert [a.id for a in first] == [a.id for a in second]
