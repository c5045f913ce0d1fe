"""Tests for debate_core.prompts."""

from __future__ import annotations

import pytest

from debate_core.prompts import (
    FRAGMENT_DELIMITER,
    IGNORE_HISTORY_NOTE,
    NO_MEMORY_CONTEXT,
    build_context,
    build_opponent_anchor,
    build_persona_prompt,
    build_synthesis_fallback,
    build_timeout_fallback,
    clean_history,
    create_round_two_prompt,
    should_ignore_history,
)
from debate_core.types import AgentProfile, MemoryFragment

CITATION_PHRASE = "Cite these memories explicitly"
VETERAN_PHRASE = "decisive industry veteran"


class TestBuildContext:
    def test_empty_returns_stub(self):
        assert build_context([]) == NO_MEMORY_CONTEXT

    def test_one_block_per_fragment_in_order(self, sample_fragments):
        context = build_context(sample_fragments)
        blocks = context.split(FRAGMENT_DELIMITER)
        assert len(blocks) == len(sample_fragments)
        for i, (block, fragment) in enumerate(zip(blocks, sample_fragments), start=1):
            assert block.startswith(f"[Memory fragment {i}: {fragment.name}]")

    def test_block_carries_every_field(self, sample_fragments):
        block = build_context(sample_fragments[:1])
        assert "Confidence: HIGH" in block
        assert "Ran a refrigerated delivery fleet" in block
        assert "I know what breaks at 3am" in block
        assert "Operator with scars" in block
        assert "Source topics: logistics, ops" in block

    def test_many_fragments_none_dropped(self):
        fragments = [MemoryFragment(name=f"topic-{i}") for i in range(25)]
        context = build_context(fragments)
        assert context.count("[Memory fragment ") == 25
        positions = [context.index(f"topic-{i}]") for i in range(25)]
        assert positions == sorted(positions)

    def test_missing_fields_render_placeholder(self):
        block = build_context([MemoryFragment(name="Bare")])
        assert "Confidence: MEDIUM" in block
        assert "Core knowledge: n/a" in block


class TestPersonaPrompt:
    def test_with_fragments_demands_citation(self, sample_fragments):
        prompt = build_persona_prompt("Alice", sample_fragments)
        assert "[Alice]" in prompt
        assert CITATION_PHRASE in prompt
        assert "Cold-chain logistics" in prompt
        assert VETERAN_PHRASE not in prompt

    @pytest.mark.parametrize("name", ["Alice", "", "Anonymous Expert"])
    def test_empty_fragments_use_veteran_template(self, name):
        prompt = build_persona_prompt(name, [])
        assert VETERAN_PHRASE in prompt
        assert CITATION_PHRASE not in prompt
        assert '"as an AI"' in prompt
        assert "No hedging" in prompt


class TestOpponentAnchor:
    def test_names_target_and_forbids_wordplay(self):
        anchor = build_opponent_anchor("Fluffy Cat")
        assert "[Fluffy Cat]" in anchor
        assert "real human" in anchor
        assert "Never make jokes or puns about the name" in anchor
        assert "business logic" in anchor


class TestHistoryFiltering:
    def test_detects_markers(self):
        assert should_ignore_history("[ERROR] Steve(NPC) generation_failed")
        assert should_ignore_history("sorry, system busy right now")
        assert should_ignore_history("模型繁忙")
        assert not should_ignore_history("A solid plan")
        assert not should_ignore_history(None)

    def test_clean_strips_markers_case_insensitively(self):
        assert clean_history("  Model Busy aside, the plan holds  ") == "aside, the plan holds"
        assert clean_history(None) == ""

    def test_attack_prompt_drops_fallback_history(self):
        previous = '{"error": "timeout", "content": "[ERROR] Woz(NPC) generation_failed: no response."}'
        prompt = create_round_two_prompt("BASE", "Woz", previous)
        assert "[ERROR]" not in prompt
        assert "generation_failed" not in prompt
        assert IGNORE_HISTORY_NOTE in prompt

    def test_attack_prompt_quotes_clean_history(self):
        previous = "Sell to hospitals first, they pay on time."
        prompt = create_round_two_prompt("BASE", "Kevin", previous)
        assert f'"{previous}"' in prompt
        assert "[Target]: Kevin" in prompt
        assert IGNORE_HISTORY_NOTE not in prompt

    @pytest.mark.parametrize(
        "previous",
        ["System busy, please retry later.", "MODEL BUSY", "[error] upstream gone", "Compute Fluctuation hurt us."],
    )
    def test_markers_match_in_any_case(self, previous):
        assert should_ignore_history(previous)
        prompt = create_round_two_prompt("BASE", "Bob", previous)
        assert IGNORE_HISTORY_NOTE in prompt
        assert '[Their view]: ""' in prompt
        assert "please retry later" not in prompt


class TestFallbackText:
    def test_single_agent(self, sample_fragments):
        profile = AgentProfile(id="db_u1", name="Alice", is_npc=False, persona="p", fragments=sample_fragments)
        assert build_timeout_fallback(profile) == (
            "[ERROR] Alice(REAL) generation_failed: no response. hint=Cold-chain logistics"
        )

    def test_hint_defaults_without_fragments(self):
        profile = AgentProfile(id="x", name="X", is_npc=True, persona="p")
        assert build_timeout_fallback(profile).endswith("hint=Tech")

    def test_synthesis_names_both(self):
        a = AgentProfile(id="a", name="A", is_npc=True, persona="p")
        b = AgentProfile(id="b", name="B", is_npc=False, persona="p")
        text = build_synthesis_fallback(a, b)
        assert text.startswith("[ERROR] A(NPC) + B(REAL)")
