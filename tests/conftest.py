"""Shared fixtures for the test suite.

Provides a FakeCompletionClient that speaks the same interface as
GroqClient without network calls, plus board fixtures wired to it.
"""

from __future__ import annotations

import asyncio
import json
import os
import random
from contextlib import asynccontextmanager
from typing import Any, Callable, Optional, Union

import pytest

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from debate_core import (  # noqa: E402
    BoardService,
    DebateController,
    InMemoryProfileStore,
    MatchMaker,
    MemoryFragment,
    UserRecord,
)
from debate_core.types import ConfidenceLevel  # noqa: E402
from llm_client import AuthError, StreamOrchestrator  # noqa: E402

ScriptItem = Union[bytes, float, Exception]


def sse_frames(text: str, done: bool = True) -> list[bytes]:
    """Encode text as one delta frame per word, like the upstream does."""
    frames = []
    for i, word in enumerate(text.split(" ")):
        piece = word if i == 0 else f" {word}"
        payload = json.dumps({"choices": [{"delta": {"content": piece}}]})
        frames.append(f"data: {payload}\n".encode("utf-8"))
    if done:
        frames.append(b"data: [DONE]\n")
    return frames


# ---------------------------------------------------------------------------
# Fake completion client
# ---------------------------------------------------------------------------

class FakeCompletionClient:
    """Deterministic stand-in for GroqClient.

    ``responder`` maps (system_prompt, user_content) to response text. A
    ``script`` replaces the streamed body for every call: bytes are sent,
    floats are sleeps and exceptions are raised mid-stream.
    """

    def __init__(
        self,
        responder: Optional[Callable[[str, str], str]] = None,
        script: Optional[list[ScriptItem]] = None,
        valid: bool = True,
        open_error: Optional[Exception] = None,
        once_error: Optional[Exception] = None,
    ) -> None:
        self.responder = responder or (lambda system, user: "A sharp opinion.")
        self.script = script
        self.valid = valid
        self.open_error = open_error
        self.once_error = once_error
        self.call_log: list[dict[str, Any]] = []
        self.closed_streams = 0

    @property
    def has_valid_credential(self) -> bool:
        return self.valid

    def ensure_credential(self) -> None:
        if not self.valid:
            raise AuthError()

    async def complete_once(self, system_prompt: str, user_content: str) -> str:
        self.ensure_credential()
        self.call_log.append({"mode": "once", "system": system_prompt, "user": user_content})
        if self.once_error is not None:
            raise self.once_error
        return self.responder(system_prompt, user_content)

    async def _body(self, items: list[ScriptItem]):
        for item in items:
            if isinstance(item, (int, float)):
                await asyncio.sleep(item)
            elif isinstance(item, Exception):
                raise item
            else:
                yield item

    @asynccontextmanager
    async def complete_stream(self, system_prompt: str, user_content: str):
        self.ensure_credential()
        self.call_log.append({"mode": "stream", "system": system_prompt, "user": user_content})
        if self.open_error is not None:
            raise self.open_error
        items = self.script if self.script is not None else sse_frames(
            self.responder(system_prompt, user_content)
        )
        try:
            yield self._body(items)
        finally:
            self.closed_streams += 1


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def sample_fragments() -> list[MemoryFragment]:
    return [
        MemoryFragment(
            name="Cold-chain logistics",
            confidence_level=ConfidenceLevel.HIGH,
            content="Ran a refrigerated delivery fleet for six years",
            description="I know what breaks at 3am",
            third_person_description="Operator with scars",
            source_topics=["logistics", "ops"],
        ),
        MemoryFragment(
            name="Seed fundraising",
            content="Closed two seed rounds",
            source_topics=["funding"],
        ),
    ]


@pytest.fixture
def real_users(sample_fragments) -> list[UserRecord]:
    return [
        UserRecord(id="u1", name="Alice", shades=sample_fragments, wealth=250),
        UserRecord(id="u2", name="Bob", wealth=80),
        UserRecord(id="u3", name="Carol%20Lee", wealth=120),
    ]


@pytest.fixture
def profile_store(real_users) -> InMemoryProfileStore:
    return InMemoryProfileStore(real_users)


@pytest.fixture
def make_board():
    def _make(client, store=None, seed: int = 7, overall: float = 2.0, first_chunk: float = 1.0):
        return BoardService(
            client,
            orchestrator=StreamOrchestrator(client, overall_timeout=overall, first_chunk_timeout=first_chunk),
            store=store,
            matchmaker=MatchMaker(rng=random.Random(seed)),
        )
    return _make


@pytest.fixture
def make_controller(make_board):
    def _make(client, store=None, seed: int = 7):
        return DebateController(
            make_board(client, store=store, seed=seed),
            round_two_start_delay=0,
            round_two_step_delay=0,
        )
    return _make
