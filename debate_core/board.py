"""Server-side handling of board actions

Each method turns one inbound action into prompts and hands them to the
completion layer. The HTTP route and the DebateController both go through
here, so a prompt is built the same way whichever side asked for it.
"""

import asyncio
import logging
from typing import Optional

from llm_client import StreamOrchestrator, StreamRun, UpstreamError

from .config import DEFAULT_OPPONENT_NAME, NPC_ROSTER
from .matchmaker import MatchMaker
from .prompts import (
    DEFAULT_USER_MESSAGE,
    build_synthesis_fallback,
    build_timeout_fallback,
    create_critique_prompt,
    create_deep_dive_prompt,
    create_round_one_prompt,
    create_round_two_prompt,
    create_synthesis_prompt,
    create_system_base,
)
from .resolver import AgentResolver
from .store import ProfileStore
from .types import NPC, AgentProfile, BoardRequest, UserRecord

logger = logging.getLogger(__name__)


class BoardService:
    """Builds prompts for board actions and runs them"""

    def __init__(
        self,
        client,
        orchestrator: Optional[StreamOrchestrator] = None,
        store: Optional[ProfileStore] = None,
        matchmaker: Optional[MatchMaker] = None,
        roster: Optional[list[NPC]] = None,
    ):
        self.client = client
        self.orchestrator = orchestrator or StreamOrchestrator(client)
        self.store = store
        self.roster = NPC_ROSTER if roster is None else roster
        self.resolver = AgentResolver(store=store, roster=self.roster)
        self.matchmaker = matchmaker or MatchMaker()

    async def match(self, self_id: Optional[str] = None) -> list[AgentProfile]:
        """Seat a board for ``self_id``; store trouble leaves an NPC-only board"""
        candidates: list[UserRecord] = []
        if self.store is not None:
            try:
                candidates = await self.store.list_users(exclude_id=self_id)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Listing real candidates failed: %s", exc)
        return self.matchmaker.match(self_id, candidates, self.roster)

    def _turn_prompt(self, request: BoardRequest, agent: AgentProfile) -> str:
        if request.action == "AUDITION" and request.round == 2:
            target_name = request.target_agent_name or DEFAULT_OPPONENT_NAME
            base = create_system_base(agent, target_name)
            return create_round_two_prompt(base, target_name, request.target_content)

        base = create_system_base(agent, request.target_agent_name)
        if request.action == "AUDITION":
            return create_round_one_prompt(base, request.user_context)
        if request.type == "deep_dive":
            return create_deep_dive_prompt(base)
        return create_critique_prompt(base)

    async def stream_turn(self, request: BoardRequest) -> StreamRun:
        """Stream one agent's audition turn or single-target paid action"""
        agent = await self.resolver.resolve_agent(request.agent_id)
        prompt = self._turn_prompt(request, agent)
        logger.info(
            "stream_turn action=%s type=%s round=%s agent=%s prompt_len=%d",
            request.action, request.type, request.round, agent.id, len(prompt),
        )
        return self.orchestrator.produce_stream(
            prompt, DEFAULT_USER_MESSAGE, build_timeout_fallback(agent)
        )

    async def stream_synthesis(self, request: BoardRequest) -> StreamRun:
        """Stream one joint conclusion for two agents"""
        agent_a, agent_b = await asyncio.gather(
            self.resolver.resolve_agent(request.agent_a),
            self.resolver.resolve_agent(request.agent_b),
        )
        prompt = create_synthesis_prompt(request.user_context, agent_a, agent_b)
        return self.orchestrator.produce_stream(
            prompt,
            request.user_context or DEFAULT_USER_MESSAGE,
            build_synthesis_fallback(agent_a, agent_b),
        )

    async def betting_batch(self, request: BoardRequest) -> list[dict]:
        """Run a paid action for several agents, one after another

        Returns:
            ``{"agentId", "content"}`` per requested id, in request order
        """
        self.client.ensure_credential()
        responses = []
        for agent_id in request.agent_ids or []:
            agent = await self.resolver.resolve_agent(agent_id)
            base = create_system_base(agent, request.target_agent_name)
            if request.type == "deep_dive":
                prompt = create_deep_dive_prompt(base)
            else:
                prompt = create_critique_prompt(base)

            try:
                content = await self.client.complete_once(prompt, DEFAULT_USER_MESSAGE)
            except UpstreamError as exc:
                logger.warning("Batch completion for %s failed: %s", agent_id, exc)
                content = build_timeout_fallback(agent)
            responses.append({"agentId": agent_id, "content": content})
        return responses
