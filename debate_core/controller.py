"""Drives one debate session from matchmaking to paid actions"""

import asyncio
import logging
from typing import Optional

from llm_client import collect_text

from .board import BoardService
from .config import (
    PAID_ACTION_COSTS,
    ROUND_TWO_START_DELAY_SECONDS,
    ROUND_TWO_STEP_DELAY_SECONDS,
    STARTING_CHIPS,
)
from .exceptions import DebateStateError, InsufficientChipsError
from .store import fire_and_forget
from .types import AgentProfile, BoardRequest, DebateSession, Message, Phase, Stage

logger = logging.getLogger(__name__)


def attack_pairs(agents: list[AgentProfile]) -> list[tuple[AgentProfile, AgentProfile]]:
    """Round-2 rotation as (attacker, victim): the next seat attacks the current one"""
    count = len(agents)
    return [(agents[(i + 1) % count], agents[i]) for i in range(count)]


class DebateController:
    """Runs MATCH, both audition rounds and the betting actions

    The session object belongs to the caller; the controller only writes
    into it.
    """

    def __init__(
        self,
        board: BoardService,
        round_two_start_delay: float = ROUND_TWO_START_DELAY_SECONDS,
        round_two_step_delay: float = ROUND_TWO_STEP_DELAY_SECONDS,
    ):
        self.board = board
        self.round_two_start_delay = round_two_start_delay
        self.round_two_step_delay = round_two_step_delay

    def new_session(
        self,
        user_context: str,
        owner_id: Optional[str] = None,
        chips: int = STARTING_CHIPS,
    ) -> DebateSession:
        return DebateSession(user_context=user_context, owner_id=owner_id, chips=chips)

    def _require_stage(self, session: DebateSession, *stages: Stage) -> None:
        if session.stage not in stages:
            expected = ", ".join(s.value for s in stages)
            raise DebateStateError(f"session is {session.stage.value}, expected {expected}")

    async def run(self, session: DebateSession) -> DebateSession:
        """Match, then run both audition rounds"""
        await self.match(session)
        await self.run_round_one(session)
        await self.run_round_two(session)
        return session

    async def match(self, session: DebateSession) -> list[AgentProfile]:
        self._require_stage(session, Stage.NOT_STARTED)
        session.agents = await self.board.match(session.owner_id)
        session.stage = Stage.MATCHED
        logger.info("Matched %s", [a.id for a in session.agents])
        return session.agents

    async def _round_one_turn(self, session: DebateSession, agent: AgentProfile) -> None:
        run = await self.board.stream_turn(
            BoardRequest(
                action="AUDITION",
                agent_id=agent.id,
                round=1,
                user_context=session.user_context,
            )
        )
        content = await collect_text(run)
        session.add_message(
            Message(agent_id=agent.id, agent_name=agent.name, content=content, round=1)
        )

    async def run_round_one(self, session: DebateSession) -> None:
        """One independent opening statement per agent, all at once"""
        self._require_stage(session, Stage.MATCHED)
        session.stage = Stage.AUDITION_R1
        await asyncio.gather(*(self._round_one_turn(session, agent) for agent in session.agents))

    async def run_round_two(self, session: DebateSession) -> None:
        """Each agent attacks the previous seat's opening, one at a time"""
        self._require_stage(session, Stage.AUDITION_R1)
        session.stage = Stage.AUDITION_R2
        await asyncio.sleep(self.round_two_start_delay)

        for attacker, victim in attack_pairs(session.agents):
            previous = session.find_message(victim.id, 1)
            if previous is None:
                raise DebateStateError(f"{victim.id} has no round-1 message to attack")

            run = await self.board.stream_turn(
                BoardRequest(
                    action="AUDITION",
                    agent_id=attacker.id,
                    round=2,
                    target_agent_name=victim.name,
                    target_content=previous.content,
                    user_context=session.user_context,
                )
            )
            content = await collect_text(run)
            session.add_message(
                Message(agent_id=attacker.id, agent_name=attacker.name, content=content, round=2)
            )
            await asyncio.sleep(self.round_two_step_delay)

        session.stage = Stage.BETTING
        session.phase = Phase.BETTING

    def _charge(self, session: DebateSession, action: str) -> int:
        self._require_stage(session, Stage.BETTING)
        cost = PAID_ACTION_COSTS[action]
        if session.chips < cost:
            raise InsufficientChipsError(action, cost, session.chips)
        session.chips -= cost
        return session.chips

    def _sync_balance(self, session: DebateSession) -> None:
        store = self.board.store
        if store is None or not session.owner_id:
            return
        fire_and_forget(
            store.update_balance(session.owner_id, session.chips),
            f"balance of {session.owner_id}",
        )

    def _require_agent(self, session: DebateSession, agent_id: str) -> AgentProfile:
        agent = session.agent(agent_id)
        if agent is None:
            raise DebateStateError(f"{agent_id} is not seated in this session")
        return agent

    async def critique(self, session: DebateSession, agent_id: str) -> str:
        """Paid: append a sharper follow-up to the agent's round-2 message"""
        self._require_agent(session, agent_id)
        message = session.find_message(agent_id, 2)
        if message is None:
            raise DebateStateError(f"{agent_id} has no round-2 message")
        if message.extra_content is not None:
            raise DebateStateError(f"{agent_id} round-2 message was already critiqued")

        self._charge(session, "critique")
        try:
            run = await self.board.stream_turn(
                BoardRequest(
                    action="BETTING",
                    type="critique",
                    agent_id=agent_id,
                    user_context=session.user_context,
                )
            )
            text = await collect_text(run)
        finally:
            self._sync_balance(session)

        message.extra_content = text
        message.extra_type = "critique"
        return text

    async def deep_dive(self, session: DebateSession, agent_id: str) -> str:
        """Paid: one extended answer from a single agent"""
        self._require_agent(session, agent_id)
        self._charge(session, "deep_dive")
        try:
            run = await self.board.stream_turn(
                BoardRequest(
                    action="BETTING",
                    type="deep_dive",
                    agent_id=agent_id,
                    user_context=session.user_context,
                )
            )
            text = await collect_text(run)
        finally:
            self._sync_balance(session)

        session.insights[agent_id] = text
        return text

    async def synthesize(self, session: DebateSession, agent_a: str, agent_b: str) -> str:
        """Paid: one joint conclusion from two selected agents"""
        if agent_a == agent_b:
            raise DebateStateError("synthesis needs two different agents")
        self._require_agent(session, agent_a)
        self._require_agent(session, agent_b)
        self._charge(session, "synthesis")
        try:
            run = await self.board.stream_synthesis(
                BoardRequest(
                    action="BETTING",
                    type="synthesis",
                    agent_a=agent_a,
                    agent_b=agent_b,
                    user_context=session.user_context,
                )
            )
            text = await collect_text(run)
        finally:
            self._sync_balance(session)

        session.synthesis = text
        return text
