"""Board matchmaking"""

import logging
import random
from typing import Optional

from .config import BOARD_SIZE, MAX_REAL_AGENTS
from .exceptions import SelfMatchError
from .resolver import canonical_id, profile_from_npc, profile_from_user
from .types import NPC, AgentProfile, UserRecord

logger = logging.getLogger(__name__)


class MatchMaker:
    """Seats up to two real users and at least one NPC

    Sampling is random by design; pass a seeded ``random.Random`` to make it
    reproducible.
    """

    def __init__(self, rng: Optional[random.Random] = None, board_size: int = BOARD_SIZE):
        self.rng = rng or random.Random()
        self.board_size = board_size

    def _is_self(self, self_id: Optional[str], agent_id: str) -> bool:
        return bool(self_id) and canonical_id(agent_id) == canonical_id(self_id)

    def _real_pool(self, self_id: Optional[str], real_candidates: list[UserRecord]) -> list[UserRecord]:
        return [u for u in real_candidates if not self._is_self(self_id, u.id)]

    def _sample_board(
        self,
        self_id: Optional[str],
        real_candidates: list[UserRecord],
        npc_roster: list[NPC],
    ) -> list[AgentProfile]:
        pool = self._real_pool(self_id, real_candidates)
        reals = self.rng.sample(pool, min(MAX_REAL_AGENTS, len(pool)))
        npcs_needed = self.board_size - len(reals)
        npcs = self.rng.sample(npc_roster, npcs_needed)
        return [profile_from_user(u) for u in reals] + [profile_from_npc(n) for n in npcs]

    def match(
        self,
        self_id: Optional[str],
        real_candidates: list[UserRecord],
        npc_roster: list[NPC],
    ) -> list[AgentProfile]:
        """Return exactly ``board_size`` profiles, none of them the caller

        Args:
            self_id: Id of the session owner, if known
            real_candidates: Real users that may be seated
            npc_roster: Static NPC roster

        Raises:
            ValueError: If the roster cannot fill the seats real users leave open
            SelfMatchError: If the owner is still seated after one retry
        """
        reals_available = min(MAX_REAL_AGENTS, len(self._real_pool(self_id, real_candidates)))
        npcs_needed = self.board_size - reals_available
        if len(npc_roster) < npcs_needed:
            raise ValueError(
                f"NPC roster has {len(npc_roster)} entries, need {npcs_needed}"
            )

        board = self._sample_board(self_id, real_candidates, npc_roster)
        if any(self._is_self(self_id, agent.id) for agent in board):
            logger.warning("Self-match for %s, resampling once", self_id)
            board = self._sample_board(self_id, real_candidates, npc_roster)
        if any(self._is_self(self_id, agent.id) for agent in board):
            raise SelfMatchError(self_id)
        return board
