"""Debate Core - persona prompts, matchmaking and debate sequencing"""

from .types import (
    AgentProfile,
    BoardRequest,
    ConfidenceLevel,
    DebateSession,
    MemoryFragment,
    Message,
    NPC,
    Phase,
    Stage,
    UserRecord,
)
from .config import NPC_ROSTER
from .exceptions import (
    DebateError,
    DebateStateError,
    InsufficientChipsError,
    LookupMiss,
    SelfMatchError,
)
from .prompts import build_context, build_opponent_anchor, build_persona_prompt
from .resolver import AgentResolver
from .matchmaker import MatchMaker
from .store import InMemoryProfileStore, ProfileStore, SQLiteProfileStore
from .board import BoardService
from .controller import DebateController

__all__ = [
    "AgentProfile",
    "BoardRequest",
    "ConfidenceLevel",
    "DebateSession",
    "MemoryFragment",
    "Message",
    "NPC",
    "Phase",
    "Stage",
    "UserRecord",
    "NPC_ROSTER",
    "DebateError",
    "DebateStateError",
    "InsufficientChipsError",
    "LookupMiss",
    "SelfMatchError",
    "build_context",
    "build_opponent_anchor",
    "build_persona_prompt",
    "AgentResolver",
    "MatchMaker",
    "InMemoryProfileStore",
    "ProfileStore",
    "SQLiteProfileStore",
    "BoardService",
    "DebateController",
]
