"""Agent id resolution"""

import logging
from typing import Optional
from urllib.parse import unquote

from .config import ANONYMOUS_NAME, AVATAR_URL_TEMPLATE, ID_PREFIXES, NPC_ROSTER, REAL_ID_PREFIX
from .exceptions import LookupMiss
from .prompts import build_persona_prompt
from .store import ProfileStore
from .types import NPC, AgentProfile, MemoryFragment, UserRecord

logger = logging.getLogger(__name__)


def safe_decode(value: str) -> str:
    """URL-decode a display name, leaving undecodable input as it was"""
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError:
        return value


def canonical_id(raw_id: str) -> str:
    """Strip the store prefix from an agent id"""
    for prefix in ID_PREFIXES:
        if raw_id.startswith(prefix):
            return raw_id[len(prefix):]
    return raw_id


def profile_from_npc(npc: NPC) -> AgentProfile:
    return AgentProfile(
        id=npc.id,
        name=npc.name,
        is_npc=True,
        persona=npc.system_prompt,
        fragments=[MemoryFragment.from_raw(tag) for tag in npc.shades],
        avatar=npc.avatar,
    )


def profile_from_user(record: UserRecord) -> AgentProfile:
    name = record.name or "User"
    return AgentProfile(
        id=f"{REAL_ID_PREFIX}{record.id}",
        name=name,
        is_npc=False,
        persona=build_persona_prompt(safe_decode(name), record.shades),
        fragments=list(record.shades),
        avatar=record.avatar or AVATAR_URL_TEMPLATE.format(seed=name),
    )


def anonymous_profile() -> AgentProfile:
    return AgentProfile(
        id="anonymous",
        name=ANONYMOUS_NAME,
        is_npc=False,
        persona=build_persona_prompt(ANONYMOUS_NAME, []),
        avatar=AVATAR_URL_TEMPLATE.format(seed="anonymous"),
    )


class AgentResolver:
    """Maps agent ids to freshly built profiles"""

    def __init__(self, store: Optional[ProfileStore] = None, roster: Optional[list[NPC]] = None):
        self.store = store
        self.roster = NPC_ROSTER if roster is None else roster

    async def resolve_agent(self, raw_id: str) -> AgentProfile:
        """Resolve an id from the roster, then the store, then the default

        Raises:
            ValueError: If raw_id is empty
        """
        if not raw_id:
            raise ValueError("agent id must not be empty")

        for npc in self.roster:
            if npc.id == raw_id:
                return profile_from_npc(npc)

        if self.store is not None:
            user_id = canonical_id(raw_id)
            try:
                record = await self.store.get_user(user_id)
            except LookupMiss:
                logger.info("No profile for %s, using anonymous persona", user_id)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Profile lookup for %s failed: %s", user_id, exc)
            else:
                profile = profile_from_user(record)
                profile.id = raw_id
                return profile

        return anonymous_profile()
