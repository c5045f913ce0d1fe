"""Data classes for the debate board"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Literal


class ConfidenceLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @classmethod
    def parse(cls, value: Any) -> "ConfidenceLevel":
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.MEDIUM


def _first_text(raw: dict, *keys: str) -> str:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


@dataclass
class MemoryFragment:
    """One piece of remembered background knowledge"""
    name: str
    confidence_level: ConfidenceLevel = ConfidenceLevel.MEDIUM
    content: str = ""
    description: str = ""
    third_person_description: str = ""
    source_topics: list[str] = field(default_factory=list)

    @classmethod
    def from_raw(cls, raw: Any) -> "MemoryFragment":
        """Build a fragment from an external record

        Accepts a bare tag string or a dict using either the private or the
        public field names of the identity provider.
        """
        if isinstance(raw, MemoryFragment):
            return raw
        if not isinstance(raw, dict):
            return cls(name=str(raw))

        topics = raw.get("sourceTopics") or raw.get("source_topics") or []
        if not isinstance(topics, list):
            topics = []
        return cls(
            name=_first_text(raw, "shadeName", "shadeNamePublic", "name") or "Unknown",
            confidence_level=ConfidenceLevel.parse(
                raw.get("confidenceLevel") or raw.get("confidence_level") or "MEDIUM"
            ),
            content=_first_text(raw, "shadeContent", "shadeContentPublic", "content"),
            description=_first_text(raw, "shadeDescription", "shadeDescriptionPublic", "description"),
            third_person_description=_first_text(
                raw, "shadeDescriptionThirdView", "third_person_description"
            ),
            source_topics=[str(t) for t in topics],
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "confidence_level": self.confidence_level.value,
            "content": self.content,
            "description": self.description,
            "third_person_description": self.third_person_description,
            "source_topics": list(self.source_topics),
        }


def parse_fragments(raw: Any) -> list[MemoryFragment]:
    if not isinstance(raw, list):
        return []
    return [MemoryFragment.from_raw(item) for item in raw]


@dataclass
class NPC:
    """Static roster persona"""
    id: str
    name: str
    avatar: str
    system_prompt: str
    shades: list[str] = field(default_factory=list)


@dataclass
class UserRecord:
    """Persisted profile of a real user"""
    id: str
    name: str
    avatar: str = ""
    shades: list[MemoryFragment] = field(default_factory=list)
    wealth: int = 100
    last_seen: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class AgentProfile:
    """A resolved debater, built fresh for each lookup"""
    id: str
    name: str
    is_npc: bool
    persona: str
    fragments: list[MemoryFragment] = field(default_factory=list)
    avatar: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "avatar": self.avatar,
            "shades": [f.to_dict() for f in self.fragments],
            "system_prompt": self.persona,
            "is_npc": self.is_npc,
        }


@dataclass
class Message:
    """A single board message"""
    agent_id: str
    agent_name: str
    content: str
    round: Literal[1, 2]
    extra_content: Optional[str] = None
    extra_type: Optional[Literal["critique", "deep_dive"]] = None

    def to_dict(self) -> dict:
        return {
            "agent_id": self.agent_id,
            "agent_name": self.agent_name,
            "content": self.content,
            "round": self.round,
            "extra_content": self.extra_content,
            "extra_type": self.extra_type,
        }


class Phase(str, Enum):
    AUDITION = "audition"
    BETTING = "betting"


class Stage(str, Enum):
    NOT_STARTED = "not_started"
    MATCHED = "matched"
    AUDITION_R1 = "audition_r1"
    AUDITION_R2 = "audition_r2"
    BETTING = "betting"


@dataclass
class BoardRequest:
    """One inbound action, independent of transport"""
    action: Literal["MATCH", "AUDITION", "BETTING"]
    user_context: str = ""
    agent_id: str = ""
    type: Optional[Literal["critique", "deep_dive", "synthesis"]] = None
    round: Optional[int] = None
    target_content: Optional[str] = None
    target_agent_name: Optional[str] = None
    agent_a: str = ""
    agent_b: str = ""
    agent_ids: Optional[list[str]] = None


@dataclass
class DebateSession:
    """Ephemeral board state held by the caller"""
    user_context: str = ""
    owner_id: Optional[str] = None
    agents: list[AgentProfile] = field(default_factory=list)
    messages: dict[str, list[Message]] = field(default_factory=dict)
    phase: Phase = Phase.AUDITION
    stage: Stage = Stage.NOT_STARTED
    chips: int = 100
    insights: dict[str, str] = field(default_factory=dict)
    synthesis: Optional[str] = None

    def add_message(self, message: Message) -> None:
        self.messages.setdefault(message.agent_id, []).append(message)

    def find_message(self, agent_id: str, round: int) -> Optional[Message]:
        for message in self.messages.get(agent_id, []):
            if message.round == round:
                return message
        return None

    def agent(self, agent_id: str) -> Optional[AgentProfile]:
        for profile in self.agents:
            if profile.id == agent_id:
                return profile
        return None

    def to_dict(self) -> dict:
        return {
            "user_context": self.user_context,
            "agents": [a.to_dict() for a in self.agents],
            "messages": {
                agent_id: [m.to_dict() for m in msgs]
                for agent_id, msgs in self.messages.items()
            },
            "phase": self.phase.value,
            "stage": self.stage.value,
            "chips": self.chips,
            "insights": dict(self.insights),
            "synthesis": self.synthesis,
        }
