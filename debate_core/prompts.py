"""Prompt generation for the debate board"""

import re
from typing import Optional

from .config import FAILURE_MARKERS
from .types import AgentProfile, MemoryFragment

NO_MEMORY_CONTEXT = "No detailed memory available. Reason from general knowledge."
FRAGMENT_DELIMITER = "\n----------------\n"

BIAS_NOTE = (
    "Do not use stock AI phrasing. Give a concrete, sharp and openly biased "
    "judgement grounded in your own background."
)
IGNORE_HISTORY_NOTE = (
    "The previous statement looks like canned fallback text. Ignore it and "
    "comment independently on the user's goal."
)
DEFAULT_USER_MESSAGE = "State your view directly."

_FAILURE_PATTERN = re.compile(
    "|".join(re.escape(marker) for marker in FAILURE_MARKERS), re.IGNORECASE
)


def _render_fragment(index: int, fragment: MemoryFragment) -> str:
    return f"""[Memory fragment {index}: {fragment.name or "Unknown"}]
- Confidence: {fragment.confidence_level.value}
- Core knowledge: {fragment.content or "n/a"}
- Self description: {fragment.description or "n/a"}
- Third-person view: {fragment.third_person_description or "n/a"}
- Source topics: {", ".join(fragment.source_topics)}"""


def build_context(fragments: list[MemoryFragment]) -> str:
    """Render memory fragments as prompt text

    Args:
        fragments: Fragments in the order they should appear

    Returns:
        One block per fragment joined by FRAGMENT_DELIMITER, or the
        no-memory stub for an empty list
    """
    if not fragments:
        return NO_MEMORY_CONTEXT
    return FRAGMENT_DELIMITER.join(
        _render_fragment(i, fragment) for i, fragment in enumerate(fragments, start=1)
    )


def build_persona_prompt(name: str, fragments: list[MemoryFragment]) -> str:
    """Create the impersonation prompt for a real user

    With memory the model must cite it and stay inside it. Without memory it
    plays a decisive industry veteran.
    """
    if fragments:
        return f"""You are the real user [{name}]. What you know is strictly limited to the memories below:
{build_context(fragments)}
Cite these memories explicitly when you speak (for example "When I looked into this before..."). Do not claim anything they do not support."""

    return f"""You represent the real user [{name}]. No detailed profile has been uploaded, so play a sharp, decisive industry veteran.
Hard rules: never say "I have no data" and never say "as an AI". Reason from common industry knowledge and talk like a seasoned insider ("the way I see it", "from an execution standpoint").
Take a clear position. No hedging and no both-sides answers."""


def build_opponent_anchor(target_name: str) -> str:
    """Pin the opponent's name to a human business identity"""
    return (
        f"Note: the person you are debating is a real human named [{target_name}]. "
        "Even if the name sounds like an animal or an object, treat it as the "
        "business identity of a human product manager or founder. Never make "
        "jokes or puns about the name; aim every critique at their business logic."
    )


def should_ignore_history(content: Optional[str]) -> bool:
    """True when earlier content carries a known fallback marker"""
    if not content:
        return False
    return _FAILURE_PATTERN.search(content) is not None


def clean_history(content: Optional[str]) -> str:
    """Strip fallback markers and surrounding whitespace"""
    if not content:
        return ""
    return _FAILURE_PATTERN.sub("", content).strip()


def create_system_base(profile: AgentProfile, target_name: Optional[str] = None) -> str:
    if not target_name:
        return profile.persona
    return f"{profile.persona}\n{build_opponent_anchor(target_name)}"


def create_round_one_prompt(base: str, user_context: str) -> str:
    return f"""{base}
[Task]: Round 1 - constructive proposal.
[User background]: {user_context}
Give one core recommendation directly.
{BIAS_NOTE}"""


def create_round_two_prompt(base: str, target_name: str, target_content: Optional[str]) -> str:
    """Create the attack prompt for round 2

    Args:
        base: Attacker's system base (persona plus opponent anchor)
        target_name: Victim's display name
        target_content: Victim's round-1 statement, possibly fallback text

    Returns:
        Prompt quoting the cleaned statement, or telling the model to ignore
        it when it was fallback output
    """
    if should_ignore_history(target_content):
        history_note = IGNORE_HISTORY_NOTE
        quoted = ""
    else:
        history_note = ""
        quoted = clean_history(target_content)

    return f"""{base}
{history_note}
[Task]: Round 2 - critical attack.
[Target]: {target_name}
[Their view]: "{quoted}"
Hit back directly.
{BIAS_NOTE}"""


def create_critique_prompt(base: str) -> str:
    return f"""{base}
The user paid to turn up the heat. Point out the weaknesses sharply, within 100 words.
{BIAS_NOTE}"""


def create_deep_dive_prompt(base: str) -> str:
    return f"""{base}
The user paid for a deep dive. Give concrete execution steps, within 120 words.
{BIAS_NOTE}"""


def create_synthesis_prompt(user_context: str, agent_a: AgentProfile, agent_b: AgentProfile) -> str:
    """Create the joint-summary prompt for two agents"""
    return f"""[User background]: {user_context}
[Agent A] {agent_a.name}
Profile: {agent_a.persona}
[Agent B] {agent_b.name}
Profile: {agent_b.persona}
Summarise the two agents' views in under 100 words. Output only the conclusion, not the reasoning.
{BIAS_NOTE}"""


def _identity(profile: AgentProfile) -> str:
    return "NPC" if profile.is_npc else "REAL"


def build_timeout_fallback(profile: AgentProfile) -> str:
    """Canned output for a single agent whose generation failed"""
    hint = profile.fragments[0].name if profile.fragments else "Tech"
    return f"[ERROR] {profile.name}({_identity(profile)}) generation_failed: no response. hint={hint}"


def build_synthesis_fallback(agent_a: AgentProfile, agent_b: AgentProfile) -> str:
    return (
        f"[ERROR] {agent_a.name}({_identity(agent_a)}) + "
        f"{agent_b.name}({_identity(agent_b)}) generation_failed: no response."
    )
