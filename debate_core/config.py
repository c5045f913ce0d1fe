"""Default configuration for the debate board"""

import os

from .types import NPC

# Static NPC roster
NPC_ROSTER = [
    NPC(
        id="steve-product-tyrant",
        name="Steve (Product Tyrant)",
        avatar="https://i.pravatar.cc/150?img=12",
        system_prompt=(
            "You are an uncompromising product purist. You go straight for the "
            "hard flaws in product experience and interaction details."
        ),
        shades=["Product", "UX", "Experience", "Feedback"],
    ),
    NPC(
        id="kevin-greedy-vc",
        name="Kevin (Greedy VC)",
        avatar="https://i.pravatar.cc/150?img=68",
        system_prompt=(
            "You see everything through cold capital. You tear into business "
            "models and return structures."
        ),
        shades=["Investment", "Business", "Revenue", "Risk"],
    ),
    NPC(
        id="woz-tech-pessimist",
        name="Woz (Tech Pessimist)",
        avatar="https://i.pravatar.cc/150?img=33",
        system_prompt=(
            "You are a technology pessimist. You attack delivery difficulty, "
            "reliability and engineering limits."
        ),
        shades=["Tech", "Architecture", "Reliability", "Scaling"],
    ),
]

BOARD_SIZE = 3
MAX_REAL_AGENTS = 2

# Profile ids from the store arrive with one of these prefixes
ID_PREFIXES = ("db_", "real_")
REAL_ID_PREFIX = "db_"

ANONYMOUS_NAME = "Anonymous Expert"
DEFAULT_OPPONENT_NAME = "Opponent"
AVATAR_URL_TEMPLATE = "https://api.dicebear.com/7.x/avataaars/svg?seed={seed}"

# Text that marks a previous turn as canned fallback output
FAILURE_MARKERS = (
    "[ERROR]",
    "network fluctuation",
    "system busy",
    "compute fluctuation",
    "model busy",
    "网络波动",
    "系统繁忙",
    "算力波动",
    "模型繁忙",
)

# Chips
STARTING_CHIPS = 100
PAID_ACTION_COSTS = {
    "critique": 10,
    "deep_dive": 20,
    "synthesis": 30,
}

# Pacing between round-2 steps, to stay under upstream rate limits
ROUND_TWO_START_DELAY_SECONDS = float(os.getenv("ROUND_TWO_START_DELAY_SECONDS", "1.0"))
ROUND_TWO_STEP_DELAY_SECONDS = float(os.getenv("ROUND_TWO_STEP_DELAY_SECONDS", "0.5"))

# LLM settings
LLM_MODEL = os.getenv("LLM_MODEL", "llama-3.3-70b-versatile")
LLM_TEMPERATURE = 0.7
LLM_MAX_TOKENS = 240

# Profile store
PROFILE_DB_PATH = os.getenv("PROFILE_DB_PATH", "data/profiles.db")
LEADERBOARD_SIZE = 10
