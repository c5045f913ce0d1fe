"""LLM Client - Groq transport and bounded-latency streaming"""

from .exceptions import (
    LLMError,
    ConfigError,
    AuthError,
    UpstreamError,
    RateLimitError,
    GenerationTimeout,
)
from .groq_client import GroqClient
from .stream import StreamOrchestrator, StreamRun, StreamState, SSEFrameParser, collect_text

__all__ = [
    "LLMError",
    "ConfigError",
    "AuthError",
    "UpstreamError",
    "RateLimitError",
    "GenerationTimeout",
    "GroqClient",
    "StreamOrchestrator",
    "StreamRun",
    "StreamState",
    "SSEFrameParser",
    "collect_text",
]
