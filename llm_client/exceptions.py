"""Exceptions for LLM client"""


class LLMError(Exception):
    """Base exception for LLM errors"""
    pass


class ConfigError(LLMError):
    """Raised when the client is not usable as configured"""

    def __init__(self, message: str = "LLM client is misconfigured"):
        super().__init__(message)


class AuthError(ConfigError):
    """Raised when API key is missing or malformed"""

    def __init__(self, message: str = "API key is missing or invalid"):
        super().__init__(message)


class UpstreamError(LLMError):
    """Raised on a non-success status or a transport failure"""

    def __init__(self, message: str = "Upstream request failed", status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(UpstreamError):
    """Raised when API rate limit is exceeded"""

    def __init__(self, message: str = "API rate limit exceeded", retry_after: int = 60):
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class GenerationTimeout(LLMError):
    """Raised (or logged) when a stream misses one of its deadlines"""

    def __init__(self, message: str = "Generation timed out", first_chunk: bool = False):
        super().__init__(message)
        self.first_chunk = first_chunk
