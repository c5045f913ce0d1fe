"""Middleware and request-level helpers shared by the routes"""

from .cors import setup_cors
from .rate_limit import setup_rate_limit, limiter, get_rate_limit_string
from .logging import setup_logging, LoggingMiddleware

__all__ = [
    "setup_cors",
    "setup_rate_limit",
    "limiter",
    "get_rate_limit_string",
    "setup_logging",
    "LoggingMiddleware",
]
