"""Rate limiting configuration"""

import os
from fastapi import FastAPI, Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded


def get_client_ip(request: Request) -> str:
    """Get client IP address, handling proxies"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def rate_limit_enabled() -> bool:
    return os.getenv("RATE_LIMIT_ENABLED", "true").lower() not in ("0", "false", "no")


# Every board step is one upstream generation, so limits are per client IP
limiter = Limiter(key_func=get_client_ip, enabled=rate_limit_enabled())


def setup_rate_limit(app: FastAPI) -> None:
    """Attach the limiter and its 429 handler to the app"""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


def get_rate_limit_string() -> str:
    """Get the rate limit string from environment

    - RATE_LIMIT_PER_MINUTE: requests per minute (default: 30)
    - RATE_LIMIT_PER_DAY: requests per day (default: 1000)
    """
    per_minute = os.getenv("RATE_LIMIT_PER_MINUTE", "30")
    per_day = os.getenv("RATE_LIMIT_PER_DAY", "1000")
    return f"{per_minute}/minute;{per_day}/day"
