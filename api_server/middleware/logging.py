"""Logging configuration"""

import json
import logging
import os
import time
import uuid
from typing import Callable
from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


def setup_logging() -> logging.Logger:
    """Configure JSON-style logging for the server and the board packages

    LOG_LEVEL sets the level (default INFO).
    """
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": %(message)s}',
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    for name in ("debate_core", "llm_client"):
        logging.getLogger(name).setLevel(level)
    return logging.getLogger("api_server")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request/response logging

    For streamed board responses the duration covers time to headers, not
    the full stream.
    """

    def __init__(self, app: FastAPI):
        super().__init__(app)
        self.logger = logging.getLogger("api_server")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()
        request.state.request_id = request_id

        response = await call_next(request)

        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round((time.time() - start_time) * 1000, 2),
            "ip": request.client.host if request.client else "unknown",
            "streamed": response.headers.get("content-type", "").startswith("text/event-stream"),
        }
        message = json.dumps(log_data)

        if response.status_code >= 500:
            self.logger.error(message)
        elif response.status_code >= 400:
            self.logger.warning(message)
        else:
            self.logger.info(message)

        response.headers["X-Request-ID"] = request_id
        return response
