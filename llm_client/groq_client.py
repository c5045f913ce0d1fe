"""Groq chat-completion client used for one-shot and streaming generation"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import groq
import httpx

from .exceptions import AuthError, RateLimitError, UpstreamError

logger = logging.getLogger(__name__)


class GroqClient:
    """Client for Groq API

    The request shape is fixed per instance: a system/user message pair,
    one temperature, one max-token ceiling and one model.
    """

    DEFAULT_MODEL = "llama-3.3-70b-versatile"
    DEFAULT_TEMPERATURE = 0.7
    DEFAULT_MAX_TOKENS = 240
    KEY_PREFIX = "gsk_"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        request_timeout: float = 30.0,
        retry_backoff: float = 1.0,
    ):
        """Initialize the Groq client

        Args:
            api_key: Groq API key. If not provided, reads from GROQ_API_KEY env var.
            model: Model to use (defaults to DEFAULT_MODEL)
            temperature: Sampling temperature sent with every request
            max_tokens: Maximum tokens in every response
            request_timeout: Transport timeout in seconds
            retry_backoff: Base wait in seconds between rate-limit retries

        A missing key is not an error here; it surfaces as AuthError on the
        first call so the client can be built once at startup.
        """
        self.api_key = api_key or os.getenv("GROQ_API_KEY", "")
        self.model = model or self.DEFAULT_MODEL
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.request_timeout = request_timeout
        self.retry_backoff = retry_backoff
        self._client = None

    @property
    def has_valid_credential(self) -> bool:
        return bool(self.api_key) and self.api_key.startswith(self.KEY_PREFIX)

    def ensure_credential(self) -> None:
        """Raise AuthError unless a syntactically valid key is configured"""
        if not self.has_valid_credential:
            raise AuthError(
                "GROQ_API_KEY not found or malformed. Set it as an environment variable or pass it to the constructor."
            )

    def _get_client(self) -> groq.AsyncGroq:
        """Lazy initialization of Groq client"""
        if self._client is None:
            # Retries are handled here; the SDK's own would stretch stream latency
            self._client = groq.AsyncGroq(
                api_key=self.api_key,
                timeout=self.request_timeout,
                max_retries=0,
            )
        return self._client

    def _request(self, system_prompt: str, user_content: str) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    async def complete_once(
        self,
        system_prompt: str,
        user_content: str,
        max_retries: int = 2,
    ) -> str:
        """Get a full response from Groq API

        Args:
            system_prompt: System prompt
            user_content: User message
            max_retries: Number of attempts on rate limit

        Returns:
            Response text

        Raises:
            AuthError: If no valid API key is configured
            RateLimitError: If rate limited after all retries
            UpstreamError: For other API or transport errors
        """
        self.ensure_credential()
        client = self._get_client()

        for attempt in range(max_retries):
            try:
                response = await client.chat.completions.create(
                    **self._request(system_prompt, user_content)
                )
                return response.choices[0].message.content or ""

            except groq.RateLimitError:
                wait_time = self.retry_backoff * (attempt + 1)
                if attempt < max_retries - 1:
                    logger.warning("Groq rate limited, retrying in %.1fs", wait_time)
                    await asyncio.sleep(wait_time)
                    continue
                raise RateLimitError(
                    f"API rate limit exceeded after {max_retries} retries",
                    retry_after=60,
                )

            except groq.APIStatusError as e:
                raise UpstreamError(f"Groq API error: {e}", status_code=e.status_code) from e

            except groq.APIError as e:
                raise UpstreamError(f"Groq API error: {e}") from e

        raise UpstreamError("Unexpected error in complete_once")

    @asynccontextmanager
    async def complete_stream(
        self, system_prompt: str, user_content: str
    ) -> AsyncIterator[AsyncIterator[bytes]]:
        """Open a streaming completion and yield its raw byte iterator

        The bytes are the upstream server-sent-event body, unparsed. The
        response is closed when the context exits.

        Raises:
            AuthError: If no valid API key is configured
            RateLimitError: On HTTP 429
            UpstreamError: On any other status or transport failure
        """
        self.ensure_credential()
        client = self._get_client()

        try:
            async with client.chat.completions.with_streaming_response.create(
                **self._request(system_prompt, user_content),
                stream=True,
            ) as response:
                yield response.iter_bytes()
        except groq.RateLimitError as e:
            raise RateLimitError("API rate limit exceeded") from e
        except groq.APIStatusError as e:
            raise UpstreamError(f"Groq API error: {e}", status_code=e.status_code) from e
        except (groq.APIError, httpx.HTTPError) as e:
            raise UpstreamError(f"Groq transport error: {e}") from e
