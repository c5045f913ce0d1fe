"""Streaming generation under a first-chunk deadline and an overall deadline

A ``StreamRun`` reads the upstream body in a background task and hands text
to the caller through a queue. The caller side waits on that queue with the
tighter of the two deadlines still in force, so whichever of (reader event,
first-chunk deadline, overall deadline) resolves first decides how the run
ends. Every run ends in exactly one of DONE, TIMEOUT_FALLBACK or
ERROR_FALLBACK.
"""

import asyncio
import codecs
import json
import logging
import os
import time
from enum import Enum
from typing import AsyncIterator, Optional

from .exceptions import GenerationTimeout

logger = logging.getLogger(__name__)

STREAM_TIMEOUT_SECONDS = 8.5
STREAM_FIRST_CHUNK_TIMEOUT_SECONDS = 8.0

FRAME_MARKER = "data:"
DONE_TOKEN = "[DONE]"


class StreamState(str, Enum):
    INIT = "init"
    STREAMING = "streaming"
    DONE = "done"
    TIMEOUT_FALLBACK = "timeout_fallback"
    ERROR_FALLBACK = "error_fallback"


def extract_text(payload: str) -> str:
    """Pull the text fragment out of one decoded frame payload

    Returns an empty string for anything that is not a JSON object carrying
    text; the wire protocol tolerates noise frames.
    """
    try:
        data = json.loads(payload)
    except ValueError:
        return ""
    if not isinstance(data, dict):
        return ""

    choices = data.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        first = choices[0]
        for key in ("delta", "message"):
            part = first.get(key)
            if isinstance(part, dict) and isinstance(part.get("content"), str) and part["content"]:
                return part["content"]

    text = data.get("text")
    return text if isinstance(text, str) else ""


class SSEFrameParser:
    """Incremental parser for newline-delimited ``data:`` frames"""

    def __init__(self, marker: str = FRAME_MARKER, done_token: str = DONE_TOKEN):
        self.marker = marker
        self.done_token = done_token
        self.finished = False
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, data: bytes) -> list[str]:
        """Consume raw bytes and return the text fragments of complete frames

        Sets ``finished`` once the end-of-stream token is seen; frames after
        it are ignored.
        """
        if self.finished:
            return []

        self._buffer += self._decoder.decode(data)
        *lines, self._buffer = self._buffer.split("\n")

        fragments = []
        for line in lines:
            line = line.strip()
            if not line.startswith(self.marker):
                continue
            payload = line[len(self.marker):].strip()
            if payload == self.done_token:
                self.finished = True
                break
            text = extract_text(payload)
            if text:
                fragments.append(text)
        return fragments


def timeout_envelope(fallback_text: str) -> bytes:
    return json.dumps(
        {"error": "timeout", "content": fallback_text}, ensure_ascii=False
    ).encode("utf-8")


class StreamRun:
    """One streaming generation; iterate it once with ``async for``

    The upstream request starts as soon as the run is built, so it must be
    created inside a running event loop. Events carry their arrival time and
    anything that arrived before the deadline is still delivered, however
    late the caller starts iterating.
    """

    def __init__(
        self,
        client,
        system_prompt: str,
        user_content: str,
        fallback_text: str,
        overall_timeout: float,
        first_chunk_timeout: float,
    ):
        self._client = client
        self.system_prompt = system_prompt
        self.user_content = user_content
        self.fallback_text = fallback_text
        self.overall_timeout = overall_timeout
        self.first_chunk_timeout = first_chunk_timeout
        self.first_token_received = False
        self._started = time.monotonic()
        self._consumed = False
        self._queue: asyncio.Queue = asyncio.Queue()
        self._reader = asyncio.create_task(self._read_upstream())
        self.state = StreamState.STREAMING

    def __aiter__(self) -> AsyncIterator[bytes]:
        if self._consumed:
            raise RuntimeError("StreamRun can only be iterated once")
        self._consumed = True
        return self._run()

    def _deadline(self) -> float:
        overall = self._started + self.overall_timeout
        if self.first_token_received:
            return overall
        return min(overall, self._started + self.first_chunk_timeout)

    def _put(self, kind: str, value) -> None:
        self._queue.put_nowait((kind, value, time.monotonic()))

    async def _read_upstream(self) -> None:
        parser = SSEFrameParser()
        try:
            async with self._client.complete_stream(self.system_prompt, self.user_content) as chunks:
                async for data in chunks:
                    for text in parser.feed(data):
                        self._put("text", text)
                    if parser.finished:
                        break
        except Exception as exc:  # noqa: BLE001
            self._put("error", exc)
            return
        self._put("done", None)

    async def _next_event(self) -> tuple:
        """Next reader event that arrived before the deadline in force

        Raises:
            asyncio.TimeoutError: If the deadline passed first
        """
        deadline = self._deadline()
        remaining = deadline - time.monotonic()
        if remaining > 0:
            return await asyncio.wait_for(self._queue.get(), remaining)
        try:
            event = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            raise asyncio.TimeoutError from None
        if event[2] > deadline:
            raise asyncio.TimeoutError
        return event

    async def _run(self) -> AsyncIterator[bytes]:
        try:
            while True:
                try:
                    kind, value, _ = await self._next_event()
                except asyncio.TimeoutError:
                    self._reader.cancel()
                    self.state = StreamState.TIMEOUT_FALLBACK
                    error = GenerationTimeout(first_chunk=not self.first_token_received)
                    logger.warning(
                        "stream timeout: %s (first_chunk=%s, elapsed=%.2fs)",
                        error, error.first_chunk, self.elapsed,
                    )
                    yield timeout_envelope(self.fallback_text)
                    return

                if kind == "text":
                    self.first_token_received = True
                    yield value.encode("utf-8")
                elif kind == "done":
                    self.state = StreamState.DONE
                    logger.debug("stream done in %.2fs", self.elapsed)
                    return
                else:
                    if self.first_token_received:
                        self.state = StreamState.DONE
                        logger.warning("stream failed after partial output: %s", value)
                        return
                    self.state = StreamState.ERROR_FALLBACK
                    logger.warning("stream failed before first chunk: %s", value)
                    yield self.fallback_text.encode("utf-8")
                    return
        finally:
            if not self._reader.done():
                self._reader.cancel()

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._started


class StreamOrchestrator:
    """Runs streaming completions with fallback text on stall or failure

    Timeouts not passed in are read from STREAM_TIMEOUT_SECONDS and
    STREAM_FIRST_CHUNK_TIMEOUT_SECONDS, falling back to the module defaults.
    """

    def __init__(
        self,
        client,
        overall_timeout: Optional[float] = None,
        first_chunk_timeout: Optional[float] = None,
    ):
        self.client = client
        if overall_timeout is None:
            overall_timeout = float(os.getenv("STREAM_TIMEOUT_SECONDS", STREAM_TIMEOUT_SECONDS))
        if first_chunk_timeout is None:
            first_chunk_timeout = float(
                os.getenv("STREAM_FIRST_CHUNK_TIMEOUT_SECONDS", STREAM_FIRST_CHUNK_TIMEOUT_SECONDS)
            )
        self.overall_timeout = overall_timeout
        self.first_chunk_timeout = first_chunk_timeout

    def produce_stream(self, system_prompt: str, user_content: str, fallback_text: str) -> StreamRun:
        """Start a run; both deadlines count from this call

        Raises:
            AuthError: If the client has no usable credential
        """
        self.client.ensure_credential()
        return StreamRun(
            self.client,
            system_prompt,
            user_content,
            fallback_text,
            overall_timeout=self.overall_timeout,
            first_chunk_timeout=self.first_chunk_timeout,
        )


async def collect_text(run: StreamRun) -> str:
    """Drain a run into plain text

    On timeout the envelope is unwrapped: its fallback content replaces the
    output, or follows the partial text already received.
    """
    chunks = [chunk async for chunk in run]
    if run.state != StreamState.TIMEOUT_FALLBACK:
        return b"".join(chunks).decode("utf-8", errors="replace")

    envelope = json.loads(chunks.pop().decode("utf-8"))
    partial = b"".join(chunks).decode("utf-8", errors="replace")
    if not partial:
        return envelope["content"]
    return f"{partial}\n{envelope['content']}"
