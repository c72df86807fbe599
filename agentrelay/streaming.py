"""
agentrelay - SSE Streaming Support

Decodes the ``data:`` records of a Server-Sent Events byte stream into stream
events, and encodes stream events back into SSE records so they can be
re-exposed as an HTTP response.
"""

import codecs
import json
import logging
from typing import Any, AsyncIterable, AsyncIterator, Optional, Union

from .events import BaseStreamEvent, create_internal_error_event, safe_parse_stream_event

logger = logging.getLogger("agentrelay.streaming")

DATA_PREFIX = "data: "
DONE_PAYLOAD = "[DONE]"
DONE_RECORD = f"{DATA_PREFIX}{DONE_PAYLOAD}\n\n".encode()


class SSEDecoder:
    """
    Incremental decoder for ``data:`` records.

    Chunks may split lines, and UTF-8 sequences, at arbitrary positions. Only
    complete lines are emitted; the trailing fragment is held back until the
    next chunk arrives and is discarded if the stream ends without a newline.

    Usage:
        ```python
        decoder = SSEDecoder()
        async for chunk in response.aiter_bytes():
            for payload in decoder.feed(chunk):
                handle(payload)
        ```
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[str]:
        """Consume a chunk and return the payloads of every completed data record."""
        self._buffer += self._decoder.decode(chunk)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()

        payloads = []
        for line in lines:
            payload = _data_payload(line)
            if payload is not None:
                payloads.append(payload)
        return payloads

    def close(self) -> None:
        """Signal end-of-stream. An incomplete trailing line is dropped."""
        self._buffer += self._decoder.decode(b"", final=True)
        if self._buffer:
            logger.debug("Discarding incomplete SSE line at end of stream")
        self._buffer = ""


def _data_payload(line: str) -> Optional[str]:
    line = line.rstrip("\r")
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX):]
    if payload == DONE_PAYLOAD:
        return None
    return payload


def decode_record(payload: str) -> Optional[BaseStreamEvent]:
    """Turn a record payload into an event, or ``None`` if it is malformed."""
    try:
        value = json.loads(payload)
    except (ValueError, RecursionError):
        logger.debug("Skipping malformed SSE record: %.200s", payload)
        return None

    parsed = safe_parse_stream_event(value)
    if not parsed.success:
        logger.debug("Skipping unrecognized stream event: %s", parsed.error)
        return None
    return parsed.event


async def iter_sse_data(chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """Yield the payload of each ``data:`` record in a byte stream."""
    decoder = SSEDecoder()
    async for chunk in chunks:
        for payload in decoder.feed(chunk):
            yield payload
    decoder.close()


async def iter_stream_events(chunks: AsyncIterable[bytes]) -> AsyncIterator[BaseStreamEvent]:
    """Yield validated stream events from a byte stream, dropping malformed records."""
    async for payload in iter_sse_data(chunks):
        event = decode_record(payload)
        if event is not None:
            yield event


# ==================== Encoding ====================


def _event_json(event: Union[BaseStreamEvent, dict[str, Any]]) -> str:
    data = event.to_dict() if isinstance(event, BaseStreamEvent) else event
    return json.dumps(data, separators=(",", ":"))


def encode_sse_record(event: Union[BaseStreamEvent, dict[str, Any]]) -> bytes:
    """Encode one event as a ``data: <json>`` record."""
    return f"{DATA_PREFIX}{_event_json(event)}\n\n".encode()


async def _iter_payloads(events: AsyncIterable[BaseStreamEvent]) -> AsyncIterator[str]:
    try:
        async for event in events:
            yield _event_json(event)
    except Exception as e:
        logger.exception("Event stream failed while encoding")
        yield _event_json(create_internal_error_event(str(e) or "Unknown error"))
        return
    yield DONE_PAYLOAD


async def to_sse_stream(events: AsyncIterable[BaseStreamEvent]) -> AsyncIterator[bytes]:
    """
    Serialize an event stream as SSE bytes.

    Each event becomes ``data: <json>\\n\\n`` and the stream ends with
    ``data: [DONE]\\n\\n``. If the source fails, a single internal error record
    is emitted instead of the sentinel.
    """
    async for payload in _iter_payloads(events):
        yield f"{DATA_PREFIX}{payload}\n\n".encode()


def event_source_response(events: AsyncIterable[BaseStreamEvent], **kwargs: Any) -> Any:
    """
    Wrap an event stream in an ``sse_starlette`` response for FastAPI/Starlette routes.

    Usage:
        ```python
        @app.post("/chat")
        async def chat(body: dict):
            return event_source_response(session.execute(parse_socket_message(body)))
        ```
    """
    try:
        from sse_starlette.sse import EventSourceResponse
    except ImportError:
        raise ImportError(
            "SSE responses require the 'server' extras. "
            "Install with: pip install agentrelay[server]"
        )

    async def records() -> AsyncIterator[dict[str, str]]:
        async for payload in _iter_payloads(events):
            yield {"data": payload}

    kwargs.setdefault("sep", "\n")
    return EventSourceResponse(records(), **kwargs)
