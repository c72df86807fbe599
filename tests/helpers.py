"""Shared fixtures for exercising the execution loop against a scripted service."""

import asyncio
import json
from typing import Any, AsyncIterator, Callable, Union

import httpx

from agentrelay import AsyncAgentRelayClient

BASE_URL = "https://agents.test"


def sse_body(*events: dict[str, Any], done: bool = True) -> bytes:
    text = "".join(f"data: {json.dumps(event)}\n\n" for event in events)
    if done:
        text += "data: [DONE]\n\n"
    return text.encode()


def stream_response(*events: dict[str, Any], done: bool = True) -> httpx.Response:
    return httpx.Response(
        200,
        content=sse_body(*events, done=done),
        headers={"content-type": "text/event-stream"},
    )


def chunked_response(body: bytes, size: int) -> httpx.Response:
    async def chunks() -> AsyncIterator[bytes]:
        for i in range(0, len(body), size):
            yield body[i : i + size]

    return httpx.Response(200, content=chunks(), headers={"content-type": "text/event-stream"})


def hanging_response(*events: dict[str, Any]) -> httpx.Response:
    """Sends ``events`` and then never closes the stream."""

    async def chunks() -> AsyncIterator[bytes]:
        yield sse_body(*events, done=False)
        await asyncio.Event().wait()

    return httpx.Response(200, content=chunks(), headers={"content-type": "text/event-stream"})


Scripted = Union[httpx.Response, Callable[[httpx.Request], Any]]


class ScriptedService:
    """Replays canned responses in order and records every request it receives."""

    def __init__(self, *responses: Scripted):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request to {request.url}")
        response = self.responses.pop(0)
        if callable(response):
            response = response(request)
            if asyncio.iscoroutine(response):
                response = await response
        return response

    @property
    def bodies(self) -> list[Any]:
        return [json.loads(request.content) for request in self.requests]

    def client(self) -> AsyncAgentRelayClient:
        return AsyncAgentRelayClient(
            base_url=BASE_URL,
            api_key="test-key",
            transport=httpx.MockTransport(self),
        )


async def collect(events: AsyncIterator[Any]) -> list[Any]:
    return [event async for event in events]


def dicts(events: list[Any]) -> list[dict[str, Any]]:
    return [event.to_dict() for event in events]
