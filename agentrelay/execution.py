"""
agentrelay - Streaming execution with tool continuation.

``execute_stream`` drives one invocation against the remote execution
service. An invocation can span several HTTP round trips: whenever the
agent asks for tools that all have local handlers, the handlers run and
their results are posted back transparently. Tools without a handler pause
the invocation with a ``client-tool-request`` event so the caller can
resolve them and continue later.

Usage:
    ```python
    config = StreamExecutionConfig(
        http_client=client.http,
        url=client.url(f"/api/agents/{agent_id}/execute"),
        build_body=lambda state: {"type": "start", "input": {"TOPIC": "tides"}},
        tool_handlers={"web-search": web_search},
    )
    async for event in execute_stream(config):
        print(event.type)
    ```
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Optional

import httpx

from .cancellation import CancellationToken, Cancelled, is_cancelled
from .events import (
    BaseStreamEvent,
    ClientToolRequestEvent,
    FinishEvent,
    ResourceUpdateEvent,
    StartEvent,
    ToolOutputAvailableEvent,
    ToolOutputErrorEvent,
    ToolRequestEvent,
    create_api_error_event,
    create_internal_error_event,
)
from .exceptions import parse_api_error
from .models import FinishReason, PendingToolCall, ToolResult, WireModel
from .streaming import SSEDecoder, decode_record
from .tools import ToolHandler, ToolHandlers, call_tool_handler

logger = logging.getLogger("agentrelay.execution")


@dataclass
class ExecutionState:
    """What the service needs to resume an execution."""

    execution_id: Optional[str] = None
    tool_results: Optional[list[ToolResult]] = None


@dataclass
class StreamExecutionConfig:
    """
    Configuration for one streaming invocation.

    Attributes:
        http_client: Client used to issue the requests. Auth and content-type
            headers are expected to be configured on it.
        url: Full URL every round trip is posted to.
        build_body: Builds the JSON body from the current execution state.
        tool_handlers: Handlers for tools that can be resolved locally.
        on_resource_update: Called with (name, value) for each resource-update event.
        error_context: Prefix for error messages when the response body has none.
    """

    http_client: httpx.AsyncClient
    url: str
    build_body: Callable[[ExecutionState], dict[str, Any]]
    tool_handlers: ToolHandlers = field(default_factory=dict)
    on_resource_update: Optional[Callable[[str, Any], None]] = None
    error_context: str = "Request failed"


async def execute_stream(
    config: StreamExecutionConfig,
    state: Optional[ExecutionState] = None,
    cancel: Optional[CancellationToken] = None,
) -> AsyncIterator[BaseStreamEvent]:
    """
    Run an invocation and yield its events.

    The sequence always ends with exactly one terminal signal: a ``finish``
    event, a ``client-tool-request`` followed by ``finish(client-tool-calls)``,
    an ``error`` event, or a propagated transport exception.

    Args:
        config: Request and tool configuration.
        state: Initial execution id and tool results, when continuing.
        cancel: Token that stops the invocation with ``finish(stop)``.
    """
    state = state or ExecutionState()
    execution_id = state.execution_id
    tool_results = state.tool_results
    round_trip = 0

    while True:
        if is_cancelled(cancel):
            yield _stop_event()
            return

        body = config.build_body(ExecutionState(execution_id, tool_results))
        request = config.http_client.build_request(
            "POST",
            config.url,
            json=_to_json(body),
            headers={"Accept": "text/event-stream"},
        )
        round_trip += 1
        logger.debug("Round trip %d to %s", round_trip, config.url)

        try:
            response = await _guard(cancel, config.http_client.send(request, stream=True))
        except Cancelled:
            yield _stop_event()
            return

        pending: list[PendingToolCall] = []
        finished = False
        try:
            if not response.is_success:
                error = await parse_api_error(response, config.error_context)
                logger.debug("Request failed with status %s: %s", error.status_code, error.message)
                yield create_api_error_event(response.status_code, error.message)
                return

            tool_results = None
            decoder = SSEDecoder()
            chunks = response.aiter_bytes()

            while not finished:
                if is_cancelled(cancel):
                    yield _stop_event()
                    return

                try:
                    chunk = await _guard(cancel, _next_chunk(chunks))
                except Cancelled:
                    yield _stop_event()
                    return
                if chunk is None:
                    decoder.close()
                    break

                for payload in decoder.feed(chunk):
                    if is_cancelled(cancel):
                        yield _stop_event()
                        return

                    event = decode_record(payload)
                    if event is None:
                        continue

                    if isinstance(event, StartEvent):
                        if event.execution_id:
                            if execution_id and event.execution_id != execution_id:
                                logger.warning(
                                    "Execution id changed from %s to %s",
                                    execution_id,
                                    event.execution_id,
                                )
                            execution_id = event.execution_id
                        yield event
                    elif isinstance(event, ToolRequestEvent):
                        pending = list(event.tool_calls)
                    elif isinstance(event, FinishEvent):
                        if event.finish_reason == FinishReason.TOOL_CALLS and pending:
                            continue
                        yield event
                        finished = True
                        break
                    elif isinstance(event, ResourceUpdateEvent):
                        if config.on_resource_update:
                            config.on_resource_update(event.name, event.value)
                        yield event
                    else:
                        yield event
        finally:
            await response.aclose()

        if is_cancelled(cancel):
            yield _stop_event()
            return

        if finished:
            if pending:
                logger.debug("Ignoring %d tool calls after a final finish event", len(pending))
            return

        if not pending:
            logger.warning("Stream from %s ended without a finish event", config.url)
            yield create_internal_error_event("Stream ended before a finish event")
            return

        local_calls = [call for call in pending if call.tool_name in config.tool_handlers]
        client_calls = [call for call in pending if call.tool_name not in config.tool_handlers]

        results: list[ToolResult] = []
        if local_calls:
            logger.debug("Running %d local tool call(s)", len(local_calls))
            results = list(
                await asyncio.gather(
                    *(
                        _run_local_tool(config.tool_handlers[call.tool_name], call)
                        for call in local_calls
                    )
                )
            )

        for result in results:
            if is_cancelled(cancel):
                yield _stop_event()
                return
            if result.is_error:
                yield ToolOutputErrorEvent(tool_call_id=result.tool_call_id, error=result.error)
            else:
                yield ToolOutputAvailableEvent(tool_call_id=result.tool_call_id, output=result.result)

        if client_calls:
            if not execution_id:
                yield create_internal_error_event("Missing executionId for client-tool-request")
                return

            logger.info(
                "Pausing execution %s for %d client tool call(s)",
                execution_id,
                len(client_calls),
            )
            if results:
                yield ClientToolRequestEvent(
                    execution_id=execution_id,
                    tool_calls=client_calls,
                    server_tool_results=results,
                )
            else:
                yield ClientToolRequestEvent(execution_id=execution_id, tool_calls=client_calls)
            yield FinishEvent(
                finish_reason=FinishReason.CLIENT_TOOL_CALLS,
                execution_id=execution_id,
            )
            return

        tool_results = results


def _stop_event() -> FinishEvent:
    return FinishEvent(finish_reason=FinishReason.STOP)


async def _guard(cancel: Optional[CancellationToken], awaitable: Any) -> Any:
    if cancel is None:
        return await awaitable
    return await cancel.race(awaitable)


async def _next_chunk(chunks: AsyncIterator[bytes]) -> Optional[bytes]:
    try:
        return await chunks.__anext__()
    except StopAsyncIteration:
        return None


async def _run_local_tool(handler: ToolHandler, call: PendingToolCall) -> ToolResult:
    try:
        output = await call_tool_handler(handler, dict(call.args))
    except Exception as e:
        logger.warning("Tool %s (%s) failed: %s", call.tool_name, call.tool_call_id, e)
        return ToolResult.failure(call, str(e) or "Tool execution failed")
    return ToolResult.success(call, output)


def _to_json(value: Any) -> Any:
    if isinstance(value, WireModel):
        return value.to_dict()
    if isinstance(value, dict):
        return {key: _to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json(item) for item in value]
    return value
