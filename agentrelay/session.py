"""
agentrelay - Interactive agent sessions.

An ``AgentSession`` is a long-lived conversation with a remote agent. It
starts executions from named triggers, continues paused executions once the
caller has resolved client-side tools, and keeps at most one execution in
flight when driven through ``handle_socket_message``.
"""

import asyncio
import inspect
import logging
from contextlib import aclosing
from typing import (
    TYPE_CHECKING,
    Annotated,
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Iterable,
    Literal,
    Optional,
    Union,
)

from pydantic import Field, TypeAdapter, ValidationError

from .cancellation import CancellationToken
from .events import BaseStreamEvent, create_internal_error_event
from .exceptions import InvalidSocketMessageError
from .execution import ExecutionState, StreamExecutionConfig, execute_stream
from .models import ToolResult, WireModel
from .resource import Resource
from .tools import ToolHandlers

if TYPE_CHECKING:
    from .client import AsyncAgentRelayClient

logger = logging.getLogger("agentrelay.session")


# ==================== Messages ====================


class TriggerRequest(WireModel):
    """Start a new execution from a named trigger."""

    type: Literal["trigger"] = "trigger"
    trigger_name: str
    input: Optional[dict[str, Any]] = None


class ContinueRequest(WireModel):
    """Resume a paused execution with the results of client-side tools."""

    type: Literal["continue"] = "continue"
    execution_id: str
    tool_results: list[ToolResult]


class StopMessage(WireModel):
    """Cancel whatever execution is in flight."""

    type: Literal["stop"] = "stop"


SessionRequest = Union[TriggerRequest, ContinueRequest]
SocketMessage = Annotated[
    Union[TriggerRequest, ContinueRequest, StopMessage],
    Field(discriminator="type"),
]

_socket_message_adapter: TypeAdapter[SocketMessage] = TypeAdapter(SocketMessage)


def parse_socket_message(data: Any) -> Union[TriggerRequest, ContinueRequest, StopMessage]:
    """
    Parse a raw inbound message (for example a decoded WebSocket frame).

    Raises:
        InvalidSocketMessageError: If the message is not trigger, continue or stop.
    """
    try:
        return _socket_message_adapter.validate_python(data)
    except ValidationError as e:
        raise InvalidSocketMessageError(
            "Invalid session message",
            errors=e.errors(include_url=False),
        ) from e


# ==================== Single flight ====================


class FlightCell:
    """
    Holds the cancellation token of the one execution in flight.

    ``replace`` installs a fresh token and cancels the previous one, so the
    most recent message always wins.
    """

    def __init__(self) -> None:
        self._current: Optional[CancellationToken] = None

    @property
    def current(self) -> Optional[CancellationToken]:
        return self._current

    def replace(self) -> CancellationToken:
        previous, self._current = self._current, CancellationToken()
        if previous is not None:
            previous.cancel()
        return self._current

    def cancel(self) -> None:
        if self._current is not None:
            self._current.cancel()

    def release(self, token: CancellationToken) -> None:
        """Clear the slot if ``token`` is still the current one."""
        if self._current is token:
            self._current = None


# ==================== Session ====================


class AgentSession:
    """
    Streams executions of an agent session and handles tool continuation.

    Example:
        ```python
        session = client.session(
            "session-123",
            tools={"get-weather": get_weather},
            resources=[notes],
        )

        async for event in session.trigger("user-message", {"MESSAGE": "Hi"}):
            print(event.type)
        ```
    """

    def __init__(
        self,
        session_id: str,
        client: "AsyncAgentRelayClient",
        tools: Optional[ToolHandlers] = None,
        resources: Optional[Iterable[Resource]] = None,
    ):
        self._session_id = session_id
        self._client = client
        self._tool_handlers: ToolHandlers = dict(tools or {})
        self._resources: dict[str, Resource] = {
            resource.name: resource for resource in resources or []
        }
        self._flight = FlightCell()
        self._resource_tasks: set[asyncio.Future] = set()

    @property
    def session_id(self) -> str:
        return self._session_id

    async def execute(
        self,
        request: SessionRequest,
        cancel: Optional[CancellationToken] = None,
    ) -> AsyncIterator[BaseStreamEvent]:
        """
        Execute a trigger or continue request and stream its events.

        Example:
            ```python
            @app.post("/trigger")
            async def trigger(body: dict):
                request = parse_socket_message(body)
                return event_source_response(session.execute(request))
            ```
        """
        if isinstance(request, ContinueRequest):
            payload: dict[str, Any] = {}
            state = ExecutionState(
                execution_id=request.execution_id,
                tool_results=list(request.tool_results),
            )
        else:
            payload = {"triggerName": request.trigger_name}
            if request.input is not None:
                payload["input"] = request.input
            state = ExecutionState()

        async with aclosing(execute_stream(self._stream_config(payload), state, cancel)) as events:
            async for event in events:
                yield event

    def trigger(
        self,
        trigger_name: str,
        input: Optional[dict[str, Any]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> AsyncIterator[BaseStreamEvent]:
        """Start a new execution from ``trigger_name``."""
        return self.execute(TriggerRequest(trigger_name=trigger_name, input=input), cancel)

    def continue_execution(
        self,
        execution_id: str,
        tool_results: list[ToolResult],
        cancel: Optional[CancellationToken] = None,
    ) -> AsyncIterator[BaseStreamEvent]:
        """Resume a paused execution with client-side tool results."""
        return self.execute(
            ContinueRequest(execution_id=execution_id, tool_results=tool_results),
            cancel,
        )

    async def handle_socket_message(
        self,
        message: Union[TriggerRequest, ContinueRequest, StopMessage, dict[str, Any]],
        on_event: Callable[[BaseStreamEvent], None],
        on_finish: Optional[Callable[[], Union[None, Awaitable[None]]]] = None,
    ) -> None:
        """
        Handle a trigger, continue or stop message from a socket connection.

        A new trigger or continue cancels the execution already in flight
        before starting. ``stop`` only cancels. ``on_finish`` runs after an
        execution that was not cancelled. Failures are reported to
        ``on_event`` as an internal error event rather than raised.

        Example:
            ```python
            async for raw in websocket.iter_json():
                await session.handle_socket_message(
                    raw,
                    on_event=lambda event: queue.put_nowait(event.to_dict()),
                )
            ```
        """
        if isinstance(message, dict):
            message = parse_socket_message(message)

        if isinstance(message, StopMessage):
            logger.debug("Stop requested for session %s", self._session_id)
            self._flight.cancel()
            return

        token = self._flight.replace()
        try:
            async with aclosing(self.execute(message, cancel=token)) as events:
                async for event in events:
                    if token.cancelled:
                        break
                    on_event(event)

            if not token.cancelled and on_finish is not None:
                result = on_finish()
                if inspect.isawaitable(result):
                    await result
        except Exception as e:
            if not token.cancelled:
                logger.exception("Session %s execution failed", self._session_id)
                on_event(create_internal_error_event(str(e) or "Unknown error"))
        finally:
            self._flight.release(token)

    def stop(self) -> None:
        """Cancel the execution started by ``handle_socket_message``, if any."""
        self._flight.cancel()

    def _stream_config(self, payload: dict[str, Any]) -> StreamExecutionConfig:
        def build_body(state: ExecutionState) -> dict[str, Any]:
            body = dict(payload)
            if state.execution_id is not None:
                body["executionId"] = state.execution_id
            if state.tool_results is not None:
                body["toolResults"] = state.tool_results
            return body

        return StreamExecutionConfig(
            http_client=self._client.http,
            url=self._client.url(f"/api/agent-sessions/{self._session_id}/trigger"),
            build_body=build_body,
            tool_handlers=self._tool_handlers,
            on_resource_update=self._handle_resource_update,
            error_context="Failed to trigger",
        )

    def _handle_resource_update(self, name: str, value: Any) -> None:
        resource = self._resources.get(name)
        if resource is None:
            logger.debug("No resource named %s in session %s", name, self._session_id)
            return

        result = resource.on_update(value)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._resource_tasks.add(task)
            task.add_done_callback(self._resource_update_done)

    def _resource_update_done(self, task: asyncio.Future) -> None:
        self._resource_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "Resource update failed in session %s: %s",
                self._session_id,
                task.exception(),
            )
