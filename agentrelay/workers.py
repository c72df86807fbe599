"""
agentrelay - Worker agent execution.

Workers run their steps once and return an output value. They keep no state
between calls; a paused execution is resumed by passing the execution id
from the ``client-tool-request`` event to ``continue_execution``.
"""

from typing import TYPE_CHECKING, Any, AsyncIterator, Callable, Optional

from .cancellation import CancellationToken
from .events import BaseStreamEvent
from .execution import ExecutionState, StreamExecutionConfig, execute_stream
from .models import ToolResult
from .tools import ToolHandlers

if TYPE_CHECKING:
    from .client import AsyncAgentRelayClient


class WorkersAPI:
    """
    API for executing worker agents.

    Tools with a handler in ``tools`` run locally and the execution continues
    automatically. Any other tool pauses the execution with a
    ``client-tool-request`` event.

    Example:
        ```python
        async for event in client.workers.execute(agent_id, {"TOPIC": "AI safety"}):
            if event.type == "worker-result":
                print(event.error or event.output)
            elif event.type == "client-tool-request":
                results = await run_tools(event.tool_calls)
                async for ev in client.workers.continue_execution(
                    agent_id, event.execution_id, results
                ):
                    ...
        ```
    """

    def __init__(self, client: "AsyncAgentRelayClient"):
        self._client = client

    def execute(
        self,
        agent_id: str,
        input: dict[str, Any],
        tools: Optional[ToolHandlers] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> AsyncIterator[BaseStreamEvent]:
        """
        Start a worker execution and stream its events.

        Args:
            agent_id: The worker agent ID.
            input: Input values for the worker.
            tools: Handlers for tools resolved on this side.
            cancel: Optional token to stop the execution.
        """

        def build_body(state: ExecutionState) -> dict[str, Any]:
            if not state.execution_id:
                return {"type": "start", "input": input}
            return {
                "type": "continue",
                "executionId": state.execution_id,
                "toolResults": state.tool_results,
            }

        config = self._stream_config(agent_id, build_body, tools, "Failed to execute worker")
        return execute_stream(config, ExecutionState(), cancel)

    def continue_execution(
        self,
        agent_id: str,
        execution_id: str,
        tool_results: list[ToolResult],
        tools: Optional[ToolHandlers] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> AsyncIterator[BaseStreamEvent]:
        """
        Continue a worker execution after client-side tool handling.

        Args:
            agent_id: The worker agent ID.
            execution_id: The execution ID from the client-tool-request event.
            tool_results: Results of the client-side tool calls.
            tools: Handlers for tools resolved on this side.
            cancel: Optional token to stop the execution.
        """

        def build_body(state: ExecutionState) -> dict[str, Any]:
            return {
                "type": "continue",
                "executionId": state.execution_id or execution_id,
                "toolResults": state.tool_results
                if state.tool_results is not None
                else tool_results,
            }

        config = self._stream_config(agent_id, build_body, tools, "Failed to continue worker")
        return execute_stream(
            config,
            ExecutionState(execution_id=execution_id, tool_results=tool_results),
            cancel,
        )

    def _stream_config(
        self,
        agent_id: str,
        build_body: Callable[[ExecutionState], dict[str, Any]],
        tools: Optional[ToolHandlers],
        error_context: str,
    ) -> StreamExecutionConfig:
        return StreamExecutionConfig(
            http_client=self._client.http,
            url=self._client.url(f"/api/agents/{agent_id}/execute"),
            build_body=build_body,
            tool_handlers=dict(tools or {}),
            error_context=error_context,
        )
