"""
Tests for WorkersAPI start and continue requests.
"""

from unittest.mock import AsyncMock

import httpx
import pytest

from agentrelay.models import ToolResult

from .helpers import BASE_URL, ScriptedService, collect, dicts, stream_response

START = {"type": "start", "executionId": "exec-1"}
FINISH_STOP = {"type": "finish", "finishReason": "stop"}
FINISH_TOOLS = {"type": "finish", "finishReason": "tool-calls"}


def tool_request(name, call_id="c1"):
    return {
        "type": "tool-request",
        "toolCalls": [{"toolCallId": call_id, "toolName": name, "args": {"q": "x"}}],
    }


class TestExecute:
    @pytest.mark.asyncio
    async def test_start_body_and_url(self):
        service = ScriptedService(
            stream_response(
                START,
                {"type": "worker-start", "workerId": "w-1", "workerSlug": "researcher"},
                {"type": "worker-result", "workerId": "w-1", "output": {"summary": "ok"}},
                FINISH_STOP,
            )
        )
        workers = service.client().workers

        events = await collect(workers.execute("agent-1", {"TOPIC": "tides"}))

        assert [event.type for event in events] == [
            "start",
            "worker-start",
            "worker-result",
            "finish",
        ]
        assert events[2].output == {"summary": "ok"}
        assert str(service.requests[0].url) == f"{BASE_URL}/api/agents/agent-1/execute"
        assert service.bodies == [{"type": "start", "input": {"TOPIC": "tides"}}]

    @pytest.mark.asyncio
    async def test_local_tool_switches_to_continue_body(self):
        service = ScriptedService(
            stream_response(START, tool_request("lookup"), FINISH_TOOLS),
            stream_response(FINISH_STOP),
        )
        lookup = AsyncMock(return_value=[1, 2])

        await collect(
            service.client().workers.execute("agent-1", {"TOPIC": "tides"}, tools={"lookup": lookup})
        )

        assert service.bodies[1] == {
            "type": "continue",
            "executionId": "exec-1",
            "toolResults": [{"toolCallId": "c1", "toolName": "lookup", "result": [1, 2]}],
        }

    @pytest.mark.asyncio
    async def test_client_tool_pauses(self):
        service = ScriptedService(stream_response(START, tool_request("ask-user"), FINISH_TOOLS))
        events = await collect(service.client().workers.execute("agent-1", {}))
        assert dicts(events)[1:] == [
            {
                "type": "client-tool-request",
                "executionId": "exec-1",
                "toolCalls": [{"toolCallId": "c1", "toolName": "ask-user", "args": {"q": "x"}}],
            },
            {"type": "finish", "finishReason": "client-tool-calls", "executionId": "exec-1"},
        ]

    @pytest.mark.asyncio
    async def test_error_context(self):
        service = ScriptedService(httpx.Response(503))
        events = await collect(service.client().workers.execute("agent-1", {}))
        assert events[0].message == "Failed to execute worker: 503 Service Unavailable"


class TestContinueExecution:
    @pytest.mark.asyncio
    async def test_continue_body(self):
        service = ScriptedService(stream_response(FINISH_STOP))
        results = [ToolResult(tool_call_id="c1", tool_name="ask-user", error="declined")]

        await collect(service.client().workers.continue_execution("agent-1", "exec-1", results))

        assert service.bodies == [
            {
                "type": "continue",
                "executionId": "exec-1",
                "toolResults": [{"toolCallId": "c1", "toolName": "ask-user", "error": "declined"}],
            }
        ]

    @pytest.mark.asyncio
    async def test_continue_then_local_tools(self):
        service = ScriptedService(
            stream_response(tool_request("lookup", "c2"), FINISH_TOOLS),
            stream_response(FINISH_STOP),
        )
        results = [ToolResult(tool_call_id="c1", tool_name="ask-user", result="yes")]

        events = await collect(
            service.client().workers.continue_execution(
                "agent-1", "exec-1", results, tools={"lookup": lambda args: "found"}
            )
        )

        assert [event.type for event in events] == ["tool-output-available", "finish"]
        assert service.bodies[1] == {
            "type": "continue",
            "executionId": "exec-1",
            "toolResults": [{"toolCallId": "c2", "toolName": "lookup", "result": "found"}],
        }

    @pytest.mark.asyncio
    async def test_error_context(self):
        service = ScriptedService(httpx.Response(400, json={"error": "Unknown execution"}))
        events = await collect(service.client().workers.continue_execution("agent-1", "exec-1", []))
        assert events[0].message == "Unknown execution"
        assert events[0].error_type == "validation_error"
