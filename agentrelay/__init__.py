"""
agentrelay - Python client for streaming agent executions.

Drives a remote agent execution service over HTTP + Server-Sent Events and
resolves the agent's tool calls locally or hands them back to the caller.
"""

from .cancellation import CancellationToken, Cancelled
from .client import AsyncAgentRelayClient, ClientConfig
from .events import (
    BaseStreamEvent,
    BlockEndEvent,
    BlockStartEvent,
    ClientToolRequestEvent,
    ErrorEvent,
    FileAvailableEvent,
    FinishEvent,
    ParseResult,
    ReasoningDeltaEvent,
    ReasoningEndEvent,
    ReasoningStartEvent,
    ResourceUpdateEvent,
    SourceEvent,
    StartEvent,
    StreamEvent,
    TextDeltaEvent,
    TextEndEvent,
    TextStartEvent,
    ToolInputAvailableEvent,
    ToolInputDeltaEvent,
    ToolInputEndEvent,
    ToolInputStartEvent,
    ToolOutputAvailableEvent,
    ToolOutputErrorEvent,
    ToolRequestEvent,
    WorkerResultEvent,
    WorkerStartEvent,
    create_api_error_event,
    create_error_event,
    create_internal_error_event,
    parse_stream_event,
    safe_parse_stream_event,
)
from .exceptions import (
    AgentRelayError,
    APIError,
    InvalidSocketMessageError,
    StreamEventValidationError,
    parse_api_error,
)
from .execution import ExecutionState, StreamExecutionConfig, execute_stream
from .models import (
    ErrorSource,
    ErrorType,
    FinishReason,
    PendingToolCall,
    ToolResult,
)
from .resource import Resource
from .session import (
    AgentSession,
    ContinueRequest,
    FlightCell,
    StopMessage,
    TriggerRequest,
    parse_socket_message,
)
from .streaming import (
    SSEDecoder,
    encode_sse_record,
    event_source_response,
    iter_sse_data,
    iter_stream_events,
    to_sse_stream,
)
from .tools import (
    INTERNAL_TOOL_PREFIX,
    INTERNAL_TOOLS,
    SKILL_TOOLS,
    ToolHandler,
    ToolHandlers,
    get_skill_slug_from_tool_call,
    is_internal_tool,
    is_skill_tool,
)
from .workers import WorkersAPI

__version__ = "0.1.0"
__all__ = [
    "AsyncAgentRelayClient",
    "ClientConfig",
    "AgentSession",
    "WorkersAPI",
    "Resource",
    "CancellationToken",
    "Cancelled",
    "ExecutionState",
    "StreamExecutionConfig",
    "execute_stream",
    "TriggerRequest",
    "ContinueRequest",
    "StopMessage",
    "FlightCell",
    "parse_socket_message",
    "PendingToolCall",
    "ToolResult",
    "FinishReason",
    "ErrorType",
    "ErrorSource",
    "StreamEvent",
    "BaseStreamEvent",
    "StartEvent",
    "FinishEvent",
    "ErrorEvent",
    "TextStartEvent",
    "TextDeltaEvent",
    "TextEndEvent",
    "ReasoningStartEvent",
    "ReasoningDeltaEvent",
    "ReasoningEndEvent",
    "ToolInputStartEvent",
    "ToolInputDeltaEvent",
    "ToolInputEndEvent",
    "ToolInputAvailableEvent",
    "ToolOutputAvailableEvent",
    "ToolOutputErrorEvent",
    "SourceEvent",
    "BlockStartEvent",
    "BlockEndEvent",
    "FileAvailableEvent",
    "ToolRequestEvent",
    "ClientToolRequestEvent",
    "ResourceUpdateEvent",
    "WorkerStartEvent",
    "WorkerResultEvent",
    "ParseResult",
    "safe_parse_stream_event",
    "parse_stream_event",
    "create_error_event",
    "create_internal_error_event",
    "create_api_error_event",
    "AgentRelayError",
    "APIError",
    "StreamEventValidationError",
    "InvalidSocketMessageError",
    "parse_api_error",
    "SSEDecoder",
    "iter_sse_data",
    "iter_stream_events",
    "encode_sse_record",
    "to_sse_stream",
    "event_source_response",
    "ToolHandler",
    "ToolHandlers",
    "INTERNAL_TOOL_PREFIX",
    "INTERNAL_TOOLS",
    "SKILL_TOOLS",
    "is_internal_tool",
    "is_skill_tool",
    "get_skill_slug_from_tool_call",
]
