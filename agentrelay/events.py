"""
agentrelay - Stream event schema and validation.

Every payload coming off the remote stream is untrusted. ``safe_parse_stream_event``
narrows a decoded JSON value to one of the known event variants, or reports
a failure without raising.
"""

from dataclasses import dataclass
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import Field, TypeAdapter, ValidationError

from .exceptions import StreamEventValidationError
from .models import (
    ErrorSource,
    ErrorType,
    FinishReason,
    PendingToolCall,
    ToolResult,
    WireModel,
)


class BaseStreamEvent(WireModel):
    type: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, **super().to_dict()}


# ==================== Lifecycle ====================


class StartEvent(BaseStreamEvent):
    type: Literal["start"] = "start"
    message_id: Optional[str] = None
    execution_id: Optional[str] = None


class FinishEvent(BaseStreamEvent):
    type: Literal["finish"] = "finish"
    # Unknown reasons from newer services pass through as plain strings.
    finish_reason: Union[FinishReason, str] = Field(union_mode="left_to_right")
    execution_id: Optional[str] = None


class ErrorEvent(BaseStreamEvent):
    """A structured error surfaced to the caller as data."""

    type: Literal["error"] = "error"
    error_type: str
    message: str
    source: str = ErrorSource.PLATFORM.value
    retryable: bool = False
    retry_after: Optional[int] = None
    code: Optional[str] = None
    status: Optional[int] = None
    provider: Optional[dict[str, Any]] = None
    tool: Optional[dict[str, Any]] = None


# ==================== Text & reasoning ====================


class TextStartEvent(BaseStreamEvent):
    type: Literal["text-start"] = "text-start"
    id: str
    response_type: Optional[str] = None


class TextDeltaEvent(BaseStreamEvent):
    type: Literal["text-delta"] = "text-delta"
    id: str
    delta: str


class TextEndEvent(BaseStreamEvent):
    type: Literal["text-end"] = "text-end"
    id: str


class ReasoningStartEvent(BaseStreamEvent):
    type: Literal["reasoning-start"] = "reasoning-start"
    id: str


class ReasoningDeltaEvent(BaseStreamEvent):
    type: Literal["reasoning-delta"] = "reasoning-delta"
    id: str
    delta: str


class ReasoningEndEvent(BaseStreamEvent):
    type: Literal["reasoning-end"] = "reasoning-end"
    id: str


# ==================== Tool lifecycle ====================


class ToolInputStartEvent(BaseStreamEvent):
    type: Literal["tool-input-start"] = "tool-input-start"
    tool_call_id: str
    tool_name: str
    title: Optional[str] = None


class ToolInputDeltaEvent(BaseStreamEvent):
    type: Literal["tool-input-delta"] = "tool-input-delta"
    tool_call_id: str
    input_text_delta: str


class ToolInputEndEvent(BaseStreamEvent):
    type: Literal["tool-input-end"] = "tool-input-end"
    tool_call_id: str


class ToolInputAvailableEvent(BaseStreamEvent):
    type: Literal["tool-input-available"] = "tool-input-available"
    tool_call_id: str
    tool_name: str
    input: Any = None


class ToolOutputAvailableEvent(BaseStreamEvent):
    type: Literal["tool-output-available"] = "tool-output-available"
    tool_call_id: str
    output: Any = None


class ToolOutputErrorEvent(BaseStreamEvent):
    type: Literal["tool-output-error"] = "tool-output-error"
    tool_call_id: str
    error: str


# ==================== Sources, blocks & files ====================


class SourceEvent(BaseStreamEvent):
    type: Literal["source"] = "source"
    source_type: Literal["url", "document"]
    id: str
    url: Optional[str] = None
    title: Optional[str] = None
    media_type: Optional[str] = None
    filename: Optional[str] = None


class BlockStartEvent(BaseStreamEvent):
    type: Literal["block-start"] = "block-start"
    block_id: str
    block_name: str
    block_type: str
    display: str
    description: Optional[str] = None
    output_to_chat: Optional[bool] = None
    thread: Optional[str] = None


class BlockEndEvent(BaseStreamEvent):
    type: Literal["block-end"] = "block-end"
    block_id: str
    summary: Optional[str] = None


class FileAvailableEvent(BaseStreamEvent):
    type: Literal["file-available"] = "file-available"
    id: str
    media_type: str
    url: str
    filename: Optional[str] = None
    size: Optional[int] = None
    tool_call_id: Optional[str] = None


# ==================== Protocol ====================


class ToolRequestEvent(BaseStreamEvent):
    """Pending tool calls. Consumed by the execution loop, never forwarded."""

    type: Literal["tool-request"] = "tool-request"
    tool_calls: list[PendingToolCall]


class ClientToolRequestEvent(BaseStreamEvent):
    """The execution paused on tools that must be resolved by the caller."""

    type: Literal["client-tool-request"] = "client-tool-request"
    execution_id: str
    tool_calls: list[PendingToolCall]
    server_tool_results: Optional[list[ToolResult]] = None


class ResourceUpdateEvent(BaseStreamEvent):
    type: Literal["resource-update"] = "resource-update"
    name: str
    value: Any = None


# ==================== Workers ====================


class WorkerStartEvent(BaseStreamEvent):
    type: Literal["worker-start"] = "worker-start"
    worker_id: str
    worker_slug: str
    description: Optional[str] = None


class WorkerResultEvent(BaseStreamEvent):
    type: Literal["worker-result"] = "worker-result"
    worker_id: str
    output: Any = None
    error: Optional[str] = None


StreamEvent = Annotated[
    Union[
        StartEvent,
        FinishEvent,
        ErrorEvent,
        TextStartEvent,
        TextDeltaEvent,
        TextEndEvent,
        ReasoningStartEvent,
        ReasoningDeltaEvent,
        ReasoningEndEvent,
        ToolInputStartEvent,
        ToolInputDeltaEvent,
        ToolInputEndEvent,
        ToolInputAvailableEvent,
        ToolOutputAvailableEvent,
        ToolOutputErrorEvent,
        SourceEvent,
        BlockStartEvent,
        BlockEndEvent,
        FileAvailableEvent,
        ToolRequestEvent,
        ClientToolRequestEvent,
        ResourceUpdateEvent,
        WorkerStartEvent,
        WorkerResultEvent,
    ],
    Field(discriminator="type"),
]

_stream_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


@dataclass
class ParseResult:
    """Outcome of ``safe_parse_stream_event``: an event or an error description."""

    success: bool
    event: Optional[BaseStreamEvent] = None
    error: Optional[str] = None


def safe_parse_stream_event(value: Any) -> ParseResult:
    """Validate a decoded JSON value as a stream event. Never raises."""
    try:
        event = _stream_event_adapter.validate_python(value)
    except ValidationError as e:
        return ParseResult(success=False, error=str(e))
    except RecursionError:
        return ParseResult(success=False, error="Event is nested too deeply")
    return ParseResult(success=True, event=event)


def parse_stream_event(value: Any) -> BaseStreamEvent:
    """
    Validate a decoded JSON value as a stream event.

    Raises:
        StreamEventValidationError: If the value is not a known event shape.
    """
    try:
        return _stream_event_adapter.validate_python(value)
    except ValidationError as e:
        raise StreamEventValidationError(
            "Invalid stream event",
            errors=e.errors(include_url=False),
        ) from e
    except RecursionError as e:
        raise StreamEventValidationError("Stream event is nested too deeply") from e


# ==================== Error event helpers ====================

_STATUS_ERROR_TYPES = {
    400: ErrorType.VALIDATION_ERROR,
    401: ErrorType.AUTHENTICATION_ERROR,
    403: ErrorType.PERMISSION_ERROR,
    404: ErrorType.NOT_FOUND_ERROR,
    429: ErrorType.RATE_LIMIT_ERROR,
}


def create_error_event(
    error_type: Union[ErrorType, str],
    message: str,
    source: Union[ErrorSource, str] = ErrorSource.PLATFORM,
    retryable: bool = False,
    **extra: Any,
) -> ErrorEvent:
    """Build an ``error`` event. ``extra`` may carry retry_after, code, status, provider or tool."""
    return ErrorEvent(
        error_type=error_type.value if isinstance(error_type, ErrorType) else error_type,
        message=message,
        source=source.value if isinstance(source, ErrorSource) else source,
        retryable=retryable,
        **extra,
    )


def create_internal_error_event(message: str) -> ErrorEvent:
    return create_error_event(ErrorType.INTERNAL_ERROR, message)


def create_api_error_event(status: int, message: str) -> ErrorEvent:
    """Translate a failed HTTP response into an ``error`` event."""
    error_type = _STATUS_ERROR_TYPES.get(status, ErrorType.INTERNAL_ERROR)
    retryable = status == 429 or status >= 500
    return create_error_event(error_type, message, retryable=retryable, status=status)
