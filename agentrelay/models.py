"""
agentrelay - Data models shared by the stream protocol.

Wire payloads use camelCase keys; Python attributes are snake_case and
either form is accepted on input.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class FinishReason(str, Enum):
    """Why a stream (or a whole invocation) finished."""

    STOP = "stop"
    LENGTH = "length"
    CONTENT_FILTER = "content-filter"
    TOOL_CALLS = "tool-calls"
    CLIENT_TOOL_CALLS = "client-tool-calls"
    ERROR = "error"
    OTHER = "other"


class ErrorType(str, Enum):
    """Well-known values of ``ErrorEvent.error_type``."""

    VALIDATION_ERROR = "validation_error"
    AUTHENTICATION_ERROR = "authentication_error"
    PERMISSION_ERROR = "permission_error"
    NOT_FOUND_ERROR = "not_found_error"
    RATE_LIMIT_ERROR = "rate_limit_error"
    PROVIDER_ERROR = "provider_error"
    PROVIDER_OVERLOADED = "provider_overloaded"
    PROVIDER_TIMEOUT = "provider_timeout"
    TOOL_ERROR = "tool_error"
    INTERNAL_ERROR = "internal_error"


class ErrorSource(str, Enum):
    """Where an error originated."""

    PLATFORM = "platform"
    PROVIDER = "provider"
    TOOL = "tool"
    CLIENT = "client"


class WireModel(BaseModel):
    """Base for every model that travels over the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, leaving out fields that were never set."""
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")


class PendingToolCall(WireModel):
    """A tool call the remote agent wants performed."""

    model_config = ConfigDict(frozen=True)

    tool_call_id: str
    tool_name: str
    args: dict[str, Any]
    output_variable: Optional[str] = None
    block_index: Optional[int] = None
    thread: Optional[str] = None
    worker_id: Optional[str] = None


class ToolResult(WireModel):
    """
    Outcome of a tool call.

    Exactly one of ``result`` or ``error`` is present. A ``None`` result is a
    valid result as long as it was supplied explicitly.
    """

    tool_call_id: str
    tool_name: str
    output_variable: Optional[str] = None
    block_index: Optional[int] = None
    thread: Optional[str] = None
    worker_id: Optional[str] = None
    result: Any = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _check_result_or_error(self) -> "ToolResult":
        has_result = "result" in self.model_fields_set
        has_error = self.error is not None
        if has_result == has_error:
            raise ValueError("exactly one of 'result' or 'error' must be set")
        return self

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def success(cls, call: PendingToolCall, result: Any) -> "ToolResult":
        """Build a successful result that echoes the call's routing fields."""
        return cls(result=result, **_routing_fields(call))

    @classmethod
    def failure(cls, call: PendingToolCall, error: str) -> "ToolResult":
        """Build a failed result that echoes the call's routing fields."""
        return cls(error=error, **_routing_fields(call))


def _routing_fields(call: PendingToolCall) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "tool_call_id": call.tool_call_id,
        "tool_name": call.tool_name,
    }
    for name in ("output_variable", "block_index", "thread", "worker_id"):
        value = getattr(call, name)
        if value is not None:
            fields[name] = value
    return fields
