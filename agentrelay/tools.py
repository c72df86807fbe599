"""
agentrelay - Tool handler types and reserved tool names.

A tool call is handled locally when, and only when, the caller registered a
handler under that exact tool name. Handlers receive the call's ``args``
mapping and may be sync or async.

Usage:
    ```python
    async def web_search(args: dict) -> dict:
        return {"results": await search(args["query"])}

    tools = {"web-search": web_search}
    ```
"""

import inspect
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

ToolHandler = Callable[[dict[str, Any]], Union[Awaitable[Any], Any]]
ToolHandlers = Mapping[str, ToolHandler]


async def call_tool_handler(handler: ToolHandler, args: dict[str, Any]) -> Any:
    """Invoke a handler, awaiting its result when it returns an awaitable."""
    result = handler(args)
    if inspect.isawaitable(result):
        result = await result
    return result


# ==================== Reserved tools ====================

# Tools with this prefix run on the platform and never reach caller handlers.
INTERNAL_TOOL_PREFIX = "agentrelay_"

INTERNAL_TOOLS = {
    # Skill tools (sandboxed)
    "SKILL_READ": "agentrelay_skill_read",
    "SKILL_LIST": "agentrelay_skill_list",
    "SKILL_RUN": "agentrelay_skill_run",
    "CODE_RUN": "agentrelay_code_run",
    "FILE_WRITE": "agentrelay_file_write",
    "FILE_READ": "agentrelay_file_read",
    # Image generation
    "GENERATE_IMAGE": "agentrelay_generate_image",
}

SKILL_TOOLS = {
    key: INTERNAL_TOOLS[key]
    for key in ("SKILL_READ", "SKILL_LIST", "SKILL_RUN", "CODE_RUN", "FILE_WRITE", "FILE_READ")
}


def is_internal_tool(tool_name: str) -> bool:
    return tool_name.startswith(INTERNAL_TOOL_PREFIX)


def is_skill_tool(tool_name: str) -> bool:
    return tool_name in SKILL_TOOLS.values()


def get_skill_slug_from_tool_call(
    tool_name: str, args: Optional[Mapping[str, Any]]
) -> Optional[str]:
    """Return the ``skill`` argument of a skill tool call, if there is one."""
    if not is_skill_tool(tool_name) or not args:
        return None
    skill = args.get("skill")
    return skill if isinstance(skill, str) else None
