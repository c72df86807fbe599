"""
Tests for tool handler invocation and reserved tool names.
"""

import pytest

from agentrelay.tools import (
    INTERNAL_TOOLS,
    SKILL_TOOLS,
    call_tool_handler,
    get_skill_slug_from_tool_call,
    is_internal_tool,
    is_skill_tool,
)


class TestCallToolHandler:
    @pytest.mark.asyncio
    async def test_async_handler(self):
        async def handler(args):
            return args["x"] * 2

        assert await call_tool_handler(handler, {"x": 21}) == 42

    @pytest.mark.asyncio
    async def test_sync_handler(self):
        assert await call_tool_handler(lambda args: sorted(args), {"b": 1, "a": 2}) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        def handler(args):
            raise KeyError("missing")

        with pytest.raises(KeyError):
            await call_tool_handler(handler, {})


class TestReservedTools:
    def test_internal_prefix(self):
        assert is_internal_tool(INTERNAL_TOOLS["GENERATE_IMAGE"])
        assert not is_internal_tool("web-search")

    def test_skill_tools(self):
        assert is_skill_tool("agentrelay_skill_run")
        assert not is_skill_tool(INTERNAL_TOOLS["GENERATE_IMAGE"])
        assert set(SKILL_TOOLS.values()) < set(INTERNAL_TOOLS.values())

    def test_skill_slug(self):
        assert get_skill_slug_from_tool_call("agentrelay_skill_read", {"skill": "pdf"}) == "pdf"

    @pytest.mark.parametrize(
        "tool_name,args",
        [
            ("agentrelay_skill_read", None),
            ("agentrelay_skill_read", {"skill": 3}),
            ("agentrelay_generate_image", {"skill": "pdf"}),
            ("web-search", {"skill": "pdf"}),
        ],
    )
    def test_no_skill_slug(self, tool_name, args):
        assert get_skill_slug_from_tool_call(tool_name, args) is None
