from __future__ import annotations

import re
from datetime import datetime, timezone

from domains.edge_hub.api.mcp.tools import EchoTool, GetTimeTool, RandomNumberTool
from domains.edge_hub.utils import format_number, utc_timestamp
from domains.mcp_core import BaseTool, ToolRegistry, ToolResult
from domains.mcp_core.middleware import ErrorKind


class ExplodingTool(BaseTool):
    @property
    def name(self):
        return "explode"

    @property
    def description(self):
        return "Always fails"

    @property
    def input_schema(self):
        return {"type": "object", "properties": {}}

    async def execute(self) -> ToolResult:
        raise RuntimeError("kaboom")


def make_registry(**services) -> ToolRegistry:
    registry = ToolRegistry()
    for name, service in services.items():
        registry.set_service(name, service)
    registry.register_class(EchoTool)
    registry.register_class(GetTimeTool)
    registry.register_class(RandomNumberTool)
    return registry


def test_registry_lists_in_registration_order():
    registry = make_registry()
    assert [t["name"] for t in registry.get_mcp_tools()] == ["echo", "get_time", "random_number"]
    assert len(registry) == 3
    assert "echo" in registry
    assert registry.categories == ["utility"]


def test_tool_definition_format():
    tool = EchoTool().get_definition().to_mcp_format()
    assert tool == {
        "name": "echo",
        "description": "Echo back the input text",
        "inputSchema": {
            "type": "object",
            "properties": {"text": {"type": "string", "description": "Text to echo back"}},
            "required": ["text"],
        },
    }


async def test_echo():
    result = await make_registry().execute("echo", {"text": "Hello, MCP!"})
    assert result.success
    assert result.data == "Echo: Hello, MCP!"


async def test_echo_drops_undeclared_arguments():
    result = await make_registry().execute("echo", {"text": "hi", "extra": 1})
    assert result.data == "Echo: hi"


async def test_unknown_tool_is_not_found():
    result = await make_registry().execute("nope", {})
    assert not result.success
    assert result.kind is ErrorKind.NOT_FOUND
    assert result.error == "Unknown tool: nope"


async def test_missing_argument_is_invalid():
    result = await make_registry().execute("echo", {})
    assert result.kind is ErrorKind.INVALID_ARGUMENT
    assert result.error == "Missing required argument: text"


async def test_mismatched_argument_is_invalid():
    result = await make_registry().execute("echo", {"text": 5})
    assert result.kind is ErrorKind.INVALID_ARGUMENT
    assert result.error == "Argument 'text' must be a string"


async def test_get_time_format():
    result = await make_registry().execute("get_time", {})
    assert re.fullmatch(r"Current time: \d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", result.data)


async def test_get_time_with_injected_clock():
    fixed = datetime(2024, 5, 1, 12, 34, 56, 789000, tzinfo=timezone.utc)
    result = await make_registry(clock=lambda: fixed).execute("get_time", {})
    assert result.data == "Current time: 2024-05-01T12:34:56.789Z"


async def test_random_number_degenerate_range():
    registry = make_registry()
    for _ in range(20):
        result = await registry.execute("random_number", {"min": 5, "max": 5})
        assert result.data == "Random number between 5 and 5: 5"


async def test_random_number_in_range():
    registry = make_registry()
    for _ in range(50):
        result = await registry.execute("random_number", {"min": 1, "max": 10})
        n = int(result.data.rsplit(": ", 1)[1])
        assert 1 <= n <= 10


async def test_random_number_upper_bound_with_injected_random():
    registry = make_registry(random=lambda: 0.9999)
    result = await registry.execute("random_number", {"min": 1, "max": 10})
    assert result.data == "Random number between 1 and 10: 10"


async def test_random_number_renders_floats_like_json():
    registry = make_registry(random=lambda: 0.0)
    result = await registry.execute("random_number", {"min": 2.0, "max": 4.5})
    assert result.data == "Random number between 2 and 4.5: 2"


async def test_random_number_rejects_inverted_range():
    result = await make_registry().execute("random_number", {"min": 10, "max": 1})
    assert result.kind is ErrorKind.INVALID_ARGUMENT
    assert result.error == "Argument 'max' must be greater than or equal to 'min'"


async def test_random_number_rejects_bool():
    result = await make_registry().execute("random_number", {"min": True, "max": 3})
    assert result.kind is ErrorKind.INVALID_ARGUMENT
    assert result.error == "Argument 'min' must be a number"


async def test_handler_exception_becomes_internal():
    registry = ToolRegistry()
    registry.register(ExplodingTool())
    result = await registry.execute("explode", {})
    assert result.kind is ErrorKind.INTERNAL
    assert result.error == "kaboom"


def test_format_number():
    assert format_number(5) == "5"
    assert format_number(5.0) == "5"
    assert format_number(2.5) == "2.5"
    assert format_number(-3) == "-3"


def test_utc_timestamp():
    ts = utc_timestamp(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
    assert ts == "2024-01-02T03:04:05.000Z"
