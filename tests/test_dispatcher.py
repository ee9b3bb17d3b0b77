from __future__ import annotations

import json

from conftest import rpc

from domains.edge_hub.api.mcp.server import EdgeHubMCPServer
from domains.mcp_core import BaseTool, MCPConfig, ToolResult


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


class FaultyServer(EdgeHubMCPServer):
    def _setup(self) -> None:
        super()._setup()
        self.register_tool(ExplodingTool())


def minimal_arguments(schema: dict) -> dict:
    samples = {"string": "x", "number": 1, "integer": 1, "boolean": True, "object": {}, "array": []}
    properties = schema.get("properties", {})
    return {name: samples[properties[name]["type"]] for name in schema.get("required", [])}


async def call_tool(server, name, arguments=None, id=1):
    params = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return await server.handle_message(rpc("tools/call", params, id=id))


async def test_initialize(server):
    resp = await server.handle_message(rpc("initialize", {
        "protocolVersion": "2024-11-05",
        "capabilities": {},
        "clientInfo": {"name": "pytest", "version": "0"},
    }))
    result = resp["result"]
    assert result["protocolVersion"] == "2024-11-05"
    assert set(result["capabilities"]) == {"tools", "resources", "prompts"}
    assert result["serverInfo"] == {"name": "edge-mcp-server", "version": "1.0.0"}


async def test_ping(server):
    assert await server.handle_message(rpc("ping", id="p")) == {"jsonrpc": "2.0", "id": "p", "result": {}}


async def test_tools_list(server):
    resp = await server.handle_message(rpc("tools/list"))
    assert [t["name"] for t in resp["result"]["tools"]] == ["echo", "get_time", "random_number"]


async def test_echo_call(server):
    resp = await call_tool(server, "echo", {"text": "Hello, MCP!"}, id=7)
    assert resp == {
        "jsonrpc": "2.0",
        "id": 7,
        "result": {"content": [{"type": "text", "text": "Echo: Hello, MCP!"}]},
    }


async def test_unknown_tool(server):
    resp = await call_tool(server, "nope", {})
    assert resp["error"]["code"] == -32601
    assert "Unknown tool: nope" in resp["error"]["message"]


async def test_missing_argument(server):
    resp = await call_tool(server, "echo", {})
    assert resp["error"]["code"] == -32602
    assert resp["error"]["message"] == "Missing required argument: text"


async def test_mismatched_argument(server):
    resp = await call_tool(server, "random_number", {"min": "1", "max": 2})
    assert resp["error"]["code"] == -32602
    assert resp["error"]["message"] == "Argument 'min' must be a number"


async def test_inverted_random_range(server):
    resp = await call_tool(server, "random_number", {"min": 3, "max": 1})
    assert resp["error"]["code"] == -32602


async def test_random_number_degenerate(server):
    resp = await call_tool(server, "random_number", {"min": 5, "max": 5})
    assert resp["result"]["content"][0]["text"] == "Random number between 5 and 5: 5"


async def test_missing_arguments_treated_as_empty(server):
    resp = await call_tool(server, "get_time")
    assert resp["result"]["content"][0]["text"].startswith("Current time: ")


async def test_non_object_arguments(server):
    resp = await call_tool(server, "echo", ["hi"])
    assert resp["error"]["code"] == -32602


async def test_missing_tool_name(server):
    resp = await server.handle_message(rpc("tools/call", {"arguments": {}}))
    assert resp["error"]["code"] == -32602
    assert resp["error"]["message"] == "Missing required parameter: name"


async def test_every_tool_accepts_minimal_arguments(server):
    listing = await server.handle_message(rpc("tools/list"))
    for tool in listing["result"]["tools"]:
        resp = await call_tool(server, tool["name"], minimal_arguments(tool["inputSchema"]))
        assert "error" not in resp, tool["name"]


async def test_handler_fault_is_internal_error():
    server = FaultyServer(MCPConfig())
    resp = await call_tool(server, "explode", {}, id=11)
    assert resp["id"] == 11
    assert resp["error"] == {"code": -32603, "message": "Internal error", "data": "kaboom"}


async def test_resources_list(server):
    resp = await server.handle_message(rpc("resources/list"))
    assert [r["uri"] for r in resp["result"]["resources"]] == [
        "cloudflare://worker-info",
        "cloudflare://sample-data",
    ]


async def test_resources_read(server):
    resp = await server.handle_message(rpc("resources/read", {"uri": "cloudflare://sample-data"}))
    contents = resp["result"]["contents"]
    assert len(contents) == 1
    data = json.loads(contents[0]["text"])
    assert data["metadata"]["total"] == 3
    assert len(data["items"]) == 3


async def test_unknown_resource(server):
    resp = await server.handle_message(rpc("resources/read", {"uri": "cloudflare://nope"}))
    assert resp["error"]["code"] == -32601
    assert resp["error"]["message"] == "Unknown resource: cloudflare://nope"


async def test_resources_read_requires_uri(server):
    resp = await server.handle_message(rpc("resources/read", {}))
    assert resp["error"]["code"] == -32602


async def test_prompts_list(server):
    resp = await server.handle_message(rpc("prompts/list"))
    assert [p["name"] for p in resp["result"]["prompts"]] == ["explain_code", "debug_help"]


async def test_prompts_get(server):
    resp = await server.handle_message(rpc("prompts/get", {
        "name": "debug_help",
        "arguments": {"error": "boom"},
    }))
    result = resp["result"]
    assert result["description"] == "Help debug this issue"
    assert result["messages"][0]["role"] == "user"
    assert result["messages"][0]["content"]["text"].startswith("I'm encountering this error: boom")


async def test_prompts_get_invalid_arguments(server):
    resp = await server.handle_message(rpc("prompts/get", {"name": "explain_code", "arguments": {}}))
    assert resp["error"]["code"] == -32602
    assert resp["error"]["message"] == "Missing required argument: code"


async def test_unknown_prompt(server):
    resp = await server.handle_message(rpc("prompts/get", {"name": "nope"}))
    assert resp["error"]["code"] == -32601
    assert resp["error"]["message"] == "Unknown prompt: nope"


async def test_notifications_get_no_response(server):
    assert await server.handle_message(rpc("notifications/initialized", id=None)) is None
    assert await server.handle_message(rpc("notifications/cancelled", {"requestId": 1}, id=None)) is None
    assert await server.handle_message(rpc("notifications/whatever", id=None)) is None
    assert await server.handle_message(rpc("tools/call", {"name": "echo"}, id=None)) is None


async def test_unknown_method(server):
    resp = await server.handle_message(rpc("bogus/method", id=4))
    assert resp["id"] == 4
    assert resp["error"]["code"] == -32601
    assert resp["error"]["message"] == "Method not found: bogus/method"


async def test_invalid_envelope(server):
    resp = await server.handle_message({"jsonrpc": "1.0", "id": 8, "method": "ping"})
    assert resp["id"] == 8
    assert resp["error"]["code"] == -32600


async def test_batch_is_rejected(server):
    resp = await server.handle_message([rpc("ping")])
    assert resp["id"] is None
    assert resp["error"]["code"] == -32600


async def test_disabled_capability_is_not_routed():
    server = EdgeHubMCPServer(MCPConfig(enable_prompts=False))
    resp = await server.handle_message(rpc("prompts/list"))
    assert resp["error"]["code"] == -32601

    init = await server.handle_message(rpc("initialize", {}))
    assert "prompts" not in init["result"]["capabilities"]
    assert "prompts/get" not in server.methods


async def test_health_and_ready(server):
    assert server.get_health_status()["status"] == "healthy"
    ready = server.get_ready_status()
    assert ready["ready"] is True
    assert ready["checks"]["tools_registered"] is True


def test_response_summary(server):
    assert server._generate_response_summary("tools/list", {"tools": [1, 2]}) == "返回 2 个工具"
    assert server._generate_response_summary("prompts/get", {"messages": [1]}) == "返回 1 条消息"
    assert server._generate_response_summary("resources/read", {}) == "返回 0 个资源内容"
    assert server._generate_response_summary("ping", {}) == ""
    assert server._generate_response_summary("tools/list", None) == ""
