from __future__ import annotations

import json

from conftest import parse_sse, rpc
from fastapi.testclient import TestClient

from domains.edge_hub.api.mcp.server import EdgeHubMCPServer
from domains.mcp_core import MCPConfig, create_mcp_app


def test_post_returns_single_sse_frame(client):
    resp = client.post("/mcp", json=rpc("tools/call", {"name": "echo", "arguments": {"text": "Hello, MCP!"}}))
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    assert resp.headers["cache-control"] == "no-cache"
    assert resp.headers["access-control-allow-origin"] == "*"
    assert resp.text.startswith("data: ")
    assert resp.text.endswith("\n\n")

    frames = parse_sse(resp.text)
    assert len(frames) == 1
    assert frames[0]["id"] == 1
    assert frames[0]["result"]["content"][0]["text"] == "Echo: Hello, MCP!"


def test_error_envelope_is_streamed(client):
    resp = client.post("/mcp", json=rpc("tools/call", {"name": "nope", "arguments": {}}, id="x"))
    assert resp.status_code == 200
    frames = parse_sse(resp.text)
    assert frames[0]["id"] == "x"
    assert "Unknown tool: nope" in frames[0]["error"]["message"]


def test_non_finite_id_is_answered_with_null_id(client):
    resp = client.post(
        "/mcp",
        content=b'{"jsonrpc": "2.0", "id": NaN, "method": "ping"}',
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 200
    frames = parse_sse(resp.text)
    assert frames[0]["id"] is None
    assert frames[0]["error"]["code"] == -32600


def test_notification_yields_empty_stream(client):
    resp = client.post("/mcp", json=rpc("notifications/initialized", id=None))
    assert resp.status_code == 200
    assert resp.text == ""


def test_malformed_body_returns_500(client):
    resp = client.post("/mcp", content=b"{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 500
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.headers["access-control-allow-origin"] == "*"
    body = resp.json()
    assert body["jsonrpc"] == "2.0"
    assert body["id"] is None
    assert body["error"]["code"] == -32603
    assert body["error"]["message"] == "Internal error"
    assert body["error"]["data"]


def test_requests_share_one_processing_unit(client, app):
    client.post("/mcp", json=rpc("ping"))
    client.post("/mcp", json=rpc("tools/list", id=2))
    namespace = app.state.namespace
    assert len(namespace) == 1
    assert namespace.get_by_name("mcp-server").events_processed == 2


def test_root_info(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
    info = resp.json()
    assert info["name"] == "Edge MCP Server"
    assert info["version"] == "1.0.0"
    assert info["protocols"] == ["http-streamable", "websocket"]
    assert info["capabilities"] == {"tools": True, "resources": True, "prompts": True}
    assert info["endpoints"] == {
        "mcp": "http://testserver/mcp",
        "websocket": "ws://testserver/ws",
    }
    assert info["usage"]["method"] == "POST"


def test_options_preflight_on_any_path(client):
    for path in ("/mcp", "/", "/anything/else"):
        resp = client.options(path)
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"
        assert resp.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
        assert resp.headers["access-control-allow-headers"] == "Content-Type, Authorization"


def test_unknown_path_is_plain_404(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.text == "Not Found"
    assert resp.headers["content-type"].startswith("text/plain")
    assert resp.headers["access-control-allow-origin"] == "*"


def test_wrong_method_is_plain_404(client):
    resp = client.get("/mcp")
    assert resp.status_code == 404
    assert resp.text == "Not Found"


def test_plain_get_on_websocket_path_requires_upgrade(client):
    resp = client.get("/ws")
    assert resp.status_code == 426
    assert resp.headers["upgrade"] == "websocket"
    assert resp.headers["connection"] == "Upgrade"


def test_health_and_ready(client):
    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["open_sessions"] == 0
    assert client.get("/ready").status_code == 200


def test_http_transport_can_be_disabled():
    app = create_mcp_app(EdgeHubMCPServer, MCPConfig(transports=["websocket"]))
    with TestClient(app) as client:
        resp = client.post("/mcp", content=json.dumps(rpc("ping")))
        assert resp.status_code == 404
        assert client.get("/").json()["protocols"] == ["websocket"]
