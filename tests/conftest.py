from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from domains.edge_hub.api.mcp.server import EdgeHubMCPServer
from domains.mcp_core import MCPConfig, create_mcp_app


def rpc(method: str, params: dict | None = None, id: int | str | None = 1) -> dict:
    """构造 JSON-RPC 请求"""
    message = {"jsonrpc": "2.0", "method": method}
    if id is not None:
        message["id"] = id
    if params is not None:
        message["params"] = params
    return message


def parse_sse(text: str) -> list[dict]:
    """解析 SSE 响应体中的所有 data 帧"""
    frames = []
    for block in text.split("\n\n"):
        if block.startswith("data: "):
            frames.append(json.loads(block[len("data: "):]))
    return frames


@pytest.fixture
def config():
    return MCPConfig()


@pytest.fixture
def server(config):
    return EdgeHubMCPServer(config)


@pytest.fixture
def app(config):
    return create_mcp_app(EdgeHubMCPServer, config)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
