"""
MCP 服务器组件

提供协议处理、分发器基类、处理单元和两种传输。
"""

from .protocol import (
    MCP_PROTOCOL_VERSION,
    JSONRPCError,
    JSONRPCErrorCode,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
)
from .server import BaseMCPServer
from .objects import (
    MCPServerObject,
    ServerObjectId,
    ServerObjectNamespace,
)
from .websocket import (
    SessionState,
    WebSocketSession,
    WebSocketSessionManager,
)
from .streamable_http import StreamableHTTPTransport
from .app import create_mcp_app, run_server

__all__ = [
    "JSONRPCRequest",
    "JSONRPCResponse",
    "JSONRPCNotification",
    "JSONRPCError",
    "JSONRPCErrorCode",
    "MCP_PROTOCOL_VERSION",
    "BaseMCPServer",
    "MCPServerObject",
    "ServerObjectId",
    "ServerObjectNamespace",
    "SessionState",
    "WebSocketSession",
    "WebSocketSessionManager",
    "StreamableHTTPTransport",
    "create_mcp_app",
    "run_server",
]
