"""
MCP Core - Model Context Protocol 基础设施

提供 MCP 协议相关的组件:
- 工具基类和注册器
- 资源提供者基类
- Prompt 提供者基类
- 协议分发器、处理单元和传输层（Streamable HTTP / WebSocket）
- MCP 错误处理
"""

from .base.outcome import Outcome
from .base.tool import (
    BaseTool,
    ToolResult,
    ToolDefinition,
    ToolRegistry,
)
from .base.resource import (
    BaseResourceProvider,
    ResourceDefinition,
    ResourceContent,
)
from .base.prompt import (
    BasePromptProvider,
    PromptArgument,
    PromptDefinition,
    PromptMessage,
    PromptResult,
)
from .server.protocol import (
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCNotification,
    JSONRPCError,
    MCP_PROTOCOL_VERSION,
)
from .server.server import BaseMCPServer
from .server.objects import (
    MCPServerObject,
    ServerObjectNamespace,
)
from .server.websocket import WebSocketSessionManager
from .server.streamable_http import StreamableHTTPTransport
from .server.app import (
    create_mcp_app,
    run_server,
)

# Middleware - Error handling only
from .middleware.error_handler import (
    ErrorCode,
    ErrorKind,
    MCPError,
    ParseError,
    InvalidRequestError,
    MethodNotFoundError,
    InvalidParamsError,
    ToolNotFoundError,
    ResourceNotFoundError,
    PromptNotFoundError,
    InternalError,
    ErrorHandler,
)

# Logging
from .logging import (
    get_logger,
    configure_logging,
    bind_request_context,
)

# Config
from .config import MCPConfig
from .settings import (
    MCPSettings,
    ServerSettings,
    LoggingSettings,
    TransportSettings,
    CapabilitySettings,
    get_settings,
    reload_settings,
)


__all__ = [
    "Outcome",
    # Tool
    "BaseTool",
    "ToolResult",
    "ToolDefinition",
    "ToolRegistry",
    # Resource
    "BaseResourceProvider",
    "ResourceDefinition",
    "ResourceContent",
    # Prompt
    "BasePromptProvider",
    "PromptArgument",
    "PromptDefinition",
    "PromptMessage",
    "PromptResult",
    # Protocol
    "JSONRPCRequest",
    "JSONRPCResponse",
    "JSONRPCNotification",
    "JSONRPCError",
    "MCP_PROTOCOL_VERSION",
    # Server
    "BaseMCPServer",
    "MCPServerObject",
    "ServerObjectNamespace",
    "WebSocketSessionManager",
    "StreamableHTTPTransport",
    "create_mcp_app",
    "run_server",
    # Middleware - Error handling
    "ErrorCode",
    "ErrorKind",
    "MCPError",
    "ParseError",
    "InvalidRequestError",
    "MethodNotFoundError",
    "InvalidParamsError",
    "ToolNotFoundError",
    "ResourceNotFoundError",
    "PromptNotFoundError",
    "InternalError",
    "ErrorHandler",
    # Logging
    "get_logger",
    "configure_logging",
    "bind_request_context",
    # Config
    "MCPConfig",
    # Settings (pydantic-settings)
    "MCPSettings",
    "ServerSettings",
    "LoggingSettings",
    "TransportSettings",
    "CapabilitySettings",
    "get_settings",
    "reload_settings",
]

__version__ = "1.0.0"
