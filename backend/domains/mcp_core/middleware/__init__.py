"""
MCP 中间件模块

提供错误处理中间件。
"""

from .error_handler import (
    ErrorCode,
    ErrorHandler,
    ErrorKind,
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    MCPError,
    MethodNotFoundError,
    ParseError,
    PromptNotFoundError,
    ResourceNotFoundError,
    ToolNotFoundError,
    error_for_outcome,
    map_exception,
)

__all__ = [
    # Error handling
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
    "error_for_outcome",
    "map_exception",
]
