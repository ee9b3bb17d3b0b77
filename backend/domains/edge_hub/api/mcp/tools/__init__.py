"""
MCP 工具模块

提供内置的基础工具。
"""

from .basic_tools import (
    EchoTool,
    GetTimeTool,
    RandomNumberTool,
)

__all__ = [
    "EchoTool",
    "GetTimeTool",
    "RandomNumberTool",
]
