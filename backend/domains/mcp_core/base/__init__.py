"""
MCP 基础组件

提供 Tool、Resource、Prompt 的基类定义。
"""

from .outcome import Outcome
from .prompt import (
    BasePromptProvider,
    EmptyPromptProvider,
    PromptArgument,
    PromptDefinition,
    PromptMessage,
    PromptResult,
)
from .resource import (
    BaseResourceProvider,
    EmptyResourceProvider,
    ResourceContent,
    ResourceDefinition,
)
from .schema import validate_arguments
from .tool import (
    BaseTool,
    ToolDefinition,
    ToolRegistry,
    ToolResult,
)

__all__ = [
    "Outcome",
    "validate_arguments",
    # Tool
    "BaseTool",
    "ToolResult",
    "ToolDefinition",
    "ToolRegistry",
    # Resource
    "BaseResourceProvider",
    "EmptyResourceProvider",
    "ResourceDefinition",
    "ResourceContent",
    # Prompt
    "BasePromptProvider",
    "EmptyPromptProvider",
    "PromptArgument",
    "PromptDefinition",
    "PromptMessage",
    "PromptResult",
]
