"""
MCP Tool 基类和工具注册表

工具以子类方式定义：声明 name / description / input_schema，实现 async execute。
注册表负责按名查找、按 input_schema 校验参数、丢弃未声明的参数，
并把所有失败折叠成 ToolResult，不向分发器抛异常。
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ..logging import get_logger
from .outcome import Outcome
from .schema import validate_arguments

logger = get_logger(__name__)


class ToolResult(Outcome):
    """工具执行结果，data 为返回给客户端的文本"""


@dataclass(frozen=True)
class ToolDefinition:
    """tools/list 中的一项"""
    name: str
    description: str
    input_schema: dict[str, Any]
    category: str = "default"

    def to_mcp_format(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class BaseTool(ABC):
    """
    MCP 工具基类

    示例:
        class UpperTool(BaseTool):
            @property
            def name(self):
                return "upper"

            @property
            def description(self):
                return "Uppercase a string"

            @property
            def input_schema(self):
                return {"type": "object", "properties": {"text": {"type": "string"}}, "required": ["text"]}

            async def execute(self, text: str) -> ToolResult:
                return ToolResult.ok(text.upper())

    构造参数作为服务注入（如 clock、random），execute 中用 get_service 取用。
    """

    category: str = "default"

    def __init__(self, **services):
        self._services = services

    def get_service(self, name: str) -> Any:
        return self._services.get(name)

    @property
    @abstractmethod
    def name(self) -> str:
        """工具名称，注册表内唯一"""

    @property
    @abstractmethod
    def description(self) -> str:
        """面向客户端的一句话说明"""

    @property
    @abstractmethod
    def input_schema(self) -> dict[str, Any]:
        """参数的 JSON Schema（type: object）"""

    @abstractmethod
    async def execute(self, **params) -> ToolResult:
        """参数已通过 validate_params 且只包含 schema 中声明的字段"""

    def get_definition(self) -> ToolDefinition:
        return ToolDefinition(self.name, self.description, self.input_schema, self.category)

    def validate_params(self, params: dict[str, Any]) -> str | None:
        """
        返回第一条错误信息，None 表示通过

        需要跨字段校验的工具覆盖此方法，先调用 super()。
        """
        return validate_arguments(self.input_schema, params)


class ToolRegistry:
    """按注册顺序保存工具，tools/list 也按此顺序输出"""

    def __init__(self):
        self._tools: dict[str, BaseTool] = {}
        self._services: dict[str, Any] = {}

    def set_service(self, name: str, service: Any) -> None:
        """之后 register_class 创建的工具都会注入该服务"""
        self._services[name] = service

    def register(self, tool: BaseTool, category: str | None = None) -> None:
        if category:
            tool.category = category
        if tool.name in self._tools:
            logger.warning("tool_replaced", tool_name=tool.name)
        self._tools[tool.name] = tool
        logger.debug("tool_registered", tool_name=tool.name, category=tool.category)

    def register_class(self, tool_class: type[BaseTool], category: str | None = None, **kwargs) -> BaseTool:
        """实例化并注册，kwargs 覆盖注册表级别的服务"""
        tool = tool_class(**{**self._services, **kwargs})
        self.register(tool, category)
        return tool

    def get(self, name: str) -> BaseTool | None:
        return self._tools.get(name)

    def get_definitions(self) -> list[ToolDefinition]:
        return [tool.get_definition() for tool in self._tools.values()]

    def get_mcp_tools(self) -> list[dict[str, Any]]:
        return [d.to_mcp_format() for d in self.get_definitions()]

    async def execute(self, name: str, params: dict[str, Any]) -> ToolResult:
        tool = self._tools.get(name)
        if tool is None:
            return ToolResult.not_found(f"Unknown tool: {name}")

        error = tool.validate_params(params)
        if error:
            return ToolResult.invalid_argument(error)

        declared = tool.input_schema.get("properties", {})
        kwargs = {key: value for key, value in params.items() if key in declared}

        start = time.perf_counter()
        try:
            result = await tool.execute(**kwargs)
        except Exception as e:
            logger.exception("tool_failed", tool_name=name)
            return ToolResult.internal(str(e) or type(e).__name__)

        logger.debug(
            "tool_executed",
            tool_name=name,
            success=result.success,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return result

    @property
    def categories(self) -> list[str]:
        """出现过的分类，按首次出现顺序"""
        return list(dict.fromkeys(tool.category for tool in self._tools.values()))

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools
