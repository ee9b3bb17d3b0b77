"""
基础工具定义

echo / get_time / random_number 三个内置工具，返回纯文本结果。
"""

import math
import random
from typing import Any, Dict, Optional

from domains.mcp_core import BaseTool, ToolResult

from domains.edge_hub.utils import format_number, utc_timestamp


class EchoTool(BaseTool):
    """回显工具"""

    category = "utility"

    @property
    def name(self) -> str:
        return "echo"

    @property
    def description(self) -> str:
        return "Echo back the input text"

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "text": {
                    "type": "string",
                    "description": "Text to echo back",
                },
            },
            "required": ["text"],
        }

    async def execute(self, text: str) -> ToolResult:
        return ToolResult.ok(f"Echo: {text}")


class GetTimeTool(BaseTool):
    """当前时间工具"""

    category = "utility"

    @property
    def name(self) -> str:
        return "get_time"

    @property
    def description(self) -> str:
        return "Get the current time"

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {},
        }

    async def execute(self) -> ToolResult:
        # 可注入 clock 服务（返回 datetime 的可调用对象）
        clock = self.get_service("clock")
        now = clock() if clock else None
        return ToolResult.ok(f"Current time: {utc_timestamp(now)}")


class RandomNumberTool(BaseTool):
    """
    随机数工具

    n = floor(random() * (max - min + 1)) + min，min == max 时总是返回 min。
    """

    category = "utility"

    @property
    def name(self) -> str:
        return "random_number"

    @property
    def description(self) -> str:
        return "Generate a random number between min and max"

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "min": {
                    "type": "number",
                    "description": "Minimum value",
                },
                "max": {
                    "type": "number",
                    "description": "Maximum value",
                },
            },
            "required": ["min", "max"],
        }

    def validate_params(self, params: Dict[str, Any]) -> Optional[str]:
        error = super().validate_params(params)
        if error:
            return error
        if params["max"] < params["min"]:
            return "Argument 'max' must be greater than or equal to 'min'"
        return None

    async def execute(self, **params) -> ToolResult:
        low = params["min"]
        high = params["max"]
        # 可注入 random 服务，便于测试
        rng = self.get_service("random") or random.random
        value = math.floor(rng() * (high - low + 1)) + low
        return ToolResult.ok(
            f"Random number between {format_number(low)} and {format_number(high)}: {format_number(value)}"
        )
