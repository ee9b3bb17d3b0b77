"""
MCP 服务器基类

提供 MCP 协议的核心处理逻辑（请求分发），与传输层无关。
支持:
- 结构化日志
- 统一错误处理
"""

import json
import time
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Dict, Optional, Type
from datetime import datetime

from .protocol import (
    JSONRPCRequest,
    JSONRPCResponse,
    MCP_PROTOCOL_VERSION,
)
from ..base.tool import ToolRegistry, BaseTool
from ..base.resource import BaseResourceProvider, EmptyResourceProvider
from ..base.prompt import BasePromptProvider, EmptyPromptProvider
from ..config import MCPConfig
from ..logging import get_logger
from ..middleware.error_handler import (
    MCPError,
    ErrorHandler,
    InvalidParamsError,
    MethodNotFoundError,
    PromptNotFoundError,
    ResourceNotFoundError,
    ToolNotFoundError,
    error_for_outcome,
)

logger = logging.getLogger(__name__)
slog = get_logger(__name__)

MethodHandler = Callable[[dict], Awaitable[Any]]

# 方法 -> (结果中的列表字段, 摘要模板)
_SUMMARY_FIELDS = {
    "tools/list": ("tools", "返回 {} 个工具"),
    "tools/call": ("content", "工具执行成功，返回 {} 个内容块"),
    "resources/list": ("resources", "返回 {} 个资源"),
    "resources/read": ("contents", "返回 {} 个资源内容"),
    "prompts/list": ("prompts", "返回 {} 个 Prompt"),
    "prompts/get": ("messages", "返回 {} 条消息"),
}


def _required_str(params: dict, key: str) -> str:
    value = params.get(key)
    if not isinstance(value, str) or not value:
        raise InvalidParamsError(f"Missing required parameter: {key}")
    return value


def _arguments(params: dict) -> dict:
    """缺省为空对象，其他非对象值视为参数错误"""
    arguments = params.get("arguments")
    if arguments is None:
        return {}
    if not isinstance(arguments, dict):
        raise InvalidParamsError("Parameter 'arguments' must be an object")
    return arguments


class BaseMCPServer:
    """
    MCP 服务器基类

    提供 MCP 协议的核心处理逻辑，子类可扩展工具、资源和 Prompt。
    方法分发通过方法表完成，表在构造时建立一次。

    使用方式:
        class MyMCPServer(BaseMCPServer):
            def _setup(self):
                self.register_tool(MyTool())
                self.set_resource_provider(MyResourceProvider())
    """

    def __init__(
        self,
        config: Optional[MCPConfig] = None,
    ):
        """
        初始化服务器

        Args:
            config: MCP 配置
        """
        self.config = config or MCPConfig()
        self.tool_registry = ToolRegistry()
        self.resource_provider: BaseResourceProvider = EmptyResourceProvider()
        self.prompt_provider: BasePromptProvider = EmptyPromptProvider()

        # 错误处理
        self.error_handler = ErrorHandler(log_stack_traces=True)

        # 服务器状态
        self._start_time = datetime.now()
        self._ready = False

        # 子类在 _setup() 中注册工具、资源等
        self._setup()

        self._method_handlers = self._build_method_table()
        self._notification_handlers: Dict[str, MethodHandler] = {
            "notifications/initialized": self._handle_initialized,
            "notifications/cancelled": self._handle_cancelled,
        }
        self._ready = True

    def _setup(self) -> None:
        """
        初始化设置

        子类应覆盖此方法来注册工具、资源等。
        """
        pass

    def _build_method_table(self) -> Dict[str, MethodHandler]:
        """构建方法表，未启用的能力不暴露对应方法"""
        table: Dict[str, MethodHandler] = {
            "initialize": self._handle_initialize,
            "ping": self._handle_ping,
        }
        if self.config.enable_tools:
            table["tools/list"] = self._handle_tools_list
            table["tools/call"] = self._handle_tools_call
        if self.config.enable_resources:
            table["resources/list"] = self._handle_resources_list
            table["resources/read"] = self._handle_resources_read
        if self.config.enable_prompts:
            table["prompts/list"] = self._handle_prompts_list
            table["prompts/get"] = self._handle_prompts_get
        return table

    @property
    def methods(self) -> list[str]:
        """支持的请求方法"""
        return list(self._method_handlers.keys())

    def register_tool(self, tool: BaseTool, category: Optional[str] = None) -> None:
        """注册工具"""
        self.tool_registry.register(tool, category)

    def register_tool_class(self, tool_class: Type[BaseTool], category: Optional[str] = None, **kwargs) -> None:
        """注册工具类"""
        self.tool_registry.register_class(tool_class, category, **kwargs)

    def set_resource_provider(self, provider: BaseResourceProvider) -> None:
        """设置资源提供者"""
        self.resource_provider = provider

    def set_prompt_provider(self, provider: BasePromptProvider) -> None:
        """设置 Prompt 提供者"""
        self.prompt_provider = provider

    def get_capabilities(self) -> Dict[str, bool]:
        """能力开关（用于服务器信息端点）"""
        return {
            "tools": self.config.enable_tools,
            "resources": self.config.enable_resources,
            "prompts": self.config.enable_prompts,
        }

    def get_health_status(self) -> Dict[str, Any]:
        """获取健康状态"""
        uptime = (datetime.now() - self._start_time).total_seconds()
        return {
            "status": "healthy" if self._ready else "starting",
            "uptime_seconds": round(uptime, 2),
            "server_name": self.config.server_name,
            "version": self.config.server_version,
        }

    def get_ready_status(self) -> Dict[str, Any]:
        """获取就绪状态"""
        checks = {
            "tools_registered": len(self.tool_registry) > 0,
        }
        all_ready = all(checks.values()) and self._ready
        return {
            "ready": all_ready,
            "checks": checks,
        }

    async def handle_message(self, message: Any) -> Optional[Dict[str, Any]]:
        """
        处理一条已解码的 JSON-RPC 消息

        Args:
            message: json.loads 的结果

        Returns:
            响应字典；通知返回 None
        """
        try:
            request = JSONRPCRequest.from_dict(message)
        except MCPError as e:
            self.error_handler.handle(e, {"stage": "decode"})
            return JSONRPCResponse.make_error(e.request_id, e.to_dict()).to_dict()

        response = await self.handle_request(request)
        return response.to_dict() if response is not None else None

    async def handle_request(self, request: JSONRPCRequest) -> Optional[JSONRPCResponse]:
        """
        处理 JSON-RPC 请求

        Args:
            request: JSON-RPC 请求

        Returns:
            JSON-RPC 响应；通知返回 None
        """
        if request.is_notification:
            await self._handle_notification(request)
            return None

        start_time = time.perf_counter()
        params = request.params or {}

        try:
            handler = self._method_handlers.get(request.method)
            if handler is None:
                raise MethodNotFoundError(request.method)
            result = await handler(params)
            response = JSONRPCResponse.success(request.id, result)
            self._log_request(request, start_time, success=True, result=result)

        except MCPError as e:
            self.error_handler.handle(e, {"method": request.method})
            response = JSONRPCResponse.make_error(request.id, e.to_dict())
            self._log_request(request, start_time, success=False, error_message=str(e))

        except Exception as e:
            mcp_error = self.error_handler.handle(e, {"method": request.method})
            response = JSONRPCResponse.make_error(request.id, mcp_error.to_dict())
            self._log_request(request, start_time, success=False, error_message=str(e))

        return response

    async def _handle_notification(self, request: JSONRPCRequest) -> None:
        """处理通知，不产生响应"""
        handler = self._notification_handlers.get(request.method)
        if handler is None:
            logger.debug(f"忽略通知: {request.method}")
            return
        try:
            await handler(request.params or {})
        except Exception:
            logger.exception(f"处理通知失败: {request.method}")

    def _log_request(
        self,
        request: JSONRPCRequest,
        start_time: float,
        success: bool,
        result: Any = None,
        error_message: str = "",
    ) -> None:
        """记录 MCP 请求日志"""
        params = request.params or {}
        duration_ms = (time.perf_counter() - start_time) * 1000
        log_data = {
            "method": request.method,
            "status": "success" if success else "failed",
            "duration_ms": round(duration_ms, 2),
            "server_name": self.config.server_name,
            "jsonrpc_id": request.id,
            "tool_name": params.get("name", "") if request.method == "tools/call" else "",
            "resource_uri": params.get("uri", "") if request.method == "resources/read" else "",
            "error_message": error_message,
        }
        if success:
            log_data["response_summary"] = self._generate_response_summary(request.method, result)
            slog.info("mcp_request", **log_data)
        else:
            slog.warning("mcp_request", **log_data)

    def _generate_response_summary(self, method: str, result: Any) -> str:
        """生成响应摘要"""
        if method == "initialize":
            return "初始化完成"
        entry = _SUMMARY_FIELDS.get(method)
        if entry is None or not isinstance(result, dict):
            return ""
        key, template = entry
        return template.format(len(result.get(key, [])))

    async def _handle_initialize(self, params: dict) -> dict:
        """处理初始化请求"""
        client_info = params.get("clientInfo") or {}
        logger.info(f"MCP 客户端连接: {client_info.get('name', 'unknown')}")

        # 构建服务器能力
        capabilities = {}

        if self.config.enable_tools and len(self.tool_registry) > 0:
            capabilities["tools"] = {}

        if self.config.enable_resources and len(self.resource_provider) > 0:
            capabilities["resources"] = {}

        if self.config.enable_prompts and len(self.prompt_provider) > 0:
            capabilities["prompts"] = {}

        return {
            "protocolVersion": MCP_PROTOCOL_VERSION,
            "capabilities": capabilities,
            "serverInfo": {
                "name": self.config.server_name,
                "version": self.config.server_version,
            },
        }

    async def _handle_initialized(self, params: dict) -> None:
        """处理初始化完成通知"""
        logger.info("MCP 连接初始化完成")

    async def _handle_cancelled(self, params: dict) -> None:
        """处理取消通知（处理器均为同步快速执行，仅记录）"""
        logger.info(f"客户端取消请求: {params.get('requestId')}")

    async def _handle_ping(self, params: dict) -> dict:
        return {}

    async def _handle_tools_list(self, params: dict) -> dict:
        """列出所有可用工具"""
        return {"tools": self.tool_registry.get_mcp_tools()}

    async def _handle_tools_call(self, params: dict) -> dict:
        """调用工具"""
        name = _required_str(params, "name")
        result = await self.tool_registry.execute(name, _arguments(params))
        if not result.success:
            raise error_for_outcome(result, ToolNotFoundError(name))

        return {
            "content": [
                {
                    "type": "text",
                    "text": self._to_text(result.data),
                }
            ],
        }

    @staticmethod
    def _to_text(data: Any) -> str:
        """工具返回值转换为文本内容"""
        if isinstance(data, str):
            return data
        return json.dumps(data, ensure_ascii=False, indent=2)

    async def _handle_resources_list(self, params: dict) -> dict:
        """列出所有可用资源"""
        return {
            "resources": [r.to_mcp_format() for r in self.resource_provider.list_resources()]
        }

    async def _handle_resources_read(self, params: dict) -> dict:
        """读取资源"""
        uri = _required_str(params, "uri")

        result = await self.resource_provider.read_resource(uri)
        if not result.success:
            raise error_for_outcome(result, ResourceNotFoundError(uri))

        return {
            "contents": [result.data.to_mcp_format()]
        }

    async def _handle_prompts_list(self, params: dict) -> dict:
        """列出所有可用 Prompt"""
        return {
            "prompts": [p.to_mcp_format() for p in self.prompt_provider.list_prompts()]
        }

    async def _handle_prompts_get(self, params: dict) -> dict:
        """获取 Prompt"""
        name = _required_str(params, "name")
        result = await self.prompt_provider.get_prompt(name, _arguments(params))
        if not result.success:
            raise error_for_outcome(result, PromptNotFoundError(name))

        return result.data.to_mcp_format()
