"""
MCP ASGI 应用

在一个 FastAPI 应用上挂载两种传输:
- POST /mcp: Streamable HTTP（单帧 SSE 响应）
- /ws: WebSocket

以及服务器信息 (/)、健康检查 (/health)、就绪检查 (/ready)。
"""

import time
import uuid
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, WebSocket
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from .objects import ServerFactory, ServerObjectNamespace
from .streamable_http import StreamableHTTPTransport
from ..config import MCPConfig, TRANSPORT_HTTP_STREAMABLE, TRANSPORT_WEBSOCKET
from ..logging import (
    LogConfig,
    LogFormat,
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)

logger = logging.getLogger(__name__)
slog = get_logger(__name__)

# 预检请求响应头
CORS_PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """任意路径的 OPTIONS 直接返回 200，其余响应补充 Access-Control-Allow-Origin"""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_PREFLIGHT_HEADERS)

        response = await call_next(request)
        if "access-control-allow-origin" not in response.headers:
            response.headers["Access-Control-Allow-Origin"] = "*"
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """HTTP 请求日志中间件"""

    # 不记录日志的路径前缀
    SKIP_PATHS = {"/health", "/ready", "/favicon.ico"}

    async def dispatch(self, request: Request, call_next) -> Response:
        if any(request.url.path.startswith(p) for p in self.SKIP_PATHS):
            return await call_next(request)

        request_id = str(uuid.uuid4())[:8]
        bind_request_context(request_id)

        start_time = time.time()
        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else ""
        user_agent = request.headers.get("user-agent", "")[:100]

        try:
            response = await call_next(request)
            duration_ms = (time.time() - start_time) * 1000

            slog.info(
                "http_request",
                request_id=request_id,
                method=method,
                path=path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                client_ip=client_ip,
                user_agent=user_agent,
            )

            return response

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            slog.error(
                "http_request_error",
                request_id=request_id,
                method=method,
                path=path,
                duration_ms=round(duration_ms, 2),
                client_ip=client_ip,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
        finally:
            clear_request_context()


def build_server_info(request: Request, config: MCPConfig, capabilities: dict) -> dict:
    """构建服务器信息描述，端点为基于请求的绝对地址"""
    scheme = request.url.scheme
    host = request.headers.get("host") or request.url.netloc
    ws_scheme = "wss" if scheme == "https" else "ws"

    endpoints = {}
    if config.http_enabled:
        endpoints["mcp"] = f"{scheme}://{host}{config.mcp_path}"
    if config.websocket_enabled:
        endpoints["websocket"] = f"{ws_scheme}://{host}{config.ws_path}"

    return {
        "name": config.display_name,
        "version": config.server_version,
        "description": config.description,
        "protocols": list(config.transports),
        "capabilities": capabilities,
        "endpoints": endpoints,
        "documentation": (
            f"Send POST requests with JSON-RPC messages to {config.mcp_path}, "
            f"or connect a WebSocket to {config.ws_path}"
        ),
        "usage": {
            "method": "POST",
            "url": config.mcp_path,
            "headers": {
                "Content-Type": "application/json",
            },
            "body": "JSON-RPC 2.0 message",
            "response": "Server-Sent Events (text/event-stream)",
        },
    }


def create_mcp_app(
    server_factory: ServerFactory,
    config: Optional[MCPConfig] = None,
) -> FastAPI:
    """
    创建 MCP FastAPI 应用

    Args:
        server_factory: 接收 MCPConfig、返回 BaseMCPServer 的可调用对象
            （通常直接传 BaseMCPServer 子类）
        config: MCP 配置

    Returns:
        FastAPI 应用实例
    """
    config = config or MCPConfig()
    namespace = ServerObjectNamespace(server_factory, config)

    def get_unit():
        return namespace.get(namespace.id_from_name(config.object_name))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理"""
        slog.info(
            "mcp_server_started",
            server_name=config.server_name,
            version=config.server_version,
            transports=config.transports,
        )
        yield
        slog.info("mcp_server_stopped", server_name=config.server_name)

    app = FastAPI(
        title=config.display_name,
        description=config.description,
        version=config.server_version,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.namespace = namespace

    # 日志中间件在内层，CORS 在外层
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CORSHeadersMiddleware)

    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(request: Request, exc: StarletteHTTPException):
        # 未匹配路径和不支持的方法一律 404 纯文本
        if exc.status_code in (404, 405):
            return PlainTextResponse("Not Found", status_code=404)
        return await http_exception_handler(request, exc)

    @app.get("/")
    async def root(request: Request):
        """服务器信息"""
        return build_server_info(request, config, get_unit().server.get_capabilities())

    @app.get("/health")
    async def health():
        """
        健康检查端点

        用于负载均衡器和容器编排系统检查服务存活状态。
        """
        unit = get_unit()
        status = unit.server.get_health_status()
        status["open_sessions"] = len(unit.sessions)
        return status

    @app.get("/ready")
    async def ready():
        """
        就绪检查端点

        用于 Kubernetes 等系统检查服务是否准备好接收流量。
        """
        status = get_unit().server.get_ready_status()
        if not status["ready"]:
            return JSONResponse(content=status, status_code=503)
        return status

    if TRANSPORT_HTTP_STREAMABLE in config.transports:
        transport = StreamableHTTPTransport(namespace, config.object_name)

        @app.post(config.mcp_path)
        async def mcp_endpoint(request: Request):
            """MCP JSON-RPC 端点（Streamable HTTP）"""
            return await transport.handle_post(request)

    if TRANSPORT_WEBSOCKET in config.transports:

        @app.get(config.ws_path)
        async def websocket_upgrade_required():
            """普通 GET 请求提示升级协议"""
            return PlainTextResponse(
                f"Expected WebSocket upgrade. Connect with a WebSocket client to {config.ws_path}",
                status_code=426,
                headers={"Upgrade": "websocket", "Connection": "Upgrade"},
            )

        @app.websocket(config.ws_path)
        async def websocket_endpoint(websocket: WebSocket):
            """MCP WebSocket 端点"""
            await get_unit().serve_websocket(websocket)

    return app


def run_server(
    server_factory: ServerFactory,
    config: Optional[MCPConfig] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
):
    """
    运行 MCP 服务器

    Args:
        server_factory: 服务器工厂
        config: MCP 配置
        host: 监听地址，默认使用配置值
        port: 监听端口，默认使用配置值
        log_level: 日志级别，默认使用配置值
        log_format: json 或 console，默认读取 LOG_FORMAT 环境变量
    """
    config = config or MCPConfig()
    host = host or config.host
    port = port or config.port
    log_level = (log_level or config.log_level).upper()

    log_config = LogConfig.from_env(service_name=config.server_name)
    log_config.level = log_level
    if log_format:
        log_config.format = LogFormat.parse(log_format)
    configure_logging(log_config, service_name=config.server_name)

    logger.info(f"启动 MCP 服务器: http://{host}:{port}")
    if config.http_enabled:
        logger.info(f"MCP 端点: http://{host}:{port}{config.mcp_path}")
    if config.websocket_enabled:
        logger.info(f"WebSocket 端点: ws://{host}:{port}{config.ws_path}")
    logger.info(f"健康检查: http://{host}:{port}/health")

    app = create_mcp_app(server_factory, config)

    # log_config=None: 沿用 structlog 的根日志配置
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=log_level.lower(),
        log_config=None,
    )
