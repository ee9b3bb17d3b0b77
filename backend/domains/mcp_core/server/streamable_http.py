"""
Streamable HTTP 传输层

每个 POST 请求体是一条 JSON-RPC 消息，响应以 text/event-stream 返回，
流中最多一个事件帧 (data: {json}\\n\\n)，随后流结束。
请求体无法解析或处理出错时返回 HTTP 500 的 JSON 错误体。

用法:
    transport = StreamableHTTPTransport(namespace, config.object_name)

    @app.post("/mcp")
    async def mcp_endpoint(request: Request):
        return await transport.handle_post(request)
"""

import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse, StreamingResponse

from .objects import ServerObjectNamespace
from .protocol import JSONRPCError, JSONRPCResponse

logger = logging.getLogger(__name__)

# SSE 响应头
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def format_sse_event(data: Dict[str, Any]) -> str:
    """格式化为单个 SSE 事件帧"""
    return f"data: {json.dumps(data, ensure_ascii=False)}\n\n"


async def single_event_stream(data: Optional[Dict[str, Any]]) -> AsyncIterator[str]:
    """最多产出一个事件帧的流，data 为 None 时为空流"""
    if data is not None:
        yield format_sse_event(data)


def fault_response(detail: str) -> JSONResponse:
    """HTTP 500 JSON-RPC 内部错误响应"""
    body = JSONRPCResponse.make_error(None, JSONRPCError.internal_error(detail)).to_dict()
    return JSONResponse(content=body, status_code=500)


class StreamableHTTPTransport:
    """
    Streamable HTTP 适配器

    所有请求都解析到固定逻辑名称对应的处理单元，不保留跨请求的会话。
    """

    def __init__(self, namespace: ServerObjectNamespace, object_name: str):
        self.namespace = namespace
        self.object_name = object_name

    async def handle_post(self, request: Request):
        """处理 POST /mcp"""
        body = await request.body()
        try:
            message = json.loads(body)
        except ValueError as e:
            logger.warning(f"无法解析请求体: {e}")
            return fault_response(str(e))

        unit = self.namespace.get(self.namespace.id_from_name(self.object_name))
        try:
            response = await unit.handle_mcp_request(message)
        except Exception as e:
            logger.exception("处理 MCP 请求失败")
            return fault_response(str(e) or type(e).__name__)

        return StreamingResponse(
            single_event_stream(response),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )
