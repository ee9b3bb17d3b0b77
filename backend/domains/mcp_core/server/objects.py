"""
可寻址处理单元

同一逻辑名称总是解析到同一个 MCPServerObject。处理单元持有一个
协议分发器和 WebSocket 会话管理器，并用一把锁保证同一时刻只处理
一个入站事件（HTTP 请求、WebSocket 接入、帧、关闭）。
"""

import asyncio
import hashlib
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from fastapi import WebSocket

from .server import BaseMCPServer
from .websocket import WebSocketSession, WebSocketSessionManager
from ..config import MCPConfig
from ..logging import bind_request_context, clear_request_context, get_logger

logger = get_logger(__name__)

ServerFactory = Callable[[MCPConfig], BaseMCPServer]


@dataclass(frozen=True)
class ServerObjectId:
    """处理单元标识，由名称确定性派生"""
    name: str
    hex: str

    def __str__(self) -> str:
        return self.hex


class MCPServerObject:
    """
    MCP 处理单元

    分发器在首次使用时通过 server_factory 创建，之后由该单元的
    所有会话共享。
    """

    def __init__(
        self,
        object_id: ServerObjectId,
        config: MCPConfig,
        server_factory: ServerFactory,
    ):
        self.id = object_id
        self.config = config
        self._server_factory = server_factory
        self._server: Optional[BaseMCPServer] = None
        self._sessions: Optional[WebSocketSessionManager] = None
        self._lock = asyncio.Lock()
        self.events_processed = 0

    @property
    def server(self) -> BaseMCPServer:
        """协议分发器（延迟创建）"""
        if self._server is None:
            self._server = self._server_factory(self.config)
            logger.info(
                "server_object_initialized",
                object_name=self.id.name,
                object_id=self.id.hex[:16],
                tools=len(self._server.tool_registry),
            )
        return self._server

    @property
    def sessions(self) -> WebSocketSessionManager:
        """WebSocket 会话管理器"""
        if self._sessions is None:
            self._sessions = WebSocketSessionManager(self.server)
        return self._sessions

    async def handle_mcp_request(self, message: Any) -> Optional[Dict[str, Any]]:
        """
        处理一条 HTTP 传输的 JSON-RPC 消息

        Args:
            message: 已解码的 JSON 消息

        Returns:
            响应字典；通知返回 None
        """
        async with self._lock:
            self.events_processed += 1
            return await self.server.handle_message(message)

    async def serve_websocket(self, websocket: WebSocket) -> None:
        """
        接管一个 WebSocket 连接直到关闭

        等待入站帧时不持有锁，处理每个事件时持有锁。
        故障由会话管理器记录并以 1011 关闭，这里只负责结束本连接。
        """
        async with self._lock:
            self.events_processed += 1
            try:
                session = await self.sessions.accept(websocket)
            except Exception:
                # accept 失败时会话已被移除并记录
                return

        bind_request_context(session_id=session.session_id)
        try:
            while session.is_open:
                message = await websocket.receive()
                async with self._lock:
                    self.events_processed += 1
                    await self.sessions.handle_event(session, message)
        except Exception as e:
            await self._abort(session, str(e) or type(e).__name__, e)
        finally:
            clear_request_context()

    async def _abort(self, session: WebSocketSession, detail: str, exc: BaseException) -> None:
        async with self._lock:
            await self.sessions.abort(session, detail, exc=exc)

    def get_status(self) -> Dict[str, Any]:
        """处理单元状态"""
        return {
            "object_name": self.id.name,
            "object_id": self.id.hex,
            "initialized": self._server is not None,
            "open_sessions": len(self._sessions) if self._sessions is not None else 0,
            "events_processed": self.events_processed,
        }


class ServerObjectNamespace:
    """
    处理单元命名空间

    id_from_name + get 对同一名称总是返回同一个处理单元。
    """

    def __init__(self, server_factory: ServerFactory, config: Optional[MCPConfig] = None):
        self.config = config or MCPConfig()
        self._server_factory = server_factory
        self._objects: Dict[str, MCPServerObject] = {}

    def id_from_name(self, name: str) -> ServerObjectId:
        """由名称派生确定性标识"""
        digest = hashlib.sha256(name.encode("utf-8")).hexdigest()
        return ServerObjectId(name=name, hex=digest)

    def get(self, object_id: ServerObjectId) -> MCPServerObject:
        """获取处理单元，不存在则创建"""
        obj = self._objects.get(object_id.hex)
        if obj is None:
            obj = MCPServerObject(object_id, self.config, self._server_factory)
            self._objects[object_id.hex] = obj
            logger.debug("server_object_created", object_name=object_id.name)
        return obj

    def get_by_name(self, name: str) -> MCPServerObject:
        return self.get(self.id_from_name(name))

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, object_id: ServerObjectId) -> bool:
        return object_id.hex in self._objects
