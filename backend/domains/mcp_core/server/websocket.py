"""
WebSocket 会话管理

每个连接是一个会话，状态机: pending -> open -> closed。
接受连接后立即推送 notifications/initialized，之后每个文本帧
解析为一条 JSON-RPC 消息交给分发器处理。
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from .protocol import JSONRPCNotification, JSONRPCResponse, recover_id
from .server import BaseMCPServer
from ..logging import get_logger
from ..middleware.error_handler import ParseError

slog = get_logger(__name__)

# 异常关闭码（RFC 6455 Internal Error）
CLOSE_INTERNAL_ERROR = 1011
CLOSE_REASON_INTERNAL_ERROR = "Internal error"


class SessionState(str, Enum):
    """会话状态"""
    PENDING = "pending"
    OPEN = "open"
    CLOSED = "closed"


@dataclass
class WebSocketSession:
    """WebSocket 会话"""
    websocket: WebSocket
    session_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: SessionState = SessionState.PENDING
    opened_at: datetime = field(default_factory=datetime.now)
    messages_received: int = 0

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "opened_at": self.opened_at.isoformat(),
            "messages_received": self.messages_received,
        }


class WebSocketSessionManager:
    """
    WebSocket 会话管理器

    独占打开连接集合。所有方法都由处理单元在持有其锁时调用，
    因此集合的修改无需额外同步。
    """

    def __init__(self, server: BaseMCPServer):
        self.server = server
        self._sessions: Dict[str, WebSocketSession] = {}

    @property
    def open_sessions(self) -> List[WebSocketSession]:
        """当前打开的会话"""
        return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    async def accept(self, websocket: WebSocket) -> WebSocketSession:
        """
        接受连接

        加入打开集合，并在读取任何客户端消息之前推送初始化通知。
        握手或推送失败时以 1011 关闭并移除会话，然后重新抛出。
        """
        session = WebSocketSession(websocket=websocket)
        try:
            await websocket.accept()
            session.state = SessionState.OPEN
            self._sessions[session.session_id] = session

            client = websocket.client
            slog.info(
                "ws_session_opened",
                session_id=session.session_id,
                client_ip=client.host if client else "",
                open_sessions=len(self._sessions),
            )

            await self._send(session, JSONRPCNotification.initialized().to_dict())
        except Exception as e:
            await self.abort(session, str(e) or type(e).__name__, exc=e)
            raise
        return session

    async def handle_event(self, session: WebSocketSession, message: Dict[str, Any]) -> None:
        """
        处理一个 ASGI WebSocket 事件

        Args:
            session: 会话
            message: websocket.receive() 返回的原始 ASGI 消息
        """
        if message["type"] == "websocket.disconnect":
            self.close(session, message.get("code", 1000), message.get("reason") or "")
            return

        text = message.get("text")
        if text is None:
            # 二进制帧无法解释
            await self.abort(session, "received a non-text frame")
            return

        session.messages_received += 1
        await self.handle_text(session, text)

    async def handle_text(self, session: WebSocketSession, text: str) -> None:
        """处理一个文本帧"""
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            error = ParseError(data=str(e), request_id=recover_id(text))
            self.server.error_handler.handle(error, {"session_id": session.session_id})
            await self._send(session, JSONRPCResponse.make_error(error.request_id, error.to_dict()).to_dict())
            return

        response = await self.server.handle_message(payload)
        if response is not None:
            await self._send(session, response)

    def close(self, session: WebSocketSession, code: int = 1000, reason: str = "") -> None:
        """
        关闭会话

        重复关闭是空操作。
        """
        if session.state is SessionState.CLOSED:
            return

        session.state = SessionState.CLOSED
        self._sessions.pop(session.session_id, None)
        slog.info(
            "ws_session_closed",
            session_id=session.session_id,
            code=code,
            reason=reason,
            messages_received=session.messages_received,
            open_sessions=len(self._sessions),
        )

    async def abort(self, session: WebSocketSession, detail: str, exc: Optional[BaseException] = None) -> None:
        """
        以 1011 异常关闭连接并移除会话

        故障只在这里记一次日志；对端已断开导致 close 失败时会话照样移除。
        """
        if session.state is SessionState.CLOSED:
            return

        slog.error("ws_session_error", session_id=session.session_id, error=detail, exc_info=exc)

        websocket = session.websocket
        try:
            if (
                websocket.application_state == WebSocketState.CONNECTED
                and websocket.client_state == WebSocketState.CONNECTED
            ):
                await websocket.close(code=CLOSE_INTERNAL_ERROR, reason=CLOSE_REASON_INTERNAL_ERROR)
        except Exception as close_error:
            slog.debug("ws_close_failed", session_id=session.session_id, error=str(close_error))
        finally:
            self.close(session, CLOSE_INTERNAL_ERROR, CLOSE_REASON_INTERNAL_ERROR)

    async def _send(self, session: WebSocketSession, data: Dict[str, Any]) -> None:
        await session.websocket.send_text(json.dumps(data, ensure_ascii=False))
