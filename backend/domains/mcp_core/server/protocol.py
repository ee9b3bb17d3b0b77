"""
MCP JSON-RPC 2.0 协议处理

定义请求、响应和错误格式。
"""

import json
import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

# MCP 协议版本
MCP_PROTOCOL_VERSION = "2024-11-05"

JSONRPC_VERSION = "2.0"

_DECODER = json.JSONDecoder()


class JSONRPCErrorCode(IntEnum):
    """JSON-RPC 错误码"""
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


@dataclass
class JSONRPCError:
    """JSON-RPC 错误"""
    code: int
    message: str
    data: Any | None = None

    def to_dict(self) -> dict[str, Any]:
        result = {
            "code": int(self.code),
            "message": self.message,
        }
        if self.data is not None:
            result["data"] = self.data
        return result

    @classmethod
    def parse_error(cls, message: str = "Parse error") -> 'JSONRPCError':
        return cls(JSONRPCErrorCode.PARSE_ERROR, message)

    @classmethod
    def invalid_request(cls, message: str = "Invalid Request") -> 'JSONRPCError':
        return cls(JSONRPCErrorCode.INVALID_REQUEST, message)

    @classmethod
    def internal_error(cls, data: Any = None) -> 'JSONRPCError':
        return cls(JSONRPCErrorCode.INTERNAL_ERROR, "Internal error", data)


def is_valid_id(value: Any) -> bool:
    """id 只能是字符串、有限数字或 null（布尔值不算数字，NaN/Infinity 无法写回 JSON）"""
    if value is None or isinstance(value, str):
        return True
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in " \t\r\n":
        pos += 1
    return pos


def _scan_top_level_id(text: str) -> Any:
    """
    在无法完整解析的文本中找最外层对象的 "id" 值

    只看嵌套深度为 1 的键，字符串和数字交给 JSONDecoder 解码，
    因此转义和指数形式与正常解析一致。值不完整或不合法时返回 None。
    """
    depth = 0
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch == '"':
            try:
                token, end = _DECODER.raw_decode(text, pos)
            except ValueError:
                return None
            if depth == 1 and token == "id":
                colon = _skip_whitespace(text, end)
                if text[colon:colon + 1] == ":":
                    try:
                        value, _ = _DECODER.raw_decode(text, _skip_whitespace(text, colon + 1))
                    except ValueError:
                        return None
                    return value
            pos = end
            continue
        if ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
        pos += 1
    return None


def recover_id(message: Any) -> str | int | float | None:
    """
    尽力从消息中恢复请求 id

    支持已解析的字典和无法解析的原始文本，恢复失败返回 None。
    """
    if isinstance(message, dict):
        value = message.get("id")
    elif isinstance(message, (str, bytes)):
        text = message.decode("utf-8", "replace") if isinstance(message, bytes) else message
        value = _scan_top_level_id(text)
    else:
        return None
    return value if is_valid_id(value) else None


@dataclass(frozen=True)
class JSONRPCRequest:
    """JSON-RPC 2.0 请求（构造后不可变）"""
    jsonrpc: str
    method: str
    id: str | int | float | None = None
    params: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> 'JSONRPCRequest':
        """
        从字典创建请求

        Raises:
            InvalidRequestError: 消息不是合法的 JSON-RPC 2.0 请求
        """
        # 延迟导入，避免 middleware 与 server 循环导入
        from ..middleware.error_handler import InvalidRequestError

        if not isinstance(data, dict):
            raise InvalidRequestError("Invalid Request", data="Message must be a JSON object")

        request_id = data.get("id")
        if not is_valid_id(request_id):
            raise InvalidRequestError("Invalid Request", data="id must be a string, number or null")

        if data.get("jsonrpc") != JSONRPC_VERSION:
            raise InvalidRequestError(
                "Invalid Request", data='jsonrpc must be "2.0"', request_id=request_id,
            )

        method = data.get("method")
        if not isinstance(method, str) or not method:
            raise InvalidRequestError(
                "Invalid Request", data="method must be a non-empty string", request_id=request_id,
            )

        params = data.get("params")
        if params is not None and not isinstance(params, dict):
            raise InvalidRequestError(
                "Invalid Request", data="params must be an object", request_id=request_id,
            )

        return cls(
            jsonrpc=JSONRPC_VERSION,
            method=method,
            id=request_id,
            params=params,
        )

    def to_dict(self) -> dict[str, Any]:
        """转换为字典"""
        result = {
            "jsonrpc": self.jsonrpc,
            "method": self.method,
        }
        if self.id is not None:
            result["id"] = self.id
        if self.params is not None:
            result["params"] = self.params
        return result

    @property
    def is_notification(self) -> bool:
        """是否为通知（无需响应）"""
        return self.id is None


@dataclass
class JSONRPCResponse:
    """JSON-RPC 2.0 响应"""
    jsonrpc: str = JSONRPC_VERSION
    id: str | int | float | None = None
    result: Any | None = None
    error: JSONRPCError | dict | None = None

    def to_dict(self) -> dict[str, Any]:
        """转换为字典，id 无法恢复时输出 null"""
        d = {"jsonrpc": self.jsonrpc, "id": self.id}

        if self.error is not None:
            # 支持 error 为 dict 或 JSONRPCError 对象
            if isinstance(self.error, dict):
                d["error"] = self.error
            else:
                d["error"] = self.error.to_dict()
        elif self.result is not None:
            d["result"] = self.result
        else:
            d["result"] = {}

        return d

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def success(cls, id: str | int | float | None, result: Any) -> 'JSONRPCResponse':
        """创建成功响应"""
        return cls(id=id, result=result)

    @classmethod
    def make_error(cls, id: str | int | float | None, error: JSONRPCError | dict) -> 'JSONRPCResponse':
        """创建错误响应"""
        return cls(id=id, error=error)


@dataclass(frozen=True)
class JSONRPCNotification:
    """服务端主动推送的通知"""
    method: str
    params: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        result = {"jsonrpc": JSONRPC_VERSION, "method": self.method}
        if self.params is not None:
            result["params"] = self.params
        return result

    @classmethod
    def initialized(cls) -> 'JSONRPCNotification':
        return cls("notifications/initialized")
