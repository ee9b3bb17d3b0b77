"""
错误处理

MCPError 及其子类对应 JSON-RPC 错误对象；
ErrorHandler 负责把任意异常归一为 MCPError 并按严重程度记日志。
能力处理器不抛异常，而是返回带 ErrorKind 的 Outcome，
由 error_for_outcome 转成对应的 MCPError。
"""

import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..logging import get_logger

logger = get_logger(__name__)

RequestId = str | int | float | None


class ErrorCode(Enum):
    """JSON-RPC 2.0 标准错误码"""
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


class ErrorKind(str, Enum):
    """
    能力处理器的失败类型

    NOT_FOUND -> -32601，INVALID_ARGUMENT -> -32602，INTERNAL -> -32603
    """

    NOT_FOUND = "not_found"
    INVALID_ARGUMENT = "invalid_argument"
    INTERNAL = "internal"


@dataclass
class MCPError(Exception):
    """
    可以直接写进响应 error 字段的错误

    request_id 只在解码阶段使用：信封不合法但 id 可恢复时，错误响应带上该 id。
    """
    code: ErrorCode
    message: str
    data: Any = None
    cause: Exception | None = None
    request_id: RequestId = None

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message}"

    @property
    def is_client_error(self) -> bool:
        return self.code is not ErrorCode.INTERNAL_ERROR

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class ParseError(MCPError):
    def __init__(self, message: str = "Parse error", data: Any = None, request_id: RequestId = None):
        super().__init__(ErrorCode.PARSE_ERROR, message, data, request_id=request_id)


class InvalidRequestError(MCPError):
    def __init__(self, message: str = "Invalid Request", data: Any = None, request_id: RequestId = None):
        super().__init__(ErrorCode.INVALID_REQUEST, message, data, request_id=request_id)


class MethodNotFoundError(MCPError):
    def __init__(self, method: str):
        super().__init__(ErrorCode.METHOD_NOT_FOUND, f"Method not found: {method}", {"method": method})


class InvalidParamsError(MCPError):
    def __init__(self, message: str = "Invalid params", data: Any = None):
        super().__init__(ErrorCode.INVALID_PARAMS, message, data)


class _UnknownTargetError(MCPError):
    """工具/资源/Prompt 不存在，错误码与未知方法相同"""
    label = ""
    key = ""

    def __init__(self, target: str):
        super().__init__(
            ErrorCode.METHOD_NOT_FOUND,
            f"Unknown {self.label}: {target}",
            {self.key: target},
        )


class ToolNotFoundError(_UnknownTargetError):
    label, key = "tool", "tool_name"


class ResourceNotFoundError(_UnknownTargetError):
    label, key = "resource", "uri"


class PromptNotFoundError(_UnknownTargetError):
    label, key = "prompt", "prompt_name"


class InternalError(MCPError):
    """message 固定为 Internal error，故障描述放在 data"""
    def __init__(self, description: str | None = None, cause: Exception | None = None):
        super().__init__(ErrorCode.INTERNAL_ERROR, "Internal error", description, cause)


def map_exception(exc: Exception) -> MCPError:
    """MCPError 原样返回，其余异常一律视为内部错误"""
    if isinstance(exc, MCPError):
        return exc
    return InternalError(str(exc) or type(exc).__name__, cause=exc)


def error_for_outcome(outcome: Any, not_found: MCPError) -> MCPError:
    """
    把失败的 Outcome 转为 MCPError

    not_found 由调用方给出，因为工具/资源/Prompt 的提示文字不同。
    """
    if outcome.kind is ErrorKind.NOT_FOUND:
        return not_found
    if outcome.kind is ErrorKind.INVALID_ARGUMENT:
        return InvalidParamsError(outcome.error or "Invalid params")
    return InternalError(outcome.error)


class ErrorHandler:
    """
    异常归一与日志

    客户端错误记 warning；内部错误记 error 并附带堆栈。
    include_stack_in_response 只应在本地调试时打开，会把堆栈追加到 data。
    """

    def __init__(self, log_stack_traces: bool = True, include_stack_in_response: bool = False):
        self.log_stack_traces = log_stack_traces
        self.include_stack_in_response = include_stack_in_response

    def handle(self, exc: Exception, context: dict | None = None) -> MCPError:
        error = map_exception(exc)
        fields = dict(context or {})
        fields.update(error_code=error.code.name, error_message=error.message)
        if error.data is not None:
            fields["error_data"] = error.data

        if error.is_client_error:
            logger.warning("mcp_client_error", **fields)
        else:
            logger.error(
                "mcp_internal_error",
                exc_info=error.cause if self.log_stack_traces else None,
                **fields,
            )

        if self.include_stack_in_response and error.cause is not None:
            stack = "".join(traceback.format_exception(
                type(error.cause), error.cause, error.cause.__traceback__
            ))
            error.data = f"{error.data}\n{stack}"

        return error
