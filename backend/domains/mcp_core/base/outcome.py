"""
能力处理结果

工具、资源、Prompt 的处理器不抛异常，而是返回 Outcome，
由分发器根据 ErrorKind 选择 JSON-RPC 错误码。
"""

from dataclasses import dataclass
from typing import Any

from ..middleware.error_handler import ErrorKind


@dataclass
class Outcome:
    """处理结果"""
    success: bool
    data: Any = None
    error: str | None = None
    kind: ErrorKind | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error, "kind": self.kind.value if self.kind else None}

    @classmethod
    def ok(cls, data: Any = None) -> 'Outcome':
        """创建成功结果"""
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, kind: ErrorKind = ErrorKind.INTERNAL) -> 'Outcome':
        """创建失败结果"""
        return cls(success=False, error=error, kind=kind)

    @classmethod
    def not_found(cls, error: str) -> 'Outcome':
        return cls.fail(error, ErrorKind.NOT_FOUND)

    @classmethod
    def invalid_argument(cls, error: str) -> 'Outcome':
        return cls.fail(error, ErrorKind.INVALID_ARGUMENT)

    @classmethod
    def internal(cls, error: str) -> 'Outcome':
        return cls.fail(error, ErrorKind.INTERNAL)
