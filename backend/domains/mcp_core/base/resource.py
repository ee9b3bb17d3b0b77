"""
MCP Resource 定义和资源提供者

资源是按 URI 注册的只读内容。读取时调用注册的异步 handler，
handler 返回 ResourceContent，失败统一折叠为 Outcome。
"""

import base64
import json
from abc import ABC
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from ..logging import get_logger
from .outcome import Outcome

logger = get_logger(__name__)

JSON_MIME_TYPE = "application/json"


@dataclass(frozen=True)
class ResourceDefinition:
    """resources/list 中的一项"""
    uri: str
    name: str
    description: str
    mime_type: str = JSON_MIME_TYPE

    def to_mcp_format(self) -> dict[str, Any]:
        return {
            "uri": self.uri,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type,
        }


@dataclass
class ResourceContent:
    """
    resources/read 返回的一段内容

    text 与 blob 二选一，blob 输出时做 base64 编码。
    """
    uri: str
    mime_type: str
    text: str | None = None
    blob: bytes | None = None

    def to_mcp_format(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"uri": self.uri, "mimeType": self.mime_type}
        if self.text is not None:
            payload["text"] = self.text
        if self.blob is not None:
            payload["blob"] = base64.b64encode(self.blob).decode("ascii")
        return payload

    @classmethod
    def json(cls, uri: str, data: Any) -> 'ResourceContent':
        """两空格缩进的 JSON 文本"""
        return cls(uri, JSON_MIME_TYPE, text=json.dumps(data, ensure_ascii=False, indent=2))

    @classmethod
    def plain_text(cls, uri: str, content: str, mime_type: str = "text/plain") -> 'ResourceContent':
        return cls(uri, mime_type, text=content)


ResourceHandler = Callable[[], Awaitable[ResourceContent]]


@dataclass
class _StaticResource:
    definition: ResourceDefinition
    handler: ResourceHandler


class BaseResourceProvider(ABC):
    """
    资源提供者基类

    子类在 __init__ 中调用 register_static 注册资源:

        class StatsProvider(BaseResourceProvider):
            def __init__(self):
                super().__init__()
                self.register_static("app://stats", "Stats", "Runtime stats", self._stats)

            async def _stats(self) -> ResourceContent:
                return ResourceContent.json("app://stats", {"count": 100})
    """

    def __init__(self):
        self._resources: dict[str, _StaticResource] = {}

    def register_static(
        self,
        uri: str,
        name: str,
        description: str,
        handler: ResourceHandler,
        mime_type: str = JSON_MIME_TYPE,
    ) -> None:
        """注册资源，同一 URI 重复注册时后者覆盖前者"""
        if uri in self._resources:
            logger.warning("resource_replaced", uri=uri)
        self._resources[uri] = _StaticResource(
            ResourceDefinition(uri, name, description, mime_type),
            handler,
        )
        logger.debug("resource_registered", uri=uri)

    def list_resources(self) -> list[ResourceDefinition]:
        return [entry.definition for entry in self._resources.values()]

    async def read_resource(self, uri: str) -> Outcome:
        """成功时 data 为 ResourceContent"""
        entry = self._resources.get(uri)
        if entry is None:
            return Outcome.not_found(f"Unknown resource: {uri}")

        try:
            return Outcome.ok(await entry.handler())
        except Exception as e:
            logger.exception("resource_read_failed", uri=uri)
            return Outcome.internal(str(e) or type(e).__name__)

    def __len__(self) -> int:
        return len(self._resources)

    def __contains__(self, uri: str) -> bool:
        return uri in self._resources


class EmptyResourceProvider(BaseResourceProvider):
    """不提供任何资源"""
