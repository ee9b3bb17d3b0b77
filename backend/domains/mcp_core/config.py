"""
MCP 服务配置

MCPConfig 是分发器、处理单元和传输层共用的运行时配置。
来源按优先级: 环境变量 MCP_<FIELD> > YAML 文件 > 默认值，
命令行参数由入口脚本通过 copy() 再覆盖一层。
"""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

TRANSPORT_HTTP_STREAMABLE = "http-streamable"
TRANSPORT_WEBSOCKET = "websocket"
ALL_TRANSPORTS = [TRANSPORT_HTTP_STREAMABLE, TRANSPORT_WEBSOCKET]

# YAML 中与字段名不一致的键: (section, key) -> field
_YAML_ALIASES = {
    ("server", "name"): "server_name",
    ("server", "version"): "server_version",
    ("capabilities", "tools"): "enable_tools",
    ("capabilities", "resources"): "enable_resources",
    ("capabilities", "prompts"): "enable_prompts",
}

_TRUE_VALUES = ("true", "1", "yes", "on")


def _coerce(raw: Any, default: Any) -> Any:
    """按默认值的类型转换外部输入，字符串输入按环境变量的写法解析"""
    if isinstance(default, bool):
        return raw.strip().lower() in _TRUE_VALUES if isinstance(raw, str) else bool(raw)
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, list):
        if isinstance(raw, str):
            return [item.strip() for item in raw.split(",") if item.strip()]
        return list(raw)
    return str(raw)


@dataclass
class MCPConfig:
    """MCP 服务配置"""

    host: str = "0.0.0.0"
    port: int = 8787
    log_level: str = "INFO"

    # 协议与信息端点中展示的服务信息
    server_name: str = "edge-mcp-server"
    server_version: str = "1.0.0"
    display_name: str = "Edge MCP Server"
    description: str = "A Model Context Protocol server over streamable HTTP and WebSocket"
    runtime: str = "Python ASGI (uvicorn)"

    # 所有请求汇聚到的处理单元名称
    object_name: str = "mcp-server"

    transports: List[str] = field(default_factory=lambda: list(ALL_TRANSPORTS))
    mcp_path: str = "/mcp"
    ws_path: str = "/ws"

    enable_tools: bool = True
    enable_resources: bool = True
    enable_prompts: bool = True

    def __post_init__(self):
        unknown = [t for t in self.transports if t not in ALL_TRANSPORTS]
        if unknown:
            raise ValueError(f"未知的传输方式: {', '.join(unknown)}")

    @property
    def http_enabled(self) -> bool:
        return TRANSPORT_HTTP_STREAMABLE in self.transports

    @property
    def websocket_enabled(self) -> bool:
        return TRANSPORT_WEBSOCKET in self.transports

    @classmethod
    def _env_overrides(cls, prefix: str) -> Dict[str, Any]:
        """收集明确设置了的 <prefix>_<FIELD> 环境变量，无法解析的值忽略"""
        defaults = cls()
        overrides: Dict[str, Any] = {}
        for f in fields(cls):
            raw = os.environ.get(f"{prefix}_{f.name.upper()}")
            if raw is None:
                continue
            try:
                overrides[f.name] = _coerce(raw, getattr(defaults, f.name))
            except ValueError:
                logger.warning(f"忽略无效的环境变量 {prefix}_{f.name.upper()}={raw!r}")
        return overrides

    @classmethod
    def from_env(cls, prefix: str = "MCP") -> 'MCPConfig':
        """
        从环境变量加载

        变量名为前缀加大写字段名，如 MCP_PORT、MCP_TRANSPORTS（逗号分隔）、MCP_ENABLE_PROMPTS。
        """
        return cls(**cls._env_overrides(prefix))

    @classmethod
    def from_yaml(cls, path: str) -> 'MCPConfig':
        """
        从 YAML 文件加载

        server 段的键与字段同名（name / version 除外），
        capabilities 段的 tools / resources / prompts 对应 enable_* 开关。
        文件不存在时返回默认配置。
        """
        import yaml

        config_path = Path(path)
        if not config_path.exists():
            logger.warning(f"配置文件不存在: {path}")
            return cls()

        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        defaults = cls()
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for section in ("server", "capabilities"):
            for key, raw in (data.get(section) or {}).items():
                name = _YAML_ALIASES.get((section, key), key)
                if name in known and raw is not None:
                    values[name] = _coerce(raw, getattr(defaults, name))
        return cls(**values)

    @classmethod
    def load(cls, yaml_path: Optional[str] = None, env_prefix: str = "MCP") -> 'MCPConfig':
        """YAML（如有）打底，再用环境变量覆盖"""
        config = cls.from_yaml(yaml_path) if yaml_path else cls()
        overrides = cls._env_overrides(env_prefix)
        return config.copy(**overrides) if overrides else config

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def copy(self, **updates) -> 'MCPConfig':
        """返回副本，transports 列表不与原对象共享"""
        data = self.to_dict()
        data["transports"] = list(data["transports"])
        data.update(updates)
        return MCPConfig(**data)
