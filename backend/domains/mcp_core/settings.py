"""
MCP 配置管理（基于 pydantic-settings）

按关注点拆成几组，每组有自己的环境变量前缀:
- MCP_SERVER_*: 服务标识与监听地址
- MCP_TRANSPORT_*: 传输方式与路径
- MCP_CAPABILITY_*: 能力开关
- MCP_LOG_*: 日志

MCPSettings.to_config() 汇总为分发器和传输层使用的 MCPConfig；
命令行入口用 config_overrides() 把明确设置的项叠加在 YAML 配置之上。
"""

from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .config import ALL_TRANSPORTS, MCPConfig


class ServerSettings(BaseSettings):
    """服务标识与监听地址"""
    model_config = SettingsConfigDict(
        env_prefix="MCP_SERVER_",
        extra="ignore",
    )

    host: str = Field(default="0.0.0.0", description="监听地址")
    port: int = Field(default=8787, ge=1, le=65535, description="监听端口")
    name: str = Field(default="edge-mcp-server", description="协议中上报的服务名称")
    version: str = Field(default="1.0.0", description="服务版本")
    display_name: str = Field(default="Edge MCP Server", description="信息端点展示名称")
    object_name: str = Field(default="mcp-server", description="处理单元逻辑名称")


class TransportSettings(BaseSettings):
    """传输方式与路径"""
    model_config = SettingsConfigDict(
        env_prefix="MCP_TRANSPORT_",
        extra="ignore",
    )

    # 环境变量中以 JSON 数组给出，如 MCP_TRANSPORT_ENABLED='["websocket"]'
    enabled: List[str] = Field(default_factory=lambda: list(ALL_TRANSPORTS), description="启用的传输方式")
    mcp_path: str = Field(default="/mcp", description="Streamable HTTP 路径")
    ws_path: str = Field(default="/ws", description="WebSocket 路径")

    @field_validator("enabled")
    @classmethod
    def validate_enabled(cls, v):
        unknown = [t for t in v if t not in ALL_TRANSPORTS]
        if unknown:
            raise ValueError(f"Unknown transport: {', '.join(unknown)}")
        if not v:
            raise ValueError("At least one transport must be enabled")
        return v

    @field_validator("mcp_path", "ws_path")
    @classmethod
    def validate_path(cls, v):
        if not v.startswith("/"):
            raise ValueError(f"Path must start with '/': {v}")
        return v


class CapabilitySettings(BaseSettings):
    """能力开关"""
    model_config = SettingsConfigDict(
        env_prefix="MCP_CAPABILITY_",
        extra="ignore",
    )

    tools: bool = True
    resources: bool = True
    prompts: bool = True


class LoggingSettings(BaseSettings):
    """日志配置"""
    model_config = SettingsConfigDict(
        env_prefix="MCP_LOG_",
        extra="ignore",
    )

    level: str = Field(default="INFO", description="日志级别")
    json_format: bool = Field(default=True, description="是否使用 JSON 格式")
    include_timestamp: bool = Field(default=True, description="是否包含时间戳")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    def format_override(self) -> Optional[str]:
        """显式设置了 MCP_LOG_JSON_FORMAT 时返回 json / console，否则 None"""
        if "json_format" not in self.model_fields_set:
            return None
        return "json" if self.json_format else "console"


# (分组, 字段) -> MCPConfig 字段
_CONFIG_FIELDS = {
    ("server", "host"): "host",
    ("server", "port"): "port",
    ("server", "name"): "server_name",
    ("server", "version"): "server_version",
    ("server", "display_name"): "display_name",
    ("server", "object_name"): "object_name",
    ("transport", "enabled"): "transports",
    ("transport", "mcp_path"): "mcp_path",
    ("transport", "ws_path"): "ws_path",
    ("capability", "tools"): "enable_tools",
    ("capability", "resources"): "enable_resources",
    ("capability", "prompts"): "enable_prompts",
    ("logging", "level"): "log_level",
}


class MCPSettings(BaseSettings):
    """
    MCP 服务主配置

    统一管理所有子配置，支持从环境变量和 .env 文件加载。
    """
    model_config = SettingsConfigDict(
        env_prefix="MCP_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    server: ServerSettings = Field(default_factory=ServerSettings)
    transport: TransportSettings = Field(default_factory=TransportSettings)
    capability: CapabilitySettings = Field(default_factory=CapabilitySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def _values(self, only_set: bool) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for (group, name), target in _CONFIG_FIELDS.items():
            section = getattr(self, group)
            if only_set and name not in section.model_fields_set:
                continue
            value = getattr(section, name)
            values[target] = list(value) if isinstance(value, list) else value
        return values

    def to_config(self) -> MCPConfig:
        """汇总为 MCPConfig，未设置的项取默认值"""
        return MCPConfig(**self._values(only_set=False))

    def config_overrides(self) -> Dict[str, Any]:
        """只包含环境变量或 .env 中明确设置过的项，用于叠加在 YAML 配置之上"""
        return self._values(only_set=True)


@lru_cache
def get_settings() -> MCPSettings:
    """
    获取配置单例

    使用 lru_cache 确保只加载一次配置。
    """
    return MCPSettings()


def get_logging_settings() -> LoggingSettings:
    """获取日志配置"""
    return get_settings().logging


def reload_settings() -> MCPSettings:
    """清除缓存并重新加载配置"""
    get_settings.cache_clear()
    return get_settings()
