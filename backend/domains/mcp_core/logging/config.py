"""
结构化日志配置

structlog 日志与标准库日志（uvicorn 等）共用一条处理链，
最终统一由根 logger 上的 ProcessorFormatter 渲染到 stderr。
每行一个事件，JSON 或彩色控制台两种格式。
"""

import logging
import os
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import structlog

DEFAULT_SERVICE_NAME = "edge-mcp-server"

# 这些第三方 logger 过于啰嗦，固定提到 WARNING
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "websockets")

_LEVEL_NAMES = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LogFormat(str, Enum):
    """日志格式"""
    JSON = "json"
    CONSOLE = "console"

    @classmethod
    def parse(cls, value: Optional[str]) -> "LogFormat":
        """宽松解析，未知值按 JSON 处理"""
        if value and value.strip().lower() == cls.CONSOLE.value:
            return cls.CONSOLE
        return cls.JSON


@dataclass
class LogConfig:
    """日志配置"""
    level: str = "INFO"
    format: LogFormat = LogFormat.JSON
    add_timestamp: bool = True
    service_name: str = DEFAULT_SERVICE_NAME

    @property
    def numeric_level(self) -> int:
        level = self.level.upper()
        return getattr(logging, level) if level in _LEVEL_NAMES else logging.INFO

    @classmethod
    def from_env(cls, service_name: str = DEFAULT_SERVICE_NAME) -> "LogConfig":
        """读取 LOG_LEVEL / LOG_FORMAT 环境变量"""
        return cls(
            level=os.getenv("LOG_LEVEL", "INFO").upper(),
            format=LogFormat.parse(os.getenv("LOG_FORMAT")),
            service_name=service_name,
        )

    @classmethod
    def from_settings(cls, service_name: str = DEFAULT_SERVICE_NAME) -> "LogConfig":
        """读取 MCP_LOG_* 配置，供自行组装应用的调用方使用；命令行入口走 from_env"""
        from ..settings import get_logging_settings

        settings = get_logging_settings()
        return cls(
            level=settings.level,
            format=LogFormat.JSON if settings.json_format else LogFormat.CONSOLE,
            add_timestamp=settings.include_timestamp,
            service_name=service_name,
        )


_current_config: Optional[LogConfig] = None


def _add_service(service_name: str):
    def processor(logger, method_name, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict
    return processor


def _pre_chain(config: LogConfig) -> List[Any]:
    """structlog 与标准库日志共用的前置处理器"""
    chain: List[Any] = []
    if config.add_timestamp:
        chain.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    chain += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _add_service(config.service_name),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    return chain


def _renderer(config: LogConfig):
    if config.format == LogFormat.CONSOLE:
        return structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )
    return structlog.processors.JSONRenderer(ensure_ascii=False)


def configure_logging(config: Optional[LogConfig] = None, service_name: str = DEFAULT_SERVICE_NAME):
    """
    配置结构化日志

    Args:
        config: 日志配置，None 则从环境变量读取
        service_name: config 为 None 时使用的服务名称
    """
    global _current_config

    if config is None:
        config = LogConfig.from_env(service_name=service_name)
    _current_config = config

    pre_chain = _pre_chain(config)

    structlog.configure(
        processors=[structlog.stdlib.filter_by_level, *pre_chain,
                    structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processor=_renderer(config),
        foreign_pre_chain=pre_chain,
    ))

    level = config.numeric_level
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("uvicorn").setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_current_config() -> Optional[LogConfig]:
    """最近一次 configure_logging 生效的配置"""
    return _current_config


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    获取结构化日志器

    用法:
        logger = get_logger(__name__)
        logger.info("tool_called", tool_name="echo", duration_ms=0.4)
    """
    return structlog.get_logger(name)


def bind_request_context(request_id: Optional[str] = None, session_id: Optional[str] = None):
    """把 HTTP 请求 ID 或 WebSocket 会话 ID 绑定到当前上下文的所有日志"""
    structlog.contextvars.clear_contextvars()
    context = {}
    if request_id:
        context["request_id"] = request_id
    if session_id:
        context["session_id"] = session_id
    structlog.contextvars.bind_contextvars(**context)


def clear_request_context():
    structlog.contextvars.clear_contextvars()
