"""
结构化日志模块

基于 structlog 提供统一的日志配置。
"""

from .config import (
    LogConfig,
    LogFormat,
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_current_config,
    get_logger,
)

__all__ = [
    # 配置
    "configure_logging",
    "get_current_config",
    "get_logger",
    "LogConfig",
    "LogFormat",
    # 上下文
    "bind_request_context",
    "clear_request_context",
]
