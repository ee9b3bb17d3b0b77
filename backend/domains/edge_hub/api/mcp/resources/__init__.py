"""
MCP 资源模块
"""

from .worker_resources import (
    SAMPLE_DATA_URI,
    WORKER_INFO_URI,
    WorkerResourceProvider,
)

__all__ = [
    "WorkerResourceProvider",
    "WORKER_INFO_URI",
    "SAMPLE_DATA_URI",
]
