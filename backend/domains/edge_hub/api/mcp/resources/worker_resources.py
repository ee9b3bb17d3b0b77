"""
服务资源定义

提供 MCP Resources: 服务信息和示例数据，均为 JSON。
"""

from typing import Optional

from domains.mcp_core import (
    BaseResourceProvider,
    MCPConfig,
    ResourceContent,
)

from domains.edge_hub.utils import utc_timestamp


WORKER_INFO_URI = "cloudflare://worker-info"
SAMPLE_DATA_URI = "cloudflare://sample-data"


class WorkerResourceProvider(BaseResourceProvider):
    """
    服务资源提供者

    服务信息中的名称、版本和运行时取自 MCPConfig。
    """

    def __init__(self, config: Optional[MCPConfig] = None):
        super().__init__()
        self.config = config or MCPConfig()
        self._register_worker_resources()

    def _register_worker_resources(self):
        """注册内置资源"""
        self.register_static(
            uri=WORKER_INFO_URI,
            name="Worker Information",
            description="Information about this MCP server instance",
            handler=self._read_worker_info,
        )

        self.register_static(
            uri=SAMPLE_DATA_URI,
            name="Sample Data",
            description="Sample JSON data for testing",
            handler=self._read_sample_data,
        )

    async def _read_worker_info(self) -> ResourceContent:
        """读取服务信息"""
        return ResourceContent.json(WORKER_INFO_URI, {
            "name": self.config.display_name,
            "version": self.config.server_version,
            "runtime": self.config.runtime,
            "timestamp": utc_timestamp(),
            "features": ["tools", "resources", "prompts"],
        })

    async def _read_sample_data(self) -> ResourceContent:
        """读取示例数据"""
        items = [
            {"id": i, "name": f"Item {i}", "value": f"Value {i}"}
            for i in range(1, 4)
        ]
        return ResourceContent.json(SAMPLE_DATA_URI, {
            "items": items,
            "metadata": {
                "total": len(items),
                "generated": utc_timestamp(),
            },
        })
