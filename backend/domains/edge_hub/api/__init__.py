"""
Edge MCP API 模块
"""

from .mcp import (
    EdgeHubMCPServer,
    create_edge_hub_config,
    create_mcp_server,
    run_server,
)

__all__ = [
    'EdgeHubMCPServer',
    'create_mcp_server',
    'run_server',
    'create_edge_hub_config',
]
