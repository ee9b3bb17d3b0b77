"""
Edge Hub - 边缘 MCP 服务

主要组件:
- EdgeHubMCPServer: 注册内置工具（echo / get_time / random_number）、
  资源（服务信息、示例数据）和 Prompt（explain_code / debug_help）
- 传输: Streamable HTTP (POST /mcp) 与 WebSocket (/ws)

运行:
    python -m domains.edge_hub --port 8787
"""

__version__ = "1.0.0"
