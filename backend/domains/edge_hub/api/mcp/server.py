"""
MCP Server - Edge MCP 服务器

基于 mcp_core 实现的 MCP 服务器。
同时提供 Streamable HTTP (POST /mcp) 和 WebSocket (/ws) 两种传输。
"""

import argparse
import logging
from typing import List, Optional

from domains.mcp_core import (
    BaseMCPServer,
    MCPConfig,
    MCPSettings,
    create_mcp_app,
    run_server as run_mcp_server,
)
from domains.mcp_core.config import ALL_TRANSPORTS

from .prompts.code_prompts import CodePromptProvider
from .resources.worker_resources import WorkerResourceProvider
from .tools.basic_tools import (
    EchoTool,
    GetTimeTool,
    RandomNumberTool,
)

logger = logging.getLogger(__name__)


class EdgeHubMCPServer(BaseMCPServer):
    """
    Edge MCP 服务器

    继承 mcp_core.BaseMCPServer，注册内置的工具、资源和 Prompt。
    """

    def _setup(self) -> None:
        """设置服务器，注册工具、资源和 Prompt"""
        self._register_tools()
        self._register_resources()
        self._register_prompts()

    def _register_tools(self) -> None:
        """注册内置工具"""
        self.register_tool(EchoTool())
        self.register_tool(GetTimeTool())
        self.register_tool(RandomNumberTool())

        logger.info(f"注册了 {len(self.tool_registry)} 个工具")

    def _register_resources(self) -> None:
        """注册内置资源"""
        self.set_resource_provider(WorkerResourceProvider(self.config))
        logger.info(f"注册了 {len(self.resource_provider)} 个资源")

    def _register_prompts(self) -> None:
        """注册内置 Prompt"""
        self.set_prompt_provider(CodePromptProvider())
        logger.info(f"注册了 {len(self.prompt_provider)} 个 Prompt")


def create_edge_hub_config(
    yaml_path: Optional[str] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    log_level: Optional[str] = None,
    transports: Optional[List[str]] = None,
) -> MCPConfig:
    """
    创建 Edge MCP 配置

    优先级: 参数 > 环境变量 (MCP_SERVER_* 等分组变量优先于 MCP_<FIELD>) > YAML 文件 > 默认值

    Args:
        yaml_path: YAML 配置文件路径
        host: 监听地址
        port: 监听端口
        log_level: 日志级别
        transports: 启用的传输方式

    Returns:
        MCPConfig 实例
    """
    config = MCPConfig.load(yaml_path)

    overrides = MCPSettings().config_overrides()
    if host is not None:
        overrides["host"] = host
    if port is not None:
        overrides["port"] = port
    if log_level is not None:
        overrides["log_level"] = log_level.upper()
    if transports:
        overrides["transports"] = list(transports)

    return config.copy(**overrides) if overrides else config


def create_mcp_server(config: Optional[MCPConfig] = None):
    """
    创建 MCP FastAPI 应用

    Args:
        config: MCP 配置

    Returns:
        FastAPI 应用实例
    """
    if config is None:
        config = create_edge_hub_config()

    return create_mcp_app(EdgeHubMCPServer, config)


def run_server(
    config: Optional[MCPConfig] = None,
    log_format: Optional[str] = None,
):
    """
    运行 MCP 服务器

    Args:
        config: MCP 配置
        log_format: json 或 console，None 时依次取 MCP_LOG_JSON_FORMAT、LOG_FORMAT
    """
    if config is None:
        config = create_edge_hub_config()
    if log_format is None:
        log_format = MCPSettings().logging.format_override()

    run_mcp_server(EdgeHubMCPServer, config, log_format=log_format)


def build_parser() -> argparse.ArgumentParser:
    """命令行参数解析器"""
    parser = argparse.ArgumentParser(
        prog="edge-mcp-server",
        description="Edge MCP Server - Streamable HTTP 与 WebSocket 传输的 MCP 服务",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  edge-mcp-server                          # 默认 0.0.0.0:8787
  edge-mcp-server --port 9000 --log-format console
  edge-mcp-server --config config.yaml
  edge-mcp-server --transport websocket    # 只启用 WebSocket
""",
    )
    parser.add_argument("--host", help="监听地址")
    parser.add_argument("--port", type=int, help="监听端口")
    parser.add_argument("--config", dest="config_path", help="YAML 配置文件路径")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="日志级别",
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "console"],
        help="日志格式（默认读取 MCP_LOG_JSON_FORMAT，其次 LOG_FORMAT）",
    )
    parser.add_argument(
        "--transport",
        dest="transports",
        action="append",
        choices=ALL_TRANSPORTS,
        help="启用的传输方式，可重复指定（默认全部启用）",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """命令行入口"""
    args = build_parser().parse_args(argv)

    config = create_edge_hub_config(
        yaml_path=args.config_path,
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        transports=args.transports,
    )
    run_server(config, log_format=args.log_format)


if __name__ == "__main__":
    main()
