def __getattr__(name: str):
    if name in ('EdgeHubMCPServer', 'create_mcp_server', 'run_server', 'create_edge_hub_config', 'main'):
        from .server import (
            EdgeHubMCPServer,
            create_edge_hub_config,
            create_mcp_server,
            main,
            run_server,
        )
        return locals()[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
