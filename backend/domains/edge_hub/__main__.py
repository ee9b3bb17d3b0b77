"""python -m domains.edge_hub"""

from domains.edge_hub.api.mcp.server import main

if __name__ == "__main__":
    main()
