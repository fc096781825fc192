"""
Entry point for the calculator MCP service.

Starts a Uvicorn HTTP server that serves the front router. The dispatch
instance itself is created lazily by the first request under /mcp or /sse.
"""

import logging

import uvicorn

from calc_mcp.app import create_app
from calc_mcp.config import HOST, LOG_LEVEL, PORT


def main() -> None:
    logging.basicConfig(level=LOG_LEVEL)
    try:
        uvicorn.run(create_app(), host=HOST, port=PORT)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
