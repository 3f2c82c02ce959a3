"""
coredump_mcp Server

This module initializes the FastMCP server and registers the coredump tools
and resources against a single shared DumpRegistry.
"""

import shutil
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from coredump_mcp import resources
from coredump_mcp.core.config import get_config
from coredump_mcp.core.logging_config import get_logger, setup_logging
from coredump_mcp.core.registry import DumpRegistry
from coredump_mcp.tools import register_coredump_tools

# Setup logging
setup_logging()
logger = get_logger(__name__)


def check_dependencies() -> dict[str, bool]:
    """Report which of the external tools are reachable on PATH."""
    settings = get_config()
    return {
        "coredumpctl": shutil.which(settings.coredumpctl_path) is not None,
        "gdb": shutil.which(settings.gdb_path) is not None,
    }


@asynccontextmanager
async def server_lifespan(server: FastMCP) -> AsyncGenerator[None, None]:
    """Log tool availability on startup and shutdown progress."""
    logger.info("coredump_mcp server starting...")
    for tool, available in check_dependencies().items():
        if available:
            logger.info(f"{tool} found")
        else:
            logger.warning(f"{tool} not found in PATH, related tools will fail")

    yield

    logger.info("coredump_mcp server shut down")


def create_server(registry: DumpRegistry | None = None) -> FastMCP:
    """Build a FastMCP server with every coredump tool and resource registered."""
    registry = registry or DumpRegistry(get_config())
    server = FastMCP(name="coredump_mcp", lifespan=server_lifespan)
    register_coredump_tools(server, registry)
    resources.register_resources(server, registry)
    return server


mcp = create_server()


def main():
    """Run the MCP server."""
    settings = get_config()

    if settings.mcp_transport == "http":
        # HTTP transport mode for network-based AI agents
        import uvicorn

        logger.info(f"Serving MCP over HTTP on {settings.mcp_host}:{settings.mcp_port}")
        uvicorn.run(mcp.http_app(), host=settings.mcp_host, port=settings.mcp_port)
    else:
        # Stdio transport mode for local AI clients (default)
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
