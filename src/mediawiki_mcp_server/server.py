"""
MCP Server

Wires the tool dispatcher into a low-level `mcp` Server and serves it over
the stdio transport.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from .tools.base import ToolDispatcher
from .tools.definitions import TOOL_DEFINITIONS

logger = logging.getLogger("mcp.server")

SERVER_NAME = "mediawiki-mcp-server"
SERVER_VERSION = "1.0.0"


def list_tools() -> List[types.Tool]:
    return list(TOOL_DEFINITIONS)


def create_server(dispatcher: ToolDispatcher) -> Server:
    server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def _list_tools() -> List[types.Tool]:
        return list_tools()

    # Argument checks live in the dispatcher so every failure has the same shape
    @server.call_tool(validate_input=False)
    async def _call_tool(
        name: str,
        arguments: Optional[Dict[str, Any]],
    ) -> types.CallToolResult:
        return await dispatcher.dispatch(name, arguments)

    return server


async def serve_stdio(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        logger.info("MediaWiki MCP Server running on stdio")
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )
