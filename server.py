#!/usr/bin/env python3
"""Database Performance Advisor MCP Server.

Exposes performance reports, query statistics and index auto-optimization
as MCP tools over stdio. Settings come from ``.db_advisor/advisor_config.json``
in the client root plus the ``DB_ADVISOR_*`` environment variables.
"""

import asyncio
import json
import logging
import os
from typing import Any, Dict, List, Optional

from mcp.server import Server
from mcp.types import Tool, TextContent
from mcp.server.stdio import stdio_server
from mcp.server.models import InitializationOptions
from mcp.server.lowlevel import NotificationOptions

from advisor.engine import PerformanceAdvisor
from config import ConfigStorage, ConfigValidator
from tools.mcp_tools import get_tools, handle_tool_call

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

client_root = os.environ.get('MCP_CLIENT_ROOT', os.getcwd())

server = Server("db-advisor")
advisor: Optional[PerformanceAdvisor] = None


def setup_advisor() -> PerformanceAdvisor:
    """Load configuration and build the shared advisor."""
    global advisor
    config = ConfigStorage(client_root).load_effective()
    is_valid, errors = ConfigValidator().validate_config(config)
    if not is_valid:
        raise ValueError(f"Invalid advisor configuration: {'; '.join(errors)}")
    advisor = PerformanceAdvisor.from_config(config)
    logging.info(f"Performance advisor ready for {config.store_url}")
    return advisor


@server.list_tools()
async def list_tools() -> List[Tool]:
    """List available tools."""
    return get_tools()


@server.call_tool()
async def call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
    """Handle tool calls."""
    result = await asyncio.to_thread(handle_tool_call, advisor, name, arguments)
    return [TextContent(type="text", text=json.dumps(result, indent=2, default=str))]


async def main_async():
    """Main entry point for async stdio execution."""
    logging.info("Starting stdio server")
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            InitializationOptions(
                server_name="db-advisor",
                server_version="1.0.0",
                capabilities=server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={}
                )
            )
        )


def main_sync():
    """Main entry point for sync execution."""
    setup_advisor()
    try:
        asyncio.run(main_async())
    finally:
        if advisor is not None:
            advisor.close()


if __name__ == "__main__":
    main_sync()
