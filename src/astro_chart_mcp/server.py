"""MCP server for astro-chart-mcp."""

import asyncio
import json
import logging
import sys
from typing import Any, Optional

from mcp.server import Server
from mcp.types import Tool, TextContent

from .config import ConfigManager, build_composer
from .tools import (
    CHART_TOOL_NAMES,
    RELATIONSHIP_TOOL_NAMES,
    TIMING_TOOL_NAMES,
    get_chart_tools,
    get_relationship_tools,
    get_timing_tools,
    handle_chart_tool,
    handle_relationship_tool,
    handle_timing_tool,
)
from .utils.chart_composer import ChartComposer
from .utils.temporal import TemporalScanner

logger = logging.getLogger(__name__)

# Initialize MCP server
app = Server("astro-chart-mcp")

# Global state
config: Optional[ConfigManager] = None
composer: Optional[ChartComposer] = None
scanner: Optional[TemporalScanner] = None


def init_config() -> ConfigManager:
    """Initialize configuration (lazy singleton)."""
    global config
    if config is None:
        config = ConfigManager()
    return config


def init_composer() -> ChartComposer:
    """Initialize the chart composer (lazy singleton)."""
    global composer
    if composer is None:
        composer = build_composer(init_config())
    return composer


def init_scanner() -> TemporalScanner:
    """Initialize the temporal scanner (lazy singleton)."""
    global scanner
    if scanner is None:
        cfg = init_config()
        scanner = TemporalScanner(
            init_composer(),
            max_range_days=cfg.get_max_transit_range_days(),
            max_workers=cfg.get_scan_workers(),
        )
    return scanner


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available MCP tools."""
    core_tools = [
        Tool(
            name="view_config",
            description=(
                "View the engine configuration: ephemeris adapter, ephemeris "
                "file path, default chart settings and scan limits."
            ),
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
    ]
    return core_tools + get_chart_tools() + get_timing_tools() + get_relationship_tools()


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    """Handle tool calls."""
    try:
        if name == "view_config":
            status = init_config().get_config_status()
            return [TextContent(type="text", text=json.dumps(status, indent=2))]

        if name in CHART_TOOL_NAMES:
            return await handle_chart_tool(name, arguments, init_composer())

        if name in TIMING_TOOL_NAMES:
            return await handle_timing_tool(name, arguments, init_composer(), init_scanner())

        if name in RELATIONSHIP_TOOL_NAMES:
            return await handle_relationship_tool(name, arguments, init_composer())

        return [TextContent(type="text", text=f"Unknown tool: {name}")]

    except Exception as e:
        logger.exception("Tool %s failed", name)
        return [TextContent(type="text", text=f"Error: {e}")]


async def main():
    """Run the MCP server."""
    from mcp.server.stdio import stdio_server

    # stdout carries the protocol; logs go to stderr
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    async with stdio_server() as (read_stream, write_stream):
        await app.run(
            read_stream,
            write_stream,
            app.create_initialization_options()
        )


def run():
    """Sync entry point for the console script."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
