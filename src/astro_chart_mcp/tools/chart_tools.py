"""Chart MCP tools: natal charts, astrocartography and the city atlas."""

from typing import Any

from mcp.types import Tool, TextContent

from ..utils.astrocartography import generate_astrocartography, nearest_lines
from .responses import (
    CHART_INPUT_SCHEMA,
    ENGINE_ERRORS,
    SETTINGS_SCHEMA,
    error_response,
    json_response,
    require,
)


# ============================================================================
# Tool Definitions
# ============================================================================

def get_chart_tools() -> list[Tool]:
    """Return list of chart tool definitions."""
    return [
        Tool(
            name="generate_chart",
            description=(
                "Compute a chart for a local date, time and place: planet "
                "positions, derived points (nodes, Lilith, Fortune, Chiron), "
                "angles, 12 house cusps and natal aspects. Fails with "
                "NonexistentLocalTimeError / AmbiguousLocalTimeError for times "
                "skipped or repeated by daylight saving changes."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "input": CHART_INPUT_SCHEMA,
                    "settings": SETTINGS_SCHEMA,
                },
                "required": ["input"],
            },
        ),
        Tool(
            name="generate_astrocartography",
            description=(
                "Astrocartography lines for a chart: for every point, the "
                "geographic longitudes where it sits on the MC, IC, ASC and DSC, "
                "plus the tightest line crossings (within 1.5°). "
                "Pass near_longitude to also get the closest lines to a place."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "input": CHART_INPUT_SCHEMA,
                    "settings": SETTINGS_SCHEMA,
                    "near_longitude": {
                        "type": "number",
                        "description": "Geographic longitude to rank lines against (optional)",
                    },
                    "limit": {
                        "type": "integer",
                        "description": "How many nearest lines to return (default 5)",
                    },
                },
                "required": ["input"],
            },
        ),
        Tool(
            name="list_cities",
            description="List the cities that can be used by name (city + country) in chart input.",
            inputSchema={"type": "object", "properties": {}},
        ),
    ]


CHART_TOOL_NAMES = {
    "generate_chart",
    "generate_astrocartography",
    "list_cities",
}


# ============================================================================
# Tool Handlers
# ============================================================================

async def handle_generate_chart(composer, arguments: dict) -> list[TextContent]:
    try:
        require(arguments, "input")
        chart = composer.generate_chart(arguments["input"], arguments.get("settings"))
        return json_response(chart)
    except ENGINE_ERRORS as e:
        return error_response(e)


async def handle_generate_astrocartography(composer, arguments: dict) -> list[TextContent]:
    try:
        require(arguments, "input")
        chart = composer.generate_chart(arguments["input"], arguments.get("settings"))
        result = generate_astrocartography(chart, arguments.get("settings"))
        near = arguments.get("near_longitude")
        if near is not None:
            result["nearest"] = nearest_lines(result, float(near), int(arguments.get("limit", 5)))
        return json_response(result)
    except ENGINE_ERRORS as e:
        return error_response(e)


async def handle_list_cities(composer) -> list[TextContent]:
    return json_response(composer.city_resolver.list_cities())


async def handle_chart_tool(name: str, arguments: Any, composer) -> list[TextContent]:
    """Route chart tool calls to appropriate handlers."""
    arguments = arguments or {}
    if name == "generate_chart":
        return await handle_generate_chart(composer, arguments)
    elif name == "generate_astrocartography":
        return await handle_generate_astrocartography(composer, arguments)
    elif name == "list_cities":
        return await handle_list_cities(composer)
    else:
        return [TextContent(type="text", text=f"Unknown chart tool: {name}")]
