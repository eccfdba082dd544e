"""Timing MCP tools: transits, progressions, returns, profections and the
Saturn return tracker.

Every tool takes the natal chart input ("birth") rather than a stored
profile; the natal chart is computed first and the technique runs on it.
"""

from typing import Any

from mcp.types import Tool, TextContent

from .responses import (
    CHART_INPUT_SCHEMA,
    ENGINE_ERRORS,
    SETTINGS_SCHEMA,
    error_response,
    json_response,
    require,
)


def _tool(name: str, description: str, extra: dict, required: list[str]) -> Tool:
    properties = {"birth": CHART_INPUT_SCHEMA, "settings": SETTINGS_SCHEMA}
    properties.update(extra)
    return Tool(
        name=name,
        description=description,
        inputSchema={
            "type": "object",
            "properties": properties,
            "required": ["birth"] + required,
        },
    )


# ============================================================================
# Tool Definitions
# ============================================================================

def get_timing_tools() -> list[Tool]:
    """Return list of timing tool definitions."""
    return [
        _tool(
            "generate_transits",
            "Daily transits to the natal planets for an inclusive date range "
            "(at most 366 days). Each day lists its strongest hits; hits "
            "within 0.4° are also collected as exact_hits and grouped by date "
            "in exact_hits_by_date.",
            {
                "from": {"type": "string", "description": "First day, YYYY-MM-DD"},
                "to": {"type": "string", "description": "Last day, YYYY-MM-DD"},
            },
            ["from", "to"],
        ),
        _tool(
            "generate_secondary_progressions",
            "Secondary progressed chart (a day after birth for each year of life) for a date.",
            {"date": {"type": "string", "description": "Target date, YYYY-MM-DD"}},
            ["date"],
        ),
        _tool(
            "generate_solar_return",
            "Moment the Sun returns to its natal longitude in a given year, with the chart for it.",
            {"year": {"type": "integer", "description": "Calendar year, e.g. 2026"}},
            ["year"],
        ),
        _tool(
            "generate_lunar_return",
            "Moment the Moon returns to its natal longitude in a given month, with the chart for it.",
            {"month": {"type": "string", "description": "Month, YYYY-MM"}},
            ["month"],
        ),
        _tool(
            "generate_annual_profections",
            "Annual profection for a date: age, activated house, its sign and time lord.",
            {"date": {"type": "string", "description": "Date, YYYY-MM-DD"}},
            ["date"],
        ),
        _tool(
            "generate_saturn_return_tracker",
            "Days between the 27th and 32nd birthdays when Saturn is within 2° "
            "of its natal position, with the closest day.",
            {},
            [],
        ),
    ]


TIMING_TOOL_NAMES = {
    "generate_transits",
    "generate_secondary_progressions",
    "generate_solar_return",
    "generate_lunar_return",
    "generate_annual_profections",
    "generate_saturn_return_tracker",
}


# ============================================================================
# Tool Handlers
# ============================================================================

async def handle_timing_tool(name: str, arguments: Any, composer, scanner) -> list[TextContent]:
    """Route timing tool calls to the TemporalScanner."""
    if name not in TIMING_TOOL_NAMES:
        return [TextContent(type="text", text=f"Unknown timing tool: {name}")]

    arguments = arguments or {}
    settings = arguments.get("settings")
    try:
        require(arguments, "birth")
        natal = composer.generate_chart(arguments["birth"], settings)

        if name == "generate_transits":
            require(arguments, "from", "to")
            result = scanner.generate_transits(
                natal, {"from": arguments["from"], "to": arguments["to"]}, settings
            )
        elif name == "generate_secondary_progressions":
            require(arguments, "date")
            result = scanner.generate_secondary_progressions(natal, arguments["date"], settings)
        elif name == "generate_solar_return":
            require(arguments, "year")
            result = scanner.generate_solar_return(natal, arguments["year"], settings)
        elif name == "generate_lunar_return":
            require(arguments, "month")
            result = scanner.generate_lunar_return(natal, arguments["month"], settings)
        elif name == "generate_annual_profections":
            require(arguments, "date")
            result = scanner.generate_annual_profections(natal, arguments["date"])
        else:
            result = scanner.generate_saturn_return_tracker(natal, settings)

        return json_response(result)
    except ENGINE_ERRORS as e:
        return error_response(e)
