"""Relationship MCP tools: synastry and composite/Davison charts."""

from typing import Any

from mcp.types import Tool, TextContent

from ..utils.connection_calculator import generate_composite, generate_synastry
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

def get_relationship_tools() -> list[Tool]:
    """Return list of relationship tool definitions."""
    return [
        Tool(
            name="generate_synastry",
            description=(
                "Cross-chart aspects between two people: every planet of person A "
                "against every planet of person B, tightest first."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "person_a": CHART_INPUT_SCHEMA,
                    "person_b": CHART_INPUT_SCHEMA,
                    "settings": SETTINGS_SCHEMA,
                },
                "required": ["person_a", "person_b"],
            },
        ),
        Tool(
            name="generate_composite",
            description=(
                "Relationship chart for two people.\n\n"
                "MIDPOINT: each point is the circular midpoint of both natal "
                "positions; houses are rebuilt from the midpoint Ascendant.\n\n"
                "DAVISON: a real chart cast for the midpoint moment and midpoint "
                "location of both births (in person A's timezone)."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "person_a": CHART_INPUT_SCHEMA,
                    "person_b": CHART_INPUT_SCHEMA,
                    "method": {
                        "type": "string",
                        "enum": ["midpoint", "davison"],
                        "description": "Composite method (default: midpoint)",
                    },
                    "settings": SETTINGS_SCHEMA,
                },
                "required": ["person_a", "person_b"],
            },
        ),
    ]


RELATIONSHIP_TOOL_NAMES = {
    "generate_synastry",
    "generate_composite",
}


# ============================================================================
# Tool Handlers
# ============================================================================

async def handle_relationship_tool(name: str, arguments: Any, composer) -> list[TextContent]:
    """Route relationship tool calls to appropriate handlers."""
    if name not in RELATIONSHIP_TOOL_NAMES:
        return [TextContent(type="text", text=f"Unknown relationship tool: {name}")]

    arguments = arguments or {}
    settings = arguments.get("settings")
    try:
        require(arguments, "person_a", "person_b")
        chart_a = composer.generate_chart(arguments["person_a"], settings)
        chart_b = composer.generate_chart(arguments["person_b"], settings)

        if name == "generate_synastry":
            result = {
                "settings": chart_a["settings"],
                "aspects": generate_synastry(chart_a, chart_b, settings),
            }
        else:
            result = generate_composite(
                chart_a, chart_b, arguments.get("method", "midpoint"), settings, composer
            )
        return json_response(result)
    except ENGINE_ERRORS as e:
        return error_response(e)
