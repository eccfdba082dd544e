"""MCP tool definitions and handlers."""

from .chart_tools import CHART_TOOL_NAMES, get_chart_tools, handle_chart_tool
from .relationship_tools import (
    RELATIONSHIP_TOOL_NAMES,
    get_relationship_tools,
    handle_relationship_tool,
)
from .timing_tools import TIMING_TOOL_NAMES, get_timing_tools, handle_timing_tool

__all__ = [
    'CHART_TOOL_NAMES',
    'get_chart_tools',
    'handle_chart_tool',
    'RELATIONSHIP_TOOL_NAMES',
    'get_relationship_tools',
    'handle_relationship_tool',
    'TIMING_TOOL_NAMES',
    'get_timing_tools',
    'handle_timing_tool',
]
