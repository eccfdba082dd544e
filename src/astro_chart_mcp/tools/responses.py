"""Shared response formatting for MCP tool handlers."""

import json
import logging
from typing import Any

from mcp.types import TextContent

from ..utils.ephemeris import EphemerisError
from ..utils.geocoding import CityNotFoundError
from ..utils.time_resolver import ChartInputError, TemporalResolutionError

logger = logging.getLogger(__name__)

# Errors the engine raises on purpose; reported to the caller by name.
ENGINE_ERRORS = (ChartInputError, CityNotFoundError, TemporalResolutionError, EphemerisError)


def json_response(result: Any) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(result, ensure_ascii=False, indent=2))]


def error_response(exc: Exception) -> list[TextContent]:
    """{"error": {"name", "message"}} for engine errors."""
    logger.info("Tool error %s: %s", type(exc).__name__, exc)
    payload = {"error": {"name": type(exc).__name__, "message": str(exc)}}
    return [TextContent(type="text", text=json.dumps(payload, ensure_ascii=False))]


def require(arguments: dict, *keys: str) -> None:
    """
    Raises:
        ChartInputError: If any key is missing from the tool arguments.
    """
    missing = [key for key in keys if arguments.get(key) in (None, "")]
    if missing:
        raise ChartInputError(f"Missing required argument(s): {', '.join(missing)}")


# JSON schema fragments shared by the tool modules

CHART_INPUT_SCHEMA = {
    "type": "object",
    "description": (
        "Birth (or event) data. Give city + country (looked up in the atlas) "
        "or an explicit location."
    ),
    "properties": {
        "date": {"type": "string", "description": "Local date, YYYY-MM-DD"},
        "time": {"type": "string", "description": "Local time, HH:MM (24-hour)"},
        "city": {"type": "string", "description": "City name, e.g. 'Lisbon'"},
        "country": {"type": "string", "description": "ISO country code, e.g. 'PT'"},
        "location": {
            "type": "object",
            "properties": {
                "lat": {"type": "number"},
                "lon": {"type": "number"},
                "timezone": {"type": "string", "description": "IANA id, e.g. 'Europe/Lisbon'"},
            },
            "required": ["lat", "lon"],
        },
        "daylight_saving": {
            "description": (
                "'auto' (default) fails on ambiguous fall-back times; "
                "true/false picks the DST or standard-time occurrence"
            ),
            "oneOf": [{"type": "boolean"}, {"type": "string", "enum": ["auto"]}],
        },
    },
    "required": ["date", "time"],
}

SETTINGS_SCHEMA = {
    "type": "object",
    "description": "Chart settings; omitted keys use the configured defaults",
    "properties": {
        "house_system": {"type": "string", "enum": ["Placidus", "WholeSign", "Equal", "Koch"]},
        "aspect_profile": {"type": "string", "enum": ["major", "expanded"]},
        "orb_mode": {"type": "string", "enum": ["standard", "tight", "wide"]},
        "include_minor_aspects": {"type": "boolean"},
    },
}
