"""Tests for MCP tool handlers and server routing.

Handlers are called directly with a composer wired to the FakeAdapter;
server.call_tool is exercised with its global state patched in.
"""

import json

import pytest

import astro_chart_mcp.server as server_module
from astro_chart_mcp.config import ConfigManager
from astro_chart_mcp.tools import (
    CHART_TOOL_NAMES,
    RELATIONSHIP_TOOL_NAMES,
    TIMING_TOOL_NAMES,
    handle_chart_tool,
    handle_relationship_tool,
    handle_timing_tool,
)
from astro_chart_mcp.utils.temporal import TemporalScanner

BIRTH = {"date": "1990-12-16", "time": "12:00", "city": "New York", "country": "US"}
PARTNER = {"date": "1992-06-01", "time": "08:15", "city": "Lisbon", "country": "PT"}


def payload(result):
    assert len(result) == 1
    return json.loads(result[0].text)


@pytest.fixture
def scanner(composer):
    return TemporalScanner(composer, max_range_days=10)


@pytest.fixture
def server_state(monkeypatch, tmp_path, composer, scanner):
    """Point the server's lazy singletons at test instances."""
    monkeypatch.delenv("ASTRO_CHART_ADAPTER", raising=False)
    monkeypatch.setattr(server_module, "config", ConfigManager(config_path=tmp_path / "config.json"))
    monkeypatch.setattr(server_module, "composer", composer)
    monkeypatch.setattr(server_module, "scanner", scanner)


# ============================================================================
# Chart tools
# ============================================================================

@pytest.mark.asyncio
class TestChartTools:

    async def test_generate_chart(self, composer):
        result = payload(await handle_chart_tool("generate_chart", {"input": BIRTH}, composer))
        assert result["normalized"]["utc_datetime"] == "1990-12-16T17:00:00Z"
        assert result["settings"]["house_system"] == "Placidus"

    async def test_generate_chart_with_settings(self, composer):
        result = payload(await handle_chart_tool(
            "generate_chart", {"input": BIRTH, "settings": {"house_system": "WholeSign"}}, composer
        ))
        assert result["houses"][0]["system"] == "WholeSign"

    async def test_missing_input(self, composer):
        result = payload(await handle_chart_tool("generate_chart", {}, composer))
        assert result["error"]["name"] == "ChartInputError"

    async def test_unknown_city(self, composer):
        result = payload(await handle_chart_tool(
            "generate_chart", {"input": {**BIRTH, "city": "Gotham"}}, composer
        ))
        assert result["error"]["name"] == "CityNotFoundError"

    async def test_ambiguous_time(self, composer):
        result = payload(await handle_chart_tool(
            "generate_chart",
            {"input": {"date": "2024-10-27", "time": "01:30", "city": "London", "country": "GB"}},
            composer,
        ))
        assert result["error"]["name"] == "AmbiguousLocalTimeError"

    async def test_astrocartography_nearest(self, composer):
        result = payload(await handle_chart_tool(
            "generate_astrocartography", {"input": BIRTH, "near_longitude": -74.0, "limit": 3}, composer
        ))
        assert len(result["lines"]) == 80
        assert len(result["nearest"]) == 3

    async def test_list_cities(self, composer):
        result = payload(await handle_chart_tool("list_cities", None, composer))
        assert len(result) == 7

    async def test_unknown(self, composer):
        result = await handle_chart_tool("generate_horoscope", {}, composer)
        assert "Unknown chart tool" in result[0].text


# ============================================================================
# Timing tools
# ============================================================================

@pytest.mark.asyncio
class TestTimingTools:

    async def test_transits(self, composer, scanner):
        result = payload(await handle_timing_tool(
            "generate_transits", {"birth": BIRTH, "from": "2026-01-01", "to": "2026-01-02"},
            composer, scanner,
        ))
        assert len(result["days"]) == 2

    async def test_transit_range_limit(self, composer, scanner):
        result = payload(await handle_timing_tool(
            "generate_transits", {"birth": BIRTH, "from": "2026-01-01", "to": "2026-02-01"},
            composer, scanner,
        ))
        assert result["error"]["name"] == "ChartInputError"
        assert "exceeds" in result["error"]["message"]

    async def test_transits_need_range(self, composer, scanner):
        result = payload(await handle_timing_tool("generate_transits", {"birth": BIRTH}, composer, scanner))
        assert "from" in result["error"]["message"]

    async def test_progressions(self, composer, scanner):
        result = payload(await handle_timing_tool(
            "generate_secondary_progressions", {"birth": BIRTH, "date": "1990-12-16"}, composer, scanner,
        ))
        assert result["progressed_instant"] == "1990-12-16T17:00:00Z"

    async def test_profections(self, composer, scanner):
        result = payload(await handle_timing_tool(
            "generate_annual_profections", {"birth": BIRTH, "date": "2026-12-15"}, composer, scanner,
        ))
        assert result["age"] == 35
        assert result["house"] == 12

    async def test_saturn_return(self, composer, scanner):
        result = payload(await handle_timing_tool(
            "generate_saturn_return_tracker", {"birth": BIRTH}, composer, scanner,
        ))
        assert result["peak"]["date"] == "2017-12-16"

    async def test_solar_return(self, composer, scanner):
        result = payload(await handle_timing_tool(
            "generate_solar_return", {"birth": BIRTH, "year": 2026}, composer, scanner,
        ))
        assert result["body"] == "Sun"

    async def test_lunar_return_bad_month(self, composer, scanner):
        result = payload(await handle_timing_tool(
            "generate_lunar_return", {"birth": BIRTH, "month": "2026"}, composer, scanner,
        ))
        assert result["error"]["name"] == "ChartInputError"

    async def test_missing_birth(self, composer, scanner):
        result = payload(await handle_timing_tool("generate_transits", {}, composer, scanner))
        assert "birth" in result["error"]["message"]

    async def test_unknown(self, composer, scanner):
        result = await handle_timing_tool("generate_eclipses", {}, composer, scanner)
        assert "Unknown timing tool" in result[0].text


# ============================================================================
# Relationship tools
# ============================================================================

@pytest.mark.asyncio
class TestRelationshipTools:

    async def test_synastry(self, composer):
        result = payload(await handle_relationship_tool(
            "generate_synastry", {"person_a": BIRTH, "person_b": PARTNER}, composer
        ))
        assert result["settings"]["aspect_profile"] == "major"
        assert result["aspects"]

    async def test_midpoint_composite(self, composer):
        result = payload(await handle_relationship_tool(
            "generate_composite", {"person_a": BIRTH, "person_b": PARTNER}, composer
        ))
        assert result["input"]["method"] == "midpoint"

    async def test_davison(self, composer):
        result = payload(await handle_relationship_tool(
            "generate_composite", {"person_a": BIRTH, "person_b": PARTNER, "method": "davison"}, composer
        ))
        assert result["normalized"]["timezone"] == "America/New_York"

    async def test_invalid_method(self, composer):
        result = payload(await handle_relationship_tool(
            "generate_composite", {"person_a": BIRTH, "person_b": PARTNER, "method": "mean"}, composer
        ))
        assert result["error"]["name"] == "ChartInputError"

    async def test_missing_partner(self, composer):
        result = payload(await handle_relationship_tool("generate_synastry", {"person_a": BIRTH}, composer))
        assert "person_b" in result["error"]["message"]


# ============================================================================
# Server routing
# ============================================================================

@pytest.mark.asyncio
class TestServer:

    async def test_list_tools(self):
        names = {tool.name for tool in await server_module.list_tools()}
        assert names == {"view_config"} | CHART_TOOL_NAMES | TIMING_TOOL_NAMES | RELATIONSHIP_TOOL_NAMES
        assert len(names) == 12

    async def test_view_config(self, server_state):
        result = payload(await server_module.call_tool("view_config", {}))
        assert result["adapter"] == "SwissEphemerisAdapter"
        assert result["max_transit_range_days"] == 366

    async def test_routes_chart_tool(self, server_state):
        result = payload(await server_module.call_tool("generate_chart", {"input": BIRTH}))
        assert result["meta"]["adapter"] == "FakeAdapter"

    async def test_routes_timing_tool(self, server_state):
        result = payload(await server_module.call_tool(
            "generate_annual_profections", {"birth": BIRTH, "date": "2026-12-16"}
        ))
        assert result["house"] == 1

    async def test_routes_relationship_tool(self, server_state):
        result = payload(await server_module.call_tool(
            "generate_synastry", {"person_a": BIRTH, "person_b": PARTNER}
        ))
        assert "aspects" in result

    async def test_unknown_tool(self, server_state):
        result = await server_module.call_tool("cast_spell", {})
        assert result[0].text == "Unknown tool: cast_spell"

    async def test_unexpected_error_is_reported(self, server_state):
        result = await server_module.call_tool(
            "generate_astrocartography", {"input": BIRTH, "near_longitude": "east"}
        )
        assert result[0].text.startswith("Error: ")
