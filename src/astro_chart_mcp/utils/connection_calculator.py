"""Relationship charts: composite, Davison and synastry.

COMPOSITE (midpoint)
  Each point is the circular midpoint of the two natal longitudes.
  Circular averaging is required because naive averaging of 350° and 10°
  would give 180° instead of 0°. Houses and natal aspects are rebuilt from
  the midpoint Ascendant and planets; Descendant and IC are re-derived from
  the midpoint Ascendant and MC so the angles stay opposite each other.

DAVISON
  The midpoint instant (mean of the two UTC instants in epoch milliseconds)
  and midpoint location (arithmetic mean of lat/lon) define a real moment
  in time and space. The chart is cast for that moment, in chart A's
  timezone, so it is a genuine chart rather than averaged positions.

SYNASTRY
  Every planet of chart A against every planet of chart B.

References:
  - Composite: https://en.wikipedia.org/wiki/Composite_chart
  - Davison: https://en.wikipedia.org/wiki/Davison_relationship_chart
"""

import logging
from typing import Any, Optional

from ..constants import ASTRO_POINTS, PLANET_NAMES
from .angles import epoch_millis, from_epoch_millis
from .aspects import definitions_for_settings, find_aspects
from .chart_composer import ChartComposer, chart_instant, chart_longitudes, dedupe_warnings
from .chart_settings import normalize_chart_settings
from .position_utils import circular_midpoint, normalize_degrees
from .time_resolver import ChartInputError, format_utc

logger = logging.getLogger(__name__)

COMPOSITE_METHODS = ("midpoint", "davison")


def midpoint_instant_millis(chart_a: dict[str, Any], chart_b: dict[str, Any]) -> int:
    """Mean of the two charts' UTC instants, in epoch milliseconds."""
    return (epoch_millis(chart_instant(chart_a)) + epoch_millis(chart_instant(chart_b))) // 2


def midpoint_location(chart_a: dict[str, Any], chart_b: dict[str, Any]) -> dict[str, float]:
    """Arithmetic mean of the two charts' coordinates."""
    loc_a = chart_a["normalized"]["location"]
    loc_b = chart_b["normalized"]["location"]
    return {
        "lat": (loc_a["lat"] + loc_b["lat"]) / 2.0,
        "lon": (loc_a["lon"] + loc_b["lon"]) / 2.0,
    }


# ---------------------------------------------------------------------------
# Composite
# ---------------------------------------------------------------------------

def generate_composite(
    chart_a: dict[str, Any],
    chart_b: dict[str, Any],
    method: str = "midpoint",
    settings: Optional[dict[str, Any]] = None,
    composer: Optional[ChartComposer] = None,
) -> dict[str, Any]:
    """
    Build a relationship chart from two ChartResults.

    Args:
        chart_a, chart_b: ChartResults. Chart A's timezone (and, when
            settings is None, its settings) are used for the result.
        method: "midpoint" or "davison".
        settings: Chart settings for the result.
        composer: ChartComposer to use (a default one when omitted).

    Returns:
        A new ChartResult; neither input chart is modified.

    Raises:
        ChartInputError: Unknown method.
    """
    if method not in COMPOSITE_METHODS:
        raise ChartInputError(
            f"Invalid composite method: {method!r}. Use one of {', '.join(COMPOSITE_METHODS)}"
        )
    if composer is None:
        composer = ChartComposer()

    resolved = normalize_chart_settings(settings, chart_a.get("settings"))
    if method == "davison":
        return _davison_chart(chart_a, chart_b, resolved, composer)
    return _midpoint_chart(chart_a, chart_b, resolved, composer)


def _midpoint_chart(
    chart_a: dict[str, Any],
    chart_b: dict[str, Any],
    settings: dict[str, Any],
    composer: ChartComposer,
) -> dict[str, Any]:
    lons_a = chart_longitudes(chart_a)
    lons_b = chart_longitudes(chart_b)

    longitudes = {
        name: circular_midpoint(lons_a[name], lons_b[name])
        for name in ASTRO_POINTS
        if name in lons_a and name in lons_b
    }
    if "Ascendant" not in longitudes:
        raise ChartInputError("Both charts need an Ascendant to build a composite")
    longitudes["Descendant"] = normalize_degrees(longitudes["Ascendant"] + 180.0)
    if "MC" in longitudes:
        longitudes["IC"] = normalize_degrees(longitudes["MC"] + 180.0)

    instant = from_epoch_millis(midpoint_instant_millis(chart_a, chart_b))
    timezone_name = chart_a["normalized"]["timezone"]
    local = composer.time_resolver.to_local(instant, timezone_name)

    normalized = {
        "local_datetime": f"{local.date_str()}T{local.time_str()}",
        "utc_datetime": format_utc(instant),
        "timezone": timezone_name,
        "offset_minutes": composer.time_resolver.offset_minutes_at(instant, timezone_name),
        "daylight_saving": composer.time_resolver.is_dst_at(instant, timezone_name),
        "location": midpoint_location(chart_a, chart_b),
    }
    chart_input = {
        "method": "midpoint",
        "charts": [chart_a.get("input", {}), chart_b.get("input", {})],
    }

    logger.debug("Midpoint composite at %s", normalized["utc_datetime"])
    return composer.assemble_derived_chart(
        chart_input, settings, normalized, longitudes,
        dedupe_warnings(chart_a["meta"]["warnings"], chart_b["meta"]["warnings"]),
    )


def _davison_chart(
    chart_a: dict[str, Any],
    chart_b: dict[str, Any],
    settings: dict[str, Any],
    composer: ChartComposer,
) -> dict[str, Any]:
    instant = from_epoch_millis(midpoint_instant_millis(chart_a, chart_b))
    location = midpoint_location(chart_a, chart_b)
    location["timezone"] = chart_a["normalized"]["timezone"]
    logger.debug("Davison chart at %s (%s)", format_utc(instant), location)
    return composer.generate_chart_at(instant, location, settings)


# ---------------------------------------------------------------------------
# Synastry
# ---------------------------------------------------------------------------

def generate_synastry(
    chart_a: dict[str, Any],
    chart_b: dict[str, Any],
    settings: Optional[dict[str, Any]] = None,
) -> list[dict]:
    """
    Cross-chart aspects: every planet of A against every planet of B.

    Returns:
        Aspect dicts ("a" names a chart A planet, "b" a chart B planet),
        sorted by (orb, a, b).
    """
    resolved = normalize_chart_settings(settings, chart_a.get("settings"))
    definitions, multiplier = definitions_for_settings(resolved)
    return find_aspects(
        chart_longitudes(chart_a, PLANET_NAMES),
        chart_longitudes(chart_b, PLANET_NAMES),
        definitions,
        multiplier,
    )
