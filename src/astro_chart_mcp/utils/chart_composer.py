"""Chart generation: the orchestration behind every technique.

    input -> location (explicit or atlas) -> UTC instant (TimeResolver)
          -> planet longitudes (EphemerisAdapter) -> natal aspects
          -> angles -> houses -> derived points -> ChartResult

A ChartResult is a plain dict that survives json.dumps/json.loads, so
charts can be cached, sent over MCP or fed back in as base charts for
transits, progressions, returns and composites.
"""

import copy
import logging
from datetime import datetime
from typing import Any, Optional

from ..constants import ANGLE_POINT_NAMES, ASTRO_POINTS, PLANET_NAMES
from .angles import julian_centuries, solve_angles
from .aspects import definitions_for_settings, find_aspects
from .chart_settings import normalize_chart_settings, settings_hash
from .derived_points import estimate_derived_points
from .dignities import dignity_rows
from .ephemeris import EphemerisAdapter, get_adapter
from .geocoding import CityResolver
from .houses import build_houses
from .position_utils import longitude_to_placement, placement_longitude
from .time_resolver import (
    ChartInputError,
    LocalClockReading,
    TimeResolver,
    format_utc,
    parse_local_reading,
    parse_utc,
)

logger = logging.getLogger(__name__)


def dedupe_warnings(*groups: list[str]) -> list[str]:
    """Concatenate warning lists, dropping repeats but keeping first-seen order."""
    seen: list[str] = []
    for group in groups:
        for warning in group:
            if warning not in seen:
                seen.append(warning)
    return seen


def chart_instant(chart: dict[str, Any]) -> datetime:
    """UTC instant of a ChartResult."""
    return parse_utc(chart["normalized"]["utc_datetime"])


def chart_longitudes(chart: dict[str, Any], names: Optional[list[str]] = None) -> dict[str, float]:
    """name -> longitude for the chart's points (all points when names is None)."""
    points = chart.get("points", {})
    wanted = names if names is not None else list(points)
    result = {}
    for name in wanted:
        lon = placement_longitude(points.get(name))
        if lon is not None:
            result[name] = lon
    return result


def validate_chart_input(chart_input: dict[str, Any]) -> None:
    """
    Check chart input before any computation.

    Raises:
        ChartInputError: Missing or malformed date, time, location or
            daylight_saving value.
    """
    if not isinstance(chart_input, dict):
        raise ChartInputError("Chart input must be an object")

    parse_local_reading(chart_input.get("date", ""), chart_input.get("time", ""))

    dst = chart_input.get("daylight_saving", "auto")
    if dst not in ("auto", True, False):
        raise ChartInputError(
            f"Invalid daylight_saving value: {dst!r}. Use 'auto', true or false."
        )

    location = chart_input.get("location")
    if location:
        try:
            lat = float(location["lat"])
            lon = float(location["lon"])
        except (KeyError, TypeError, ValueError):
            raise ChartInputError("Explicit location needs numeric 'lat' and 'lon'")
        if not -90 <= lat <= 90:
            raise ChartInputError(f"Invalid latitude: {lat}. Must be between -90 and 90")
        if not -180 <= lon <= 180:
            raise ChartInputError(f"Invalid longitude: {lon}. Must be between -180 and 180")
    elif not chart_input.get("city") or not chart_input.get("country"):
        raise ChartInputError("Chart input needs either 'location' or both 'city' and 'country'")


class ChartComposer:
    """Builds ChartResults from chart input.

    Usage:
        composer = ChartComposer()                                  # Swiss Ephemeris
        composer = ChartComposer(adapter=MeanElementsAdapter())     # no C library
        chart = composer.generate_chart({
            "date": "1990-12-16", "time": "08:30",
            "city": "Lisbon", "country": "PT",
            "daylight_saving": "auto",
        })

    Args:
        adapter: EphemerisAdapter (SwissEphemerisAdapter when omitted)
        time_resolver: TimeResolver (a fresh one when omitted)
        city_resolver: CityResolver (shared in-memory atlas when omitted)
        default_settings: Settings used for keys the caller leaves out
    """

    def __init__(
        self,
        adapter: Optional[EphemerisAdapter] = None,
        time_resolver: Optional[TimeResolver] = None,
        city_resolver: Optional[CityResolver] = None,
        default_settings: Optional[dict[str, Any]] = None,
    ):
        self.adapter = adapter if adapter is not None else get_adapter()
        self.time_resolver = time_resolver if time_resolver is not None else TimeResolver()
        self.city_resolver = city_resolver if city_resolver is not None else CityResolver()
        self.default_settings = normalize_chart_settings(default_settings)

    def resolve_settings(self, settings: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        return normalize_chart_settings(settings, self.default_settings)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def generate_chart(
        self, chart_input: dict[str, Any], settings: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Compute a full chart.

        Args:
            chart_input: {"date": "YYYY-MM-DD", "time": "HH:MM", "city",
                "country", "location": {"lat", "lon", "timezone"} (optional),
                "daylight_saving": "auto" | True | False}
            settings: Chart settings; missing/unknown values take defaults.

        Returns:
            ChartResult dict.

        Raises:
            ChartInputError: Malformed input.
            CityNotFoundError: City + country not in the atlas.
            NonexistentLocalTimeError / AmbiguousLocalTimeError: DST edge cases.
            EphemerisError: Ephemeris calculation failure.
        """
        validate_chart_input(chart_input)
        resolved_settings = self.resolve_settings(settings)

        location = self.city_resolver.resolve_location(chart_input)
        reading = parse_local_reading(chart_input["date"], chart_input["time"])
        resolved = self.time_resolver.resolve_reading(
            reading, location["timezone"], chart_input.get("daylight_saving", "auto")
        )
        return self._compute(
            chart_input, resolved_settings, location, reading,
            resolved.utc, resolved.offset_minutes, resolved.daylight_saving,
        )

    def generate_chart_at(
        self,
        instant: datetime,
        location: dict[str, Any],
        settings: Optional[dict[str, Any]] = None,
        city: str = "",
        country: str = "",
    ) -> dict[str, Any]:
        """
        Chart cast at an exact UTC instant.

        Techniques that land on a computed moment (progressions, returns,
        Davison charts) use this so the chart keeps the instant's seconds
        and milliseconds. The local fields in "input" and "normalized"
        are re-derived from the instant in location["timezone"].

        Args:
            instant: Aware datetime.
            location: {"lat", "lon", "timezone"}
        """
        timezone_name = location["timezone"]
        chart_input = self.chart_input_from_instant(
            instant, timezone_name, location["lat"], location["lon"], city, country
        )
        return self._compute(
            chart_input,
            self.resolve_settings(settings),
            chart_input["location"],
            self.time_resolver.to_local(instant, timezone_name),
            instant,
            self.time_resolver.offset_minutes_at(instant, timezone_name),
            self.time_resolver.is_dst_at(instant, timezone_name),
        )

    def _compute(
        self,
        chart_input: dict[str, Any],
        resolved_settings: dict[str, Any],
        location: dict[str, Any],
        reading: LocalClockReading,
        instant: datetime,
        offset_minutes: int,
        daylight_saving: bool,
    ) -> dict[str, Any]:
        planets = self.adapter.longitudes(instant)

        definitions, multiplier = definitions_for_settings(resolved_settings)
        aspects = find_aspects(planets, planets, definitions, multiplier, same_chart=True)

        angles = solve_angles(instant, location["lat"], location["lon"])
        houses, house_warnings = build_houses(angles["ascendant"], resolved_settings["house_system"])
        derived, derived_warnings = estimate_derived_points(
            julian_centuries(instant),
            planets["Sun"], planets["Moon"], angles["ascendant"], planets["Saturn"],
        )

        longitudes = dict(planets)
        longitudes.update(derived)
        longitudes.update({
            "Ascendant": angles["ascendant"],
            "Descendant": angles["descendant"],
            "MC": angles["mc"],
            "IC": angles["ic"],
        })

        normalized = {
            "local_datetime": f"{reading.date_str()}T{reading.time_str()}",
            "utc_datetime": format_utc(instant),
            "timezone": location["timezone"],
            "offset_minutes": offset_minutes,
            "daylight_saving": daylight_saving,
            "location": {"lat": location["lat"], "lon": location["lon"]},
        }

        logger.debug(
            "Chart %s %s (%s) -> %s via %s",
            reading.date_str(), reading.time_str(), location["timezone"],
            normalized["utc_datetime"], self.adapter.name,
        )

        return self._assemble(
            chart_input, resolved_settings, normalized, longitudes, houses, aspects,
            dedupe_warnings(self.adapter.warnings, house_warnings, derived_warnings),
        )

    def chart_input_from_instant(
        self,
        instant: datetime,
        timezone_name: str,
        lat: float,
        lon: float,
        city: str = "",
        country: str = "",
    ) -> dict[str, Any]:
        """
        Chart input whose local fields are re-derived from a UTC instant.

        The DST flag is explicit so readings inside a fall-back overlap
        resolve to the intended occurrence. Seconds are truncated (HH:MM), so
        the input records the local reading; generate_chart_at keeps the exact
        instant.
        """
        local = self.time_resolver.to_local(instant, timezone_name)
        return {
            "date": local.date_str(),
            "time": local.time_str(),
            "city": city,
            "country": country,
            "location": {"lat": lat, "lon": lon, "timezone": timezone_name},
            "daylight_saving": self.time_resolver.is_dst_at(instant, timezone_name),
        }

    def chart_at_instant(
        self,
        instant: datetime,
        base_chart: dict[str, Any],
        settings: Optional[dict[str, Any]] = None,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
    ) -> dict[str, Any]:
        """Chart for a UTC instant, localized to base_chart's zone and place."""
        normalized = base_chart["normalized"]
        source = base_chart.get("input", {})
        location = {
            "lat": normalized["location"]["lat"] if lat is None else lat,
            "lon": normalized["location"]["lon"] if lon is None else lon,
            "timezone": normalized["timezone"],
        }
        return self.generate_chart_at(
            instant, location, settings, source.get("city", ""), source.get("country", "")
        )

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def _assemble(
        self,
        chart_input: dict[str, Any],
        settings: dict[str, Any],
        normalized: dict[str, Any],
        longitudes: dict[str, float],
        houses: list[dict],
        aspects: list[dict],
        warnings: list[str],
    ) -> dict[str, Any]:
        """Build the ChartResult dict from computed parts."""
        points = {name: longitude_to_placement(longitudes[name])
                  for name in ASTRO_POINTS if name in longitudes}
        planets = {name: points[name] for name in PLANET_NAMES if name in points}
        return {
            "input": copy.deepcopy(chart_input),
            "settings": dict(settings),
            "normalized": normalized,
            "points": points,
            "planets": planets,
            "angles": {name.lower(): points[name] for name in ANGLE_POINT_NAMES if name in points},
            "houses": houses,
            "aspects": aspects,
            "dignities": dignity_rows(planets),
            "meta": {
                "engine": self.adapter.engine,
                "adapter": self.adapter.name,
                "settings_hash": settings_hash(settings),
                "warnings": warnings,
            },
        }

    def assemble_derived_chart(
        self,
        chart_input: dict[str, Any],
        settings: dict[str, Any],
        normalized: dict[str, Any],
        longitudes: dict[str, float],
        extra_warnings: list[str],
    ) -> dict[str, Any]:
        """
        ChartResult from longitudes that were not computed for a real moment
        (midpoint composites). Houses and natal aspects are rebuilt from them.
        """
        houses, house_warnings = build_houses(longitudes["Ascendant"], settings["house_system"])
        planets = {name: longitudes[name] for name in PLANET_NAMES if name in longitudes}
        definitions, multiplier = definitions_for_settings(settings)
        aspects = find_aspects(planets, planets, definitions, multiplier, same_chart=True)
        return self._assemble(
            chart_input, settings, normalized, longitudes, houses, aspects,
            dedupe_warnings(extra_warnings, house_warnings),
        )
