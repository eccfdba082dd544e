"""Astrocartography: where on Earth each chart point sits on an angle.

At the chart's instant a point culminates (MC line) along the geographic
longitude where it is on the meridian: point longitude minus Greenwich
sidereal time. The IC line is opposite, and the rising (ASC) and setting
(DSC) lines are placed a quarter turn either side. Lines are meridians,
so each is described by a single signed longitude in [-180, 180].
"""

from typing import Any, Optional

from ..constants import ASTRO_POINTS
from .angles import gmst_degrees
from .chart_composer import chart_instant, chart_longitudes
from .position_utils import angular_distance, signed_degrees

LINE_ANGLES = ("MC", "IC", "ASC", "DSC")
_LINE_OFFSETS = {"MC": 0.0, "IC": 180.0, "ASC": 90.0, "DSC": -90.0}

# Two lines within this many degrees of longitude count as a crossing.
CROSSING_MAX_DISTANCE = 1.5
CROSSING_LIMIT = 8


def generate_astrocartography(
    base_chart: dict[str, Any], settings: Optional[dict[str, Any]] = None
) -> dict[str, Any]:
    """
    Project every chart point onto four angle lines.

    Args:
        base_chart: ChartResult.
        settings: Accepted for call symmetry with the other techniques;
            lines depend only on the chart's instant and longitudes.

    Returns:
        {"utc_datetime", "gmst", "lines": [{"point", "angle", "longitude"}],
        "crossings"}. Lines are in point order, then MC, IC, ASC, DSC;
        crossings are described in line_crossings().
    """
    gmst = gmst_degrees(chart_instant(base_chart))
    longitudes = chart_longitudes(base_chart)

    lines = []
    for point in ASTRO_POINTS:
        if point not in longitudes:
            continue
        mc = signed_degrees(longitudes[point] - gmst)
        for angle in LINE_ANGLES:
            lines.append({
                "point": point,
                "angle": angle,
                "longitude": signed_degrees(mc + _LINE_OFFSETS[angle]),
            })

    return {
        "utc_datetime": base_chart["normalized"]["utc_datetime"],
        "gmst": gmst,
        "lines": lines,
        "crossings": line_crossings(lines),
    }


def nearest_lines(result: dict[str, Any], longitude: float, limit: int = 5) -> list[dict]:
    """
    Lines closest to a geographic longitude.

    Returns:
        Up to `limit` line dicts with "distance" (degrees) added, closest
        first; equal distances keep line order.
    """
    ranked = sorted(
        enumerate(result["lines"]),
        key=lambda item: (angular_distance(item[1]["longitude"], longitude), item[0]),
    )
    return [
        {**line, "distance": angular_distance(line["longitude"], longitude)}
        for _, line in ranked[:max(limit, 0)]
    ]


def line_crossings(
    lines: list[dict],
    max_distance: float = CROSSING_MAX_DISTANCE,
    limit: int = CROSSING_LIMIT,
) -> list[dict]:
    """
    Pairs of lines that run within max_distance degrees of each other.

    Returns:
        Up to `limit` dicts {"point_a", "angle_a", "point_b", "angle_b",
        "distance"}, tightest first; equal distances keep line order.
    """
    crossings = []
    for i, left in enumerate(lines):
        for right in lines[i + 1:]:
            if left["point"] == right["point"] and left["angle"] == right["angle"]:
                continue
            distance = angular_distance(left["longitude"], right["longitude"])
            if distance > max_distance:
                continue
            crossings.append({
                "point_a": left["point"],
                "angle_a": left["angle"],
                "point_b": right["point"],
                "angle_b": right["angle"],
                "distance": distance,
            })
    crossings.sort(key=lambda crossing: crossing["distance"])
    return crossings[:max(limit, 0)]
