"""Shared position conversion utilities.

Low-level math for converting between astrological position formats.
Used by the chart composer, the composite builder and any module that
stores or compares ecliptic longitudes.
"""

import math

from ..constants import ZODIAC_SIGNS


def normalize_degrees(angle: float) -> float:
    """Wrap any angle into [0, 360)."""
    result = angle % 360.0
    # Floating point can produce exactly 360.0 from a tiny negative input
    if result >= 360.0:
        result = 0.0
    return result


def signed_degrees(angle: float) -> float:
    """Wrap any angle into (-180, 180]."""
    normalized = normalize_degrees(angle)
    return normalized - 360.0 if normalized > 180.0 else normalized


def angular_distance(a: float, b: float) -> float:
    """Shortest distance between two longitudes on the circle (0-180)."""
    diff = abs(normalize_degrees(a) - normalize_degrees(b))
    return 360.0 - diff if diff > 180.0 else diff


def circular_midpoint(a: float, b: float) -> float:
    """Midpoint of two longitudes along the shorter arc.

    Uses vector addition so that 10° and 350° meet at 0°, not 180°.
    Exactly opposite longitudes have no defined mean; the point 180° past
    `a` is returned so the result stays deterministic.

    Example:
        circular_midpoint(10.0, 350.0) -> 0.0
    """
    a_rad = math.radians(a)
    b_rad = math.radians(b)
    x = math.cos(a_rad) + math.cos(b_rad)
    y = math.sin(a_rad) + math.sin(b_rad)
    if abs(x) < 1e-10 and abs(y) < 1e-10:
        return normalize_degrees(a + 180.0)
    # Rounded to 10dp so float noise doesn't leak into exact midpoints
    # (15° and 75° give 45.0, not 45.00000000000001)
    mid = round(normalize_degrees(math.degrees(math.atan2(y, x))), 10)
    return 0.0 if mid >= 360.0 else mid


def decimal_to_dms(decimal_degrees: float) -> tuple[int, int, float]:
    """Convert decimal degrees to (degrees, minutes, seconds).

    Example:
        decimal_to_dms(14.66) -> (14, 39, 36.0)
    """
    degrees = int(decimal_degrees)
    remaining = (decimal_degrees - degrees) * 60
    minutes = int(remaining)
    seconds = (remaining - minutes) * 60
    return degrees, minutes, seconds


def sign_to_absolute_position(sign: str, degree_in_sign: float) -> float:
    """Convert a sign name + degree-within-sign to absolute ecliptic position (0–360°).

    Raises:
        ValueError: If sign is not a recognised zodiac sign name.

    Example:
        sign_to_absolute_position("Aquarius", 14.66) -> 314.66
    """
    if sign not in ZODIAC_SIGNS:
        raise ValueError(f"Unknown sign: {sign}")
    return ZODIAC_SIGNS.index(sign) * 30 + degree_in_sign


def longitude_to_placement(longitude: float) -> dict:
    """Convert an absolute ecliptic longitude to a placement dict.

    Returns a dict with:
        sign       str    e.g. "Aquarius"
        degree     float  degrees within the sign (0–<30)
        longitude  float  normalized longitude, full precision
        formatted  str    e.g. "14°39'"

    The sign is taken from the longitude rounded to 10dp so values like
    29.99999999999 don't land in the wrong sign on float noise.
    """
    longitude = normalize_degrees(longitude)
    sign_index = int(round(longitude, 10) // 30) % 12
    degree_in_sign = max(0.0, longitude - sign_index * 30.0)
    if degree_in_sign >= 30.0:
        degree_in_sign = 0.0

    deg, minutes, _seconds = decimal_to_dms(degree_in_sign)

    return {
        "sign": ZODIAC_SIGNS[sign_index],
        "degree": degree_in_sign,
        "longitude": longitude,
        "formatted": f"{deg}°{minutes:02d}'",
    }


def placement_longitude(placement: dict | None) -> float | None:
    """Read the canonical longitude back out of a placement dict.

    Falls back to sign + degree for placements that were stored without a
    longitude (older serialized charts).
    """
    if not placement:
        return None
    longitude = placement.get("longitude")
    if isinstance(longitude, (int, float)) and math.isfinite(longitude):
        return normalize_degrees(float(longitude))
    sign = placement.get("sign")
    if sign in ZODIAC_SIGNS:
        return normalize_degrees(sign_to_absolute_position(sign, float(placement.get("degree") or 0.0)))
    return None
