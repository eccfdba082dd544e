"""Chart angles from an instant and a geographic location.

Time scales and the Earth's orientation come from pysweph: the Julian Day
from ``swe.julday``, Greenwich apparent sidereal time from ``swe.sidtime``
and the true obliquity from the ``ECL_NUT`` pseudo-body. The Ascendant and
MC are the classical expressions on top of those values.
"""

import math
import threading
from datetime import datetime, timedelta, timezone

import swisseph as swe

from .position_utils import normalize_degrees

J2000_JD = 2451545.0

# The C library keeps the ephemeris path and its caches in globals; every
# call into it goes through this lock.
SWE_LOCK = threading.Lock()


def epoch_millis(instant: datetime) -> int:
    """Milliseconds since the Unix epoch for an aware datetime."""
    delta = instant.astimezone(timezone.utc) - datetime(1970, 1, 1, tzinfo=timezone.utc)
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def from_epoch_millis(millis: int) -> datetime:
    return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=millis)


def julian_day(instant: datetime) -> float:
    """Julian Day (UT) of an instant."""
    utc = instant.astimezone(timezone.utc)
    hour = (
        utc.hour
        + utc.minute / 60.0
        + (utc.second + utc.microsecond / 1_000_000.0) / 3600.0
    )
    return swe.julday(utc.year, utc.month, utc.day, hour, swe.GREG_CAL)


def julian_centuries(instant: datetime) -> float:
    """Julian centuries since J2000.0."""
    return (julian_day(instant) - J2000_JD) / 36525.0


def gmst_degrees(instant: datetime) -> float:
    """Greenwich sidereal time in degrees [0, 360)."""
    with SWE_LOCK:
        hours = swe.sidtime(julian_day(instant))
    return normalize_degrees(hours * 15.0)


def true_obliquity(instant: datetime) -> float:
    """True obliquity of the ecliptic in degrees."""
    with SWE_LOCK:
        # ECL_NUT -> (true obliquity, mean obliquity, nutation lon, nutation obl)
        xx = swe.calc_ut(julian_day(instant), swe.ECL_NUT)[0]
    return xx[0]


def local_sidereal_time(instant: datetime, longitude: float) -> float:
    """Local sidereal time in degrees; east longitudes are positive."""
    return normalize_degrees(gmst_degrees(instant) + longitude)


def midheaven(lst: float, obliquity: float) -> float:
    theta = math.radians(lst)
    eps = math.radians(obliquity)
    return normalize_degrees(math.degrees(math.atan2(math.sin(theta), math.cos(theta) * math.cos(eps))))


def ascendant(lst: float, obliquity: float, latitude: float) -> float:
    theta = math.radians(lst)
    eps = math.radians(obliquity)
    phi = math.radians(latitude)
    y = math.cos(theta)
    x = -(math.sin(theta) * math.cos(eps) + math.tan(phi) * math.sin(eps))
    return normalize_degrees(math.degrees(math.atan2(y, x)))


def solve_angles(instant: datetime, latitude: float, longitude: float) -> dict[str, float]:
    """Ascendant, Descendant, MC and IC longitudes for an instant and place.

    Returns:
        {"ascendant", "descendant", "mc", "ic"} in degrees [0, 360).
    """
    lst = local_sidereal_time(instant, longitude)
    eps = true_obliquity(instant)
    asc = ascendant(lst, eps, latitude)
    mc = midheaven(lst, eps)
    return {
        "ascendant": asc,
        "descendant": normalize_degrees(asc + 180.0),
        "mc": mc,
        "ic": normalize_degrees(mc + 180.0),
    }
