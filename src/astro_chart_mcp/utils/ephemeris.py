"""Ephemeris adapters: ecliptic longitudes of the ten planets.

Two interchangeable sources sit behind one small interface:

    SwissEphemerisAdapter  pysweph (Swiss Ephemeris Python bindings).
                           Moshier mode by default (no files, ~1 arcminute),
                           .se1 files when an ephemeris path is configured.
    MeanElementsAdapter    closed-form positions that never touch the
                           ephemeris: low-precision solar theory, a truncated
                           lunar series and Keplerian mean elements for the
                           planets. Good to roughly a degree. Chart angles
                           still come from pysweph.

Usage:
    adapter = get_adapter("SwissEphemerisAdapter")
    adapter.longitude_of("Saturn", instant)   # degrees [0, 360)
    adapter.longitudes(instant)               # {"Sun": ..., ..., "Pluto": ...}
"""

import logging
import math
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

import swisseph as swe

from ..constants import PLANET_NAMES
from .angles import J2000_JD, SWE_LOCK, julian_day
from .position_utils import normalize_degrees

logger = logging.getLogger(__name__)

MEAN_ELEMENTS_WARNING = (
    "MeanElementsAdapter uses approximate mean orbital elements; "
    "planet longitudes may drift by up to ~1 degree."
)


class EphemerisError(Exception):
    """Raised when an ephemeris calculation fails."""
    pass


class EphemerisAdapter(ABC):
    """Source of geocentric ecliptic longitudes (tropical, of date)."""

    name: str = ""
    engine: str = ""

    @property
    def warnings(self) -> list[str]:
        """Fidelity caveats every chart built with this adapter must carry."""
        return []

    @abstractmethod
    def longitude_of(self, body: str, instant: datetime) -> float:
        """Longitude of one body at an instant, degrees [0, 360).

        Raises:
            EphemerisError: Unknown body or calculation failure.
        """

    def longitudes(self, instant: datetime) -> dict[str, float]:
        """Longitudes of all ten planets at an instant, in PLANET_NAMES order."""
        return {name: self.longitude_of(name, instant) for name in PLANET_NAMES}

    def _check_body(self, body: str) -> None:
        if body not in PLANET_NAMES:
            raise EphemerisError(f"Unknown body: {body!r}")


# ----------------------------------------------------------------------
# Swiss Ephemeris
# ----------------------------------------------------------------------

_SWE_BODY_IDS: dict[str, int] = {
    "Sun": swe.SUN,
    "Moon": swe.MOON,
    "Mercury": swe.MERCURY,
    "Venus": swe.VENUS,
    "Mars": swe.MARS,
    "Jupiter": swe.JUPITER,
    "Saturn": swe.SATURN,
    "Uranus": swe.URANUS,
    "Neptune": swe.NEPTUNE,
    "Pluto": swe.PLUTO,
}


class SwissEphemerisAdapter(EphemerisAdapter):
    """Authoritative adapter backed by pysweph.

    Usage:
        adapter = SwissEphemerisAdapter()                        # Moshier
        adapter = SwissEphemerisAdapter(ephe_path="/path/ephe")  # .se1 files
    """

    name = "SwissEphemerisAdapter"
    engine = "swiss-ephemeris"

    def __init__(self, ephe_path: Optional[str] = None):
        self.ephe_path = ephe_path

    def longitude_of(self, body: str, instant: datetime) -> float:
        self._check_body(body)
        jd = julian_day(instant)
        with SWE_LOCK:
            # Re-applied on every call since another adapter instance may
            # have pointed the library elsewhere.
            swe.set_ephe_path(self.ephe_path)
            try:
                # pysweph returns (xx, ret_flags); xx[0] is the longitude
                raw = swe.calc_ut(jd, _SWE_BODY_IDS[body])
            except Exception as exc:
                raise EphemerisError(f"Failed to calculate {body}: {exc}") from exc
        return normalize_degrees(raw[0][0])


# ----------------------------------------------------------------------
# Mean orbital elements
# ----------------------------------------------------------------------

# Keplerian elements relative to the J2000 ecliptic and equinox, valid
# 1800-2050 (Standish, JPL "Approximate Positions of the Planets").
# (a, e, I, L, long. perihelion, long. node) and their rates per century.
_KEPLER_ELEMENTS: dict[str, tuple[tuple[float, ...], tuple[float, ...]]] = {
    "Mercury": (
        (0.38709927, 0.20563593, 7.00497902, 252.25032350, 77.45779628, 48.33076593),
        (0.00000037, 0.00001906, -0.00594749, 149472.67411175, 0.16047689, -0.12534081),
    ),
    "Venus": (
        (0.72333566, 0.00677672, 3.39467605, 181.97909950, 131.60246718, 76.67984255),
        (0.00000390, -0.00004107, -0.00078890, 58517.81538729, 0.00268329, -0.27769418),
    ),
    "EarthMoonBarycenter": (
        (1.00000261, 0.01671123, -0.00001531, 100.46457166, 102.93768193, 0.0),
        (0.00000562, -0.00004392, -0.01294668, 35999.37244981, 0.32327364, 0.0),
    ),
    "Mars": (
        (1.52371034, 0.09339410, 1.84969142, -4.55343205, -23.94362959, 49.55953891),
        (0.00001847, 0.00007882, -0.00813131, 19140.30268499, 0.44441088, -0.29257343),
    ),
    "Jupiter": (
        (5.20288700, 0.04838624, 1.30439695, 34.39644051, 14.72847983, 100.47390909),
        (-0.00011607, -0.00013253, -0.00183714, 3034.74612775, 0.21252668, 0.20469106),
    ),
    "Saturn": (
        (9.53667594, 0.05386179, 2.48599187, 49.95424423, 92.59887831, 113.66242448),
        (-0.00125060, -0.00050991, 0.00193609, 1222.49362201, -0.41897216, -0.28867794),
    ),
    "Uranus": (
        (19.18916464, 0.04725744, 0.77263783, 313.23810451, 170.95427630, 74.01692503),
        (-0.00196176, -0.00004397, -0.00242939, 428.48202785, 0.40805281, 0.04240589),
    ),
    "Neptune": (
        (30.06992276, 0.00859048, 1.77004347, -55.12002969, 44.96476227, 131.78422574),
        (0.00026291, 0.00005105, 0.00035372, 218.45945325, -0.32241464, -0.00508664),
    ),
    "Pluto": (
        (39.48211675, 0.24882730, 17.14001206, 238.92903833, 224.06891629, 110.30393684),
        (-0.00031596, 0.00005170, 0.00004818, 145.20780515, -0.04062942, -0.01183482),
    ),
}

# General precession in longitude, degrees per Julian century.
_PRECESSION_PER_CENTURY = 1.396971

# Principal periodic terms of the Moon's longitude (Meeus table 47.A):
# (D, M, M', F, coefficient in 1e-6 degrees)
_MOON_TERMS: list[tuple[int, int, int, int, int]] = [
    (0, 0, 1, 0, 6288774),
    (2, 0, -1, 0, 1274027),
    (2, 0, 0, 0, 658314),
    (0, 0, 2, 0, 213618),
    (0, 1, 0, 0, -185116),
    (0, 0, 0, 2, -114332),
    (2, 0, -2, 0, 58793),
    (2, -1, -1, 0, 57066),
    (2, 0, 1, 0, 53322),
    (2, -1, 0, 0, 45758),
    (0, 1, -1, 0, -40923),
    (1, 0, 0, 0, -34720),
    (0, 1, 1, 0, -30383),
    (2, 0, 0, -2, 15327),
    (0, 0, 1, 2, -12528),
    (0, 0, 1, -2, 10980),
    (4, 0, -1, 0, 10675),
    (0, 0, 3, 0, 10034),
    (4, 0, -2, 0, 8548),
    (2, 1, -1, 0, -7888),
    (2, 1, 0, 0, -6766),
    (1, 0, -1, 0, -5163),
    (1, 1, 0, 0, 4987),
    (2, -1, 1, 0, 4036),
]


def _solve_kepler(mean_anomaly: float, eccentricity: float) -> float:
    """Eccentric anomaly (radians) for a mean anomaly (radians)."""
    e_anom = mean_anomaly + eccentricity * math.sin(mean_anomaly)
    for _ in range(30):
        delta = (e_anom - eccentricity * math.sin(e_anom) - mean_anomaly) / (
            1.0 - eccentricity * math.cos(e_anom)
        )
        e_anom -= delta
        if abs(delta) < 1e-12:
            break
    return e_anom


def _heliocentric_xyz(body: str, t: float) -> tuple[float, float, float]:
    """Heliocentric ecliptic (J2000) rectangular coordinates in AU."""
    base, rate = _KEPLER_ELEMENTS[body]
    a, e, inc, mean_lon, peri, node = (b + r * t for b, r in zip(base, rate))

    arg_peri = math.radians(peri - node)
    mean_anomaly = math.radians(normalize_degrees(mean_lon - peri))
    inc = math.radians(inc)
    node = math.radians(node)

    e_anom = _solve_kepler(mean_anomaly, e)
    xp = a * (math.cos(e_anom) - e)
    yp = a * math.sqrt(1.0 - e * e) * math.sin(e_anom)

    cw, sw = math.cos(arg_peri), math.sin(arg_peri)
    cn, sn = math.cos(node), math.sin(node)
    ci, si = math.cos(inc), math.sin(inc)

    x = (cw * cn - sw * sn * ci) * xp + (-sw * cn - cw * sn * ci) * yp
    y = (cw * sn + sw * cn * ci) * xp + (-sw * sn + cw * cn * ci) * yp
    z = (sw * si) * xp + (cw * si) * yp
    return x, y, z


def _sun_longitude(t: float) -> float:
    """Apparent solar longitude, Meeus ch. 25 low-precision theory."""
    l0 = 280.46646 + 36000.76983 * t + 0.0003032 * t * t
    m = math.radians(357.52911 + 35999.05029 * t - 0.0001537 * t * t)
    center = (
        (1.914602 - 0.004817 * t - 0.000014 * t * t) * math.sin(m)
        + (0.019993 - 0.000101 * t) * math.sin(2 * m)
        + 0.000289 * math.sin(3 * m)
    )
    omega = math.radians(125.04 - 1934.136 * t)
    return normalize_degrees(l0 + center - 0.00569 - 0.00478 * math.sin(omega))


def _moon_longitude(t: float) -> float:
    """Lunar longitude from the largest terms of Meeus table 47.A."""
    mean_lon = 218.3164477 + 481267.88123421 * t
    d = math.radians(297.8501921 + 445267.1114034 * t)
    m = math.radians(357.5291092 + 35999.0502909 * t)
    mp = math.radians(134.9633964 + 477198.8675055 * t)
    f = math.radians(93.2720950 + 483202.0175233 * t)
    ecc = 1.0 - 0.002516 * t - 0.0000074 * t * t

    total = 0.0
    for cd, cm, cmp, cf, coeff in _MOON_TERMS:
        term = coeff * math.sin(cd * d + cm * m + cmp * mp + cf * f)
        if abs(cm) == 1:
            term *= ecc
        elif abs(cm) == 2:
            term *= ecc * ecc
        total += term

    return normalize_degrees(mean_lon + total / 1_000_000.0)


class MeanElementsAdapter(EphemerisAdapter):
    """Analytic adapter; planet positions need no ephemeris files."""

    name = "MeanElementsAdapter"
    engine = "mean-elements"

    @property
    def warnings(self) -> list[str]:
        return [MEAN_ELEMENTS_WARNING]

    def longitude_of(self, body: str, instant: datetime) -> float:
        self._check_body(body)
        t = (julian_day(instant) - J2000_JD) / 36525.0

        if body == "Sun":
            return _sun_longitude(t)
        if body == "Moon":
            return _moon_longitude(t)

        px, py, _ = _heliocentric_xyz(body, t)
        ex, ey, _ = _heliocentric_xyz("EarthMoonBarycenter", t)
        geocentric = math.degrees(math.atan2(py - ey, px - ex))
        return normalize_degrees(geocentric + _PRECESSION_PER_CENTURY * t)


ADAPTERS: dict[str, type[EphemerisAdapter]] = {
    SwissEphemerisAdapter.name: SwissEphemerisAdapter,
    MeanElementsAdapter.name: MeanElementsAdapter,
}


def get_adapter(name: str = SwissEphemerisAdapter.name, **kwargs) -> EphemerisAdapter:
    """Instantiate a registered adapter by name.

    Raises:
        EphemerisError: If no adapter is registered under that name.
    """
    try:
        adapter_cls = ADAPTERS[name]
    except KeyError:
        raise EphemerisError(
            f"Unknown ephemeris adapter: {name!r}. Available: {', '.join(ADAPTERS)}"
        )
    logger.debug("Using ephemeris adapter %s", name)
    return adapter_cls(**kwargs)
