"""Shared pytest fixtures.

Provides:
- FakeAdapter: deterministic ephemeris adapter (static or linear motion,
  or any function of (body, instant)) for numeric-search tests
- atlas_engine / city_resolver: fresh in-memory atlas per test
- composer: ChartComposer wired to the fake adapter and fresh atlas
- ny_chart: chart for New York 2024-01-15 12:00
"""

from datetime import datetime
from typing import Callable, Optional

import pytest

from astro_chart_mcp.database import initialize_database
from astro_chart_mcp.utils.angles import J2000_JD, julian_day
from astro_chart_mcp.utils.chart_composer import ChartComposer
from astro_chart_mcp.utils.ephemeris import EphemerisAdapter
from astro_chart_mcp.utils.geocoding import CityResolver
from astro_chart_mcp.utils.position_utils import normalize_degrees

# Fixed longitudes resembling a mid-December chart.
STATIC_POSITIONS = {
    "Sun": 264.5,
    "Moon": 11.0,
    "Mercury": 251.3,
    "Venus": 283.7,
    "Mars": 62.2,
    "Jupiter": 113.9,
    "Saturn": 292.1,
    "Uranus": 277.4,
    "Neptune": 283.9,
    "Pluto": 227.6,
}


class FakeAdapter(EphemerisAdapter):
    """Deterministic adapter for tests.

    Longitude = base + rate * (days since J2000), or fn(body, instant)
    when a function is given.
    """

    name = "FakeAdapter"
    engine = "fake"

    def __init__(
        self,
        positions: Optional[dict] = None,
        rates: Optional[dict] = None,
        fn: Optional[Callable[[str, datetime], float]] = None,
    ):
        self.positions = dict(STATIC_POSITIONS)
        self.positions.update(positions or {})
        self.rates = rates or {}
        self.fn = fn
        self.calls = 0

    def longitude_of(self, body: str, instant: datetime) -> float:
        self._check_body(body)
        self.calls += 1
        if self.fn is not None:
            return normalize_degrees(self.fn(body, instant))
        days = julian_day(instant) - J2000_JD
        return normalize_degrees(self.positions[body] + self.rates.get(body, 0.0) * days)


@pytest.fixture
def fake_adapter():
    return FakeAdapter()


@pytest.fixture
def atlas_engine():
    """Fresh in-memory atlas seeded with CITY_SEED_DATA."""
    engine = initialize_database()
    yield engine
    engine.dispose()


@pytest.fixture
def city_resolver(atlas_engine):
    return CityResolver(engine=atlas_engine)


@pytest.fixture
def make_composer(city_resolver):
    """Factory: ChartComposer around any adapter, sharing the test atlas."""
    def _make(adapter=None, **kwargs):
        return ChartComposer(
            adapter=adapter if adapter is not None else FakeAdapter(),
            city_resolver=city_resolver,
            **kwargs,
        )
    return _make


@pytest.fixture
def composer(make_composer, fake_adapter):
    return make_composer(fake_adapter)


@pytest.fixture
def ny_input():
    return {
        "date": "2024-01-15",
        "time": "12:00",
        "city": "New York",
        "country": "US",
        "daylight_saving": "auto",
    }


@pytest.fixture
def ny_chart(composer, ny_input):
    return composer.generate_chart(ny_input)


@pytest.fixture
def make_adapter():
    """Factory: FakeAdapter(positions=None, rates=None, fn=None)."""
    return FakeAdapter
