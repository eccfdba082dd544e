"""Location resolution for chart input.

Chart input either carries explicit coordinates ({"lat", "lon",
"timezone"}) or names a city and country that is looked up in the atlas
database. Explicit coordinates without a timezone get one from
timezonefinder's polygon data.
"""

import logging
from typing import Any, Optional

from sqlalchemy.engine import Engine
from timezonefinder import TimezoneFinder

from ..database import get_engine, get_session
from ..models.city import City

logger = logging.getLogger(__name__)

# Module-level instance, initialization loads polygon data once
_tf = TimezoneFinder()


class CityNotFoundError(LookupError):
    """Raised when a city + country pair is not in the atlas."""
    pass


def get_timezone_for_coords(lat: float, lon: float) -> str:
    """
    Return the IANA timezone string for any coordinates on earth.

    Falls back to UTC over open ocean with no timezone polygon.

    Returns:
        IANA timezone string, e.g. 'Asia/Bangkok', 'America/Chicago', 'UTC'
    """
    tz = _tf.timezone_at(lat=lat, lng=lon)
    return tz if tz else "UTC"


class CityResolver:
    """Looks up places in the atlas.

    Usage:
        resolver = CityResolver()                  # shared in-memory atlas
        resolver = CityResolver(engine=my_engine)  # custom database
        resolver.resolve("Lisbon", "PT")
        # {"city": "Lisbon", "country": "PT", "lat": 38.7223, "lon": -9.1393,
        #  "timezone": "Europe/Lisbon"}
    """

    def __init__(self, engine: Optional[Engine] = None):
        self._engine = engine

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = get_engine()
        return self._engine

    def resolve(self, city: str, country: str) -> dict[str, Any]:
        """
        Find a city by name (case- and accent-insensitive) and country code.

        Raises:
            CityNotFoundError: If the pair is not in the atlas.
        """
        name_key = City.make_name_key(city or "")
        country_code = (country or "").strip().upper()
        with get_session(self.engine) as session:
            row = (
                session.query(City)
                .filter_by(name_key=name_key, country=country_code)
                .first()
            )
            found = row.to_dict() if row else None

        if found is None:
            raise CityNotFoundError(f"City not found: {city!r}, {country!r}")

        logger.debug("Resolved %s, %s -> %s", city, country, found)
        return {
            "city": found["name"],
            "country": found["country"],
            "lat": found["lat"],
            "lon": found["lon"],
            "timezone": found["timezone"],
        }

    def resolve_location(self, chart_input: dict[str, Any]) -> dict[str, Any]:
        """
        Location block for a chart input: explicit coordinates win over the
        city + country lookup.

        Returns:
            {"lat", "lon", "timezone"}
        """
        explicit = chart_input.get("location")
        if explicit:
            lat = float(explicit["lat"])
            lon = float(explicit["lon"])
            tz = explicit.get("timezone") or get_timezone_for_coords(lat, lon)
            return {"lat": lat, "lon": lon, "timezone": tz}

        found = self.resolve(chart_input.get("city", ""), chart_input.get("country", ""))
        return {"lat": found["lat"], "lon": found["lon"], "timezone": found["timezone"]}

    def list_cities(self) -> list[dict[str, Any]]:
        """All atlas entries, sorted by country then name."""
        with get_session(self.engine) as session:
            rows = session.query(City).order_by(City.country, City.name_key).all()
            return [row.to_dict() for row in rows]
