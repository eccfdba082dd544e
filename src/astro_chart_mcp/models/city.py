"""City model - reference table for the location atlas.

Each row maps a (city, country) pair to coordinates and an IANA timezone,
so chart input can name a place instead of giving raw coordinates.

This is a reference/lookup table - data is seeded at initialization.
"""

import unicodedata

from sqlalchemy import Float, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from astro_chart_mcp.database import Base


class City(Base):
    """
    A named place with coordinates and timezone.

    Lookups go through name_key (case- and accent-folded name) plus the
    upper-case ISO 3166-1 alpha-2 country code.
    """

    __tablename__ = "cities"
    __table_args__ = (
        UniqueConstraint("name_key", "country", name="uq_city_name_country"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # Display name, e.g. "São Paulo"
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Folded lookup key, e.g. "sao paulo"
    name_key: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    # ISO country code, e.g. "BR"
    country: Mapped[str] = mapped_column(String(2), nullable=False, index=True)

    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)

    # IANA timezone id, e.g. "America/Sao_Paulo"
    timezone: Mapped[str] = mapped_column(String(64), nullable=False)

    def __repr__(self) -> str:
        return f"<City(name='{self.name}', country='{self.country}')>"

    @staticmethod
    def make_name_key(name: str) -> str:
        """Fold a city name for lookup: strip accents, lower-case, collapse spaces."""
        decomposed = unicodedata.normalize("NFKD", name)
        ascii_only = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
        return " ".join(ascii_only.lower().split())

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "name": self.name,
            "country": self.country,
            "lat": self.latitude,
            "lon": self.longitude,
            "timezone": self.timezone,
        }


# Seed data for the atlas
CITY_SEED_DATA = [
    {"name": "Rio de Janeiro", "country": "BR", "latitude": -22.9068, "longitude": -43.1729,
     "timezone": "America/Sao_Paulo"},
    {"name": "São Paulo", "country": "BR", "latitude": -23.5505, "longitude": -46.6333,
     "timezone": "America/Sao_Paulo"},
    {"name": "Lisbon", "country": "PT", "latitude": 38.7223, "longitude": -9.1393,
     "timezone": "Europe/Lisbon"},
    {"name": "New York", "country": "US", "latitude": 40.7128, "longitude": -74.006,
     "timezone": "America/New_York"},
    {"name": "London", "country": "GB", "latitude": 51.5074, "longitude": -0.1278,
     "timezone": "Europe/London"},
    {"name": "Tokyo", "country": "JP", "latitude": 35.6764, "longitude": 139.6503,
     "timezone": "Asia/Tokyo"},
    {"name": "Sydney", "country": "AU", "latitude": -33.8688, "longitude": 151.2093,
     "timezone": "Australia/Sydney"},
]
