"""SQLAlchemy models for astro-chart-mcp.

- City: atlas entry (name, country, coordinates, IANA timezone)

Example usage:
    from astro_chart_mcp.models import City
    from astro_chart_mcp.database import get_session

    with get_session() as session:
        lisbon = session.query(City).filter_by(name_key="lisbon", country="PT").one()
        lisbon.timezone  # "Europe/Lisbon"
"""

from astro_chart_mcp.models.city import City, CITY_SEED_DATA

__all__ = [
    "City",
    "CITY_SEED_DATA",
]
