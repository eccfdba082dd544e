"""astro-chart-mcp: astrological chart engine with an MCP server front end."""

__version__ = "1.0.0"

from .api import (
    generate_annual_profections,
    generate_astrocartography,
    generate_chart,
    generate_composite,
    generate_lunar_return,
    generate_saturn_return_tracker,
    generate_secondary_progressions,
    generate_solar_return,
    generate_synastry,
    generate_transits,
)
from .utils.ephemeris import EphemerisError
from .utils.geocoding import CityNotFoundError
from .utils.time_resolver import (
    AmbiguousLocalTimeError,
    ChartInputError,
    NonexistentLocalTimeError,
    TemporalResolutionError,
)

__all__ = [
    "generate_chart",
    "generate_transits",
    "generate_composite",
    "generate_synastry",
    "generate_secondary_progressions",
    "generate_solar_return",
    "generate_lunar_return",
    "generate_annual_profections",
    "generate_saturn_return_tracker",
    "generate_astrocartography",
    "ChartInputError",
    "CityNotFoundError",
    "TemporalResolutionError",
    "NonexistentLocalTimeError",
    "AmbiguousLocalTimeError",
    "EphemerisError",
]
