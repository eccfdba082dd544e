"""House cusp construction.

Equal and Whole Sign cusps are computed exactly from the Ascendant.
Time-division systems (Placidus, Koch) are accepted but currently produce
Equal cusps tagged with the requested system, plus a warning.
"""

import logging

from ..constants import EXACT_HOUSE_SYSTEMS, HOUSE_SYSTEMS
from .position_utils import longitude_to_placement, normalize_degrees

logger = logging.getLogger(__name__)


def house_fallback_warning(system: str) -> str:
    return (
        f"{system} currently falls back to Equal house cusps "
        "(time-division cusps are not implemented)."
    )


def build_houses(ascendant: float, house_system: str) -> tuple[list[dict], list[str]]:
    """Build 12 house placements from the Ascendant.

    Args:
        ascendant: Ascendant longitude in degrees.
        house_system: One of HOUSE_SYSTEMS. Unknown names are treated as
            Placidus, matching chart-settings normalization.

    Returns:
        (houses, warnings). Each house is a placement dict with "house"
        (1-12) and "system" added.
    """
    system = house_system if house_system in HOUSE_SYSTEMS else "Placidus"
    warnings: list[str] = []

    if system == "WholeSign":
        start = (normalize_degrees(ascendant) // 30.0) * 30.0
    else:
        start = normalize_degrees(ascendant)

    if system not in EXACT_HOUSE_SYSTEMS:
        logger.debug("House system %s degrades to Equal cusps", system)
        warnings.append(house_fallback_warning(system))

    houses = []
    for index in range(12):
        placement = longitude_to_placement(start + 30.0 * index)
        houses.append({"house": index + 1, **placement, "system": system})

    return houses, warnings
