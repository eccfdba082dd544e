"""Derived chart points: lunar nodes, Black Moon Lilith, Part of Fortune,
Vertex and Chiron.

These are documented approximations, not ephemeris-grade positions. Every
approximation surfaces a warning that ends up in the chart's meta block.
"""

from .position_utils import normalize_degrees

TRUE_NODE_WARNING = "True Node is approximated by the Mean Node polynomial."
PLACEHOLDER_WARNING = (
    "Chiron and Vertex are placeholder approximations "
    "(Saturn + 120 deg, Ascendant + 90 deg)."
)


def mean_node(t: float) -> float:
    """Mean longitude of the ascending lunar node (Meeus 47.7)."""
    return normalize_degrees(
        125.0445479
        - 1934.1362891 * t
        + 0.0020754 * t ** 2
        + t ** 3 / 467441.0
        - t ** 4 / 60616000.0
    )


def mean_lilith(t: float) -> float:
    """Mean lunar apogee: the mean perigee longitude plus 180 degrees."""
    perigee = 83.3532465 + 4069.0137287 * t
    return normalize_degrees(perigee + 180.0)


def part_of_fortune(ascendant: float, sun: float, moon: float) -> float:
    return normalize_degrees(ascendant + moon - sun)


def estimate_derived_points(
    t: float, sun: float, moon: float, ascendant: float, saturn: float
) -> tuple[dict[str, float], list[str]]:
    """Longitudes of the derived points and the warnings they carry.

    Args:
        t: Julian centuries since J2000.
        sun, moon, ascendant, saturn: Longitudes in degrees.

    Returns:
        ({"MeanNode", "TrueNode", "Lilith", "Fortune", "Vertex", "Chiron"}, warnings)
    """
    node = mean_node(t)
    points = {
        "MeanNode": node,
        "TrueNode": node,
        "Lilith": mean_lilith(t),
        "Fortune": part_of_fortune(ascendant, sun, moon),
        "Vertex": normalize_degrees(ascendant + 90.0),
        "Chiron": normalize_degrees(saturn + 120.0),
    }
    return points, [TRUE_NODE_WARNING, PLACEHOLDER_WARNING]
