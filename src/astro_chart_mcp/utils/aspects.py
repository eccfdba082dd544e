"""Aspect detection between two sets of points.

An aspect exists when the angular separation of two longitudes is within
the (multiplied) orb of a catalogue angle. Each pair reports at most one
aspect: the definition with the smallest orb, earlier catalogue entries
winning ties.
"""

from typing import Iterable, Optional

from ..constants import (
    EXPANDED_ASPECT_DEFS,
    MAJOR_ASPECT_DEFS,
    MINOR_ASPECT_DEFS,
    ORB_MULTIPLIERS,
)
from .position_utils import angular_distance


def aspect_definitions(aspect_profile: str = "major", include_minor: bool = False) -> list[dict]:
    """Catalogue for a settings profile, in tie-break order."""
    definitions = list(MAJOR_ASPECT_DEFS)
    if aspect_profile == "expanded":
        definitions += EXPANDED_ASPECT_DEFS
    if include_minor:
        definitions += MINOR_ASPECT_DEFS
    return definitions


def orb_multiplier(orb_mode: str) -> float:
    return ORB_MULTIPLIERS.get(orb_mode, 1.0)


def definitions_for_settings(settings: dict) -> tuple[list[dict], float]:
    """(definitions, orb multiplier) for a normalized settings dict."""
    return (
        aspect_definitions(settings["aspect_profile"], settings["include_minor_aspects"]),
        orb_multiplier(settings["orb_mode"]),
    )


def match_aspect(
    lon_a: float, lon_b: float, definitions: Iterable[dict], multiplier: float = 1.0
) -> Optional[dict]:
    """Best matching definition for two longitudes, or None.

    Returns:
        {"type", "angle", "separation", "orb"} for the tightest definition.
    """
    separation = angular_distance(lon_a, lon_b)
    best = None
    for definition in definitions:
        orb = abs(separation - definition["angle"])
        if orb > definition["orb"] * multiplier:
            continue
        # Strict comparison keeps the earlier definition on equal orbs
        if best is None or orb < best["orb"]:
            best = {
                "type": definition["type"],
                "angle": definition["angle"],
                "separation": separation,
                "orb": orb,
            }
    return best


def find_aspects(
    points_a: dict[str, float],
    points_b: dict[str, float],
    definitions: list[dict],
    multiplier: float = 1.0,
    same_chart: bool = False,
) -> list[dict]:
    """All aspects between two point maps.

    Args:
        points_a, points_b: name -> longitude.
        definitions: Aspect catalogue (see aspect_definitions()).
        multiplier: Orb multiplier from the orb mode.
        same_chart: Both maps describe one chart; skip self-pairs and
            report each unordered pair once.

    Returns:
        Aspect dicts {"a", "b", "type", "angle", "separation", "orb"},
        sorted by (orb, a, b).
    """
    names_a = list(points_a)
    names_b = list(points_b)
    aspects = []

    for i, name_a in enumerate(names_a):
        for j, name_b in enumerate(names_b):
            if same_chart:
                if name_a == name_b:
                    continue
                if name_b in points_a and names_a.index(name_b) < i:
                    continue
            hit = match_aspect(points_a[name_a], points_b[name_b], definitions, multiplier)
            if hit is not None:
                aspects.append({"a": name_a, "b": name_b, **hit})

    aspects.sort(key=lambda asp: (asp["orb"], asp["a"], asp["b"]))
    return aspects
