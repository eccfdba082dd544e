"""Essential dignity of each planet by the sign it occupies."""

from typing import Any

from ..constants import DIGNITY_RULES, PLANET_NAMES

DIGNITY_STATUSES = ("exaltation", "fall", "domicile", "detriment", "neutral")


def planet_dignity(planet: str, sign: str) -> str:
    """Dignity status of a planet in a sign.

    Exaltation and fall are checked before domicile and detriment, so a
    planet that is both (Mercury in Virgo) reports the exaltation.
    """
    rules = DIGNITY_RULES[planet]
    if rules.get("exaltation") == sign:
        return "exaltation"
    if rules.get("fall") == sign:
        return "fall"
    if sign in rules["domicile"]:
        return "domicile"
    if sign in rules["detriment"]:
        return "detriment"
    return "neutral"


def dignity_rows(planets: dict[str, dict[str, Any]]) -> list[dict[str, str]]:
    """[{"planet", "sign", "status"}] in planet order, for planets present."""
    return [
        {
            "planet": name,
            "sign": planets[name]["sign"],
            "status": planet_dignity(name, planets[name]["sign"]),
        }
        for name in PLANET_NAMES
        if name in planets
    ]
