"""Shared constants for astro-chart-mcp.

Centralizes the point catalogue, aspect definitions and chart-setting
vocabularies so every module agrees on names and ordering.
"""

# Zodiac signs in ecliptic order (index 0 = Aries, index 11 = Pisces).
# Used to convert an absolute longitude to a sign name: sign = ZODIAC_SIGNS[int(lon // 30)]
ZODIAC_SIGNS: list[str] = [
    "Aries", "Taurus", "Gemini", "Cancer",
    "Leo", "Virgo", "Libra", "Scorpio",
    "Sagittarius", "Capricorn", "Aquarius", "Pisces",
]

# Traditional (pre-modern) sign rulers, used for profection time lords.
SIGN_RULERS: dict[str, str] = {
    "Aries": "Mars",
    "Taurus": "Venus",
    "Gemini": "Mercury",
    "Cancer": "Moon",
    "Leo": "Sun",
    "Virgo": "Mercury",
    "Libra": "Venus",
    "Scorpio": "Mars",
    "Sagittarius": "Jupiter",
    "Capricorn": "Saturn",
    "Aquarius": "Saturn",
    "Pisces": "Jupiter",
}

# Essential dignities of the ten planets. The outer planets carry only
# modern domicile and detriment; exaltation outranks domicile (Mercury in
# Virgo is exalted).
DIGNITY_RULES: dict[str, dict] = {
    "Sun": {"domicile": ["Leo"], "detriment": ["Aquarius"], "exaltation": "Aries", "fall": "Libra"},
    "Moon": {"domicile": ["Cancer"], "detriment": ["Capricorn"], "exaltation": "Taurus", "fall": "Scorpio"},
    "Mercury": {"domicile": ["Gemini", "Virgo"], "detriment": ["Sagittarius", "Pisces"],
                "exaltation": "Virgo", "fall": "Pisces"},
    "Venus": {"domicile": ["Taurus", "Libra"], "detriment": ["Scorpio", "Aries"],
              "exaltation": "Pisces", "fall": "Virgo"},
    "Mars": {"domicile": ["Aries", "Scorpio"], "detriment": ["Libra", "Taurus"],
             "exaltation": "Capricorn", "fall": "Cancer"},
    "Jupiter": {"domicile": ["Sagittarius", "Pisces"], "detriment": ["Gemini", "Virgo"],
                "exaltation": "Cancer", "fall": "Capricorn"},
    "Saturn": {"domicile": ["Capricorn", "Aquarius"], "detriment": ["Cancer", "Leo"],
               "exaltation": "Libra", "fall": "Aries"},
    "Uranus": {"domicile": ["Aquarius"], "detriment": ["Leo"]},
    "Neptune": {"domicile": ["Pisces"], "detriment": ["Virgo"]},
    "Pluto": {"domicile": ["Scorpio"], "detriment": ["Taurus"]},
}

# Ten main planets in the order we calculate them.
PLANET_NAMES: list[str] = [
    "Sun", "Moon", "Mercury", "Venus", "Mars",
    "Jupiter", "Saturn", "Uranus", "Neptune", "Pluto",
]

DERIVED_POINT_NAMES: list[str] = [
    "TrueNode", "MeanNode", "Chiron", "Lilith", "Fortune",
]

ANGLE_POINT_NAMES: list[str] = [
    "Ascendant", "Descendant", "MC", "IC", "Vertex",
]

# Every named point a chart can carry, in display order.
ASTRO_POINTS: list[str] = PLANET_NAMES + DERIVED_POINT_NAMES + ANGLE_POINT_NAMES

# House systems a caller may request. Only Equal and WholeSign are computed
# exactly; the others degrade to Equal cusps with a warning.
HOUSE_SYSTEMS: list[str] = ["Placidus", "WholeSign", "Equal", "Koch"]
EXACT_HOUSE_SYSTEMS: set[str] = {"WholeSign", "Equal"}

ASPECT_PROFILES: list[str] = ["major", "expanded"]

# Orb mode -> multiplier applied to every catalogue orb.
ORB_MULTIPLIERS: dict[str, float] = {
    "tight": 0.8,
    "standard": 1.0,
    "wide": 1.2,
}

DEFAULT_CHART_SETTINGS: dict = {
    "zodiac": "tropical",
    "house_system": "Placidus",
    "aspect_profile": "major",
    "orb_mode": "standard",
    "include_minor_aspects": False,
}

# Aspect catalogues: (type, exact angle, base max orb).
MAJOR_ASPECT_DEFS: list[dict] = [
    {"type": "Conjunction", "angle": 0.0, "orb": 8.0},
    {"type": "Opposition", "angle": 180.0, "orb": 8.0},
    {"type": "Square", "angle": 90.0, "orb": 6.0},
    {"type": "Trine", "angle": 120.0, "orb": 6.0},
    {"type": "Sextile", "angle": 60.0, "orb": 4.0},
]

EXPANDED_ASPECT_DEFS: list[dict] = [
    {"type": "Quincunx", "angle": 150.0, "orb": 3.0},
    {"type": "Semisquare", "angle": 45.0, "orb": 2.0},
    {"type": "Sesquiquadrate", "angle": 135.0, "orb": 2.0},
]

MINOR_ASPECT_DEFS: list[dict] = [
    {"type": "Semisextile", "angle": 30.0, "orb": 2.0},
    {"type": "Quintile", "angle": 72.0, "orb": 2.0},
    {"type": "Biquintile", "angle": 144.0, "orb": 2.0},
]

# Transit hits at or below this orb are reported as "exact".
EXACT_TRANSIT_ORB: float = 0.4
STRONGEST_HITS_PER_DAY: int = 6
MAX_TRANSIT_RANGE_DAYS: int = 366

# Saturn return window, in whole years of age, and the tracker orb.
SATURN_RETURN_AGES: tuple[int, int] = (27, 32)
SATURN_RETURN_ORB: float = 2.0

# Length of the year used to convert elapsed time into progressed days.
JULIAN_YEAR_DAYS: float = 365.25
