"""Chart settings normalization and fingerprinting."""

import hashlib
import json
from typing import Any, Optional

from ..constants import ASPECT_PROFILES, DEFAULT_CHART_SETTINGS, HOUSE_SYSTEMS, ORB_MULTIPLIERS


def normalize_chart_settings(settings: Optional[dict[str, Any]] = None,
                             defaults: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    """Return a complete settings dict, replacing unknown values with defaults.

    Args:
        settings: Caller settings; missing or invalid keys are tolerated.
        defaults: Fallback values (DEFAULT_CHART_SETTINGS when omitted).
            Invalid defaults themselves fall back to DEFAULT_CHART_SETTINGS.
    """
    base = dict(DEFAULT_CHART_SETTINGS)
    if defaults:
        base.update(valid_chart_settings(defaults))
    merged = dict(base)
    merged.update(valid_chart_settings(settings or {}))
    return merged


def valid_chart_settings(settings: dict[str, Any]) -> dict[str, Any]:
    valid = {}
    if settings.get("zodiac") == "tropical":
        valid["zodiac"] = "tropical"
    if settings.get("house_system") in HOUSE_SYSTEMS:
        valid["house_system"] = settings["house_system"]
    if settings.get("aspect_profile") in ASPECT_PROFILES:
        valid["aspect_profile"] = settings["aspect_profile"]
    if settings.get("orb_mode") in ORB_MULTIPLIERS:
        valid["orb_mode"] = settings["orb_mode"]
    if isinstance(settings.get("include_minor_aspects"), bool):
        valid["include_minor_aspects"] = settings["include_minor_aspects"]
    return valid


def serialize_chart_settings(settings: dict[str, Any]) -> str:
    """Canonical JSON form: sorted keys, no whitespace."""
    return json.dumps(settings, sort_keys=True, separators=(",", ":"))


def settings_hash(settings: dict[str, Any]) -> str:
    """SHA-256 hex digest of the canonical settings JSON."""
    return hashlib.sha256(serialize_chart_settings(settings).encode("utf-8")).hexdigest()
