"""Tests for chart settings normalization and hashing."""

from astro_chart_mcp.constants import DEFAULT_CHART_SETTINGS
from astro_chart_mcp.utils.chart_settings import (
    normalize_chart_settings,
    serialize_chart_settings,
    settings_hash,
)


class TestNormalize:

    def test_defaults(self):
        assert normalize_chart_settings() == DEFAULT_CHART_SETTINGS
        assert normalize_chart_settings(None) == DEFAULT_CHART_SETTINGS

    def test_valid_values_kept(self):
        settings = normalize_chart_settings({
            "house_system": "WholeSign",
            "aspect_profile": "expanded",
            "orb_mode": "wide",
            "include_minor_aspects": True,
        })
        assert settings == {
            "zodiac": "tropical",
            "house_system": "WholeSign",
            "aspect_profile": "expanded",
            "orb_mode": "wide",
            "include_minor_aspects": True,
        }

    def test_invalid_values_replaced(self):
        settings = normalize_chart_settings({
            "zodiac": "sidereal",
            "house_system": "Campanus",
            "aspect_profile": "everything",
            "orb_mode": 3,
            "include_minor_aspects": "yes",
        })
        assert settings == DEFAULT_CHART_SETTINGS

    def test_unknown_keys_dropped(self):
        assert "color" not in normalize_chart_settings({"color": "red"})

    def test_custom_defaults(self):
        settings = normalize_chart_settings({"orb_mode": "tight"}, defaults={"house_system": "Equal"})
        assert settings["house_system"] == "Equal"
        assert settings["orb_mode"] == "tight"

    def test_invalid_defaults_fall_back(self):
        settings = normalize_chart_settings({}, defaults={"house_system": "Campanus"})
        assert settings["house_system"] == "Placidus"

    def test_does_not_mutate_input(self):
        raw = {"house_system": "Koch", "extra": 1}
        normalize_chart_settings(raw)
        assert raw == {"house_system": "Koch", "extra": 1}


class TestHash:

    def test_canonical_json(self):
        assert serialize_chart_settings({"b": 1, "a": True}) == '{"a":true,"b":1}'

    def test_hash_ignores_key_order(self):
        a = {"zodiac": "tropical", "house_system": "Equal"}
        b = {"house_system": "Equal", "zodiac": "tropical"}
        assert settings_hash(a) == settings_hash(b)

    def test_hash_changes_with_values(self):
        base = normalize_chart_settings()
        other = normalize_chart_settings({"orb_mode": "wide"})
        assert settings_hash(base) != settings_hash(other)
        assert len(settings_hash(base)) == 64
