"""Unit tests for configuration manager."""

import json

import pytest

from astro_chart_mcp.config import ENV_ADAPTER, ENV_EPHE_PATH, ConfigManager, build_composer
from astro_chart_mcp.constants import DEFAULT_CHART_SETTINGS
from astro_chart_mcp.utils.ephemeris import MeanElementsAdapter, SwissEphemerisAdapter


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(ENV_ADAPTER, raising=False)
    monkeypatch.delenv(ENV_EPHE_PATH, raising=False)


@pytest.fixture
def temp_config_path(tmp_path):
    """Create a temporary config file path."""
    return tmp_path / "test_config.json"


@pytest.fixture(scope="function")
def config_manager(temp_config_path):
    return ConfigManager(config_path=temp_config_path)


class TestConfigManager:
    """Test configuration loading and saving."""

    def test_creates_default_config(self, temp_config_path):
        """Default config is written if none exists."""
        manager = ConfigManager(config_path=temp_config_path)

        assert temp_config_path.exists()
        assert manager.config["adapter"] == "SwissEphemerisAdapter"
        assert manager.config["chart_settings"] == DEFAULT_CHART_SETTINGS
        assert json.loads(temp_config_path.read_text())["max_transit_range_days"] == 366

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "config.json"
        ConfigManager(config_path=path)
        assert path.exists()

    def test_loads_existing_config(self, temp_config_path):
        """Existing values win; missing keys come from defaults."""
        temp_config_path.write_text(json.dumps({"adapter": "MeanElementsAdapter"}))

        manager = ConfigManager(config_path=temp_config_path)
        assert manager.get_adapter_name() == "MeanElementsAdapter"
        assert manager.config["scan_workers"] is None

    def test_invalid_json(self, temp_config_path):
        temp_config_path.write_text("{not json")
        with pytest.raises(ValueError, match="Failed to load config"):
            ConfigManager(config_path=temp_config_path)

    def test_status(self, config_manager, temp_config_path):
        status = config_manager.get_config_status()
        assert status["adapter"] == "SwissEphemerisAdapter"
        assert status["ephemeris_path"] is None
        assert status["config_path"] == str(temp_config_path)


class TestChartSettings:

    def test_defaults(self, config_manager):
        assert config_manager.get_chart_settings() == DEFAULT_CHART_SETTINGS

    def test_set_persists(self, config_manager, temp_config_path):
        config_manager.set_chart_settings(house_system="WholeSign", orb_mode="wide")

        reloaded = ConfigManager(config_path=temp_config_path)
        settings = reloaded.get_chart_settings()
        assert settings["house_system"] == "WholeSign"
        assert settings["orb_mode"] == "wide"
        assert settings["aspect_profile"] == "major"

    def test_unknown_key(self, config_manager):
        with pytest.raises(ValueError, match="Unknown chart setting"):
            config_manager.set_chart_settings(colour="blue")

    def test_invalid_value(self, config_manager):
        with pytest.raises(ValueError, match="Invalid value"):
            config_manager.set_chart_settings(house_system="Campanus")
        assert config_manager.get_chart_settings()["house_system"] == "Placidus"

    def test_invalid_stored_values_normalized(self, temp_config_path):
        temp_config_path.write_text(json.dumps({"chart_settings": {"house_system": "Campanus"}}))
        manager = ConfigManager(config_path=temp_config_path)
        assert manager.get_chart_settings()["house_system"] == "Placidus"


class TestEphemerisConfig:

    def test_env_adapter_wins(self, config_manager, monkeypatch):
        monkeypatch.setenv(ENV_ADAPTER, "MeanElementsAdapter")
        assert config_manager.get_adapter_name() == "MeanElementsAdapter"

    def test_set_adapter(self, config_manager):
        config_manager.set_adapter("MeanElementsAdapter")
        assert config_manager.get_adapter_name() == "MeanElementsAdapter"

    def test_set_invalid_adapter(self, config_manager):
        with pytest.raises(ValueError, match="Invalid adapter"):
            config_manager.set_adapter("JPLAdapter")

    def test_env_ephemeris_path(self, config_manager, monkeypatch):
        monkeypatch.setenv(ENV_EPHE_PATH, "/opt/ephe")
        assert config_manager.get_ephemeris_path() == "/opt/ephe"


class TestScanLimits:

    def test_defaults(self, config_manager):
        assert config_manager.get_max_transit_range_days() == 366
        assert config_manager.get_scan_workers() is None

    @pytest.mark.parametrize("value", [0, -5, "many", True])
    def test_invalid_range_limit(self, config_manager, value):
        config_manager.config["max_transit_range_days"] = value
        with pytest.raises(ValueError):
            config_manager.get_max_transit_range_days()

    def test_scan_workers(self, config_manager):
        config_manager.config["scan_workers"] = 4
        assert config_manager.get_scan_workers() == 4
        config_manager.config["scan_workers"] = 0
        with pytest.raises(ValueError):
            config_manager.get_scan_workers()


class TestBuildComposer:

    def test_default_adapter(self, config_manager):
        composer = build_composer(config_manager)
        assert isinstance(composer.adapter, SwissEphemerisAdapter)
        assert composer.adapter.ephe_path is None

    def test_configured(self, config_manager, tmp_path):
        config_manager.set_adapter("MeanElementsAdapter")
        config_manager.set_chart_settings(house_system="Equal")
        config_manager.config["atlas_db_path"] = str(tmp_path / "atlas.db")

        composer = build_composer(config_manager)
        assert isinstance(composer.adapter, MeanElementsAdapter)
        assert composer.default_settings["house_system"] == "Equal"
        assert composer.city_resolver.resolve("Tokyo", "JP")["timezone"] == "Asia/Tokyo"
        assert (tmp_path / "atlas.db").exists()
        composer.city_resolver.engine.dispose()
