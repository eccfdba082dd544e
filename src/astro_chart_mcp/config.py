"""Configuration management for astro-chart-mcp."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .constants import DEFAULT_CHART_SETTINGS, MAX_TRANSIT_RANGE_DAYS
from .utils.chart_settings import valid_chart_settings, normalize_chart_settings

logger = logging.getLogger(__name__)

# Environment variables that win over the config file
ENV_EPHE_PATH = "SE_EPHE_PATH"
ENV_ADAPTER = "ASTRO_CHART_ADAPTER"


class ConfigManager:
    """Manages engine configuration: default chart settings, ephemeris
    adapter, atlas database and scan limits."""

    # Default config location
    DEFAULT_CONFIG_DIR = Path.home() / ".config" / "astro-chart-mcp"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"

    # Default configuration
    DEFAULT_CONFIG = {
        "chart_settings": dict(DEFAULT_CHART_SETTINGS),
        "adapter": "SwissEphemerisAdapter",
        "ephemeris_path": None,   # None = Moshier, no files needed
        "atlas_db_path": None,    # None = in-memory atlas seeded at startup
        "max_transit_range_days": MAX_TRANSIT_RANGE_DAYS,
        "scan_workers": None,
    }

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize config manager.

        Args:
            config_path: Optional custom config file path
        """
        self.config_path = Path(config_path) if config_path else self.DEFAULT_CONFIG_FILE
        self.config = self._load_or_create()

    def _load_or_create(self) -> Dict[str, Any]:
        """Load existing config or create default."""
        if self.config_path.exists():
            return self._load()
        # Create directory if needed
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        defaults = json.loads(json.dumps(self.DEFAULT_CONFIG))
        self._save(defaults)
        return defaults

    def _load(self) -> Dict[str, Any]:
        """Load config from file."""
        try:
            with open(self.config_path, 'r') as f:
                config = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            raise ValueError(f"Failed to load config from {self.config_path}: {e}")
        # Merge with defaults (in case new keys were added)
        merged = json.loads(json.dumps(self.DEFAULT_CONFIG))
        merged.update(config)
        return merged

    def _save(self, config: Dict[str, Any]) -> None:
        """Save config to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(config, f, indent=2)
        except IOError as e:
            raise ValueError(f"Failed to save config to {self.config_path}: {e}")

    def save(self) -> None:
        """Save current config to file."""
        self._save(self.config)

    # Chart settings

    def get_chart_settings(self) -> Dict[str, Any]:
        """Default chart settings (normalized)."""
        return normalize_chart_settings(self.config.get("chart_settings"))

    def set_chart_settings(self, **settings: Any) -> None:
        """
        Update default chart settings.

        Raises:
            ValueError: If a key is unknown or a value is not allowed.
        """
        for key, value in settings.items():
            if key not in DEFAULT_CHART_SETTINGS:
                raise ValueError(f"Unknown chart setting: {key}")
            if key not in valid_chart_settings({key: value}):
                raise ValueError(f"Invalid value for {key}: {value!r}")

        current = self.get_chart_settings()
        current.update(settings)
        self.config["chart_settings"] = current
        self.save()

    # Ephemeris

    def get_adapter_name(self) -> str:
        """Adapter name; ASTRO_CHART_ADAPTER overrides the file."""
        return os.environ.get(ENV_ADAPTER) or self.config.get("adapter") or "SwissEphemerisAdapter"

    def set_adapter(self, name: str) -> None:
        from .utils.ephemeris import ADAPTERS

        if name not in ADAPTERS:
            raise ValueError(f"Invalid adapter: {name}. Valid: {list(ADAPTERS)}")
        self.config["adapter"] = name
        self.save()

    def get_ephemeris_path(self) -> Optional[str]:
        """Directory of .se1 files; SE_EPHE_PATH overrides the file."""
        return os.environ.get(ENV_EPHE_PATH) or self.config.get("ephemeris_path")

    # Atlas

    def get_atlas_db_path(self) -> Optional[str]:
        return self.config.get("atlas_db_path")

    # Scan limits

    def get_max_transit_range_days(self) -> int:
        value = self.config.get("max_transit_range_days", MAX_TRANSIT_RANGE_DAYS)
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ValueError(f"Invalid max_transit_range_days: {value!r}")
        return value

    def get_scan_workers(self) -> Optional[int]:
        value = self.config.get("scan_workers")
        if value is None:
            return None
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ValueError(f"Invalid scan_workers: {value!r}")
        return value

    def get_config_status(self) -> Dict[str, Any]:
        """Get configuration status for display."""
        return {
            "adapter": self.get_adapter_name(),
            "ephemeris_path": self.get_ephemeris_path(),
            "atlas_db_path": self.get_atlas_db_path(),
            "chart_settings": self.get_chart_settings(),
            "max_transit_range_days": self.get_max_transit_range_days(),
            "scan_workers": self.get_scan_workers(),
            "config_path": str(self.config_path),
        }


def build_composer(config: Optional[ConfigManager] = None):
    """
    Wire a ChartComposer from configuration.

    Returns:
        ChartComposer using the configured adapter, atlas and default settings.
    """
    from .database import initialize_database
    from .utils.chart_composer import ChartComposer
    from .utils.ephemeris import SwissEphemerisAdapter, get_adapter
    from .utils.geocoding import CityResolver

    if config is None:
        config = ConfigManager()

    name = config.get_adapter_name()
    if name == SwissEphemerisAdapter.name:
        adapter = get_adapter(name, ephe_path=config.get_ephemeris_path())
    else:
        adapter = get_adapter(name)

    atlas_path = config.get_atlas_db_path()
    city_resolver = CityResolver(initialize_database(atlas_path) if atlas_path else None)

    logger.info("Chart composer using %s", adapter.name)
    return ChartComposer(
        adapter=adapter,
        city_resolver=city_resolver,
        default_settings=config.get_chart_settings(),
    )
