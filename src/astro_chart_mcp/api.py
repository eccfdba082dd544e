"""Module-level entry points for the chart engine.

Each function accepts an optional ChartComposer; without one a shared
default composer (Swiss Ephemeris, in-memory atlas, default settings) is
created on first use.

    from astro_chart_mcp import generate_chart, generate_transits

    natal = generate_chart({"date": "1990-12-16", "time": "08:30",
                            "city": "Lisbon", "country": "PT"})
    generate_transits(natal, {"from": "2026-01-01", "to": "2026-01-07"})
"""

import threading
from typing import Any, Optional

from .utils import astrocartography, connection_calculator
from .utils.chart_composer import ChartComposer
from .utils.temporal import TemporalScanner

_default_composer: Optional[ChartComposer] = None
_default_lock = threading.Lock()


def default_composer() -> ChartComposer:
    global _default_composer
    with _default_lock:
        if _default_composer is None:
            _default_composer = ChartComposer()
        return _default_composer


def _scanner(composer: Optional[ChartComposer], max_workers: Optional[int] = None) -> TemporalScanner:
    return TemporalScanner(composer or default_composer(), max_workers=max_workers)


def generate_chart(chart_input: dict[str, Any], settings: Optional[dict] = None,
                   composer: Optional[ChartComposer] = None) -> dict[str, Any]:
    return (composer or default_composer()).generate_chart(chart_input, settings)


def generate_transits(base_chart: dict[str, Any], date_range: dict[str, str],
                      settings: Optional[dict] = None, composer: Optional[ChartComposer] = None,
                      max_workers: Optional[int] = None) -> dict[str, Any]:
    return _scanner(composer, max_workers).generate_transits(base_chart, date_range, settings)


def generate_composite(chart_a: dict[str, Any], chart_b: dict[str, Any], method: str = "midpoint",
                       settings: Optional[dict] = None,
                       composer: Optional[ChartComposer] = None) -> dict[str, Any]:
    return connection_calculator.generate_composite(
        chart_a, chart_b, method, settings, composer or default_composer()
    )


def generate_synastry(chart_a: dict[str, Any], chart_b: dict[str, Any],
                      settings: Optional[dict] = None) -> list[dict]:
    return connection_calculator.generate_synastry(chart_a, chart_b, settings)


def generate_secondary_progressions(base_chart: dict[str, Any], target_date: str,
                                    settings: Optional[dict] = None,
                                    composer: Optional[ChartComposer] = None) -> dict[str, Any]:
    return _scanner(composer).generate_secondary_progressions(base_chart, target_date, settings)


def generate_solar_return(base_chart: dict[str, Any], year: int, settings: Optional[dict] = None,
                          composer: Optional[ChartComposer] = None,
                          max_workers: Optional[int] = None) -> dict[str, Any]:
    return _scanner(composer, max_workers).generate_solar_return(base_chart, year, settings)


def generate_lunar_return(base_chart: dict[str, Any], month: str, settings: Optional[dict] = None,
                          composer: Optional[ChartComposer] = None,
                          max_workers: Optional[int] = None) -> dict[str, Any]:
    return _scanner(composer, max_workers).generate_lunar_return(base_chart, month, settings)


def generate_annual_profections(base_chart: dict[str, Any], on_date: str) -> dict[str, Any]:
    # Profections read the chart only; no composer or ephemeris involved
    return TemporalScanner(composer=None).generate_annual_profections(base_chart, on_date)


def generate_saturn_return_tracker(base_chart: dict[str, Any], settings: Optional[dict] = None,
                                   composer: Optional[ChartComposer] = None,
                                   max_workers: Optional[int] = None) -> dict[str, Any]:
    return _scanner(composer, max_workers).generate_saturn_return_tracker(base_chart, settings)


def generate_astrocartography(base_chart: dict[str, Any],
                              settings: Optional[dict] = None) -> dict[str, Any]:
    return astrocartography.generate_astrocartography(base_chart, settings)
