"""Tests for TemporalScanner techniques.

Deterministic adapters from conftest make every expected instant exact:
- static positions for transits, profections and the Saturn tracker
- a linearly moving Sun for solar returns
- a Moon advancing 10 deg per day for lunar returns
"""

from datetime import date

import pytest

from astro_chart_mcp.constants import SIGN_RULERS, STRONGEST_HITS_PER_DAY
from astro_chart_mcp.utils.angles import epoch_millis
from astro_chart_mcp.utils.temporal import (
    TemporalScanner,
    anniversary,
    group_exact_hits_by_date,
    parse_date,
)
from astro_chart_mcp.utils.time_resolver import ChartInputError


@pytest.fixture
def scanner(composer):
    return TemporalScanner(composer)


@pytest.fixture
def natal_1990(composer):
    return composer.generate_chart({
        "date": "1990-12-16",
        "time": "12:00",
        "city": "New York",
        "country": "US",
    })


# =============================================================================
# Helpers
# =============================================================================

class TestHelpers:

    def test_anniversary(self):
        assert anniversary(date(1990, 12, 16), 2026) == date(2026, 12, 16)

    def test_leap_day_anniversary(self):
        assert anniversary(date(1992, 2, 29), 2027) == date(2027, 2, 28)
        assert anniversary(date(1992, 2, 29), 2028) == date(2028, 2, 29)

    def test_group_exact_hits_by_date(self):
        hits = [
            {"date": "2026-01-02", "a": "Sun", "b": "Moon", "orb": 0.3},
            {"date": "2026-01-01", "a": "Mars", "b": "Venus", "orb": 0.2},
            {"date": "2026-01-02", "a": "Moon", "b": "Sun", "orb": 0.1},
        ]
        groups = group_exact_hits_by_date(hits)
        assert [g["date"] for g in groups] == ["2026-01-01", "2026-01-02"]
        assert [h["a"] for h in groups[1]["hits"]] == ["Moon", "Sun"]

    def test_group_exact_hits_empty(self):
        assert group_exact_hits_by_date([]) == []

    def test_parse_date_error(self):
        with pytest.raises(ChartInputError, match="range start"):
            parse_date("01/02/2026", "range start")


# =============================================================================
# Transits
# =============================================================================

class TestTransits:

    def test_days(self, scanner, ny_chart):
        result = scanner.generate_transits(ny_chart, {"from": "2026-01-01", "to": "2026-01-03"})
        assert result["from"] == "2026-01-01"
        assert result["to"] == "2026-01-03"
        assert [d["date"] for d in result["days"]] == ["2026-01-01", "2026-01-02", "2026-01-03"]
        assert result["days"][0]["utc_datetime"] == "2026-01-01T17:00:00Z"

    def test_strongest_hits_capped(self, scanner, ny_chart):
        result = scanner.generate_transits(ny_chart, {"from": "2026-01-01", "to": "2026-01-01"})
        hits = result["days"][0]["strongest_hits"]
        assert len(hits) == STRONGEST_HITS_PER_DAY
        assert [h["orb"] for h in hits] == sorted(h["orb"] for h in hits)

    def test_exact_hits(self, scanner, ny_chart):
        """Static planets sit exactly on their natal places every day."""
        result = scanner.generate_transits(ny_chart, {"from": "2026-01-01", "to": "2026-01-02"})
        exact = result["exact_hits"]
        self_hits = [h for h in exact if h["a"] == h["b"]]
        assert len(self_hits) == 20
        assert all(h["orb"] <= 0.4 for h in exact)
        assert [(h["date"], h["orb"]) for h in exact] == sorted((h["date"], h["orb"]) for h in exact)

    def test_exact_hits_grouped_by_date(self, scanner, ny_chart):
        result = scanner.generate_transits(ny_chart, {"from": "2026-01-01", "to": "2026-01-02"})
        groups = result["exact_hits_by_date"]
        assert [g["date"] for g in groups] == ["2026-01-01", "2026-01-02"]
        assert sum(len(g["hits"]) for g in groups) == len(result["exact_hits"])
        for group in groups:
            assert all(hit["date"] == group["date"] for hit in group["hits"])
            assert [h["orb"] for h in group["hits"]] == sorted(h["orb"] for h in group["hits"])

    def test_hit_direction(self, scanner, ny_chart):
        """"a" is the transiting planet, "b" the natal one."""
        result = scanner.generate_transits(ny_chart, {"from": "2026-01-01", "to": "2026-01-01"})
        pairs = {(h["a"], h["b"]) for h in result["exact_hits"]}
        assert ("Venus", "Neptune") in pairs
        assert ("Neptune", "Venus") in pairs

    def test_workers_give_identical_results(self, composer, ny_chart):
        date_range = {"from": "2026-01-01", "to": "2026-01-05"}
        serial = TemporalScanner(composer).generate_transits(ny_chart, date_range)
        threaded = TemporalScanner(composer, max_workers=4).generate_transits(ny_chart, date_range)
        assert serial == threaded

    def test_range_limit(self, composer, ny_chart):
        scanner = TemporalScanner(composer, max_range_days=5)
        assert len(scanner.generate_transits(ny_chart, {"from": "2026-01-01", "to": "2026-01-05"})["days"]) == 5
        with pytest.raises(ChartInputError, match="exceeds"):
            scanner.generate_transits(ny_chart, {"from": "2026-01-01", "to": "2026-01-06"})

    def test_default_limit(self, scanner, ny_chart):
        with pytest.raises(ChartInputError):
            scanner.generate_transits(ny_chart, {"from": "2024-01-01", "to": "2025-01-01"})

    def test_reversed_range(self, scanner, ny_chart):
        with pytest.raises(ChartInputError, match="after"):
            scanner.generate_transits(ny_chart, {"from": "2026-02-01", "to": "2026-01-01"})

    def test_missing_range(self, scanner, ny_chart):
        with pytest.raises(ChartInputError):
            scanner.generate_transits(ny_chart, {})


# =============================================================================
# Secondary progressions
# =============================================================================

class TestProgressions:

    def test_birth_date_is_birth_moment(self, scanner, ny_chart):
        result = scanner.generate_secondary_progressions(ny_chart, "2024-01-15")
        assert result["age_years"] == 0.0
        assert result["progressed_instant"] == "2024-01-15T17:00:00Z"

    def test_before_birth_is_clamped(self, scanner, ny_chart):
        result = scanner.generate_secondary_progressions(ny_chart, "2020-01-01")
        assert result["age_years"] == 0.0
        assert result["progressed_instant"] == ny_chart["normalized"]["utc_datetime"]

    def test_one_year(self, scanner, ny_chart):
        """366 calendar days / 365.25 = 1.00205 progressed days."""
        result = scanner.generate_secondary_progressions(ny_chart, "2025-01-15")
        assert result["progressed_date"] == "2025-01-15"
        assert result["age_years"] == pytest.approx(366 / 365.25)
        assert result["progressed_instant"] == "2024-01-16T17:02:57.413Z"
        chart = result["progressed_chart"]
        assert chart["normalized"]["local_datetime"] == "2024-01-16T12:02"
        assert chart["normalized"]["timezone"] == "America/New_York"

    def test_chart_is_cast_at_the_progressed_instant(self, scanner, ny_chart):
        """Seconds and milliseconds of the progressed moment reach the chart."""
        result = scanner.generate_secondary_progressions(ny_chart, "2025-01-15")
        chart = result["progressed_chart"]
        assert chart["normalized"]["utc_datetime"] == result["progressed_instant"]
        assert chart["input"]["time"] == "12:02"

    def test_bad_date(self, scanner, ny_chart):
        with pytest.raises(ChartInputError):
            scanner.generate_secondary_progressions(ny_chart, "next year")


# =============================================================================
# Returns
# =============================================================================

class TestSolarReturn:

    @pytest.fixture
    def moving_sun(self, make_composer, make_adapter):
        return make_composer(make_adapter(rates={"Sun": 360.0 / 365.25}))

    def test_exact_return(self, moving_sun, ny_input):
        """The Sun comes back after exactly 365.25 days; 2024 is a leap year."""
        natal = moving_sun.generate_chart(ny_input)
        result = TemporalScanner(moving_sun).generate_solar_return(natal, 2025)
        assert result["body"] == "Sun"
        assert result["exact_datetime_utc"] == "2025-01-14T23:00:00Z"
        assert result["distance"] < 0.001
        assert result["target_longitude"] == pytest.approx(natal["planets"]["Sun"]["longitude"])
        assert result["chart"]["normalized"]["utc_datetime"] == "2025-01-14T23:00:00Z"
        assert result["chart"]["normalized"]["local_datetime"] == "2025-01-14T18:00"

    @pytest.mark.parametrize("year", ["abc", 0, 1, 9999, None])
    def test_bad_year(self, scanner, ny_chart, year):
        with pytest.raises(ChartInputError):
            scanner.generate_solar_return(ny_chart, year)

    def test_static_sun_returns_window_start(self, scanner, ny_chart):
        """With no motion every candidate ties, so the earliest wins."""
        result = scanner.generate_solar_return(ny_chart, 2026)
        assert result["distance"] == 0.0
        assert result["exact_datetime_utc"] == "2026-01-11T23:00:00Z"


class TestLunarReturn:

    @pytest.fixture
    def moving_moon(self, make_composer, make_adapter):

        def positions(body, instant):
            if body == "Moon":
                return (epoch_millis(instant) / 86_400_000) * 10.0
            return 0.0

        return make_composer(make_adapter(fn=positions))

    def test_exact_return(self, moving_moon):
        """Natal Moon 215 deg; on 2026-01-01T00:00Z it sits at 60 deg."""
        natal = moving_moon.generate_chart({
            "date": "1990-03-02", "time": "12:00", "city": "London", "country": "GB",
        })
        assert natal["planets"]["Moon"]["longitude"] == pytest.approx(215.0)

        result = TemporalScanner(moving_moon).generate_lunar_return(natal, "2026-01")
        assert result["body"] == "Moon"
        assert result["exact_datetime_utc"] == "2026-01-16T12:00:00Z"
        assert result["distance"] == pytest.approx(0.0, abs=1e-9)
        assert result["chart"]["normalized"]["timezone"] == "Europe/London"

    @pytest.mark.parametrize("month", ["2026-13", "January", ""])
    def test_bad_month(self, scanner, ny_chart, month):
        with pytest.raises(ChartInputError):
            scanner.generate_lunar_return(ny_chart, month)


# =============================================================================
# Profections
# =============================================================================

class TestProfections:

    def test_day_before_birthday(self, scanner, natal_1990):
        result = scanner.generate_annual_profections(natal_1990, "2026-12-15")
        assert result["age"] == 35
        assert result["house"] == 12
        assert result["sign"] == natal_1990["houses"][11]["sign"]
        assert result["time_lord"] == SIGN_RULERS[result["sign"]]

    def test_on_birthday(self, scanner, natal_1990):
        result = scanner.generate_annual_profections(natal_1990, "2026-12-16")
        assert result["age"] == 36
        assert result["house"] == 1
        assert result["sign"] == natal_1990["houses"][0]["sign"]

    def test_before_birth(self, scanner, natal_1990):
        result = scanner.generate_annual_profections(natal_1990, "1980-01-01")
        assert result["age"] == 0
        assert result["house"] == 1


# =============================================================================
# Saturn return
# =============================================================================

class TestSaturnReturn:

    def test_static_saturn(self, scanner, natal_1990):
        result = scanner.generate_saturn_return_tracker(natal_1990)
        assert result["from"] == "2017-12-16"
        assert result["to"] == "2022-12-16"
        assert len(result["hits"]) == 1827
        assert result["peak"] == {"date": "2017-12-16", "orb": 0.0}
        assert result["natal_longitude"] == pytest.approx(292.1)

    def test_no_hits(self, make_composer, make_adapter):

        def positions(body, instant):
            if body == "Saturn":
                return 0.0 if instant.year < 2000 else 90.0
            return 0.0

        composer = make_composer(make_adapter(fn=positions))
        natal = composer.generate_chart({"date": "1990-12-16", "time": "12:00", "city": "New York", "country": "US"})
        result = TemporalScanner(composer).generate_saturn_return_tracker(natal)
        assert result["hits"] == []
        assert result["peak"] is None
