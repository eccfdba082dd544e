"""Time-based techniques built on a natal ChartResult.

TRANSITS
  One chart per day at local noon (natal place and zone). Every transiting
  planet is aspected against every natal planet; each day keeps its
  strongest hits, and hits tighter than EXACT_TRANSIT_ORB are collected
  across the whole range.

SECONDARY PROGRESSIONS
  A day after birth stands for a year of life: elapsed years (Julian
  years of 365.25 days) are added to the birth instant as days. The chart
  is re-localized in the natal zone from the progressed UTC instant.

SOLAR / LUNAR RETURNS
  Root finding for the moment the Sun (Moon) comes back to its natal
  longitude: an hourly coarse scan over the window, then a minute-by-minute
  scan one hour either side of the coarse minimum. The best candidate is
  always returned; "distance" says how close it came.

ANNUAL PROFECTIONS
  Age in whole years activates house (age % 12) + 1; its cusp sign and
  that sign's traditional ruler (the time lord) describe the year.

SATURN RETURN TRACKER
  Daily scan between the 27th and 32nd birthdays for days when transiting
  Saturn is within SATURN_RETURN_ORB of natal Saturn.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Optional, TypeVar

from ..constants import (
    EXACT_TRANSIT_ORB,
    JULIAN_YEAR_DAYS,
    MAX_TRANSIT_RANGE_DAYS,
    PLANET_NAMES,
    SATURN_RETURN_AGES,
    SATURN_RETURN_ORB,
    SIGN_RULERS,
    STRONGEST_HITS_PER_DAY,
)
from .angles import epoch_millis, from_epoch_millis
from .aspects import definitions_for_settings, find_aspects
from .chart_composer import ChartComposer, chart_instant, chart_longitudes
from .position_utils import angular_distance
from .time_resolver import MAX_YEAR, MIN_YEAR, ChartInputError, format_utc

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

_MS_PER_DAY = 86_400_000


def parse_date(value: str, label: str = "date") -> date:
    """Parse YYYY-MM-DD, raising ChartInputError on bad input."""
    try:
        parsed = datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ChartInputError(f"Invalid {label}: {value!r}. Expected YYYY-MM-DD.")
    check_year(parsed.year, label)
    return parsed


def check_year(year: int, label: str = "year") -> None:
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ChartInputError(f"Invalid {label}: year {year} is outside {MIN_YEAR}-{MAX_YEAR}.")


def group_exact_hits_by_date(exact_hits: list[dict]) -> list[dict]:
    """[{"date", "hits"}] in date order, hits within a date tightest first."""
    grouped: dict[str, list[dict]] = {}
    for hit in exact_hits:
        grouped.setdefault(hit["date"], []).append(hit)
    return [
        {"date": day, "hits": sorted(hits, key=lambda hit: hit["orb"])}
        for day, hits in sorted(grouped.items())
    ]


def anniversary(birth: date, year: int) -> date:
    """Birthday in a given year; Feb 29 births fall back to Feb 28."""
    try:
        return birth.replace(year=year)
    except ValueError:
        return date(year, 2, 28)


def birth_local_date(base_chart: dict[str, Any]) -> date:
    return parse_date(base_chart["normalized"]["local_datetime"][:10], "birth date")


class TemporalScanner:
    """Transits, progressions, returns, profections and Saturn returns.

    Usage:
        scanner = TemporalScanner(composer)
        scanner.generate_transits(natal, {"from": "2026-01-01", "to": "2026-01-31"})

    Args:
        composer: ChartComposer used for every chart and longitude.
            Profections need no composer and accept None.
        max_range_days: Upper bound on the transit range length.
        max_workers: Fan scans out over a thread pool of this size.
            Results are always returned in scan order.
    """

    def __init__(
        self,
        composer: Optional[ChartComposer],
        max_range_days: int = MAX_TRANSIT_RANGE_DAYS,
        max_workers: Optional[int] = None,
    ):
        self.composer = composer
        self.max_range_days = max_range_days
        self.max_workers = max_workers

    @property
    def adapter(self):
        return self.composer.adapter

    def _map(self, fn: Callable[[T], R], items: Iterable[T]) -> list[R]:
        items = list(items)
        if self.max_workers and self.max_workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                # Executor.map yields in submission order
                return list(pool.map(fn, items))
        return [fn(item) for item in items]

    # ------------------------------------------------------------------
    # Transits
    # ------------------------------------------------------------------

    def generate_transits(
        self,
        base_chart: dict[str, Any],
        date_range: dict[str, str],
        settings: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Daily transits to the natal planets over an inclusive date range.

        Args:
            base_chart: Natal ChartResult.
            date_range: {"from": "YYYY-MM-DD", "to": "YYYY-MM-DD"}.
            settings: Aspect settings (base chart settings when omitted).

        Returns:
            {"from", "to", "days": [{"date", "utc_datetime",
            "strongest_hits"}], "exact_hits", "exact_hits_by_date"}. In every
            hit "a" is the transiting planet and "b" the natal planet.

        Raises:
            ChartInputError: Malformed dates, from > to, or a range longer
                than max_range_days.
        """
        start = parse_date((date_range or {}).get("from", ""), "range start")
        end = parse_date((date_range or {}).get("to", ""), "range end")
        if start > end:
            raise ChartInputError(f"Invalid range: {start} is after {end}")
        span = (end - start).days + 1
        if span > self.max_range_days:
            raise ChartInputError(
                f"Transit range of {span} days exceeds the {self.max_range_days}-day limit"
            )

        resolved = self.composer.resolve_settings(settings or base_chart.get("settings"))
        definitions, multiplier = definitions_for_settings(resolved)
        natal = chart_longitudes(base_chart, PLANET_NAMES)
        normalized = base_chart["normalized"]
        location = {
            "lat": normalized["location"]["lat"],
            "lon": normalized["location"]["lon"],
            "timezone": normalized["timezone"],
        }

        def scan_day(day: date) -> dict[str, Any]:
            chart = self.composer.generate_chart({
                "date": day.isoformat(),
                "time": "12:00",
                "location": location,
                "daylight_saving": "auto",
            }, resolved)
            transiting = chart_longitudes(chart, PLANET_NAMES)
            hits = [
                {"date": day.isoformat(), **hit}
                for hit in find_aspects(transiting, natal, definitions, multiplier)
            ]
            return {
                "date": day.isoformat(),
                "utc_datetime": chart["normalized"]["utc_datetime"],
                "hits": hits,
            }

        logger.debug("Scanning transits %s..%s (%d days)", start, end, span)
        scanned = self._map(scan_day, (start + timedelta(days=i) for i in range(span)))

        days = []
        exact_hits = []
        for entry in scanned:
            days.append({
                "date": entry["date"],
                "utc_datetime": entry["utc_datetime"],
                "strongest_hits": entry["hits"][:STRONGEST_HITS_PER_DAY],
            })
            exact_hits.extend(hit for hit in entry["hits"] if hit["orb"] <= EXACT_TRANSIT_ORB)

        exact_hits.sort(key=lambda hit: (hit["date"], hit["orb"]))
        return {
            "from": start.isoformat(),
            "to": end.isoformat(),
            "days": days,
            "exact_hits": exact_hits,
            "exact_hits_by_date": group_exact_hits_by_date(exact_hits),
        }

    # ------------------------------------------------------------------
    # Secondary progressions
    # ------------------------------------------------------------------

    def generate_secondary_progressions(
        self,
        base_chart: dict[str, Any],
        target_date: str,
        settings: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Day-for-a-year progressed chart for a target date.

        Age is counted in local calendar days from the birth date, divided
        by JULIAN_YEAR_DAYS and clamped at 0, so a target on (or before)
        the birth date progresses to the birth moment itself.

        Returns:
            {"progressed_date", "age_years", "progressed_instant",
            "progressed_chart"}
        """
        target = parse_date(target_date, "progression date")
        birth = birth_local_date(base_chart)
        age_years = max(0.0, (target - birth).days / JULIAN_YEAR_DAYS)

        birth_ms = epoch_millis(chart_instant(base_chart))
        progressed = from_epoch_millis(birth_ms + round(age_years * _MS_PER_DAY))

        resolved = self.composer.resolve_settings(settings or base_chart.get("settings"))
        chart = self.composer.chart_at_instant(progressed, base_chart, resolved)
        logger.debug("Progressed %s to %s (age %.4f)", birth, format_utc(progressed), age_years)
        return {
            "progressed_date": target.isoformat(),
            "age_years": age_years,
            "progressed_instant": format_utc(progressed),
            "progressed_chart": chart,
        }

    # ------------------------------------------------------------------
    # Returns
    # ------------------------------------------------------------------

    def generate_solar_return(
        self,
        base_chart: dict[str, Any],
        year: int,
        settings: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Solar return for a calendar year, searched within ±3 days of the birthday."""
        try:
            year = int(year)
        except (TypeError, ValueError):
            raise ChartInputError(f"Invalid return year: {year!r}")
        check_year(year, "return year")

        birthday = anniversary(birth_local_date(base_chart), year)
        center = datetime(birthday.year, birthday.month, birthday.day, tzinfo=timezone.utc)
        return self._find_return(
            base_chart, "Sun",
            center - timedelta(days=3), center + timedelta(days=4),
            settings,
        )

    def generate_lunar_return(
        self,
        base_chart: dict[str, Any],
        month: str,
        settings: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Lunar return within a calendar month ("YYYY-MM", UTC)."""
        try:
            first = datetime.strptime(str(month).strip(), "%Y-%m").replace(tzinfo=timezone.utc)
        except ValueError:
            raise ChartInputError(f"Invalid month: {month!r}. Expected YYYY-MM.")
        check_year(first.year, "month")
        if first.month == 12:
            following = first.replace(year=first.year + 1, month=1)
        else:
            following = first.replace(month=first.month + 1)
        return self._find_return(base_chart, "Moon", first, following, settings)

    def _find_return(
        self,
        base_chart: dict[str, Any],
        body: str,
        window_start: datetime,
        window_end: datetime,
        settings: Optional[dict[str, Any]],
    ) -> dict[str, Any]:
        target = chart_longitudes(base_chart, [body])[body]

        def distance_at(instant: datetime) -> float:
            return angular_distance(self.adapter.longitude_of(body, instant), target)

        hours = int((window_end - window_start).total_seconds() // 3600)
        coarse_times = [window_start + timedelta(hours=h) for h in range(hours)]
        coarse_best, _ = self._best(coarse_times, self._map(distance_at, coarse_times))

        fine_times = [coarse_best + timedelta(minutes=m) for m in range(-60, 61)]
        best, distance = self._best(fine_times, self._map(distance_at, fine_times))

        logger.debug("%s return near %s (distance %.6f)", body, format_utc(best), distance)
        resolved = self.composer.resolve_settings(settings or base_chart.get("settings"))
        return {
            "body": body,
            "target_longitude": target,
            "exact_datetime_utc": format_utc(best),
            "distance": distance,
            "chart": self.composer.chart_at_instant(best, base_chart, resolved),
        }

    @staticmethod
    def _best(times: list[datetime], distances: list[float]) -> tuple[datetime, float]:
        """Lowest distance; the earliest instant wins ties."""
        best_index = 0
        for index, value in enumerate(distances):
            if value < distances[best_index]:
                best_index = index
        return times[best_index], distances[best_index]

    # ------------------------------------------------------------------
    # Profections
    # ------------------------------------------------------------------

    def generate_annual_profections(
        self, base_chart: dict[str, Any], on_date: str
    ) -> dict[str, Any]:
        """
        Profected house, sign and time lord for a date.

        Returns:
            {"date", "age", "house", "sign", "time_lord"}
        """
        target = parse_date(on_date, "profection date")
        birth = birth_local_date(base_chart)
        age = target.year - birth.year
        if (target.month, target.day) < (birth.month, birth.day):
            age -= 1
        age = max(age, 0)

        house = age % 12 + 1
        sign = base_chart["houses"][house - 1]["sign"]
        return {
            "date": target.isoformat(),
            "age": age,
            "house": house,
            "sign": sign,
            "time_lord": SIGN_RULERS[sign],
        }

    # ------------------------------------------------------------------
    # Saturn return
    # ------------------------------------------------------------------

    def generate_saturn_return_tracker(
        self,
        base_chart: dict[str, Any],
        settings: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Days between the 27th and 32nd birthdays with Saturn within
        SATURN_RETURN_ORB of its natal longitude (sampled at 12:00 UTC).

        settings is accepted so every technique shares one call shape;
        the tracker itself only compares longitudes.

        Returns:
            {"natal_longitude", "from", "to", "hits": [{"date", "orb"}],
            "peak": hit with the lowest orb (earliest on ties) or None}
        """
        natal = chart_longitudes(base_chart, ["Saturn"])["Saturn"]
        birth = birth_local_date(base_chart)
        first_age, last_age = SATURN_RETURN_AGES
        start = anniversary(birth, birth.year + first_age)
        end = anniversary(birth, birth.year + last_age)
        days = [start + timedelta(days=i) for i in range((end - start).days + 1)]

        def orb_on(day: date) -> float:
            noon = datetime(day.year, day.month, day.day, 12, tzinfo=timezone.utc)
            return angular_distance(self.adapter.longitude_of("Saturn", noon), natal)

        logger.debug("Scanning Saturn return %s..%s", start, end)
        hits = [
            {"date": day.isoformat(), "orb": orb}
            for day, orb in zip(days, self._map(orb_on, days))
            if orb <= SATURN_RETURN_ORB
        ]

        peak = None
        for hit in hits:
            if peak is None or hit["orb"] < peak["orb"]:
                peak = hit

        return {
            "natal_longitude": natal,
            "from": start.isoformat(),
            "to": end.isoformat(),
            "hits": hits,
            "peak": peak,
        }
