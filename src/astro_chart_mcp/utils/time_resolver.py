"""Local wall-clock time to UTC resolution.

A birth time is a local clock reading ("14:30 in Chicago"). Turning it into
an absolute instant is only well defined when the reading occurred exactly
once in that zone:

SPRING FORWARD
  Clocks jump from 02:00 to 03:00, so 02:30 never happened. No UTC instant
  projects back onto that reading -> NonexistentLocalTimeError.

FALL BACK
  Clocks repeat 01:00-02:00, so 01:30 happened twice. With daylight_saving
  set to "auto" the caller must choose -> AmbiguousLocalTimeError. Passing
  True or False picks the DST or standard-time occurrence.

Candidates are built from every UTC offset the zone uses during the year
(its OffsetProfile), and only those that reproduce the exact local reading
survive. Profiles are a pure function of the timezone database, so they are
memoized per resolver instance.
"""

import logging
import threading
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import NamedTuple, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

# Sampling step used to discover the offsets a zone uses within a year.
# Every real-world offset period lasts far longer than this.
_PROFILE_SAMPLE_STEP = timedelta(hours=1)

# Profiles sample a day either side of the year and candidates shift by up
# to a day of offset, so both ends of the datetime range stay out of reach.
MIN_YEAR = 2
MAX_YEAR = 9998

DaylightSavingPreference = Union[bool, str]


class ChartInputError(ValueError):
    """Raised when chart input is malformed (date, time, timezone, range)."""
    pass


class TemporalResolutionError(Exception):
    """Base class for local times that cannot be mapped to one UTC instant."""
    pass


class NonexistentLocalTimeError(TemporalResolutionError):
    """The local time falls inside a spring-forward gap."""
    pass


class AmbiguousLocalTimeError(TemporalResolutionError):
    """The local time occurs twice (fall-back overlap) and no DST choice was given."""
    pass


class LocalClockReading(NamedTuple):
    """Calendar fields with no timezone attached."""

    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int = 0

    @classmethod
    def from_datetime(cls, value: datetime) -> "LocalClockReading":
        return cls(value.year, value.month, value.day, value.hour, value.minute, value.second)

    def to_naive(self) -> datetime:
        return datetime(self.year, self.month, self.day, self.hour, self.minute, self.second)

    def date_str(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    def time_str(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


class OffsetProfile(NamedTuple):
    """UTC offsets observed by one zone during one year.

    Offsets are seconds east of UTC (the datetime.utcoffset() convention).
    """

    timezone: str
    year: int
    utc_offsets: tuple[int, ...]
    standard_offset: int
    dst_offset: int
    has_dst: bool


class ResolvedInstant(NamedTuple):
    """Outcome of resolving a local reading.

    offset_minutes follows the chart convention: minutes to ADD to local
    time to reach UTC (New York winter = 300, London summer = -60).
    """

    utc: datetime
    offset_minutes: int
    daylight_saving: bool
    utc_offset_seconds: int


def parse_local_reading(date_str: str, time_str: str) -> LocalClockReading:
    """Parse 'YYYY-MM-DD' and 'HH:MM' (or 'HH:MM:SS') into a LocalClockReading.

    Raises:
        ChartInputError: If either string is malformed or out of range.
    """
    try:
        day = datetime.strptime(str(date_str).strip(), "%Y-%m-%d")
    except ValueError:
        raise ChartInputError(
            f"Invalid date format: {date_str!r}. Expected YYYY-MM-DD."
        )
    if not MIN_YEAR <= day.year <= MAX_YEAR:
        raise ChartInputError(
            f"Year {day.year} is outside the supported range {MIN_YEAR}-{MAX_YEAR}."
        )

    text = str(time_str).strip()
    fmt = "%H:%M:%S" if text.count(":") == 2 else "%H:%M"
    try:
        clock = datetime.strptime(text, fmt)
    except ValueError:
        raise ChartInputError(
            f"Invalid time format: {time_str!r}. Expected HH:MM."
        )

    return LocalClockReading(day.year, day.month, day.day, clock.hour, clock.minute, clock.second)


def load_zone(timezone_name: str) -> ZoneInfo:
    """Return the ZoneInfo for an IANA id, raising ChartInputError if unknown."""
    try:
        return ZoneInfo(str(timezone_name))
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ChartInputError(f"Unknown timezone: {timezone_name!r}") from exc


def to_utc_millis(value: datetime) -> datetime:
    """Normalize an aware datetime to UTC at millisecond resolution."""
    utc = value.astimezone(timezone.utc)
    return utc.replace(microsecond=(utc.microsecond // 1000) * 1000)


def format_utc(value: datetime) -> str:
    """Format an instant as 'YYYY-MM-DDTHH:MM:SSZ' (milliseconds only when non-zero)."""
    utc = to_utc_millis(value)
    text = utc.strftime("%Y-%m-%dT%H:%M:%S")
    if utc.microsecond:
        text += f".{utc.microsecond // 1000:03d}"
    return text + "Z"


def parse_utc(value: str) -> datetime:
    """Parse an instant produced by format_utc() back into an aware datetime."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return to_utc_millis(parsed)


class TimeResolver:
    """Resolves local clock readings in IANA zones to UTC instants.

    Usage:
        resolver = TimeResolver()
        resolved = resolver.resolve("2024-01-15", "12:00", "America/New_York", "auto")
        resolved.offset_minutes  # 300

    Each instance owns its OffsetProfile cache, so tests and concurrent
    scans never share hidden state.
    """

    def __init__(self):
        self._profiles: dict[tuple[str, int], OffsetProfile] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def resolve(
        self,
        date_str: str,
        time_str: str,
        timezone_name: str,
        daylight_saving: DaylightSavingPreference = "auto",
    ) -> ResolvedInstant:
        """Resolve a local date/time in a zone to one UTC instant.

        Args:
            date_str: Local date, YYYY-MM-DD.
            time_str: Local time, HH:MM.
            timezone_name: IANA timezone id, e.g. "America/Sao_Paulo".
            daylight_saving: "auto", True or False.

        Raises:
            ChartInputError: Malformed date/time, unknown zone or preference.
            NonexistentLocalTimeError: Reading falls in a spring-forward gap.
            AmbiguousLocalTimeError: Reading repeats and preference is "auto".
        """
        reading = parse_local_reading(date_str, time_str)
        return self.resolve_reading(reading, timezone_name, daylight_saving)

    def resolve_reading(
        self,
        reading: LocalClockReading,
        timezone_name: str,
        daylight_saving: DaylightSavingPreference = "auto",
    ) -> ResolvedInstant:
        """Same as resolve() for an already parsed LocalClockReading."""
        if daylight_saving not in ("auto", True, False):
            raise ChartInputError(
                f"Invalid daylight_saving value: {daylight_saving!r}. Use 'auto', true or false."
            )

        zone = load_zone(timezone_name)
        profile = self.offset_profile(timezone_name, reading.year)
        candidates = self._candidates(reading, zone, profile)

        if not candidates:
            raise NonexistentLocalTimeError(
                f"Local time {reading.date_str()} {reading.time_str()} does not exist "
                f"in {timezone_name} (skipped by a daylight saving transition)."
            )

        if len(candidates) > 1 and daylight_saving == "auto":
            raise AmbiguousLocalTimeError(
                f"Local time {reading.date_str()} {reading.time_str()} is ambiguous "
                f"in {timezone_name}; set daylight_saving to true or false."
            )

        chosen = candidates[0]
        if daylight_saving != "auto":
            wanted = profile.dst_offset if daylight_saving else profile.standard_offset
            matching = [c for c in candidates if c[1] == wanted]
            if matching:
                chosen = matching[0]
            else:
                # Zone without seasonal DST (or the date sits in the other
                # season): keep the offset the zone naturally uses then.
                natural = [c for c in candidates if c[1] == self._offset_at(c[0], zone)]
                chosen = natural[0] if natural else candidates[0]

        utc, offset_seconds = chosen
        is_dst = profile.has_dst and offset_seconds == profile.dst_offset
        return ResolvedInstant(
            utc=utc,
            offset_minutes=int(round(-offset_seconds / 60)),
            daylight_saving=is_dst,
            utc_offset_seconds=offset_seconds,
        )

    def to_local(self, instant: datetime, timezone_name: str) -> LocalClockReading:
        """Project a UTC instant into the zone's local clock reading."""
        zone = load_zone(timezone_name)
        return LocalClockReading.from_datetime(instant.astimezone(zone))

    def offset_minutes_at(self, instant: datetime, timezone_name: str) -> int:
        """Chart-convention offset (UTC minus local, in minutes) at an instant."""
        zone = load_zone(timezone_name)
        return int(round(-self._offset_at(instant, zone) / 60))

    def is_dst_at(self, instant: datetime, timezone_name: str) -> bool:
        """True when the zone is on its seasonal DST offset at this instant."""
        zone = load_zone(timezone_name)
        local = instant.astimezone(zone)
        profile = self.offset_profile(timezone_name, local.year)
        return profile.has_dst and self._offset_at(instant, zone) == profile.dst_offset

    def offset_profile(self, timezone_name: str, year: int) -> OffsetProfile:
        """Return the (memoized) OffsetProfile for a zone and year."""
        key = (timezone_name, year)
        with self._lock:
            cached = self._profiles.get(key)
        if cached is not None:
            return cached

        profile = self._build_profile(timezone_name, year)
        with self._lock:
            # Another thread may have built the same profile meanwhile;
            # both are identical, keep the first.
            return self._profiles.setdefault(key, profile)

    # ------------------------------------------------------------------
    # Internal calculations
    # ------------------------------------------------------------------

    def _build_profile(self, timezone_name: str, year: int) -> OffsetProfile:
        zone = load_zone(timezone_name)
        start = datetime(year, 1, 1, tzinfo=timezone.utc) - timedelta(days=1)
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc) + timedelta(days=1)

        standard_counts: Counter = Counter()
        dst_counts: Counter = Counter()
        cursor = start
        while cursor < end:
            local = cursor.astimezone(zone)
            offset = int(local.utcoffset().total_seconds())
            if local.dst():
                dst_counts[offset] += 1
            else:
                standard_counts[offset] += 1
            cursor += _PROFILE_SAMPLE_STEP

        offsets = tuple(sorted(set(standard_counts) | set(dst_counts)))
        if standard_counts:
            standard = standard_counts.most_common(1)[0][0]
        else:
            standard = dst_counts.most_common(1)[0][0]

        has_dst = bool(dst_counts)
        dst = dst_counts.most_common(1)[0][0] if has_dst else standard
        if has_dst and dst < standard:
            # Negative-DST zones (e.g. Europe/Dublin) flag winter as "dst";
            # daylight saving is always the later (larger) offset.
            standard, dst = dst, standard

        profile = OffsetProfile(
            timezone=timezone_name,
            year=year,
            utc_offsets=offsets,
            standard_offset=standard,
            dst_offset=dst,
            has_dst=has_dst and dst != standard,
        )
        logger.debug("Built offset profile %s", profile)
        return profile

    def _candidates(
        self, reading: LocalClockReading, zone: ZoneInfo, profile: OffsetProfile
    ) -> list[tuple[datetime, int]]:
        """UTC instants (with their offsets) that reproduce the local reading."""
        naive = reading.to_naive()
        naive_utc = naive.replace(tzinfo=timezone.utc)

        offsets = set(profile.utc_offsets)
        offsets.add(self._offset_at(naive_utc, zone))

        found: dict[datetime, int] = {}
        for offset in sorted(offsets):
            candidate = naive_utc - timedelta(seconds=offset)
            projected = candidate.astimezone(zone)
            if LocalClockReading.from_datetime(projected) != reading:
                continue
            if int(projected.utcoffset().total_seconds()) != offset:
                continue
            found[candidate] = offset

        return sorted(found.items())

    @staticmethod
    def _offset_at(instant: datetime, zone: ZoneInfo) -> int:
        return int(instant.astimezone(zone).utcoffset().total_seconds())
