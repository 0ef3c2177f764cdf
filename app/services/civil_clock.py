from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.config import Settings, get_settings

CIVIL_DATE_FORMAT = "%Y-%m-%d"
CIVIL_TIME_FORMAT = "%H:%M"


class CivilClock:
    """Reads the current instant and renders instants in the booking timezone.

    Bookings are keyed by civil date and time-of-day labels (``YYYY-MM-DD`` and
    ``HH:mm``) in one fixed timezone. All conversions go through ``tzinfo``
    objects; no offsets are added to UTC instants by hand.
    """

    def __init__(
        self,
        civil_timezone: tzinfo,
        now_provider: Callable[[], datetime] | None = None,
    ) -> None:
        self.civil_timezone = civil_timezone
        self._now_provider = now_provider or (lambda: datetime.now(UTC))

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        now_provider: Callable[[], datetime] | None = None,
    ) -> CivilClock:
        resolved_settings = settings or get_settings()
        civil_timezone = resolve_civil_timezone(
            resolved_settings.booking_timezone,
            fallback_offset_minutes=resolved_settings.booking_utc_offset_minutes,
        )
        return cls(civil_timezone, now_provider=now_provider)

    def now(self) -> datetime:
        return self.to_civil(self._now_provider())

    def to_civil(self, instant: datetime) -> datetime:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        return instant.astimezone(self.civil_timezone)

    def civil_date(self, instant: datetime) -> str:
        return self.to_civil(instant).strftime(CIVIL_DATE_FORMAT)

    def civil_time_of_day(self, instant: datetime) -> str:
        return self.to_civil(instant).strftime(CIVIL_TIME_FORMAT)

    def minutes_of_day(self, instant: datetime) -> int:
        civil_instant = self.to_civil(instant)
        return civil_instant.hour * 60 + civil_instant.minute

    def compose(self, date_value: str, time_value: str) -> datetime:
        """Return the aware instant for a civil date and ``HH:mm`` label.

        Raises ``ValueError`` when either part is malformed.
        """
        parsed_date = parse_civil_date(date_value)
        parsed_time = parse_time_label(time_value)
        return datetime.combine(parsed_date, parsed_time, tzinfo=self.civil_timezone)


def day_of_week(value: date) -> int:
    """0 is Sunday, 6 is Saturday."""
    return value.isoweekday() % 7


def is_business_day(value: date) -> bool:
    return day_of_week(value) not in {0, 6}


def parse_civil_date(value: str) -> date:
    cleaned = value.strip()
    parsed_date = datetime.strptime(cleaned, CIVIL_DATE_FORMAT).date()
    # strptime also accepts unpadded fields such as 2024-1-4.
    if parsed_date.strftime(CIVIL_DATE_FORMAT) != cleaned:
        raise ValueError(f"date must be formatted as YYYY-MM-DD: {value!r}")
    return parsed_date


def parse_time_label(value: str) -> time:
    cleaned = value.strip()
    parsed_time = datetime.strptime(cleaned, CIVIL_TIME_FORMAT).time()
    if parsed_time.strftime(CIVIL_TIME_FORMAT) != cleaned:
        raise ValueError(f"time must be formatted as HH:mm: {value!r}")
    return parsed_time


def time_label_to_minutes(value: str) -> int:
    parsed_time = parse_time_label(value)
    return parsed_time.hour * 60 + parsed_time.minute


def resolve_civil_timezone(timezone_name: str, *, fallback_offset_minutes: int = 0) -> tzinfo:
    cleaned = timezone_name.strip()
    if cleaned.upper() in {"UTC", "GMT"}:
        return UTC
    if cleaned:
        try:
            return ZoneInfo(cleaned)
        except ZoneInfoNotFoundError:
            pass
    return timezone(timedelta(minutes=fallback_offset_minutes))
