"""
Hotel-local civil time

Every time-sensitive decision takes an explicit instant and an explicit
hotel timezone; nothing here reads the process's local clock except
utc_now(), which is the injectable default.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.config import settings

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Default clock: aware UTC instant"""
    return datetime.now(timezone.utc)


def get_clock():
    """FastAPI dependency returning the clock callable (overridden in tests)"""
    return utc_now


def resolve_zone(name: Optional[str]) -> ZoneInfo:
    """IANA zone for a hotel, falling back to the configured default"""
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown hotel timezone '{name}', using {settings.DEFAULT_HOTEL_TIMEZONE}")
    return ZoneInfo(settings.DEFAULT_HOTEL_TIMEZONE)


@dataclass(frozen=True)
class HotelLocalTime:
    """An instant expressed in a hotel's civil time"""
    local: datetime

    @property
    def local_date(self) -> date:
        return self.local.date()

    @property
    def local_time(self) -> time:
        return self.local.time().replace(tzinfo=None)

    @property
    def weekday(self) -> int:
        """0=Sunday ... 6=Saturday"""
        return sunday_based_weekday(self.local.date())


def sunday_based_weekday(d: date) -> int:
    """Python counts Monday=0; promotions count Sunday=0"""
    return (d.weekday() + 1) % 7


def to_hotel_local(now: datetime, hotel_timezone: Union[str, ZoneInfo, None]) -> HotelLocalTime:
    """
    Convert an instant to hotel-local civil time.

    Naive datetimes are taken to be UTC.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    zone = hotel_timezone if isinstance(hotel_timezone, ZoneInfo) else resolve_zone(hotel_timezone)
    return HotelLocalTime(local=now.astimezone(zone))


def naive_utc(now: datetime) -> datetime:
    """Instant as naive UTC, the form timestamps are stored in"""
    if now.tzinfo is None:
        return now
    return now.astimezone(timezone.utc).replace(tzinfo=None)


def local_day_start_utc(day: date, hotel_timezone: Union[str, ZoneInfo, None]) -> datetime:
    """Stored (naive UTC) instant at which a hotel-local calendar day begins"""
    zone = hotel_timezone if isinstance(hotel_timezone, ZoneInfo) else resolve_zone(hotel_timezone)
    return naive_utc(datetime.combine(day, time.min, tzinfo=zone))
