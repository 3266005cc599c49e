"""NSE session calendar: market hours, holidays, and the trading date.

Handles:
- NSE regular hours: 9:15 AM - 3:30 PM India Standard Time (IST)
- NSE holidays (2026 hardcoded)
- Special sessions held on weekends (Union Budget, Muhurat trading)

current_trading_date() is the single place that decides what "today" is.
Every calculation takes that date as an argument instead of reading the
clock itself.
"""

import logging
from datetime import datetime, date, time, timedelta, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

IST = ZoneInfo("Asia/Kolkata")

# NSE regular hours
MARKET_OPEN = time(9, 15)
MARKET_CLOSE = time(15, 30)

# NSE trading holidays 2026
HOLIDAYS_2026 = {
    date(2026, 1, 26),   # Republic Day
    date(2026, 3, 3),    # Holi
    date(2026, 3, 26),   # Shri Ram Navami
    date(2026, 3, 31),   # Shri Mahavir Jayanti
    date(2026, 4, 3),    # Good Friday
    date(2026, 4, 14),   # Dr. Ambedkar Jayanti
    date(2026, 5, 1),    # Maharashtra Day
    date(2026, 5, 28),   # Bakri Id
    date(2026, 6, 26),   # Muharram
    date(2026, 9, 14),   # Ganesh Chaturthi
    date(2026, 10, 2),   # Gandhi Jayanti
    date(2026, 10, 20),  # Dussehra
    date(2026, 11, 10),  # Diwali Balipratipada
    date(2026, 11, 24),  # Gurunanak Jayanti
    date(2026, 12, 25),  # Christmas
}

# Weekend sessions the exchange opens for
SPECIAL_TRADING_DAYS_2026 = {
    date(2026, 2, 1),    # Union Budget (Sunday)
    date(2026, 11, 8),   # Muhurat Trading (Sunday)
}


def to_zone(now: Optional[datetime] = None, tz: tzinfo = IST) -> datetime:
    """Normalize a datetime into the given zone (naive values are taken as local to it)."""
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def current_trading_date(now: Optional[datetime] = None, tz: tzinfo = IST) -> date:
    """Calendar date of the trading session that `now` falls in."""
    return to_zone(now, tz).date()


class SessionFilter:
    """Filter for NSE trading days and regular trading hours."""

    def __init__(self, holidays: Optional[set] = None,
                 special_days: Optional[set] = None, tz: tzinfo = IST):
        self.holidays = HOLIDAYS_2026 if holidays is None else holidays
        self.special_days = (
            SPECIAL_TRADING_DAYS_2026 if special_days is None else special_days
        )
        self.tz = tz

    def is_trading_day(self, check_date: date) -> bool:
        """Weekdays that are not holidays, plus any special session."""
        if check_date in self.special_days:
            return True
        if check_date.weekday() >= 5:  # Saturday=5, Sunday=6
            return False
        return check_date not in self.holidays

    def is_holiday(self, check_date: date) -> bool:
        return check_date in self.holidays

    def is_special_day(self, check_date: date) -> bool:
        return check_date in self.special_days

    def is_market_hours(self, now: datetime = None) -> bool:
        """Check if `now` is within NSE regular trading hours.

        Args:
            now: Optional datetime (defaults to current time in IST)

        Returns:
            True if the market is open for regular trading
        """
        now = to_zone(now, self.tz)
        if not self.is_trading_day(now.date()):
            return False
        return MARKET_OPEN <= now.time() <= MARKET_CLOSE

    def trading_days(self, start: date, end: date) -> list[date]:
        """All trading days in the inclusive range [start, end]."""
        days = []
        d = start
        while d <= end:
            if self.is_trading_day(d):
                days.append(d)
            d += timedelta(days=1)
        return days

    def next_trading_day(self, from_date: date) -> date:
        """First trading day strictly after from_date."""
        d = from_date + timedelta(days=1)
        for _ in range(15):  # Long holiday clusters never exceed this
            if self.is_trading_day(d):
                return d
            d += timedelta(days=1)
        logger.warning(f"No trading day found within 15 days of {from_date}")
        return d

    def next_session_open(self, now: datetime = None) -> datetime:
        """Opening bell of the next regular session at or after `now`.

        Returns `now` itself while the market is open.
        """
        now = to_zone(now, self.tz)
        if self.is_market_hours(now):
            return now
        day = now.date()
        if not (self.is_trading_day(day) and now.time() < MARKET_OPEN):
            day = self.next_trading_day(day)
        return datetime.combine(day, MARKET_OPEN, tzinfo=self.tz)
