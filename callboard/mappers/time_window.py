"""Pure functions turning a timeframe selector into a query window.

No I/O, no side effects. All day boundaries are computed on wall-clock
dates in the business timezone, then converted to UTC instants.
"""

import calendar
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from callboard.exceptions.custom import InvalidRangeError
from callboard.schemas.timeframe import Timeframe, TimeframeSelector, TimeWindow

DEFAULT_BUSINESS_TIMEZONE = "America/New_York"


def get_timezone(name: str | None) -> ZoneInfo:
    """Return ZoneInfo for an IANA name. Falls back to the default business zone."""
    if not name:
        return ZoneInfo(DEFAULT_BUSINESS_TIMEZONE)
    return ZoneInfo(name.strip())


def start_of_day(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


def end_of_day(day: date, tz: ZoneInfo) -> datetime:
    """Last representable instant of *day*, not midnight of the next day."""
    return datetime.combine(day, time.max, tzinfo=tz).astimezone(timezone.utc)


def local_today(tz: ZoneInfo, now: datetime | None = None) -> date:
    if now is None:
        now = datetime.now(timezone.utc)
    return now.astimezone(tz).date()


def day_window(first: date, last: date, tz: ZoneInfo) -> TimeWindow:
    return TimeWindow(start=start_of_day(first, tz), end=end_of_day(last, tz))


def week_bounds(day: date) -> tuple[date, date]:
    """Monday..Sunday containing *day*."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def month_bounds(day: date) -> tuple[date, date]:
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def resolve(
    selector: TimeframeSelector, tz: ZoneInfo, now: datetime | None = None
) -> TimeWindow:
    """Resolve *selector* to an inclusive window in *tz*.

    "today" resolved twice on the same local calendar day returns identical
    bounds, since only the local date of *now* is used.

    Raises InvalidRangeError for a custom range with a missing bound or with
    its start day after its end day.
    """
    if selector.timeframe == Timeframe.custom:
        return resolve_custom(selector.start_date, selector.end_date, tz)

    today = local_today(tz, now)

    if selector.timeframe == Timeframe.today:
        return day_window(today, today, tz)
    if selector.timeframe == Timeframe.week:
        return day_window(*week_bounds(today), tz)
    if selector.timeframe == Timeframe.month:
        return day_window(*month_bounds(today), tz)

    raise InvalidRangeError(f"Unknown timeframe: {selector.timeframe!r}")


def resolve_custom(start: date | None, end: date | None, tz: ZoneInfo) -> TimeWindow:
    if start is None:
        raise InvalidRangeError("Custom range is missing its start date")
    if end is None:
        raise InvalidRangeError("Custom range is missing its end date")

    # Datetimes are normalized to their calendar day before comparing.
    if isinstance(start, datetime):
        start = start.date()
    if isinstance(end, datetime):
        end = end.date()

    if start > end:
        raise InvalidRangeError(
            f"Custom range start {start.isoformat()} is after end {end.isoformat()}"
        )
    return day_window(start, end, tz)
