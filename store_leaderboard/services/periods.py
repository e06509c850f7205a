"""Period tokens and the date windows they stand for.

Weeks start on Monday. Bounds are inclusive on both ends, so a window ends on
the last microsecond of its final day.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from store_leaderboard.services.errors import DateRangeError, InvalidPeriodError

VALID_PERIODS: tuple[str, ...] = (
    "today",
    "this_week",
    "this_month",
    "last_month",
    "this_year",
    "all_time",
)

# Older clients send the literal string "null" for an unbounded period.
_ALL_TIME_TOKENS = {"all_time", "null"}


@dataclass(frozen=True)
class PeriodWindow:
    start: datetime | None = None
    end: datetime | None = None

    @property
    def is_bounded(self) -> bool:
        return self.start is not None and self.end is not None

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True

    def as_date_range(self) -> dict[str, str | None]:
        return {
            "from": self.start.date().isoformat() if self.start else None,
            "to": self.end.date().isoformat() if self.end else None,
        }


ALL_TIME = PeriodWindow()


def resolve_window(period: str, now: datetime) -> PeriodWindow:
    """Translate a period token into a window around ``now``.

    Raises InvalidPeriodError for anything outside VALID_PERIODS.
    """
    if period in _ALL_TIME_TOKENS:
        return ALL_TIME
    if period == "today":
        return _day_window(now)
    if period == "this_week":
        return _week_window(now)
    if period == "this_month":
        return _month_window(now.year, now.month, now)
    if period == "last_month":
        year, month = _shift_month(now.year, now.month, -1)
        return _month_window(year, month, now)
    if period == "this_year":
        return _year_window(now.year, now)
    raise InvalidPeriodError(period, VALID_PERIODS)


def previous_window(period: str, now: datetime) -> PeriodWindow | None:
    """The window one period before ``resolve_window(period, now)``.

    Returns None for all-time, which has nothing to compare against, and when
    the earlier window would fall before the first representable date.
    """
    if period in _ALL_TIME_TOKENS:
        return None
    if period not in VALID_PERIODS:
        raise InvalidPeriodError(period, VALID_PERIODS)
    try:
        return _previous_window(period, now)
    except (OverflowError, ValueError):
        return None


def _previous_window(period: str, now: datetime) -> PeriodWindow:
    if period == "today":
        return _day_window(now - timedelta(days=1))
    if period == "this_week":
        return _week_window(now - timedelta(days=7))
    if period == "this_month":
        year, month = _shift_month(now.year, now.month, -1)
        return _month_window(year, month, now)
    if period == "last_month":
        year, month = _shift_month(now.year, now.month, -2)
        return _month_window(year, month, now)
    if period == "this_year":
        return _year_window(now.year - 1, now)
    raise InvalidPeriodError(period, VALID_PERIODS)


def preceding_window(window: PeriodWindow) -> PeriodWindow | None:
    """An equally long window ending just before ``window`` starts.

    None when ``window`` is unbounded or the earlier window would start before
    the first representable date.
    """
    if not window.is_bounded:
        return None
    length = window.end - window.start
    try:
        end = window.start - timedelta(microseconds=1)
        return PeriodWindow(end - length, end)
    except OverflowError:
        return None


def window_from_request(
    period: str | None,
    date_from: str | None,
    date_to: str | None,
    now: datetime,
    *,
    default_days: int = 30,
) -> PeriodWindow:
    """Pick the window for a request.

    A period token wins. Without one, ``date_from``/``date_to`` are used as
    inclusive bounds; a bare ``YYYY-MM-DD`` upper bound covers that whole day.
    Missing bounds default to the last ``default_days`` days ending today.
    """
    if period:
        return resolve_window(period, now)

    start = (
        _parse_bound(date_from, "date_from", now, end_of_day=False)
        if date_from
        else _start_of_day(now - timedelta(days=default_days))
    )
    end = _parse_bound(date_to, "date_to", now, end_of_day=True) if date_to else _end_of_day(now)
    if start > end:
        raise DateRangeError("date_from must not be after date_to")
    return PeriodWindow(start, end)


def percentage_change(current: float, previous: float) -> float:
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 1)


def _parse_bound(raw: str, name: str, now: datetime, *, end_of_day: bool) -> datetime:
    raw = raw.strip()
    try:
        if len(raw) == 10:
            day = date.fromisoformat(raw)
            moment = datetime(day.year, day.month, day.day, tzinfo=now.tzinfo)
            return _end_of_day(moment) if end_of_day else moment
        moment = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise DateRangeError(f"{name} must be an ISO date (YYYY-MM-DD) or datetime") from exc
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=now.tzinfo)
    return moment


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _end_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=23, minute=59, second=59, microsecond=999999)


def _day_window(moment: datetime) -> PeriodWindow:
    return PeriodWindow(_start_of_day(moment), _end_of_day(moment))


def _week_window(moment: datetime) -> PeriodWindow:
    monday = _start_of_day(moment - timedelta(days=moment.weekday()))
    return PeriodWindow(monday, _end_of_day(monday + timedelta(days=6)))


def _month_window(year: int, month: int, now: datetime) -> PeriodWindow:
    start = datetime(year, month, 1, tzinfo=now.tzinfo)
    next_year, next_month = _shift_month(year, month, 1)
    end = datetime(next_year, next_month, 1, tzinfo=now.tzinfo) - timedelta(microseconds=1)
    return PeriodWindow(start, end)


def _year_window(year: int, now: datetime) -> PeriodWindow:
    return PeriodWindow(
        datetime(year, 1, 1, tzinfo=now.tzinfo),
        datetime(year, 12, 31, 23, 59, 59, 999999, tzinfo=now.tzinfo),
    )


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1
