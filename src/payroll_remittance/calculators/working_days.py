"""Business-day counting for a payroll month."""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Iterable


def days_in_month(month: int, year: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    return date(year, month, 1), date(year, month, days_in_month(month, year))


def next_month(month: int, year: int) -> tuple[int, int]:
    if month == 12:
        return 1, year + 1
    return month + 1, year


def is_weekday(day: date) -> bool:
    return day.weekday() < 5


class WorkingDaysCalculator:
    """Counts Monday-Friday dates in a month that are not holidays.

    Holidays are passed as calendar dates already normalized to the
    reference timezone.
    """

    def business_dates(
        self,
        month: int,
        year: int,
        holidays: Iterable[date] = (),
        start_from: date | None = None,
        today: date | None = None,
    ) -> list[date]:
        """Business dates of the month, capped by hire date and today.

        The range starts at ``start_from`` when it falls in the same month
        (hire month) and ends at ``today`` when the month is the current one.
        """
        first, last = month_bounds(month, year)

        start = first
        if start_from is not None and (start_from.year, start_from.month) == (year, month):
            start = start_from

        end = last
        if today is not None and (today.year, today.month) == (year, month):
            end = today

        if end < start:
            return []

        excluded = set(holidays)
        result: list[date] = []
        day = start
        while day <= end:
            if is_weekday(day) and day not in excluded:
                result.append(day)
            day += timedelta(days=1)
        return result

    def count_business_days(
        self,
        month: int,
        year: int,
        holidays: Iterable[date] = (),
        start_from: date | None = None,
        today: date | None = None,
    ) -> int:
        return len(self.business_dates(month, year, holidays, start_from, today))

    def count_full_month(self, month: int, year: int, holidays: Iterable[date] = ()) -> int:
        """Business days over the whole month, without hire or today capping."""
        return len(self.business_dates(month, year, holidays))
