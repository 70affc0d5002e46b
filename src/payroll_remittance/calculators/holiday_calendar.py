"""Brazilian holiday calendar.

National holidays from the ``holidays`` package, Easter-based optional feasts,
and expansion of recurring registry rows onto the years of a date range.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable
from zoneinfo import ZoneInfo

import holidays as holiday_tables
from dateutil.easter import easter

from payroll_remittance.calculators.types import Holiday, HolidayType

DEFAULT_TIMEZONE = ZoneInfo("America/Sao_Paulo")


def to_reference_date(value: date | datetime, tz: ZoneInfo = DEFAULT_TIMEZONE) -> date:
    """Normalize a date or datetime to a calendar day in the reference zone.

    Naive datetimes are taken as UTC, the way timestamps come out of storage.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=ZoneInfo("UTC"))
        return value.astimezone(tz).date()
    return value


def easter_sunday(year: int) -> date:
    return easter(year)


def carnival(year: int) -> date:
    return easter_sunday(year) - timedelta(days=47)


def good_friday(year: int) -> date:
    return easter_sunday(year) - timedelta(days=2)


def corpus_christi(year: int) -> date:
    return easter_sunday(year) + timedelta(days=60)


def national_holidays(year: int, state: str | None = None) -> list[Holiday]:
    """Public holidays for a year, sorted by date.

    With ``state`` (a UF code such as ``"SP"``) the state's own public
    holidays are included and tagged STATE. Carnival and Corpus Christi are
    appended as OPTIONAL when the public table does not already hold them.
    """
    national = holiday_tables.country_holidays("BR", years=year)
    result = {
        day: Holiday(date=day, name=name, type=HolidayType.NATIONAL)
        for day, name in national.items()
    }
    if state:
        regional = holiday_tables.country_holidays("BR", subdiv=state, years=year)
        for day, name in regional.items():
            if day not in result:
                result[day] = Holiday(date=day, name=name, type=HolidayType.STATE, state=state)
    for day, name in ((carnival(year), "Carnaval"), (corpus_christi(year), "Corpus Christi")):
        result.setdefault(day, Holiday(date=day, name=name, type=HolidayType.OPTIONAL))
    return [result[d] for d in sorted(result)]


def _project(holiday: Holiday, year: int) -> date | None:
    try:
        return holiday.date.replace(year=year)
    except ValueError:
        # Feb 29 outside a leap year
        return None


def _state_matches(holiday: Holiday, state: str | None) -> bool:
    return state is None or holiday.state is None or holiday.state == state


def expand_holidays(
    holidays: Iterable[Holiday],
    start: date,
    end: date,
    state: str | None = None,
) -> list[Holiday]:
    """Active holidays falling within [start, end].

    Fixed rows are kept when their date is in range. Recurring rows are
    projected onto every year of the range; a projection is skipped when a
    fixed row already holds that date.
    """
    candidates = [h for h in holidays if h.is_active and _state_matches(h, state)]

    result: dict[date, Holiday] = {}
    for holiday in candidates:
        if not holiday.is_recurring and start <= holiday.date <= end:
            result.setdefault(holiday.date, holiday)

    for holiday in candidates:
        if not holiday.is_recurring:
            continue
        for year in range(start.year, end.year + 1):
            projected = _project(holiday, year)
            if projected is None or not start <= projected <= end:
                continue
            if projected in result:
                continue
            result[projected] = Holiday(
                date=projected,
                name=holiday.name,
                type=holiday.type,
                is_recurring=False,
                state=holiday.state,
            )

    return [result[d] for d in sorted(result)]


def holiday_dates(holidays: Iterable[Holiday]) -> frozenset[date]:
    """Set of calendar dates held by active holidays."""
    return frozenset(h.date for h in holidays if h.is_active)
