"""Absence salary deduction and weekly rest-day (DSR) loss."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable

from payroll_remittance.calculators.money import ZERO, round_to_cents
from payroll_remittance.calculators.types import (
    AbsenceAdjustment,
    AttendanceFacts,
    fold_text,
)
from payroll_remittance.calculators.working_days import days_in_month

logger = logging.getLogger(__name__)

# Leave categories that never count as a fault
PROTECTED_LEAVE_TERMS = (
    "maternidade",
    "maternity",
    "paternidade",
    "paternity",
    "acidente",
    "accident",
)

DEFAULT_DIVISOR = 30
DSR_DIVISOR = Decimal("30")


def is_protected_leave(reason: str | None) -> bool:
    """True when an absence reason names a protected leave category."""
    if not reason:
        return False
    folded = fold_text(reason)
    return any(term in folded for term in PROTECTED_LEAVE_TERMS)


def week_start(day: date) -> date:
    """Sunday that opens the week containing ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


class AbsenceAdjustmentEngine:
    """Computes salary deduction and rest-day loss for unexcused absences."""

    def deductible_absences(
        self,
        attendance: AttendanceFacts,
        business_dates: list[date],
        excused_dates: Iterable[date] = (),
    ) -> tuple[int, list[date] | None]:
        """Count deductible absences and, when known, their dates.

        With exact clock-in dates, an absence is a business date with no
        clock-in that is not covered by protected leave. Without them, the
        count is business days minus clock-ins minus protected leave days and
        the dates are unknown. ``excused_dates`` (approved vacation days) are
        never deductible.
        """
        business = set(business_dates)
        protected = {
            record.date
            for record in attendance.absence_records
            if is_protected_leave(record.reason) and record.date in business
        }
        protected |= business & set(excused_dates)

        if attendance.clock_in_dates is not None:
            dates = [
                d
                for d in business_dates
                if d not in attendance.clock_in_dates and d not in protected
            ]
            return len(dates), dates

        count = len(business_dates) - attendance.clock_in_count - len(protected)
        return max(0, count), None

    def divisor(self, month: int, year: int, active_since: date | None) -> int:
        """30, or 31 for a hire-month that has 31 days."""
        hired_this_month = (
            active_since is not None
            and active_since.year == year
            and active_since.month == month
        )
        if hired_this_month and days_in_month(month, year) == 31:
            return 31
        return DEFAULT_DIVISOR

    def rest_day_units(
        self,
        absence_dates: Iterable[date],
        holidays: Iterable[date],
    ) -> int:
        """One unit per affected Sunday-start week plus its Mon-Sat holidays."""
        weeks = {week_start(d) for d in absence_dates}
        if not weeks:
            return 0

        holidays_by_week: dict[date, int] = {}
        for holiday in set(holidays):
            if holiday.weekday() == 6:
                continue
            key = week_start(holiday)
            holidays_by_week[key] = holidays_by_week.get(key, 0) + 1

        return sum(1 + holidays_by_week.get(week, 0) for week in weeks)

    def compute(
        self,
        *,
        salary: Decimal,
        remuneration_base: Decimal,
        absence_count: int,
        absence_dates: list[date] | None,
        holidays: Iterable[date],
        month: int,
        year: int,
        active_since: date | None = None,
        tracked: bool = True,
    ) -> AbsenceAdjustment:
        divisor = self.divisor(month, year, active_since)

        if not tracked or absence_count <= 0:
            return AbsenceAdjustment(
                absence_count=max(absence_count, 0),
                divisor=divisor,
                salary_deduction=ZERO,
                rest_day_units=0,
                rest_day_loss=ZERO,
            )

        holiday_list = list(holidays)
        deduction = remuneration_base / divisor * absence_count

        approximated = absence_dates is None
        if approximated:
            # Each absence treated as its own week; Sunday holidays are already rest days
            weekday_holidays = {d for d in holiday_list if d.weekday() != 6}
            units = absence_count + len(weekday_holidays)
            logger.debug(
                "Rest-day loss approximated for %02d/%d: %d absences, %d holidays",
                month,
                year,
                absence_count,
                len(weekday_holidays),
            )
        else:
            units = self.rest_day_units(absence_dates, holiday_list)

        loss = salary / DSR_DIVISOR * units

        return AbsenceAdjustment(
            absence_count=absence_count,
            divisor=divisor,
            salary_deduction=round_to_cents(deduction),
            rest_day_units=units,
            rest_day_loss=round_to_cents(loss),
            approximated=approximated,
        )
