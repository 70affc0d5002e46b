"""Incremental INSS attributable to vacation days taken in the month."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable

from payroll_remittance.calculators.money import ZERO, non_negative, round_to_cents
from payroll_remittance.calculators.tax_calculator import TaxCalculator
from payroll_remittance.calculators.types import (
    VacationContribution,
    VacationPeriod,
    VacationStatus,
)

VACATION_BONUS = Decimal("1") / Decimal("3")


def overlap_days(period: VacationPeriod, start: date, end: date) -> int:
    """Inclusive day count of the intersection of a vacation with [start, end]."""
    first = max(period.start, start)
    last = min(period.end, end)
    if last < first:
        return 0
    return (last - first).days + 1


def vacation_dates(periods: Iterable[VacationPeriod], start: date, end: date) -> set[date]:
    """Calendar dates inside [start, end] covered by approved vacations."""
    dates: set[date] = set()
    for period in periods:
        if period.status != VacationStatus.APPROVED:
            continue
        day = max(period.start, start)
        while day <= min(period.end, end):
            dates.add(day)
            day += timedelta(days=1)
    return dates


class VacationContributionEngine:
    """Vacation days, vacation base with the 1/3 bonus, and its INSS."""

    def __init__(self, tax_calculator: TaxCalculator | None = None):
        self.tax_calculator = tax_calculator or TaxCalculator()

    def vacation_days(self, periods: Iterable[VacationPeriod], start: date, end: date) -> int:
        return sum(
            overlap_days(p, start, end)
            for p in periods
            if p.status == VacationStatus.APPROVED
        )

    def compute(
        self,
        periods: Iterable[VacationPeriod],
        start: date,
        end: date,
        remuneration_base: Decimal,
        ordinary_base: Decimal,
        accrues_contributions: bool = True,
    ) -> VacationContribution:
        if not accrues_contributions:
            return VacationContribution(vacation_days=0, base=ZERO, contribution=ZERO)

        days = self.vacation_days(periods, start, end)
        if days == 0:
            return VacationContribution(vacation_days=0, base=ZERO, contribution=ZERO)

        salary_slice = remuneration_base * days / 30
        base = round_to_cents(salary_slice * (1 + VACATION_BONUS))

        calc = self.tax_calculator
        contribution = non_negative(
            calc.inss(ordinary_base + base) - calc.inss(ordinary_base)
        )

        return VacationContribution(vacation_days=days, base=base, contribution=contribution)
