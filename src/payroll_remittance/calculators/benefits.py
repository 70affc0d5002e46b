"""Meal and transport allowance proration.

Benefits for month M are paid in advance, so they are sized on the business
days of month M + 1.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable

from payroll_remittance.calculators.money import round_to_cents
from payroll_remittance.calculators.types import BenefitTotals
from payroll_remittance.calculators.working_days import WorkingDaysCalculator, next_month


class BenefitsProrationEngine:
    """Prorates daily meal and transport rates over the next month."""

    def __init__(self, working_days: WorkingDaysCalculator | None = None):
        self.working_days = working_days or WorkingDaysCalculator()

    def next_month_business_days(
        self, month: int, year: int, next_month_holidays: Iterable[date] = ()
    ) -> int:
        target_month, target_year = next_month(month, year)
        return self.working_days.count_full_month(
            target_month, target_year, next_month_holidays
        )

    def prorate(
        self,
        daily_meal_rate: Decimal,
        daily_transport_rate: Decimal,
        business_days: int,
    ) -> BenefitTotals:
        return BenefitTotals(
            business_days=business_days,
            meal_total=round_to_cents(daily_meal_rate * business_days),
            transport_total=round_to_cents(daily_transport_rate * business_days),
        )
