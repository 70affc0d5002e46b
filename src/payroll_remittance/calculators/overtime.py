"""Overtime valuation from a pre-computed monthly hours summary."""

from __future__ import annotations

from decimal import Decimal

from payroll_remittance.calculators.money import ZERO, round_to_cents
from payroll_remittance.calculators.types import OvertimeProjection, OvertimeSummary

MONTHLY_HOURS = Decimal("220")
RATE_50 = Decimal("1.5")
RATE_100 = Decimal("2")


class OvertimeProjector:
    """Values overtime hours at 50% and 100% plus the rest-day reflex."""

    def __init__(self, monthly_hours: Decimal = MONTHLY_HOURS):
        self.monthly_hours = monthly_hours

    def hourly_rate(self, remuneration_base: Decimal) -> Decimal:
        return remuneration_base / self.monthly_hours

    def project(
        self,
        summary: OvertimeSummary | None,
        remuneration_base: Decimal,
        business_days: int,
        days_in_month: int,
    ) -> OvertimeProjection:
        summary = summary or OvertimeSummary()
        rate = self.hourly_rate(remuneration_base)

        value_50 = summary.hours_50 * RATE_50 * rate
        value_100 = summary.hours_100 * RATE_100 * rate
        rest_value = self.rest_value(value_50 + value_100, business_days, days_in_month)

        return OvertimeProjection(
            hours_50=summary.hours_50,
            value_50=round_to_cents(value_50),
            hours_100=summary.hours_100,
            value_100=round_to_cents(value_100),
            hourly_rate=round_to_cents(rate),
            rest_value=round_to_cents(rest_value),
        )

    @staticmethod
    def rest_value(overtime_value: Decimal, business_days: int, days_in_month: int) -> Decimal:
        """Overtime / business days x non-business days; 0 without business days."""
        if business_days <= 0:
            return ZERO
        return overtime_value / business_days * (days_in_month - business_days)
