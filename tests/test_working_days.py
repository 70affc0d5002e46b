"""Tests for business-day counting."""

from datetime import date

from payroll_remittance.calculators.holiday_calendar import holiday_dates, national_holidays
from payroll_remittance.calculators.working_days import (
    WorkingDaysCalculator,
    days_in_month,
    month_bounds,
    next_month,
)


class TestCalendarHelpers:
    def test_days_in_month(self):
        assert days_in_month(2, 2026) == 28
        assert days_in_month(2, 2028) == 29
        assert days_in_month(3, 2026) == 31

    def test_month_bounds(self):
        assert month_bounds(4, 2026) == (date(2026, 4, 1), date(2026, 4, 30))

    def test_next_month_wraps_year(self):
        assert next_month(12, 2026) == (1, 2027)
        assert next_month(3, 2026) == (4, 2026)


class TestBusinessDates:
    """Monday-Friday dates minus holidays, capped by hire date and today."""

    def test_full_month_without_holidays(self):
        calc = WorkingDaysCalculator()
        assert calc.count_business_days(3, 2026) == 22

    def test_national_holidays_removed(self):
        calc = WorkingDaysCalculator()
        holidays = holiday_dates(national_holidays(2026))
        # Sexta-feira Santa (04-03) and Tiradentes (04-21)
        assert calc.count_full_month(4, 2026, holidays) == 20
        # Carnaval (02-17)
        assert calc.count_full_month(2, 2026, holidays) == 19

    def test_weekend_holiday_changes_nothing(self):
        calc = WorkingDaysCalculator()
        assert calc.count_full_month(3, 2026, [date(2026, 3, 1)]) == 22

    def test_capped_at_hire_date(self):
        calc = WorkingDaysCalculator()
        dates = calc.business_dates(3, 2026, start_from=date(2026, 3, 16))
        assert dates[0] == date(2026, 3, 16)
        assert len(dates) == 12

    def test_hire_date_in_earlier_month_ignored(self):
        calc = WorkingDaysCalculator()
        assert calc.count_business_days(3, 2026, start_from=date(2025, 7, 1)) == 22

    def test_current_month_capped_at_today(self):
        calc = WorkingDaysCalculator()
        dates = calc.business_dates(3, 2026, today=date(2026, 3, 10))
        assert dates[-1] == date(2026, 3, 10)
        assert len(dates) == 7

    def test_today_in_other_month_ignored(self):
        calc = WorkingDaysCalculator()
        assert calc.count_business_days(3, 2026, today=date(2026, 10, 19)) == 22

    def test_hire_after_today_gives_empty_range(self):
        calc = WorkingDaysCalculator()
        dates = calc.business_dates(
            3, 2026, start_from=date(2026, 3, 20), today=date(2026, 3, 10)
        )
        assert dates == []
