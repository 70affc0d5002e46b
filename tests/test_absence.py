"""Tests for absence deduction and weekly rest-day loss."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from payroll_remittance.calculators.absence import (
    AbsenceAdjustmentEngine,
    is_protected_leave,
    week_start,
)
from payroll_remittance.calculators.types import AbsenceRecord, AttendanceFacts
from payroll_remittance.calculators.working_days import WorkingDaysCalculator

MARCH_2026 = WorkingDaysCalculator().business_dates(3, 2026)


def worked_all_but(*missing: date) -> AttendanceFacts:
    worked = frozenset(d for d in MARCH_2026 if d not in missing)
    return AttendanceFacts(clock_in_count=len(worked), clock_in_dates=worked)


class TestProtectedLeave:
    @pytest.mark.parametrize(
        "reason",
        ["Licença Maternidade", "licenca paternidade", "Acidente de trabalho", "ACCIDENT"],
    )
    def test_protected(self, reason):
        assert is_protected_leave(reason)

    @pytest.mark.parametrize("reason", [None, "", "Atestado medico", "Falta"])
    def test_not_protected(self, reason):
        assert not is_protected_leave(reason)


class TestWeekStart:
    def test_sunday_opens_the_week(self):
        assert week_start(date(2026, 3, 10)) == date(2026, 3, 8)
        assert week_start(date(2026, 3, 8)) == date(2026, 3, 8)
        assert week_start(date(2026, 3, 14)) == date(2026, 3, 8)


class TestDeductibleAbsences:
    """Absence count from clock-ins, protected leave and excused dates."""

    def test_exact_dates(self):
        engine = AbsenceAdjustmentEngine()
        count, dates = engine.deductible_absences(worked_all_but(date(2026, 3, 10)), MARCH_2026)
        assert count == 1
        assert dates == [date(2026, 3, 10)]

    def test_protected_leave_not_deductible(self):
        engine = AbsenceAdjustmentEngine()
        attendance = worked_all_but(date(2026, 3, 10))
        attendance.absence_records.append(
            AbsenceRecord(date(2026, 3, 10), "Licença maternidade")
        )
        assert engine.deductible_absences(attendance, MARCH_2026) == (0, [])

    def test_ordinary_justification_still_deductible(self):
        engine = AbsenceAdjustmentEngine()
        attendance = worked_all_but(date(2026, 3, 10))
        attendance.absence_records.append(AbsenceRecord(date(2026, 3, 10), "Falta"))
        count, _ = engine.deductible_absences(attendance, MARCH_2026)
        assert count == 1

    def test_excused_dates(self):
        engine = AbsenceAdjustmentEngine()
        vacation = [date(2026, 3, 16) + timedelta(days=i) for i in range(5)]
        count, dates = engine.deductible_absences(
            worked_all_but(*vacation), MARCH_2026, excused_dates=vacation
        )
        assert count == 0
        assert dates == []

    def test_count_only(self):
        engine = AbsenceAdjustmentEngine()
        attendance = AttendanceFacts(clock_in_count=20)
        assert engine.deductible_absences(attendance, MARCH_2026) == (2, None)

    def test_count_never_negative(self):
        engine = AbsenceAdjustmentEngine()
        attendance = AttendanceFacts(clock_in_count=30)
        assert engine.deductible_absences(attendance, MARCH_2026) == (0, None)


class TestDivisor:
    def test_hire_month_with_31_days(self):
        engine = AbsenceAdjustmentEngine()
        assert engine.divisor(3, 2026, date(2026, 3, 5)) == 31

    def test_hire_month_with_30_days(self):
        engine = AbsenceAdjustmentEngine()
        assert engine.divisor(4, 2026, date(2026, 4, 6)) == 30

    def test_not_hire_month(self):
        engine = AbsenceAdjustmentEngine()
        assert engine.divisor(3, 2026, date(2025, 3, 5)) == 30
        assert engine.divisor(3, 2026, None) == 30


class TestRestDayUnits:
    def test_same_week_counts_once(self):
        engine = AbsenceAdjustmentEngine()
        assert engine.rest_day_units([date(2026, 3, 10), date(2026, 3, 11)], []) == 1

    def test_two_weeks(self):
        engine = AbsenceAdjustmentEngine()
        assert engine.rest_day_units([date(2026, 3, 10), date(2026, 3, 17)], []) == 2

    def test_week_holiday_adds_a_unit(self):
        engine = AbsenceAdjustmentEngine()
        # Week of Sunday 2026-03-29 holds Sexta-feira Santa (04-03)
        assert engine.rest_day_units([date(2026, 4, 1)], [date(2026, 4, 3)]) == 2

    def test_holiday_in_other_week_ignored(self):
        engine = AbsenceAdjustmentEngine()
        assert engine.rest_day_units([date(2026, 4, 1)], [date(2026, 4, 21)]) == 1

    def test_sunday_holiday_ignored(self):
        engine = AbsenceAdjustmentEngine()
        assert engine.rest_day_units([date(2026, 3, 10)], [date(2026, 3, 8)]) == 1

    def test_no_absences(self):
        engine = AbsenceAdjustmentEngine()
        assert engine.rest_day_units([], [date(2026, 4, 3)]) == 0


class TestCompute:
    """Salary deduction and rest-day loss."""

    def test_one_absence(self):
        engine = AbsenceAdjustmentEngine()
        result = engine.compute(
            salary=Decimal("3000.00"),
            remuneration_base=Decimal("3000.00"),
            absence_count=1,
            absence_dates=[date(2026, 3, 10)],
            holidays=[],
            month=3,
            year=2026,
        )
        assert result.salary_deduction == Decimal("100.00")
        assert result.rest_day_units == 1
        assert result.rest_day_loss == Decimal("100.00")
        assert result.approximated is False

    def test_deduction_uses_remuneration_base_and_loss_uses_salary(self):
        engine = AbsenceAdjustmentEngine()
        result = engine.compute(
            salary=Decimal("3000.00"),
            remuneration_base=Decimal("3600.00"),
            absence_count=1,
            absence_dates=[date(2026, 3, 10)],
            holidays=[],
            month=3,
            year=2026,
        )
        assert result.salary_deduction == Decimal("120.00")
        assert result.rest_day_loss == Decimal("100.00")

    def test_hire_month_divisor(self):
        engine = AbsenceAdjustmentEngine()
        result = engine.compute(
            salary=Decimal("3100.00"),
            remuneration_base=Decimal("3100.00"),
            absence_count=1,
            absence_dates=[date(2026, 3, 10)],
            holidays=[],
            month=3,
            year=2026,
            active_since=date(2026, 3, 2),
        )
        assert result.divisor == 31
        assert result.salary_deduction == Decimal("100.00")

    def test_approximated_without_dates(self):
        engine = AbsenceAdjustmentEngine()
        result = engine.compute(
            salary=Decimal("3000.00"),
            remuneration_base=Decimal("3000.00"),
            absence_count=2,
            absence_dates=None,
            holidays=[date(2026, 4, 3), date(2026, 4, 21)],
            month=4,
            year=2026,
        )
        assert result.approximated is True
        assert result.rest_day_units == 4
        assert result.rest_day_loss == Decimal("400.00")
        assert result.salary_deduction == Decimal("200.00")

    def test_approximated_skips_sunday_holidays(self):
        engine = AbsenceAdjustmentEngine()
        result = engine.compute(
            salary=Decimal("3000.00"),
            remuneration_base=Decimal("3000.00"),
            absence_count=1,
            absence_dates=None,
            # Easter Sunday and Tiradentes (Tuesday)
            holidays=[date(2026, 4, 5), date(2026, 4, 21)],
            month=4,
            year=2026,
        )
        assert result.rest_day_units == 2
        assert result.rest_day_loss == Decimal("200.00")

    def test_untracked_employee_has_no_deduction(self):
        engine = AbsenceAdjustmentEngine()
        result = engine.compute(
            salary=Decimal("3000.00"),
            remuneration_base=Decimal("3000.00"),
            absence_count=3,
            absence_dates=None,
            holidays=[],
            month=3,
            year=2026,
            tracked=False,
        )
        assert result.absence_count == 3
        assert result.salary_deduction == Decimal("0")
        assert result.rest_day_loss == Decimal("0")

    def test_no_absences(self):
        engine = AbsenceAdjustmentEngine()
        result = engine.compute(
            salary=Decimal("3000.00"),
            remuneration_base=Decimal("3000.00"),
            absence_count=0,
            absence_dates=[],
            holidays=[date(2026, 4, 3)],
            month=4,
            year=2026,
        )
        assert result.salary_deduction == Decimal("0")
        assert result.rest_day_units == 0
