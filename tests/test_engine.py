"""Tests for PayrollAggregator.

Runs the full per-employee pipeline over in-memory repositories with the
wall clock pinned to 2026-10-19.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal

import pytest
from zoneinfo import ZoneInfo

from payroll_remittance.calculators.engine import PayrollAggregator, final_allocation
from payroll_remittance.calculators.holiday_calendar import national_holidays
from payroll_remittance.calculators.types import (
    AttendanceFacts,
    ManualOverride,
    Modality,
    OvertimeSummary,
    SalaryAdjustment,
    SalaryDiscount,
    VacationPeriod,
)
from payroll_remittance.calculators.working_days import WorkingDaysCalculator
from payroll_remittance.repositories.memory import build_memory_repositories
from payroll_remittance.schemas import PayrollFilters


def attendance(month: int, year: int, *missing: date, holidays=(), cost_centers=()) -> AttendanceFacts:
    """Clock-ins on every business day except ``missing``."""
    business = WorkingDaysCalculator().business_dates(month, year, holidays)
    worked = frozenset(d for d in business if d not in missing)
    return AttendanceFacts(
        clock_in_count=len(worked),
        clock_in_dates=worked,
        cost_centers=list(cost_centers),
    )


MARCH = PayrollFilters(month=3, year=2026)


class TestFinalAllocation:
    def test_most_frequent_cost_center(self, make_profile):
        facts = AttendanceFacts(cost_centers=["OBRA-1", "OBRA-2", "OBRA-2", ""])
        assert final_allocation(facts, make_profile()) == "OBRA-2"

    def test_falls_back_to_registration(self, make_profile):
        assert final_allocation(AttendanceFacts(), make_profile(cost_center="ADM")) == "ADM"


@pytest.mark.asyncio
class TestEmployeePipeline:
    """Single-employee results through the aggregator."""

    async def test_one_absence(self, settings, clock, make_profile, repositories):
        profile = make_profile(daily_meal_rate=Decimal("33.40"))
        repositories.employees.add(profile)
        repositories.attendance.set(profile.id, 3, 2026, attendance(3, 2026, date(2026, 3, 10)))

        records = await PayrollAggregator(repositories, settings, clock=clock).compute(MARCH)

        assert len(records) == 1
        record = records[0]
        assert record.business_days == 22
        assert record.days_worked == 21
        assert record.absence_count == 1
        assert record.absence_deduction == Decimal("100.00")
        assert record.rest_day_units == 1
        assert record.rest_day_loss == Decimal("100.00")
        assert record.inss_base == Decimal("2800.00")
        assert record.inss_ordinary == Decimal("227.69")
        assert record.total_contribution == Decimal("227.69")
        assert record.fgts == Decimal("224.00")
        assert record.irrf_total == Decimal("0")
        assert record.total_meal_allowance == Decimal("734.80")
        assert record.net_amount == Decimal("1837.51")

    async def test_income_tax_withheld(self, settings, clock, make_profile, repositories):
        profile = make_profile(salary=Decimal("8000.00"))
        repositories.employees.add(profile)
        repositories.attendance.set(profile.id, 3, 2026, attendance(3, 2026))

        record = (await PayrollAggregator(repositories, settings, clock=clock).compute(MARCH))[0]

        assert record.inss_ordinary == Decimal("921.51")
        assert record.irrf_base == Decimal("7392.80")
        assert record.irrf_ordinary == Decimal("179.46")
        assert record.net_amount == Decimal("6899.03")

    async def test_rest_day_week_crosses_month_end(self, settings, clock, make_profile):
        """An absence on 03-31 shares its week with Sexta-feira Santa (04-03)."""
        repositories = build_memory_repositories(holidays=national_holidays(2026))
        profile = make_profile()
        repositories.employees.add(profile)
        repositories.attendance.set(profile.id, 3, 2026, attendance(3, 2026, date(2026, 3, 31)))

        record = (await PayrollAggregator(repositories, settings, clock=clock).compute(MARCH))[0]

        assert record.rest_day_units == 2
        assert record.rest_day_loss == Decimal("200.00")

    async def test_benefits_use_next_month_holidays(self, settings, clock, make_profile):
        repositories = build_memory_repositories(holidays=national_holidays(2026))
        profile = make_profile(daily_meal_rate=Decimal("33.40"))
        repositories.employees.add(profile)
        repositories.attendance.set(profile.id, 3, 2026, attendance(3, 2026))

        record = (await PayrollAggregator(repositories, settings, clock=clock).compute(MARCH))[0]

        # April 2026 has 20 business days after 04-03 and 04-21
        assert record.total_meal_allowance == Decimal("668.00")

    async def test_vacation_days_are_not_absences(self, settings, clock, make_profile, repositories):
        profile = make_profile()
        repositories.employees.add(profile)
        vacation = VacationPeriod(date(2026, 3, 16), date(2026, 3, 25))
        repositories.vacations.add(profile.id, vacation)
        on_vacation = [d for d in WorkingDaysCalculator().business_dates(3, 2026) if vacation.start <= d <= vacation.end]
        repositories.attendance.set(profile.id, 3, 2026, attendance(3, 2026, *on_vacation))

        record = (await PayrollAggregator(repositories, settings, clock=clock).compute(MARCH))[0]

        assert record.absence_count == 0
        assert record.vacation_days == 10
        assert record.vacation_inss_base == Decimal("1333.33")
        assert record.vacation_inss == Decimal("160.00")
        assert record.inss_ordinary == Decimal("248.60")
        assert record.total_contribution == Decimal("1741.93")
        assert record.fgts_vacation == Decimal("106.67")
        assert record.net_amount == Decimal("2591.40")

    async def test_vacation_income_tax_on_full_base(self, settings, clock, make_profile, repositories):
        """Vacation IRRF runs the table over ordinary gross plus the vacation base."""
        profile = make_profile(salary=Decimal("9000.00"))
        repositories.employees.add(profile)
        repositories.vacations.add(profile.id, VacationPeriod(date(2026, 3, 1), date(2026, 3, 30)))
        repositories.attendance.set(profile.id, 3, 2026, attendance(3, 2026))

        record = (await PayrollAggregator(repositories, settings, clock=clock).compute(MARCH))[0]

        assert record.irrf_base == Decimal("8392.80")
        assert record.irrf_ordinary == Decimal("321.42")
        assert record.vacation_inss_base == Decimal("12000.00")
        assert record.vacation_inss == Decimal("0")
        assert record.irrf_vacation_base == Decimal("20392.80")
        assert record.irrf_vacation == Decimal("3295.52")
        assert record.irrf_total == Decimal("3616.94")
        assert record.net_amount == Decimal("4394.97")

    async def test_net_credits_transport_and_charges_meal(self, settings, clock, make_profile, repositories):
        profile = make_profile(
            daily_meal_rate=Decimal("33.40"), daily_transport_rate=Decimal("10.00")
        )
        repositories.employees.add(profile)
        repositories.attendance.set(profile.id, 3, 2026, attendance(3, 2026))

        record = (await PayrollAggregator(repositories, settings, clock=clock).compute(MARCH))[0]

        # April 2026 without holidays: 22 business days
        assert record.total_meal_allowance == Decimal("734.80")
        assert record.total_transport_allowance == Decimal("220.00")
        # 3000.00 - 248.60 + 220.00 - 734.80
        assert record.net_amount == Decimal("2236.60")

    async def test_adjustments_and_discounts(self, settings, clock, make_profile, repositories):
        profile = make_profile()
        repositories.employees.add(profile)
        repositories.attendance.set(profile.id, 3, 2026, attendance(3, 2026))
        adjustments = repositories.adjustments
        adjustments.add_adjustment(profile.id, SalaryAdjustment(Decimal("200"), date(2026, 3, 5)))
        adjustments.add_adjustment(
            profile.id, SalaryAdjustment(Decimal("50"), date(2025, 1, 10), is_fixed=True)
        )
        adjustments.add_adjustment(profile.id, SalaryAdjustment(Decimal("999"), date(2026, 2, 5)))
        adjustments.add_discount(profile.id, SalaryDiscount(Decimal("30"), date(2026, 3, 20)))
        adjustments.add_discount(profile.id, SalaryDiscount(Decimal("999"), date(2026, 4, 1)))

        record = (await PayrollAggregator(repositories, settings, clock=clock).compute(MARCH))[0]

        assert record.total_adjustments == Decimal("250.00")
        assert record.total_discounts == Decimal("30.00")
        assert record.net_amount == Decimal("2971.40")

    async def test_non_clt_has_no_contributions(self, settings, clock, make_profile, repositories):
        profile = make_profile(modality=Modality.MEI, requires_attendance_tracking=False)
        repositories.employees.add(profile)

        record = (await PayrollAggregator(repositories, settings, clock=clock).compute(MARCH))[0]

        assert record.inss_base == Decimal("0")
        assert record.inss_ordinary == Decimal("0")
        assert record.fgts_total == Decimal("0")
        assert record.irrf_total == Decimal("0")
        assert record.absence_deduction == Decimal("0")
        assert record.net_amount == Decimal("3000.00")

    async def test_overrides_win(self, settings, clock, make_profile, repositories):
        profile = make_profile()
        repositories.employees.add(profile)
        repositories.attendance.set(profile.id, 3, 2026, attendance(3, 2026, date(2026, 3, 10)))
        await repositories.overrides.upsert(
            ManualOverride(
                employee_id=profile.id,
                month=3,
                year=2026,
                absence_deduction=Decimal("50"),
                inss_13=Decimal("10"),
            )
        )

        record = (await PayrollAggregator(repositories, settings, clock=clock).compute(MARCH))[0]

        assert record.absence_deduction == Decimal("50.00")
        assert record.rest_day_loss == Decimal("100.00")
        assert record.inss_base == Decimal("2850.00")
        assert record.inss_13 == Decimal("10.00")
        # 13th salary INSS is informational
        assert record.net_amount == Decimal("3000.00") - Decimal("150.00") - record.inss_ordinary

    async def test_overtime_override_keeps_split_values(self, settings, clock, make_profile, repositories):
        profile = make_profile(salary=Decimal("2200.00"))
        repositories.employees.add(profile)
        repositories.attendance.set(profile.id, 3, 2026, attendance(3, 2026))
        repositories.overtime.set(profile.id, 3, 2026, OvertimeSummary(hours_50=Decimal("10")))
        await repositories.overrides.upsert(
            ManualOverride(employee_id=profile.id, month=3, year=2026, overtime_value=Decimal("300"))
        )

        record = (await PayrollAggregator(repositories, settings, clock=clock).compute(MARCH))[0]

        assert record.overtime_value_50 == Decimal("150.00")
        assert record.overtime_value == Decimal("300.00")


@pytest.mark.asyncio
class TestPayrollRun:
    """Eligibility, ordering and failure isolation across employees."""

    async def test_admin_and_future_hires_excluded(self, settings, clock, make_profile, repositories):
        repositories.employees.add(make_profile(id="a", position="Administrador"))
        repositories.employees.add(make_profile(id="b", active_since=date(2026, 4, 1)))
        repositories.employees.add(make_profile(id="c", requires_attendance_tracking=False))

        records = await PayrollAggregator(repositories, settings, clock=clock).compute(MARCH)

        assert [r.employee_id for r in records] == ["c"]

    async def test_sorted_by_folded_name(self, settings, clock, make_profile, repositories):
        for employee_id, name in [("1", "Élio Prado"), ("2", "bruno Lima"), ("3", "Ana Reis")]:
            repositories.employees.add(
                make_profile(id=employee_id, name=name, requires_attendance_tracking=False)
            )

        records = await PayrollAggregator(repositories, settings, clock=clock).compute(MARCH)

        assert [r.name for r in records] == ["Ana Reis", "bruno Lima", "Élio Prado"]

    async def test_failing_employee_is_dropped(self, settings, clock, make_profile, repositories, caplog):
        repositories.employees.add(make_profile(id="ok", requires_attendance_tracking=False))
        repositories.employees.add(
            make_profile(id="bad", salary=Decimal("-1"), requires_attendance_tracking=False)
        )

        with caplog.at_level(logging.ERROR, logger="payroll_remittance.calculators.engine"):
            records = await PayrollAggregator(repositories, settings, clock=clock).compute(MARCH)

        assert [r.employee_id for r in records] == ["ok"]
        assert "bad" in caplog.text

    async def test_filters_applied(self, settings, clock, make_profile, repositories):
        repositories.employees.add(make_profile(id="1", company="Matriz", requires_attendance_tracking=False))
        repositories.employees.add(make_profile(id="2", company="Filial Sul", requires_attendance_tracking=False))

        records = await PayrollAggregator(repositories, settings, clock=clock).compute(
            PayrollFilters(month=3, year=2026, company="filial")
        )

        assert [r.employee_id for r in records] == ["2"]

    async def test_allocation_mode_requires_tracking(self, settings, clock, make_profile, repositories):
        repositories.employees.add(make_profile(id="1"))
        repositories.employees.add(make_profile(id="2", requires_attendance_tracking=False))
        repositories.attendance.set("1", 3, 2026, attendance(3, 2026))

        records = await PayrollAggregator(repositories, settings, clock=clock).compute(
            PayrollFilters(month=3, year=2026, for_allocation=True)
        )

        assert [r.employee_id for r in records] == ["1"]

    async def test_current_month_capped_at_today(self, settings, make_profile, repositories):
        now = datetime(2026, 3, 10, 15, 0, tzinfo=ZoneInfo("America/Sao_Paulo"))
        profile = make_profile()
        repositories.employees.add(profile)
        repositories.attendance.set(profile.id, 3, 2026, attendance(3, 2026))

        aggregator = PayrollAggregator(repositories, settings, clock=lambda: now)
        record = (await aggregator.compute(MARCH))[0]

        assert record.business_days == 7
        assert record.absence_count == 0
