"""Payroll aggregation engine - main orchestrator."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable

from payroll_remittance.calculators.absence import AbsenceAdjustmentEngine
from payroll_remittance.calculators.benefits import BenefitsProrationEngine
from payroll_remittance.calculators.holiday_calendar import to_reference_date
from payroll_remittance.calculators.money import (
    ZERO,
    non_negative,
    round_to_cents,
    sum_amounts,
)
from payroll_remittance.calculators.overtime import OvertimeProjector
from payroll_remittance.calculators.tax_calculator import TaxCalculator
from payroll_remittance.calculators.types import (
    AttendanceFacts,
    EmployeeProfile,
    Holiday,
    ManualOverride,
    PayrollRecord,
)
from payroll_remittance.calculators.vacation import VacationContributionEngine, vacation_dates
from payroll_remittance.calculators.working_days import (
    WorkingDaysCalculator,
    days_in_month,
    month_bounds,
    next_month,
)
from payroll_remittance.config import Settings
from payroll_remittance.errors import PerEmployeeComputationError
from payroll_remittance.repositories.base import Repositories
from payroll_remittance.schemas import PayrollFilters

logger = logging.getLogger(__name__)

# Reserved position that is never part of the payroll
ADMIN_POSITION = "Administrador"


@dataclass(frozen=True)
class PeriodContext:
    """Shared, read-only data for one payroll run."""

    month: int
    year: int
    start: date
    end: date
    today: date
    month_holidays: frozenset[date]
    next_month_holidays: frozenset[date]
    # Month holidays plus the neighbouring days needed for Sunday-start weeks
    week_holidays: frozenset[date]


def final_allocation(attendance: AttendanceFacts, profile: EmployeeProfile) -> str | None:
    """Most frequent cost center stamped on the month's punches."""
    stamped = [c for c in attendance.cost_centers if c]
    if stamped:
        return Counter(stamped).most_common(1)[0][0]
    return profile.cost_center


def _pick(override: ManualOverride | None, name: str, computed):
    if override is None:
        return computed
    value = getattr(override, name)
    return computed if value is None else round_to_cents(value)


class PayrollAggregator:
    """Computes one PayrollRecord per eligible employee.

    Calculation pipeline (stable order per employee):
    1) Business days for the month (hire and today capped)
    2) Deductible absences, salary deduction and rest-day loss
    3) Overtime and its rest-day reflex
    4) INSS ordinary base and contribution
    5) Vacation base and incremental INSS
    6) Manual overrides
    7) FGTS ordinary and vacation
    8) IRRF ordinary and vacation
    9) Benefits prorated on the next month
    10) Adjustments, discounts and net amount
    """

    def __init__(
        self,
        repositories: Repositories,
        settings: Settings,
        tax_calculator: TaxCalculator | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.repositories = repositories
        self.settings = settings
        self.tax_calculator = tax_calculator or TaxCalculator()
        self.clock = clock or (lambda: datetime.now(settings.tz))
        self.working_days = WorkingDaysCalculator()
        self.absence_engine = AbsenceAdjustmentEngine()
        self.overtime_projector = OvertimeProjector()
        self.benefits_engine = BenefitsProrationEngine(self.working_days)
        self.vacation_engine = VacationContributionEngine(self.tax_calculator)

    def today(self) -> date:
        return to_reference_date(self.clock(), self.settings.tz)

    async def compute(self, filters: PayrollFilters) -> list[PayrollRecord]:
        """Compute records for every employee matching the filters.

        Employees are computed concurrently; a failing employee is dropped
        and logged, the rest of the run proceeds. Output is sorted by
        display name regardless of completion order.
        """
        ctx = await self._build_context(filters.month, filters.year)
        employees = await self.eligible_employees(filters, ctx)

        semaphore = asyncio.Semaphore(max(1, self.settings.max_concurrency))

        async def run(profile: EmployeeProfile) -> tuple[EmployeeProfile, PayrollRecord | None]:
            async with semaphore:
                try:
                    return profile, await self.compute_employee(profile, ctx)
                except Exception:
                    logger.exception(
                        "Dropping employee %s from payroll %02d/%d",
                        profile.id,
                        ctx.month,
                        ctx.year,
                    )
                    return profile, None

        results = await asyncio.gather(*(run(p) for p in employees))

        computed = [(p, r) for p, r in results if r is not None]
        computed.sort(key=lambda item: item[0].sort_key)
        records = [r for _, r in computed]

        logger.info(
            "Payroll %02d/%d computed: %d records, %d dropped",
            ctx.month,
            ctx.year,
            len(records),
            len(results) - len(records),
        )
        return records

    async def eligible_employees(
        self, filters: PayrollFilters, ctx: PeriodContext
    ) -> list[EmployeeProfile]:
        employees = await self.repositories.employees.list_employees(filters)
        eligible = []
        for profile in employees:
            if profile.position == ADMIN_POSITION:
                continue
            if to_reference_date(profile.active_since, self.settings.tz) > ctx.end:
                continue
            if filters.for_allocation and not profile.requires_attendance_tracking:
                continue
            eligible.append(profile)
        return eligible

    async def compute_for(
        self, profile: EmployeeProfile, month: int, year: int
    ) -> PayrollRecord:
        """Compute a single employee outside a full run."""
        ctx = await self._build_context(month, year)
        return await self.compute_employee(profile, ctx)

    async def _build_context(self, month: int, year: int) -> PeriodContext:
        start, end = month_bounds(month, year)
        following_month, following_year = next_month(month, year)
        next_start, next_end = month_bounds(following_month, following_year)

        fetch_start = start - timedelta(days=6)
        holidays: list[Holiday] = await self.repositories.holidays.list_holidays(
            fetch_start, next_end
        )
        active = [h.date for h in holidays if h.is_active]

        week_end = end + timedelta(days=6)
        return PeriodContext(
            month=month,
            year=year,
            start=start,
            end=end,
            today=self.today(),
            month_holidays=frozenset(d for d in active if start <= d <= end),
            next_month_holidays=frozenset(d for d in active if next_start <= d <= next_end),
            week_holidays=frozenset(d for d in active if fetch_start <= d <= week_end),
        )

    async def compute_employee(
        self, profile: EmployeeProfile, ctx: PeriodContext
    ) -> PayrollRecord:
        """Calculate the record for a single employee."""
        repos = self.repositories
        calc = self.tax_calculator
        month, year = ctx.month, ctx.year

        if profile.salary < 0:
            raise PerEmployeeComputationError(profile.id, month, year, "negative salary")

        minimum_wage = self.settings.minimum_wage
        hazard = profile.hazard_pay
        unhealthy = profile.unhealthy_pay(minimum_wage)
        remuneration_base = profile.salary + hazard + unhealthy
        accrues = profile.modality.accrues_contributions
        hire_date = to_reference_date(profile.active_since, self.settings.tz)

        # 1) Business days
        business_dates = self.working_days.business_dates(
            month, year, ctx.month_holidays, start_from=hire_date, today=ctx.today
        )
        business_days = len(business_dates)

        # 2) Absences, approved vacation days excused
        attendance = await repos.attendance.get_attendance(profile.id, month, year)
        vacations = await repos.vacations.list_vacations(profile.id, ctx.start, ctx.end)
        absence_count, absence_dates = self.absence_engine.deductible_absences(
            attendance,
            business_dates,
            excused_dates=vacation_dates(vacations, ctx.start, ctx.end),
        )
        adjustment = self.absence_engine.compute(
            salary=profile.salary,
            remuneration_base=remuneration_base,
            absence_count=absence_count,
            absence_dates=absence_dates,
            holidays=ctx.month_holidays if absence_dates is None else ctx.week_holidays,
            month=month,
            year=year,
            active_since=hire_date,
            tracked=profile.requires_attendance_tracking,
        )

        # 3) Overtime
        summary = await repos.overtime.get_summary(profile.id, month, year)
        month_days = days_in_month(month, year)
        full_month_business_days = self.working_days.count_full_month(
            month, year, ctx.month_holidays
        )
        overtime = self.overtime_projector.project(
            summary, remuneration_base, full_month_business_days, month_days
        )

        override = await repos.overrides.get(profile.id, month, year)
        absence_deduction = _pick(override, "absence_deduction", adjustment.salary_deduction)
        rest_day_loss = _pick(override, "rest_day_loss", adjustment.rest_day_loss)
        overtime_value = _pick(override, "overtime_value", overtime.total_value)
        overtime_rest_value = _pick(override, "overtime_rest_value", overtime.rest_value)

        # 4) INSS ordinary
        inss_base = ZERO
        if accrues:
            inss_base = round_to_cents(
                non_negative(
                    remuneration_base
                    + overtime_value
                    + overtime_rest_value
                    - absence_deduction
                    - rest_day_loss
                )
            )
        inss_ordinary = calc.inss(inss_base)

        # 5) Vacation
        vacation = self.vacation_engine.compute(
            vacations,
            ctx.start,
            ctx.end,
            remuneration_base=remuneration_base,
            ordinary_base=inss_base,
            accrues_contributions=accrues,
        )

        # 6) Manual INSS values
        inss_rescisao = _pick(override, "inss_rescisao", ZERO)
        inss_13 = _pick(override, "inss_13", ZERO)
        total_contribution = (
            inss_ordinary + vacation.base + vacation.contribution + inss_rescisao
        )

        # 7) FGTS
        fgts = calc.fgts(inss_base) if accrues else ZERO
        fgts_vacation = calc.fgts(vacation.base) if accrues else ZERO

        # 8) IRRF
        ordinary_gross = remuneration_base + profile.family_salary
        irrf_base = ZERO
        irrf_vacation_base = ZERO
        irrf_ordinary = ZERO
        irrf_vacation = ZERO
        if accrues:
            irrf_base = round_to_cents(calc.irrf_base(ordinary_gross))
            irrf_ordinary = calc.irrf(irrf_base)
            if vacation.vacation_days > 0:
                irrf_vacation_base = round_to_cents(
                    calc.irrf_base(ordinary_gross + vacation.base)
                )
                irrf_vacation = calc.irrf(irrf_vacation_base)
        irrf_total = irrf_ordinary + irrf_vacation

        # 9) Benefits
        benefits = self.benefits_engine.prorate(
            profile.daily_meal_rate,
            profile.daily_transport_rate,
            self.benefits_engine.next_month_business_days(
                month, year, ctx.next_month_holidays
            ),
        )

        # 10) Adjustments, discounts, net
        adjustments = await repos.adjustments.list_adjustments(profile.id, month, year)
        discounts = await repos.adjustments.list_discounts(profile.id, month, year)
        total_adjustments = round_to_cents(sum_amounts(a.amount for a in adjustments))
        total_discounts = round_to_cents(sum_amounts(d.amount for d in discounts))

        # Transport is credited with the wage; the meal card is charged back
        earnings = (
            profile.salary
            + hazard
            + unhealthy
            + profile.family_salary
            + overtime_value
            + overtime_rest_value
            + total_adjustments
            + benefits.transport_total
        )
        deductions = (
            absence_deduction
            + rest_day_loss
            + total_discounts
            + benefits.meal_total
            + inss_ordinary
            + vacation.contribution
            + inss_rescisao
            + irrf_total
        )
        net_amount = round_to_cents(earnings - deductions)

        return PayrollRecord(
            employee_id=profile.id,
            employee_code=profile.employee_code,
            name=profile.name,
            cpf=profile.cpf,
            position=profile.position,
            department=profile.department,
            company=profile.company,
            polo=profile.polo,
            financial_category=profile.financial_category,
            cost_center=profile.cost_center,
            client=profile.client,
            final_allocation=final_allocation(attendance, profile),
            modality=profile.modality,
            month=month,
            year=year,
            bank=profile.bank,
            account_type=profile.account_type,
            agency=profile.agency,
            operation=profile.operation,
            account=profile.account,
            digit=profile.digit,
            pix_key_type=profile.pix_key_type,
            pix_key=profile.pix_key,
            salary=round_to_cents(profile.salary),
            hazard_pay=round_to_cents(hazard),
            unhealthy_pay=round_to_cents(unhealthy),
            family_salary=round_to_cents(profile.family_salary),
            daily_meal_rate=profile.daily_meal_rate,
            daily_transport_rate=profile.daily_transport_rate,
            business_days=business_days,
            days_worked=attendance.clock_in_count,
            absence_count=adjustment.absence_count,
            absence_deduction=absence_deduction,
            rest_day_units=adjustment.rest_day_units,
            rest_day_loss=rest_day_loss,
            rest_day_approximated=adjustment.approximated,
            total_meal_allowance=benefits.meal_total,
            total_transport_allowance=benefits.transport_total,
            overtime_hours_50=overtime.hours_50,
            overtime_value_50=overtime.value_50,
            overtime_hours_100=overtime.hours_100,
            overtime_value_100=overtime.value_100,
            overtime_value=overtime_value,
            hourly_rate=overtime.hourly_rate,
            overtime_rest_value=overtime_rest_value,
            vacation_days=vacation.vacation_days,
            vacation_inss_base=vacation.base,
            vacation_inss=vacation.contribution,
            inss_base=inss_base,
            inss_ordinary=inss_ordinary,
            inss_rescisao=inss_rescisao,
            inss_13=inss_13,
            total_contribution=total_contribution,
            fgts=fgts,
            fgts_vacation=fgts_vacation,
            fgts_total=fgts + fgts_vacation,
            irrf_base=irrf_base,
            irrf_ordinary=irrf_ordinary,
            irrf_vacation_base=irrf_vacation_base,
            irrf_vacation=irrf_vacation,
            irrf_total=irrf_total,
            total_adjustments=total_adjustments,
            total_discounts=total_discounts,
            net_amount=net_amount,
        )
