"""SQLAlchemy async repositories.

Each call opens its own short session from the factory, so repositories can
be awaited concurrently by the aggregator.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payroll_remittance import models
from payroll_remittance.calculators import types as domain
from payroll_remittance.calculators.holiday_calendar import expand_holidays
from payroll_remittance.calculators.money import to_decimal
from payroll_remittance.calculators.working_days import month_bounds
from payroll_remittance.repositories.base import Repositories
from payroll_remittance.schemas import PayrollFilters

SessionFactory = async_sessionmaker[AsyncSession]


def employee_to_profile(row: models.Employee) -> domain.EmployeeProfile:
    return domain.EmployeeProfile(
        id=row.id,
        employee_code=row.employee_code or "",
        name=row.name,
        cpf=row.cpf,
        email=row.email,
        position=row.position,
        department=row.department,
        modality=domain.Modality.parse(row.modality),
        company=row.company,
        polo=row.polo,
        financial_category=row.financial_category,
        cost_center=row.cost_center,
        client=row.client,
        active_since=row.hire_date,
        salary=to_decimal(row.salary),
        hazard_pay_pct=to_decimal(row.hazard_pay_pct),
        unhealthy_pay_pct=to_decimal(row.unhealthy_pay_pct),
        family_salary=to_decimal(row.family_salary),
        daily_meal_rate=to_decimal(row.daily_meal_rate),
        daily_transport_rate=to_decimal(row.daily_transport_rate),
        bank=row.bank,
        account_type=row.account_type,
        agency=row.agency,
        operation=row.operation,
        account=row.account,
        digit=row.digit,
        pix_key_type=row.pix_key_type,
        pix_key=row.pix_key,
        requires_attendance_tracking=row.requires_attendance_tracking,
    )


class SqlEmployeeRepository:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    async def list_employees(self, filters: PayrollFilters) -> list[domain.EmployeeProfile]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(models.Employee).where(models.Employee.is_active.is_(True))
            )
            profiles = [employee_to_profile(row) for row in result.scalars()]
        # Accent-insensitive matching is done in Python, not in SQL
        return [p for p in profiles if filters.matches(p)]

    async def get_employee(self, employee_id: str) -> domain.EmployeeProfile | None:
        async with self.session_factory() as session:
            row = await session.get(models.Employee, employee_id)
            return employee_to_profile(row) if row is not None else None


class SqlAttendanceRepository:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    async def get_attendance(
        self, employee_id: str, month: int, year: int
    ) -> domain.AttendanceFacts:
        start, end = month_bounds(month, year)
        async with self.session_factory() as session:
            records = (
                await session.execute(
                    select(models.TimeRecord)
                    .where(
                        models.TimeRecord.employee_id == employee_id,
                        models.TimeRecord.work_date.between(start, end),
                    )
                    .order_by(models.TimeRecord.work_date)
                )
            ).scalars().all()
            absences = (
                await session.execute(
                    select(models.JustifiedAbsence)
                    .where(
                        models.JustifiedAbsence.employee_id == employee_id,
                        models.JustifiedAbsence.absence_date.between(start, end),
                    )
                    .order_by(models.JustifiedAbsence.absence_date)
                )
            ).scalars().all()

        worked = frozenset(r.work_date for r in records)
        return domain.AttendanceFacts(
            clock_in_count=len(worked),
            clock_in_dates=worked,
            absence_records=[
                domain.AbsenceRecord(date=a.absence_date, reason=a.reason) for a in absences
            ],
            cost_centers=[r.cost_center for r in records if r.cost_center],
        )


class SqlHolidayRepository:
    def __init__(self, session_factory: SessionFactory, state: str | None = None):
        self.session_factory = session_factory
        self.state = state

    async def list_holidays(self, start: date, end: date) -> list[domain.Holiday]:
        async with self.session_factory() as session:
            rows = (
                await session.execute(
                    select(models.Holiday).where(
                        models.Holiday.is_active.is_(True),
                        or_(
                            models.Holiday.is_recurring.is_(True),
                            models.Holiday.holiday_date.between(start, end),
                        ),
                    )
                )
            ).scalars().all()

        holidays = [
            domain.Holiday(
                date=row.holiday_date,
                name=row.name,
                type=domain.HolidayType(row.type),
                is_recurring=row.is_recurring,
                state=row.state,
                is_active=row.is_active,
            )
            for row in rows
        ]
        return expand_holidays(holidays, start, end, state=self.state)


class SqlVacationRepository:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    async def list_vacations(
        self, employee_id: str, start: date, end: date
    ) -> list[domain.VacationPeriod]:
        async with self.session_factory() as session:
            rows = (
                await session.execute(
                    select(models.Vacation).where(
                        models.Vacation.employee_id == employee_id,
                        models.Vacation.start_date <= end,
                        models.Vacation.end_date >= start,
                    )
                )
            ).scalars().all()
        return [
            domain.VacationPeriod(
                start=row.start_date,
                end=row.end_date,
                status=domain.VacationStatus(row.status),
            )
            for row in rows
        ]


class SqlOvertimeRepository:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    async def get_summary(
        self, employee_id: str, month: int, year: int
    ) -> domain.OvertimeSummary | None:
        async with self.session_factory() as session:
            row = (
                await session.execute(
                    select(models.OvertimeSummary).where(
                        models.OvertimeSummary.employee_id == employee_id,
                        models.OvertimeSummary.month == month,
                        models.OvertimeSummary.year == year,
                    )
                )
            ).scalar_one_or_none()
        if row is None:
            return None
        return domain.OvertimeSummary(
            hours_50=to_decimal(row.hours_50), hours_100=to_decimal(row.hours_100)
        )


class SqlSalaryAdjustmentRepository:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    async def list_adjustments(
        self, employee_id: str, month: int, year: int
    ) -> list[domain.SalaryAdjustment]:
        start, end = month_bounds(month, year)
        async with self.session_factory() as session:
            rows = (
                await session.execute(
                    select(models.SalaryAdjustment).where(
                        models.SalaryAdjustment.employee_id == employee_id,
                        or_(
                            models.SalaryAdjustment.is_fixed.is_(True),
                            and_(
                                models.SalaryAdjustment.is_fixed.is_(False),
                                models.SalaryAdjustment.created_on.between(start, end),
                            ),
                        ),
                    )
                )
            ).scalars().all()
        return [
            domain.SalaryAdjustment(
                amount=to_decimal(row.amount),
                created_on=row.created_on,
                is_fixed=row.is_fixed,
                description=row.description,
            )
            for row in rows
        ]

    async def list_discounts(
        self, employee_id: str, month: int, year: int
    ) -> list[domain.SalaryDiscount]:
        start, end = month_bounds(month, year)
        async with self.session_factory() as session:
            rows = (
                await session.execute(
                    select(models.SalaryDiscount).where(
                        models.SalaryDiscount.employee_id == employee_id,
                        models.SalaryDiscount.created_on.between(start, end),
                    )
                )
            ).scalars().all()
        return [
            domain.SalaryDiscount(
                amount=to_decimal(row.amount),
                created_on=row.created_on,
                description=row.description,
            )
            for row in rows
        ]


_OVERRIDE_FIELDS = (
    "inss_rescisao",
    "inss_13",
    "absence_deduction",
    "rest_day_loss",
    "overtime_value",
    "overtime_rest_value",
)


def _override_from_row(row: models.ManualOverride) -> domain.ManualOverride:
    values = {
        name: to_decimal(getattr(row, name)) if getattr(row, name) is not None else None
        for name in _OVERRIDE_FIELDS
    }
    return domain.ManualOverride(
        employee_id=row.employee_id, month=row.month, year=row.year, **values
    )


class SqlManualOverrideRepository:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    @staticmethod
    def _key(employee_id: str, month: int, year: int):
        return select(models.ManualOverride).where(
            models.ManualOverride.employee_id == employee_id,
            models.ManualOverride.month == month,
            models.ManualOverride.year == year,
        )

    async def get(
        self, employee_id: str, month: int, year: int
    ) -> domain.ManualOverride | None:
        async with self.session_factory() as session:
            row = (
                await session.execute(self._key(employee_id, month, year))
            ).scalar_one_or_none()
            return _override_from_row(row) if row is not None else None

    async def upsert(self, override: domain.ManualOverride) -> domain.ManualOverride:
        async with self.session_factory() as session:
            async with session.begin():
                row = (
                    await session.execute(
                        self._key(override.employee_id, override.month, override.year)
                    )
                ).scalar_one_or_none()
                if row is None:
                    row = models.ManualOverride(
                        employee_id=override.employee_id,
                        month=override.month,
                        year=override.year,
                    )
                    session.add(row)
                for name in _OVERRIDE_FIELDS:
                    setattr(row, name, getattr(override, name))
                stored = _override_from_row(row)
        return stored


class SqlPayrollPeriodStatusRepository:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    @staticmethod
    def _key(month: int, year: int):
        return select(models.PayrollPeriodStatus).where(
            models.PayrollPeriodStatus.month == month,
            models.PayrollPeriodStatus.year == year,
        )

    async def is_finalized(self, month: int, year: int) -> bool:
        async with self.session_factory() as session:
            row = (await session.execute(self._key(month, year))).scalar_one_or_none()
            return bool(row is not None and row.is_finalized)

    async def _set(
        self, month: int, year: int, finalized: bool, finalized_by: str | None
    ) -> None:
        async with self.session_factory() as session:
            async with session.begin():
                row = (await session.execute(self._key(month, year))).scalar_one_or_none()
                if row is None:
                    row = models.PayrollPeriodStatus(month=month, year=year)
                    session.add(row)
                row.is_finalized = finalized
                if finalized:
                    row.finalized_by = finalized_by
                    row.finalized_at = datetime.now(timezone.utc)

    async def finalize(self, month: int, year: int, finalized_by: str | None = None) -> None:
        await self._set(month, year, True, finalized_by)

    async def reopen(self, month: int, year: int) -> None:
        await self._set(month, year, False, None)


def build_sql_repositories(
    session_factory: SessionFactory, state: str | None = None
) -> Repositories:
    return Repositories(
        employees=SqlEmployeeRepository(session_factory),
        attendance=SqlAttendanceRepository(session_factory),
        holidays=SqlHolidayRepository(session_factory, state=state),
        vacations=SqlVacationRepository(session_factory),
        overtime=SqlOvertimeRepository(session_factory),
        adjustments=SqlSalaryAdjustmentRepository(session_factory),
        overrides=SqlManualOverrideRepository(session_factory),
        period_status=SqlPayrollPeriodStatusRepository(session_factory),
    )
