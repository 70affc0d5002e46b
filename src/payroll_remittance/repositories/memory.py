"""In-memory repositories for tests and JSON datasets."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Iterable

from payroll_remittance.calculators.holiday_calendar import expand_holidays
from payroll_remittance.calculators.types import (
    AttendanceFacts,
    EmployeeProfile,
    Holiday,
    ManualOverride,
    OvertimeSummary,
    SalaryAdjustment,
    SalaryDiscount,
    VacationPeriod,
)
from payroll_remittance.repositories.base import Repositories
from payroll_remittance.schemas import PayrollFilters

PeriodKey = tuple[str, int, int]


def _in_month(day: date, month: int, year: int) -> bool:
    return day.year == year and day.month == month


class InMemoryEmployeeRepository:
    def __init__(self, employees: Iterable[EmployeeProfile] = ()):
        self._employees: dict[str, EmployeeProfile] = {e.id: e for e in employees}

    def add(self, employee: EmployeeProfile) -> None:
        self._employees[employee.id] = employee

    async def list_employees(self, filters: PayrollFilters) -> list[EmployeeProfile]:
        return [e for e in self._employees.values() if filters.matches(e)]

    async def get_employee(self, employee_id: str) -> EmployeeProfile | None:
        return self._employees.get(employee_id)


class InMemoryAttendanceRepository:
    def __init__(self) -> None:
        self._facts: dict[PeriodKey, AttendanceFacts] = {}

    def set(self, employee_id: str, month: int, year: int, facts: AttendanceFacts) -> None:
        self._facts[(employee_id, month, year)] = facts

    async def get_attendance(self, employee_id: str, month: int, year: int) -> AttendanceFacts:
        return self._facts.get((employee_id, month, year), AttendanceFacts())


class InMemoryHolidayRepository:
    """Holiday registry; recurring rows are expanded on read."""

    def __init__(self, holidays: Iterable[Holiday] = (), state: str | None = None):
        self._holidays = list(holidays)
        self.state = state

    def add(self, holiday: Holiday) -> None:
        self._holidays.append(holiday)

    async def list_holidays(self, start: date, end: date) -> list[Holiday]:
        return expand_holidays(self._holidays, start, end, state=self.state)


class InMemoryVacationRepository:
    def __init__(self) -> None:
        self._vacations: dict[str, list[VacationPeriod]] = {}

    def add(self, employee_id: str, period: VacationPeriod) -> None:
        self._vacations.setdefault(employee_id, []).append(period)

    async def list_vacations(
        self, employee_id: str, start: date, end: date
    ) -> list[VacationPeriod]:
        return [
            v
            for v in self._vacations.get(employee_id, [])
            if v.start <= end and v.end >= start
        ]


class InMemoryOvertimeRepository:
    def __init__(self) -> None:
        self._summaries: dict[PeriodKey, OvertimeSummary] = {}

    def set(self, employee_id: str, month: int, year: int, summary: OvertimeSummary) -> None:
        self._summaries[(employee_id, month, year)] = summary

    async def get_summary(
        self, employee_id: str, month: int, year: int
    ) -> OvertimeSummary | None:
        return self._summaries.get((employee_id, month, year))


class InMemorySalaryAdjustmentRepository:
    def __init__(self) -> None:
        self._adjustments: dict[str, list[SalaryAdjustment]] = {}
        self._discounts: dict[str, list[SalaryDiscount]] = {}

    def add_adjustment(self, employee_id: str, adjustment: SalaryAdjustment) -> None:
        self._adjustments.setdefault(employee_id, []).append(adjustment)

    def add_discount(self, employee_id: str, discount: SalaryDiscount) -> None:
        self._discounts.setdefault(employee_id, []).append(discount)

    async def list_adjustments(
        self, employee_id: str, month: int, year: int
    ) -> list[SalaryAdjustment]:
        return [
            a
            for a in self._adjustments.get(employee_id, [])
            if a.is_fixed or _in_month(a.created_on, month, year)
        ]

    async def list_discounts(
        self, employee_id: str, month: int, year: int
    ) -> list[SalaryDiscount]:
        return [
            d
            for d in self._discounts.get(employee_id, [])
            if _in_month(d.created_on, month, year)
        ]


class InMemoryManualOverrideRepository:
    def __init__(self) -> None:
        self._overrides: dict[PeriodKey, ManualOverride] = {}

    async def get(self, employee_id: str, month: int, year: int) -> ManualOverride | None:
        return self._overrides.get((employee_id, month, year))

    async def upsert(self, override: ManualOverride) -> ManualOverride:
        stored = replace(override)
        self._overrides[(override.employee_id, override.month, override.year)] = stored
        return stored


class InMemoryPayrollPeriodStatusRepository:
    def __init__(self) -> None:
        self._status: dict[tuple[int, int], tuple[bool, str | None, datetime]] = {}

    async def is_finalized(self, month: int, year: int) -> bool:
        status = self._status.get((month, year))
        return status is not None and status[0]

    async def finalize(self, month: int, year: int, finalized_by: str | None = None) -> None:
        self._status[(month, year)] = (True, finalized_by, datetime.now(timezone.utc))

    async def reopen(self, month: int, year: int) -> None:
        previous = self._status.get((month, year))
        by = previous[1] if previous else None
        self._status[(month, year)] = (False, by, datetime.now(timezone.utc))


def build_memory_repositories(
    employees: Iterable[EmployeeProfile] = (),
    holidays: Iterable[Holiday] = (),
    state: str | None = None,
) -> Repositories:
    """Empty in-memory bundle seeded with employees and holidays."""
    return Repositories(
        employees=InMemoryEmployeeRepository(employees),
        attendance=InMemoryAttendanceRepository(),
        holidays=InMemoryHolidayRepository(holidays, state=state),
        vacations=InMemoryVacationRepository(),
        overtime=InMemoryOvertimeRepository(),
        adjustments=InMemorySalaryAdjustmentRepository(),
        overrides=InMemoryManualOverrideRepository(),
        period_status=InMemoryPayrollPeriodStatusRepository(),
    )
