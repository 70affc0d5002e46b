"""Repository interfaces consumed by the payroll core."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Protocol

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
from payroll_remittance.schemas import PayrollFilters


class EmployeeRepository(Protocol):
    async def list_employees(self, filters: PayrollFilters) -> list[EmployeeProfile]: ...

    async def get_employee(self, employee_id: str) -> EmployeeProfile | None: ...


class AttendanceRepository(Protocol):
    async def get_attendance(self, employee_id: str, month: int, year: int) -> AttendanceFacts: ...


class HolidayRepository(Protocol):
    async def list_holidays(self, start: date, end: date) -> list[Holiday]:
        """Active holidays with a date in [start, end], recurring rows expanded."""
        ...


class VacationRepository(Protocol):
    async def list_vacations(
        self, employee_id: str, start: date, end: date
    ) -> list[VacationPeriod]: ...


class OvertimeRepository(Protocol):
    async def get_summary(
        self, employee_id: str, month: int, year: int
    ) -> OvertimeSummary | None: ...


class SalaryAdjustmentRepository(Protocol):
    async def list_adjustments(
        self, employee_id: str, month: int, year: int
    ) -> list[SalaryAdjustment]:
        """Fixed adjustments plus non-fixed ones created in the month."""
        ...

    async def list_discounts(
        self, employee_id: str, month: int, year: int
    ) -> list[SalaryDiscount]: ...


class ManualOverrideRepository(Protocol):
    async def get(self, employee_id: str, month: int, year: int) -> ManualOverride | None: ...

    async def upsert(self, override: ManualOverride) -> ManualOverride: ...


class PayrollPeriodStatusRepository(Protocol):
    async def is_finalized(self, month: int, year: int) -> bool: ...

    async def finalize(self, month: int, year: int, finalized_by: str | None = None) -> None: ...

    async def reopen(self, month: int, year: int) -> None: ...


@dataclass
class Repositories:
    """Repository bundle handed to the aggregator and services."""

    employees: EmployeeRepository
    attendance: AttendanceRepository
    holidays: HolidayRepository
    vacations: VacationRepository
    overtime: OvertimeRepository
    adjustments: SalaryAdjustmentRepository
    overrides: ManualOverrideRepository
    period_status: PayrollPeriodStatusRepository
