"""JSON dataset loading into in-memory repositories.

A dataset is a single JSON document::

    {
        "employees": [{"id": "e1", "name": "...", "salary": "3000.00", ...}],
        "attendance": [{"employee_id": "e1", "month": 3, "year": 2026,
                        "clock_in_count": 21, "clock_in_dates": ["2026-03-02"],
                        "absences": [{"date": "2026-03-10", "reason": "..."}],
                        "cost_centers": ["OBRA-01"]}],
        "holidays": [{"date": "2026-04-03", "name": "...", "type": "NATIONAL"}],
        "include_national_holidays": true,
        "vacations": [{"employee_id": "e1", "start": "...", "end": "...", "status": "APPROVED"}],
        "overtime": [{"employee_id": "e1", "month": 3, "year": 2026, "hours_50": "4"}],
        "adjustments": [{"employee_id": "e1", "amount": "100", "created_on": "...", "is_fixed": false}],
        "discounts": [{"employee_id": "e1", "amount": "50", "created_on": "..."}],
        "overrides": [{"employee_id": "e1", "month": 3, "year": 2026, "inss_13": "120"}],
        "finalized_periods": [{"month": 3, "year": 2026}]
    }
"""

from __future__ import annotations

import json
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from payroll_remittance.calculators import types as domain
from payroll_remittance.calculators.holiday_calendar import national_holidays
from payroll_remittance.errors import ValidationError
from payroll_remittance.repositories.base import Repositories
from payroll_remittance.repositories.memory import build_memory_repositories


class EmployeeIn(BaseModel):
    id: str
    name: str
    cpf: str = ""
    position: str = ""
    department: str = ""
    active_since: date
    salary: Decimal
    employee_code: str = ""
    email: str | None = None
    modality: str = "CLT"
    company: str | None = None
    polo: str | None = None
    financial_category: str | None = None
    cost_center: str | None = None
    client: str | None = None
    hazard_pay_pct: Decimal = Decimal("0")
    unhealthy_pay_pct: Decimal = Decimal("0")
    family_salary: Decimal = Decimal("0")
    daily_meal_rate: Decimal = Decimal("0")
    daily_transport_rate: Decimal = Decimal("0")
    bank: str | None = None
    account_type: str | None = None
    agency: str | None = None
    operation: str | None = None
    account: str | None = None
    digit: str | None = None
    pix_key_type: str | None = None
    pix_key: str | None = None
    requires_attendance_tracking: bool = True

    def to_domain(self) -> domain.EmployeeProfile:
        values = self.model_dump()
        values["modality"] = domain.Modality.parse(self.modality)
        return domain.EmployeeProfile(**values)


class AbsenceIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day: date = Field(alias="date")
    reason: str | None = None


class AttendanceIn(BaseModel):
    employee_id: str
    month: int = Field(ge=1, le=12)
    year: int
    clock_in_count: int | None = None
    clock_in_dates: list[date] | None = None
    absences: list[AbsenceIn] = Field(default_factory=list)
    cost_centers: list[str] = Field(default_factory=list)

    def to_domain(self) -> domain.AttendanceFacts:
        dates = frozenset(self.clock_in_dates) if self.clock_in_dates is not None else None
        count = self.clock_in_count
        if count is None:
            count = len(dates) if dates is not None else 0
        return domain.AttendanceFacts(
            clock_in_count=count,
            clock_in_dates=dates,
            absence_records=[domain.AbsenceRecord(a.day, a.reason) for a in self.absences],
            cost_centers=list(self.cost_centers),
        )


class HolidayIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day: date = Field(alias="date")
    name: str
    type: domain.HolidayType = domain.HolidayType.NATIONAL
    is_recurring: bool = False
    state: str | None = None
    is_active: bool = True

    def to_domain(self) -> domain.Holiday:
        return domain.Holiday(
            date=self.day,
            name=self.name,
            type=self.type,
            is_recurring=self.is_recurring,
            state=self.state,
            is_active=self.is_active,
        )


class VacationIn(BaseModel):
    employee_id: str
    start: date
    end: date
    status: domain.VacationStatus = domain.VacationStatus.APPROVED


class OvertimeIn(BaseModel):
    employee_id: str
    month: int = Field(ge=1, le=12)
    year: int
    hours_50: Decimal = Decimal("0")
    hours_100: Decimal = Decimal("0")


class AdjustmentIn(BaseModel):
    employee_id: str
    amount: Decimal
    created_on: date
    is_fixed: bool = False
    description: str | None = None


class DiscountIn(BaseModel):
    employee_id: str
    amount: Decimal
    created_on: date
    description: str | None = None


class OverrideIn(BaseModel):
    employee_id: str
    month: int = Field(ge=1, le=12)
    year: int
    inss_rescisao: Decimal | None = None
    inss_13: Decimal | None = None
    absence_deduction: Decimal | None = None
    rest_day_loss: Decimal | None = None
    overtime_value: Decimal | None = None
    overtime_rest_value: Decimal | None = None


class PeriodIn(BaseModel):
    month: int = Field(ge=1, le=12)
    year: int


class Dataset(BaseModel):
    employees: list[EmployeeIn] = Field(default_factory=list)
    attendance: list[AttendanceIn] = Field(default_factory=list)
    holidays: list[HolidayIn] = Field(default_factory=list)
    include_national_holidays: bool = False
    holiday_state: str | None = None
    vacations: list[VacationIn] = Field(default_factory=list)
    overtime: list[OvertimeIn] = Field(default_factory=list)
    adjustments: list[AdjustmentIn] = Field(default_factory=list)
    discounts: list[DiscountIn] = Field(default_factory=list)
    overrides: list[OverrideIn] = Field(default_factory=list)
    finalized_periods: list[PeriodIn] = Field(default_factory=list)


def _national_years(dataset: Dataset) -> set[int]:
    years = {a.year for a in dataset.attendance} | {p.year for p in dataset.finalized_periods}
    years |= {e.active_since.year for e in dataset.employees}
    # Benefits look one month ahead, possibly into the next year
    return years | {y + 1 for y in years}


async def build_repositories(dataset: Dataset) -> Repositories:
    """In-memory repositories populated from a validated dataset."""
    holidays = [h.to_domain() for h in dataset.holidays]
    if dataset.include_national_holidays:
        for year in sorted(_national_years(dataset)):
            holidays.extend(national_holidays(year, dataset.holiday_state))

    repos = build_memory_repositories(
        employees=[e.to_domain() for e in dataset.employees],
        holidays=holidays,
        state=dataset.holiday_state,
    )

    for item in dataset.attendance:
        repos.attendance.set(item.employee_id, item.month, item.year, item.to_domain())
    for item in dataset.vacations:
        repos.vacations.add(
            item.employee_id, domain.VacationPeriod(item.start, item.end, item.status)
        )
    for item in dataset.overtime:
        repos.overtime.set(
            item.employee_id,
            item.month,
            item.year,
            domain.OvertimeSummary(hours_50=item.hours_50, hours_100=item.hours_100),
        )
    for item in dataset.adjustments:
        repos.adjustments.add_adjustment(
            item.employee_id,
            domain.SalaryAdjustment(
                amount=item.amount,
                created_on=item.created_on,
                is_fixed=item.is_fixed,
                description=item.description,
            ),
        )
    for item in dataset.discounts:
        repos.adjustments.add_discount(
            item.employee_id,
            domain.SalaryDiscount(
                amount=item.amount, created_on=item.created_on, description=item.description
            ),
        )
    for item in dataset.overrides:
        await repos.overrides.upsert(domain.ManualOverride(**item.model_dump()))
    for period in dataset.finalized_periods:
        await repos.period_status.finalize(period.month, period.year)

    return repos


def parse_dataset(data: dict[str, Any]) -> Dataset:
    try:
        return Dataset.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ValidationError(
            f"Invalid dataset at '{location}': {first['msg']}",
            field=location,
            details=e.errors(),
        ) from e


def load_dataset(path: str | Path) -> Dataset:
    """Read and validate a dataset file."""
    with open(path, encoding="utf-8") as f:
        return parse_dataset(json.load(f))
