"""Type definitions for the payroll calculation pipeline."""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field, fields
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from payroll_remittance.calculators.money import ZERO


def fold_text(value: str) -> str:
    """Strip accents and casefold, for comparisons and sort keys."""
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


class Modality(str, Enum):
    """Employment classification."""

    CLT = "CLT"
    MEI = "MEI"
    ESTAGIARIO = "ESTAGIARIO"

    @classmethod
    def parse(cls, value: str | Modality | None) -> Modality:
        """Parse a modality label, tolerating accents and spelling variants."""
        if isinstance(value, Modality):
            return value
        if not value:
            return cls.CLT
        folded = fold_text(value).upper().strip()
        if folded == "MEI":
            return cls.MEI
        if folded.startswith("ESTAGI"):
            return cls.ESTAGIARIO
        return cls.CLT

    @property
    def accrues_contributions(self) -> bool:
        """Whether INSS, FGTS and IRRF bases apply."""
        return self is Modality.CLT


class HolidayType(str, Enum):
    """Holiday scope."""

    NATIONAL = "NATIONAL"
    STATE = "STATE"
    CITY = "CITY"
    OPTIONAL = "OPTIONAL"


class VacationStatus(str, Enum):
    """Vacation request status values."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


@dataclass
class EmployeeProfile:
    """Employee identity, employment attributes and compensation inputs."""

    id: str
    name: str
    cpf: str
    position: str
    department: str
    active_since: date
    salary: Decimal
    employee_code: str = ""
    email: str | None = None
    modality: Modality = Modality.CLT
    company: str | None = None
    polo: str | None = None
    financial_category: str | None = None
    cost_center: str | None = None
    client: str | None = None

    # Compensation
    hazard_pay_pct: Decimal = ZERO  # % of base salary
    unhealthy_pay_pct: Decimal = ZERO  # % of minimum wage
    family_salary: Decimal = ZERO
    daily_meal_rate: Decimal = ZERO
    daily_transport_rate: Decimal = ZERO

    # Payment destination
    bank: str | None = None
    account_type: str | None = None
    agency: str | None = None
    operation: str | None = None
    account: str | None = None
    digit: str | None = None
    pix_key_type: str | None = None
    pix_key: str | None = None

    requires_attendance_tracking: bool = True

    def __post_init__(self) -> None:
        self.modality = Modality.parse(self.modality)

    @property
    def hazard_pay(self) -> Decimal:
        return self.salary * self.hazard_pay_pct / 100

    def unhealthy_pay(self, minimum_wage: Decimal) -> Decimal:
        return minimum_wage * self.unhealthy_pay_pct / 100

    def remuneration_base(self, minimum_wage: Decimal) -> Decimal:
        """Salary + hazard pay + unhealthy pay."""
        return self.salary + self.hazard_pay + self.unhealthy_pay(minimum_wage)

    @property
    def sort_key(self) -> tuple[str, str]:
        return (fold_text(self.name), self.id)


@dataclass(frozen=True)
class AbsenceRecord:
    """A registered absence day with its optional reason."""

    date: date
    reason: str | None = None


@dataclass
class AttendanceFacts:
    """Attendance data for one employee in one month."""

    clock_in_count: int = 0
    clock_in_dates: frozenset[date] | None = None
    absence_records: list[AbsenceRecord] = field(default_factory=list)
    cost_centers: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Holiday:
    """A holiday row as stored by the holiday registry."""

    date: date
    name: str
    type: HolidayType = HolidayType.NATIONAL
    is_recurring: bool = False
    state: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class VacationPeriod:
    """A vacation request."""

    start: date
    end: date
    status: VacationStatus = VacationStatus.APPROVED


@dataclass(frozen=True)
class OvertimeSummary:
    """Overtime hours pre-computed by the time tracker for one month."""

    hours_50: Decimal = ZERO
    hours_100: Decimal = ZERO


@dataclass(frozen=True)
class SalaryAdjustment:
    """A salary addition; fixed adjustments apply every month."""

    amount: Decimal
    created_on: date
    is_fixed: bool = False
    description: str | None = None


@dataclass(frozen=True)
class SalaryDiscount:
    """A salary discount registered in a given month."""

    amount: Decimal
    created_on: date
    description: str | None = None


@dataclass
class ManualOverride:
    """Human-pinned values for one (employee, month, year).

    A non-None field always wins over the computed value.
    """

    employee_id: str
    month: int
    year: int
    inss_rescisao: Decimal | None = None
    inss_13: Decimal | None = None
    absence_deduction: Decimal | None = None
    rest_day_loss: Decimal | None = None
    overtime_value: Decimal | None = None
    overtime_rest_value: Decimal | None = None


@dataclass(frozen=True)
class TaxBracket:
    """Progressive contribution slice: rate applies between min and max."""

    min_amount: Decimal
    max_amount: Decimal
    rate: Decimal


@dataclass(frozen=True)
class IncomeTaxBand:
    """Withholding band: base * rate - deduction, up to max_amount."""

    max_amount: Decimal | None  # None = no upper limit
    rate: Decimal
    deduction: Decimal


# === Engine results ===


@dataclass(frozen=True)
class AbsenceAdjustment:
    """Result of the absence engine."""

    absence_count: int
    divisor: int
    salary_deduction: Decimal
    rest_day_units: int
    rest_day_loss: Decimal
    approximated: bool = False


@dataclass(frozen=True)
class OvertimeProjection:
    """Overtime values for one month."""

    hours_50: Decimal
    value_50: Decimal
    hours_100: Decimal
    value_100: Decimal
    hourly_rate: Decimal
    rest_value: Decimal

    @property
    def total_value(self) -> Decimal:
        return self.value_50 + self.value_100


@dataclass(frozen=True)
class BenefitTotals:
    """Prorated meal and transport totals."""

    business_days: int
    meal_total: Decimal
    transport_total: Decimal


@dataclass(frozen=True)
class VacationContribution:
    """Vacation days and their incremental INSS."""

    vacation_days: int
    base: Decimal
    contribution: Decimal


@dataclass
class PayrollRecord:
    """One employee's financial record for one month."""

    # Identity / organization
    employee_id: str
    employee_code: str
    name: str
    cpf: str
    position: str
    department: str
    company: str | None
    polo: str | None
    financial_category: str | None
    cost_center: str | None
    client: str | None
    final_allocation: str | None
    modality: Modality
    month: int
    year: int

    # Payment destination
    bank: str | None
    account_type: str | None
    agency: str | None
    operation: str | None
    account: str | None
    digit: str | None
    pix_key_type: str | None
    pix_key: str | None

    # Compensation inputs
    salary: Decimal
    hazard_pay: Decimal
    unhealthy_pay: Decimal
    family_salary: Decimal
    daily_meal_rate: Decimal
    daily_transport_rate: Decimal

    # Attendance
    business_days: int
    days_worked: int
    absence_count: int
    absence_deduction: Decimal
    rest_day_units: int
    rest_day_loss: Decimal
    rest_day_approximated: bool

    # Benefits (prorated on next month)
    total_meal_allowance: Decimal
    total_transport_allowance: Decimal

    # Overtime
    overtime_hours_50: Decimal
    overtime_value_50: Decimal
    overtime_hours_100: Decimal
    overtime_value_100: Decimal
    overtime_value: Decimal  # 50% + 100%, or the manual override
    hourly_rate: Decimal
    overtime_rest_value: Decimal

    # Vacation
    vacation_days: int
    vacation_inss_base: Decimal
    vacation_inss: Decimal

    # Social security
    inss_base: Decimal
    inss_ordinary: Decimal
    inss_rescisao: Decimal
    inss_13: Decimal
    total_contribution: Decimal

    # FGTS
    fgts: Decimal
    fgts_vacation: Decimal
    fgts_total: Decimal

    # Income tax
    irrf_base: Decimal
    irrf_ordinary: Decimal
    irrf_vacation_base: Decimal
    irrf_vacation: Decimal
    irrf_total: Decimal

    # Adjustments / discounts
    total_adjustments: Decimal
    total_discounts: Decimal

    net_amount: Decimal

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly dict (Decimals as strings)."""
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Decimal):
                value = str(value)
            elif isinstance(value, Enum):
                value = value.value
            result[f.name] = value
        return result


MONTH_NAMES = (
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
)


@dataclass(frozen=True)
class PayrollPeriod:
    """A payroll month."""

    month: int
    year: int

    @property
    def month_name(self) -> str:
        return MONTH_NAMES[self.month - 1]


@dataclass(frozen=True)
class PayrollTotals:
    """Aggregate totals derived from a list of records."""

    total_employees: int
    total_meal_allowance: Decimal
    total_transport_allowance: Decimal
    total_adjustments: Decimal
    total_discounts: Decimal
    total_net: Decimal

    @classmethod
    def from_records(cls, records: list[PayrollRecord]) -> PayrollTotals:
        return cls(
            total_employees=len(records),
            total_meal_allowance=sum((r.total_meal_allowance for r in records), ZERO),
            total_transport_allowance=sum(
                (r.total_transport_allowance for r in records), ZERO
            ),
            total_adjustments=sum((r.total_adjustments for r in records), ZERO),
            total_discounts=sum((r.total_discounts for r in records), ZERO),
            total_net=sum((r.net_amount for r in records), ZERO),
        )


@dataclass
class MonthlyPayroll:
    """Output of a monthly payroll generation."""

    employees: list[PayrollRecord]
    period: PayrollPeriod
    totals: PayrollTotals
