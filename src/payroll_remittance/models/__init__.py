"""SQLAlchemy ORM models."""

from payroll_remittance.models.base import Base, RowMixin
from payroll_remittance.models.employee import Employee, JustifiedAbsence, TimeRecord
from payroll_remittance.models.payroll import (
    Holiday,
    ManualOverride,
    OvertimeSummary,
    PayrollPeriodStatus,
    SalaryAdjustment,
    SalaryDiscount,
    Vacation,
)

__all__ = [
    "Base",
    "RowMixin",
    "Employee",
    "JustifiedAbsence",
    "TimeRecord",
    "Holiday",
    "ManualOverride",
    "OvertimeSummary",
    "PayrollPeriodStatus",
    "SalaryAdjustment",
    "SalaryDiscount",
    "Vacation",
]
