"""Calendar, vacation, overtime, adjustment, override and period status models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from payroll_remittance.models.base import Base, RowMixin


class Holiday(Base, RowMixin):
    """Holiday registry row; recurring rows repeat every year."""

    __tablename__ = "holiday"

    name: Mapped[str] = mapped_column(String, nullable=False)
    holiday_date: Mapped[date] = mapped_column(Date, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False, default="NATIONAL")
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    state: Mapped[str | None] = mapped_column(String(2), nullable=True)
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(
            "type IN ('NATIONAL', 'STATE', 'CITY', 'OPTIONAL')",
            name="holiday_type_check",
        ),
    )


class Vacation(Base, RowMixin):
    """Vacation request."""

    __tablename__ = "vacation"

    employee_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("employee.id", ondelete="CASCADE"), nullable=False
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="PENDING")

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="vacation_dates_check"),
    )


class OvertimeSummary(Base, RowMixin):
    """Overtime hours per employee and month, as exported by the time tracker."""

    __tablename__ = "overtime_summary"

    employee_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("employee.id", ondelete="CASCADE"), nullable=False
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    hours_50: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False, default=0)
    hours_100: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("employee_id", "month", "year", name="overtime_summary_period_unique"),
    )


class SalaryAdjustment(Base, RowMixin):
    """Salary addition; fixed rows apply to every month."""

    __tablename__ = "salary_adjustment"

    employee_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("employee.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    created_on: Mapped[date] = mapped_column(Date, nullable=False)
    is_fixed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    description: Mapped[str | None] = mapped_column(String, nullable=True)


class SalaryDiscount(Base, RowMixin):
    """Salary discount registered in a month."""

    __tablename__ = "salary_discount"

    employee_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("employee.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    created_on: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str | None] = mapped_column(String, nullable=True)


class ManualOverride(Base, RowMixin):
    """Human-pinned payroll values, one row per employee and month."""

    __tablename__ = "manual_override"

    employee_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("employee.id", ondelete="CASCADE"), nullable=False
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    inss_rescisao: Mapped[Decimal | None] = mapped_column(nullable=True)
    inss_13: Mapped[Decimal | None] = mapped_column(nullable=True)
    absence_deduction: Mapped[Decimal | None] = mapped_column(nullable=True)
    rest_day_loss: Mapped[Decimal | None] = mapped_column(nullable=True)
    overtime_value: Mapped[Decimal | None] = mapped_column(nullable=True)
    overtime_rest_value: Mapped[Decimal | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "month", "year", name="manual_override_period_unique"),
    )


class PayrollPeriodStatus(Base, RowMixin):
    """Finalization flag of a payroll month."""

    __tablename__ = "payroll_period_status"

    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    is_finalized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    finalized_by: Mapped[str | None] = mapped_column(String, nullable=True)
    finalized_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("month", "year", name="payroll_period_status_unique"),
        CheckConstraint("month BETWEEN 1 AND 12", name="payroll_period_status_month_check"),
    )
