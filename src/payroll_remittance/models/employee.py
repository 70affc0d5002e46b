"""Employee and attendance models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_remittance.models.base import Base, RowMixin


class Employee(Base, RowMixin):
    """Employee registration with compensation and payment destination."""

    __tablename__ = "employee"

    employee_code: Mapped[str] = mapped_column(String, nullable=False, default="")
    name: Mapped[str] = mapped_column(String, nullable=False)
    cpf: Mapped[str] = mapped_column(String(14), nullable=False)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    position: Mapped[str] = mapped_column(String, nullable=False)
    department: Mapped[str] = mapped_column(String, nullable=False)
    modality: Mapped[str] = mapped_column(String, nullable=False, default="CLT")
    company: Mapped[str | None] = mapped_column(String, nullable=True)
    polo: Mapped[str | None] = mapped_column(String, nullable=True)
    financial_category: Mapped[str | None] = mapped_column(String, nullable=True)
    cost_center: Mapped[str | None] = mapped_column(String, nullable=True)
    client: Mapped[str | None] = mapped_column(String, nullable=True)
    hire_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    salary: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    hazard_pay_pct: Mapped[Decimal] = mapped_column(Numeric(7, 4), nullable=False, default=0)
    unhealthy_pay_pct: Mapped[Decimal] = mapped_column(Numeric(7, 4), nullable=False, default=0)
    family_salary: Mapped[Decimal] = mapped_column(nullable=False, default=0)
    daily_meal_rate: Mapped[Decimal] = mapped_column(nullable=False, default=0)
    daily_transport_rate: Mapped[Decimal] = mapped_column(nullable=False, default=0)

    bank: Mapped[str | None] = mapped_column(String, nullable=True)
    account_type: Mapped[str | None] = mapped_column(String, nullable=True)
    agency: Mapped[str | None] = mapped_column(String, nullable=True)
    operation: Mapped[str | None] = mapped_column(String, nullable=True)
    account: Mapped[str | None] = mapped_column(String, nullable=True)
    digit: Mapped[str | None] = mapped_column(String, nullable=True)
    pix_key_type: Mapped[str | None] = mapped_column(String, nullable=True)
    pix_key: Mapped[str | None] = mapped_column(String, nullable=True)

    requires_attendance_tracking: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )

    # Relationships
    time_records: Mapped[list[TimeRecord]] = relationship(back_populates="employee")


class TimeRecord(Base, RowMixin):
    """One worked day (clock-in) with the cost center it was booked to."""

    __tablename__ = "time_record"

    employee_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("employee.id", ondelete="CASCADE"),
        nullable=False,
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    cost_center: Mapped[str | None] = mapped_column(String, nullable=True)

    employee: Mapped[Employee] = relationship(back_populates="time_records")

    __table_args__ = (Index("time_record_employee_date_idx", "employee_id", "work_date"),)


class JustifiedAbsence(Base, RowMixin):
    """A registered absence day (medical certificate, leave) with its reason."""

    __tablename__ = "justified_absence"

    employee_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("employee.id", ondelete="CASCADE"),
        nullable=False,
    )
    absence_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str | None] = mapped_column(String, nullable=True)
