"""Payroll service - entry points over the aggregator and the encoder."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Mapping

from pydantic import ValidationError as PydanticValidationError

from payroll_remittance.calculators.engine import PayrollAggregator
from payroll_remittance.calculators.money import round_to_cents
from payroll_remittance.calculators.tax_calculator import TaxCalculator
from payroll_remittance.calculators.types import (
    ManualOverride,
    MonthlyPayroll,
    PayrollPeriod,
    PayrollRecord,
    PayrollTotals,
)
from payroll_remittance.config import Settings, get_settings
from payroll_remittance.errors import EmployeeNotFoundError, ValidationError
from payroll_remittance.remittance.cnab400 import Cnab400Document, Cnab400Encoder
from payroll_remittance.remittance.payment_lines import (
    BankPaymentLine,
    RemittancePreview,
    eligible_lines,
    payment_lines,
)
from payroll_remittance.repositories.base import Repositories
from payroll_remittance.schemas import (
    Cnab400Config,
    ManualOverrideInput,
    PayrollFilters,
    parse_filters,
)
from payroll_remittance.services.period_status import PeriodStatusService, validate_period

logger = logging.getLogger(__name__)

UNINFORMED = "Não informado"


@dataclass(frozen=True)
class GroupStats:
    """Headcount and benefit totals for one company or department."""

    key: str
    total_employees: int
    total_meal_allowance: Decimal
    total_transport_allowance: Decimal
    total_net: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "total_employees": self.total_employees,
            "total_meal_allowance": str(self.total_meal_allowance),
            "total_transport_allowance": str(self.total_transport_allowance),
            "total_net": str(self.total_net),
        }


def group_stats(records: list[PayrollRecord], key: Callable[[PayrollRecord], str]) -> list[GroupStats]:
    groups: dict[str, list[PayrollRecord]] = {}
    for record in records:
        groups.setdefault(key(record), []).append(record)
    result = []
    for name, members in groups.items():
        totals = PayrollTotals.from_records(members)
        result.append(
            GroupStats(
                key=name,
                total_employees=totals.total_employees,
                total_meal_allowance=totals.total_meal_allowance,
                total_transport_allowance=totals.total_transport_allowance,
                total_net=totals.total_net,
            )
        )
    return result


class PayrollService:
    """Monthly payroll, statistics, overrides and remittance generation."""

    def __init__(
        self,
        repositories: Repositories,
        settings: Settings | None = None,
        tax_calculator: TaxCalculator | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.repositories = repositories
        self.settings = settings or get_settings()
        self.aggregator = PayrollAggregator(
            repositories, self.settings, tax_calculator=tax_calculator, clock=clock
        )
        self.period_status = PeriodStatusService(repositories.period_status)

    def _coerce(self, filters: PayrollFilters | Mapping[str, Any]) -> PayrollFilters:
        if isinstance(filters, PayrollFilters):
            return filters
        return parse_filters(filters)

    def _reject_future(self, month: int, year: int) -> None:
        today = self.aggregator.today()
        if date(year, month, 1) > today:
            raise ValidationError(
                f"Cannot generate payroll for a future period ({month:02d}/{year})",
                field="month/year",
            )

    async def generate_monthly_payroll(
        self, filters: PayrollFilters | Mapping[str, Any]
    ) -> MonthlyPayroll:
        """Records, period and totals for the filtered employees."""
        filters = self._coerce(filters)
        self._reject_future(filters.month, filters.year)

        records = await self.aggregator.compute(filters)
        return MonthlyPayroll(
            employees=records,
            period=PayrollPeriod(month=filters.month, year=filters.year),
            totals=PayrollTotals.from_records(records),
        )

    async def get_employee_payroll(
        self, employee_id: str, month: int, year: int
    ) -> PayrollRecord:
        if not employee_id:
            raise ValidationError("Employee id is required", field="employee_id")
        validate_period(month, year)
        self._reject_future(month, year)

        profile = await self.repositories.employees.get_employee(employee_id)
        if profile is None:
            raise EmployeeNotFoundError(employee_id)
        return await self.aggregator.compute_for(profile, month, year)

    async def stats_by_company(self, month: int, year: int) -> list[GroupStats]:
        validate_period(month, year)
        payroll = await self.generate_monthly_payroll(PayrollFilters(month=month, year=year))
        return group_stats(payroll.employees, lambda r: r.company or UNINFORMED)

    async def stats_by_department(self, month: int, year: int) -> list[GroupStats]:
        validate_period(month, year)
        payroll = await self.generate_monthly_payroll(PayrollFilters(month=month, year=year))
        return group_stats(payroll.employees, lambda r: r.department or UNINFORMED)

    async def save_manual_override(
        self, data: ManualOverrideInput | Mapping[str, Any]
    ) -> ManualOverride:
        """Create or replace the override for (employee, month, year)."""
        if not isinstance(data, ManualOverrideInput):
            try:
                data = ManualOverrideInput.model_validate(dict(data))
            except PydanticValidationError as e:
                raise ValidationError(
                    f"Invalid manual override: {e.errors()[0]['msg']}",
                    field="override",
                    details=e.errors(),
                ) from e

        if await self.repositories.employees.get_employee(data.employee_id) is None:
            raise EmployeeNotFoundError(data.employee_id)

        def cents(value: Decimal | None) -> Decimal | None:
            return round_to_cents(value) if value is not None else None

        override = ManualOverride(
            employee_id=data.employee_id,
            month=data.month,
            year=data.year,
            inss_rescisao=cents(data.inss_rescisao),
            inss_13=cents(data.inss_13),
            absence_deduction=cents(data.absence_deduction),
            rest_day_loss=cents(data.rest_day_loss),
            overtime_value=cents(data.overtime_value),
            overtime_rest_value=cents(data.overtime_rest_value),
        )
        stored = await self.repositories.overrides.upsert(override)
        logger.info(
            "Manual override saved for employee %s in %02d/%d",
            data.employee_id,
            data.month,
            data.year,
        )
        return stored

    async def bank_payment_lines(
        self,
        filters: PayrollFilters | Mapping[str, Any],
        payment_date: date | None = None,
    ) -> list[BankPaymentLine]:
        """Payment projection of a finalized period (eligible or not)."""
        filters = self._coerce(filters)
        await self.period_status.require_finalized(filters.month, filters.year)
        payroll = await self.generate_monthly_payroll(filters)
        return payment_lines(payroll.employees, payment_date)

    async def remittance_preview(
        self, filters: PayrollFilters | Mapping[str, Any]
    ) -> RemittancePreview:
        filters = self._coerce(filters)
        payment_date = self.aggregator.today() + timedelta(days=1)
        lines = await self.bank_payment_lines(filters, payment_date)
        return RemittancePreview(
            month=filters.month, year=filters.year, payments=eligible_lines(lines)
        )

    async def generate_remittance(
        self,
        filters: PayrollFilters | Mapping[str, Any],
        config: Cnab400Config | None = None,
    ) -> Cnab400Document:
        """CNAB400 document for the eligible payments of a finalized period."""
        filters = self._coerce(filters)
        config = config or Cnab400Config.from_settings(self.settings)
        lines = await self.bank_payment_lines(filters)
        generation_date = config.generation_date or self.aggregator.today()
        return Cnab400Encoder(config).encode(
            lines, filters.month, filters.year, generation_date=generation_date
        )

    async def finalize_period(
        self, month: int, year: int, finalized_by: str | None = None
    ) -> None:
        await self.period_status.finalize(month, year, finalized_by)

    async def reopen_period(self, month: int, year: int) -> None:
        await self.period_status.reopen(month, year)

    async def is_period_finalized(self, month: int, year: int) -> bool:
        return await self.period_status.is_finalized(month, year)


