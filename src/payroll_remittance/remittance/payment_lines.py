"""Payment-ready projection of payroll records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Iterable

from payroll_remittance.calculators.money import ZERO, sum_amounts
from payroll_remittance.calculators.types import PayrollRecord


@dataclass(frozen=True)
class BankPaymentLine:
    """Net amount plus bank/PIX destination for one employee."""

    employee_id: str
    name: str
    cpf: str
    amount: Decimal
    bank: str | None = None
    account_type: str | None = None
    agency: str | None = None
    operation: str | None = None
    account: str | None = None
    digit: str | None = None
    pix_key_type: str | None = None
    pix_key: str | None = None
    payment_date: date | None = None

    @property
    def is_eligible(self) -> bool:
        """Bank, agency and account present and a strictly positive amount."""
        return (
            _present(self.bank)
            and _present(self.agency)
            and _present(self.account)
            and self.amount > ZERO
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "employee_id": self.employee_id,
            "name": self.name,
            "cpf": self.cpf,
            "amount": str(self.amount),
            "bank": self.bank,
            "account_type": self.account_type,
            "agency": self.agency,
            "operation": self.operation,
            "account": self.account,
            "digit": self.digit,
            "pix_key_type": self.pix_key_type,
            "pix_key": self.pix_key,
            "payment_date": self.payment_date.isoformat() if self.payment_date else None,
        }


def _present(value: str | None) -> bool:
    return value is not None and value.strip() != ""


def to_payment_line(record: PayrollRecord, payment_date: date | None = None) -> BankPaymentLine:
    return BankPaymentLine(
        employee_id=record.employee_id,
        name=record.name,
        cpf=record.cpf,
        amount=record.net_amount,
        bank=record.bank,
        account_type=record.account_type,
        agency=record.agency,
        operation=record.operation,
        account=record.account,
        digit=record.digit,
        pix_key_type=record.pix_key_type,
        pix_key=record.pix_key,
        payment_date=payment_date,
    )


def payment_lines(
    records: Iterable[PayrollRecord], payment_date: date | None = None
) -> list[BankPaymentLine]:
    """Project every record, eligible or not, keeping record order."""
    return [to_payment_line(r, payment_date) for r in records]


def eligible_lines(lines: Iterable[BankPaymentLine]) -> list[BankPaymentLine]:
    return [line for line in lines if line.is_eligible]


@dataclass
class RemittancePreview:
    """What a remittance for the period would contain."""

    month: int
    year: int
    payments: list[BankPaymentLine] = field(default_factory=list)

    @property
    def total_payments(self) -> int:
        return len(self.payments)

    @property
    def total_amount(self) -> Decimal:
        return sum_amounts(p.amount for p in self.payments)

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "year": self.year,
            "total_payments": self.total_payments,
            "total_amount": str(self.total_amount),
            "payments": [p.to_dict() for p in self.payments],
        }
