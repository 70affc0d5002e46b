"""CNAB400 payment remittance encoder (Banco Itau layout).

Every line is exactly 400 characters: one header (record 0), one detail
(record 1) per eligible payment and one trailer (record 9). Lines are joined
with CR+LF and encoded as Latin-1.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from payroll_remittance.calculators.money import sum_amounts, to_cents
from payroll_remittance.calculators.types import fold_text
from payroll_remittance.errors import NoEligiblePaymentsError, RecordLengthInvariantError
from payroll_remittance.remittance.fields import (
    RECORD_LENGTH,
    RecordLayout,
    alpha,
    constant,
    filler,
    numeric,
    only_digits,
)
from payroll_remittance.remittance.payment_lines import BankPaymentLine, eligible_lines
from payroll_remittance.schemas import Cnab400Config

logger = logging.getLogger(__name__)

ITAU_CODE = "341"
LINE_SEPARATOR = "\r\n"
ENCODING = "latin-1"

# Destination bank codes by (folded) bank name
BANK_CODES = {
    "itau": "341",
    "bradesco": "237",
    "banco do brasil": "001",
    "bb": "001",
    "caixa": "104",
    "santander": "033",
    "nubank": "260",
    "nu pagamentos": "260",
    "inter": "077",
    "sicoob": "756",
    "sicredi": "748",
    "c6": "336",
    "original": "212",
    "safra": "422",
    "banrisul": "041",
}

HEADER_LAYOUT = RecordLayout(
    "header",
    [
        constant("record_type", "0"),
        constant("operation_type", "1"),
        constant("operation_literal", "REMESSA"),
        constant("service_type", "01"),
        filler("complement_1", 15),
        numeric("company_code", 20),
        alpha("company_name", 30),
        constant("bank_code", ITAU_CODE),
        alpha("bank_name", 15, default="BANCO ITAU SA"),
        numeric("generation_date", 6, strict=True),
        filler("system_id", 8),
        constant("layout_version", "01"),
        numeric("remittance_sequence", 7, strict=True),
        filler("complement_2", 277),
        constant("record_sequence", "000001"),
    ],
)

DETAIL_LAYOUT = RecordLayout(
    "detail",
    [
        constant("record_type", "1"),
        numeric("agency", 5),
        constant("agency_digit", "0"),
        numeric("account", 5),
        alpha("account_digit", 1, default="0"),
        filler("agency_account_digit", 1),
        alpha("name", 23),
        numeric("document", 14),
        numeric("due_date", 8, strict=True),
        numeric("amount", 13, strict=True),
        constant("currency", "00"),
        constant("operation", "01"),
        numeric("destination_bank", 3),
        numeric("account_type", 1, default="1"),
        numeric("agency_full", 10),
        numeric("account_full", 15),
        alpha("account_full_digit", 1, default="0"),
        alpha("full_name", 40),
        numeric("amount_check", 13, strict=True),
        numeric("payment_date", 6, strict=True),
        numeric("amount_paid", 13, strict=True),
        numeric("inscription_number", 13),
        filler("complement_1", 13),
        filler("return_code", 2),
        constant("inscription_type", "1"),
        numeric("inscription_cpf", 14),
        filler("complement_2", 173),
        numeric("record_sequence", 6, strict=True),
    ],
)

TRAILER_LAYOUT = RecordLayout(
    "trailer",
    [
        constant("record_type", "9"),
        filler("complement", 393),
        numeric("record_sequence", 6, strict=True),
    ],
)


def resolve_bank_code(bank: str | None) -> str:
    """Three-digit destination bank code; unknown banks default to Itau."""
    if not bank:
        return ITAU_CODE
    digits = only_digits(bank)
    if digits and len(digits) <= 3 and digits == bank.strip():
        return digits.zfill(3)
    folded = fold_text(bank).strip()
    if folded in BANK_CODES:
        return BANK_CODES[folded]
    for name, code in BANK_CODES.items():
        if len(name) > 2 and name in folded:
            return code
    return ITAU_CODE


def account_type_flag(account_type: str | None) -> str:
    """1 = checking, 2 = savings."""
    if account_type and "poupanc" in fold_text(account_type):
        return "2"
    return "1"


@dataclass
class Cnab400Document:
    """A rendered remittance file."""

    lines: list[str]
    month: int
    year: int
    total_payments: int
    total_amount: Decimal
    generation_date: date
    payment_date: date

    @property
    def filename(self) -> str:
        return f"CNAB400-{self.month:02d}-{self.year}.txt"

    def to_text(self) -> str:
        return LINE_SEPARATOR.join(self.lines)

    def to_bytes(self) -> bytes:
        return self.to_text().encode(ENCODING)


class Cnab400Encoder:
    """Renders eligible payment lines into a CNAB400 document."""

    def __init__(self, config: Cnab400Config):
        self.config = config

    def encode(
        self,
        payments: list[BankPaymentLine],
        month: int,
        year: int,
        generation_date: date | None = None,
    ) -> Cnab400Document:
        """Build the document; refuses to produce a file without payments."""
        eligible = eligible_lines(payments)
        if not eligible:
            raise NoEligiblePaymentsError(month, year)

        generated_on = generation_date or self.config.generation_date or date.today()
        pay_on = self.config.payment_date or generated_on + timedelta(days=1)

        lines = [self.header(generated_on)]
        for index, payment in enumerate(eligible, start=1):
            lines.append(self.detail(payment, index, payment.payment_date or pay_on))
        lines.append(self.trailer(len(eligible)))

        for number, line in enumerate(lines, start=1):
            if len(line) != RECORD_LENGTH or len(line.encode(ENCODING)) != RECORD_LENGTH:
                raise RecordLengthInvariantError(f"line {number}", RECORD_LENGTH, len(line))

        document = Cnab400Document(
            lines=lines,
            month=month,
            year=year,
            total_payments=len(eligible),
            total_amount=sum_amounts(p.amount for p in eligible),
            generation_date=generated_on,
            payment_date=pay_on,
        )
        logger.info(
            "CNAB400 %s generated: %d payments, total %s",
            document.filename,
            document.total_payments,
            document.total_amount,
        )
        return document

    def header(self, generation_date: date) -> str:
        config = self.config
        return HEADER_LAYOUT.render(
            {
                "company_code": config.company_code,
                "company_name": config.company_name,
                "generation_date": generation_date.strftime("%d%m%y"),
                "remittance_sequence": config.sequence,
            }
        )

    def detail(self, payment: BankPaymentLine, position: int, payment_date: date) -> str:
        """Detail record; its sequence is position + 1 since the header is 000001."""
        cpf = only_digits(payment.cpf)
        agency = only_digits(payment.agency)
        account = only_digits(payment.account)
        digit = (payment.digit or "").strip()[:1] or "0"
        cents = to_cents(payment.amount)

        return DETAIL_LAYOUT.render(
            {
                "agency": agency[:5],
                "account": account[:5],
                "account_digit": digit,
                "name": payment.name,
                "document": cpf,
                "due_date": payment_date.strftime("%d%m%Y"),
                "amount": cents,
                "destination_bank": resolve_bank_code(payment.bank),
                "account_type": account_type_flag(payment.account_type),
                "agency_full": agency,
                "account_full": account,
                "account_full_digit": digit,
                "full_name": payment.name,
                "amount_check": cents,
                "payment_date": payment_date.strftime("%d%m%y"),
                "amount_paid": cents,
                "inscription_number": cpf,
                "inscription_cpf": cpf,
                "record_sequence": position + 1,
            }
        )

    def trailer(self, detail_count: int) -> str:
        return TRAILER_LAYOUT.render({"record_sequence": detail_count + 2})
