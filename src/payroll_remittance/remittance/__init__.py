"""Bank remittance encoding."""

from payroll_remittance.remittance.cnab400 import Cnab400Document, Cnab400Encoder
from payroll_remittance.remittance.payment_lines import BankPaymentLine, RemittancePreview

__all__ = [
    "BankPaymentLine",
    "Cnab400Document",
    "Cnab400Encoder",
    "RemittancePreview",
]
