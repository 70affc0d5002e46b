"""Error taxonomy for payroll computation and remittance generation."""

from __future__ import annotations

from typing import Any


class PayrollError(Exception):
    """Base class for every error raised by the payroll core."""


class ValidationError(PayrollError, ValueError):
    """Raised when a request carries missing or out-of-range parameters."""

    def __init__(self, message: str, field: str | None = None, details: Any = None):
        self.field = field
        self.details = details
        super().__init__(message)


class EmployeeNotFoundError(PayrollError):
    """Raised when an employee id does not resolve to a profile."""

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(f"Employee {employee_id} not found")


class PeriodNotFinalizedError(PayrollError):
    """Raised when remittance or report generation targets an open period."""

    def __init__(self, month: int, year: int):
        self.month = month
        self.year = year
        super().__init__(
            f"Payroll for {month:02d}/{year} has not been finalized by the personnel department"
        )


class NoEligiblePaymentsError(PayrollError):
    """Raised when a remittance would contain no payment records."""

    def __init__(self, month: int, year: int):
        self.month = month
        self.year = year
        super().__init__(
            f"No eligible payments found to build a CNAB400 remittance for {month:02d}/{year}"
        )


class RecordLengthInvariantError(PayrollError):
    """Raised when a fixed-width record does not have the required length.

    This always indicates a field-width defect; the whole document is aborted.
    """

    def __init__(
        self,
        record: str,
        expected: int,
        actual: int,
        message: str | None = None,
    ):
        self.record = record
        self.expected = expected
        self.actual = actual
        super().__init__(
            message or f"{record} record must have {expected} characters, got {actual}"
        )


class FieldOverflowError(RecordLengthInvariantError):
    """Raised when a numeric value does not fit its fixed-width field."""

    def __init__(self, record: str, field: str, width: int, value: str):
        self.field = field
        self.value = value
        super().__init__(
            record,
            width,
            len(value),
            f"{record}.{field} holds {width} digits, value '{value}' has {len(value)}",
        )


class PerEmployeeComputationError(PayrollError):
    """Raised when a single employee's payroll cannot be computed.

    The aggregator recovers from it by dropping the employee from the run.
    """

    def __init__(self, employee_id: str, month: int, year: int, reason: str):
        self.employee_id = employee_id
        self.month = month
        self.year = year
        self.reason = reason
        super().__init__(
            f"Cannot compute payroll for employee {employee_id} in {month:02d}/{year}: {reason}"
        )
