"""Payroll services."""

from payroll_remittance.services.payroll_service import GroupStats, PayrollService
from payroll_remittance.services.period_status import PeriodStatus, PeriodStatusService

__all__ = [
    "GroupStats",
    "PayrollService",
    "PeriodStatus",
    "PeriodStatusService",
]
