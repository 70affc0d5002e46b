"""Payroll period finalization status."""

from __future__ import annotations

import logging
from enum import Enum

from payroll_remittance.errors import PeriodNotFinalizedError, ValidationError
from payroll_remittance.repositories.base import PayrollPeriodStatusRepository
from payroll_remittance.schemas import MAX_YEAR, MIN_YEAR

logger = logging.getLogger(__name__)


class PeriodStatus(str, Enum):
    """Payroll period status values."""

    OPEN = "open"
    FINALIZED = "finalized"


def validate_period(month: int, year: int) -> None:
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12", field="month", details=month)
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError(
            f"Year must be between {MIN_YEAR} and {MAX_YEAR}", field="year", details=year
        )


class PeriodStatusService:
    """Finalize/reopen a payroll month and guard finalized-only operations.

    Finalizing and reopening are idempotent: repeating either leaves the
    period in the requested status.
    """

    def __init__(self, repository: PayrollPeriodStatusRepository):
        self.repository = repository

    async def status(self, month: int, year: int) -> PeriodStatus:
        validate_period(month, year)
        if await self.repository.is_finalized(month, year):
            return PeriodStatus.FINALIZED
        return PeriodStatus.OPEN

    async def is_finalized(self, month: int, year: int) -> bool:
        return await self.status(month, year) == PeriodStatus.FINALIZED

    async def finalize(self, month: int, year: int, finalized_by: str | None = None) -> None:
        validate_period(month, year)
        await self.repository.finalize(month, year, finalized_by)
        logger.info("Payroll %02d/%d finalized by %s", month, year, finalized_by or "-")

    async def reopen(self, month: int, year: int) -> None:
        validate_period(month, year)
        await self.repository.reopen(month, year)
        logger.info("Payroll %02d/%d reopened", month, year)

    async def require_finalized(self, month: int, year: int) -> None:
        """Raise PeriodNotFinalizedError unless the period is finalized."""
        if not await self.is_finalized(month, year):
            raise PeriodNotFinalizedError(month, year)
