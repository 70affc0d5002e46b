"""Payroll calculation engines."""

from payroll_remittance.calculators.absence import AbsenceAdjustmentEngine
from payroll_remittance.calculators.benefits import BenefitsProrationEngine
from payroll_remittance.calculators.overtime import OvertimeProjector
from payroll_remittance.calculators.tax_calculator import TaxCalculator
from payroll_remittance.calculators.vacation import VacationContributionEngine
from payroll_remittance.calculators.working_days import WorkingDaysCalculator

__all__ = [
    "AbsenceAdjustmentEngine",
    "BenefitsProrationEngine",
    "OvertimeProjector",
    "TaxCalculator",
    "VacationContributionEngine",
    "WorkingDaysCalculator",
]
