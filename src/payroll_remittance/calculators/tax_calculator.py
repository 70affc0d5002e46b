"""Progressive INSS, IRRF band table and FGTS calculations.

Tables are plain data (``TaxBracket`` / ``IncomeTaxBand`` lists) so a
different year can be injected without touching the math.
"""

from __future__ import annotations

from decimal import Decimal

from payroll_remittance.calculators.money import ZERO, non_negative, round_to_cents
from payroll_remittance.calculators.types import IncomeTaxBand, TaxBracket

# INSS 2026: marginal slices up to the contribution ceiling
INSS_BRACKETS_2026 = [
    TaxBracket(Decimal("0.00"), Decimal("1621.00"), Decimal("0.075")),
    TaxBracket(Decimal("1621.00"), Decimal("2902.84"), Decimal("0.09")),
    TaxBracket(Decimal("2902.84"), Decimal("4354.27"), Decimal("0.12")),
    TaxBracket(Decimal("4354.27"), Decimal("8475.55"), Decimal("0.14")),
]

# IRRF 2026: base * rate - deduction within each band
IRRF_BANDS_2026 = [
    IncomeTaxBand(Decimal("5000.00"), Decimal("0"), Decimal("0.00")),
    IncomeTaxBand(Decimal("7500.00"), Decimal("0.075"), Decimal("375.00")),
    IncomeTaxBand(Decimal("10000.00"), Decimal("0.15"), Decimal("937.50")),
    IncomeTaxBand(Decimal("12500.00"), Decimal("0.225"), Decimal("1687.50")),
    IncomeTaxBand(None, Decimal("0.275"), Decimal("2312.50")),
]

# Simplified monthly deduction subtracted from the gross before the IRRF table
IRRF_SIMPLIFIED_DEDUCTION = Decimal("607.20")

FGTS_RATE = Decimal("0.08")


def derive_deductions(bands: list[IncomeTaxBand]) -> list[Decimal]:
    """Recompute each band's deduction from the band limits and rates.

    The deduction of band k is the one that makes ``base * rate - deduction``
    equal to the previous band's value at the lower limit, which keeps the
    withholding continuous across thresholds.
    """
    deductions: list[Decimal] = []
    lower = ZERO
    previous_rate = ZERO
    previous_deduction = ZERO
    for band in bands:
        deduction = previous_deduction + lower * (band.rate - previous_rate)
        deductions.append(deduction)
        previous_rate = band.rate
        previous_deduction = deduction
        if band.max_amount is not None:
            lower = band.max_amount
    return deductions


class TaxCalculator:
    """Computes INSS, IRRF and FGTS over a monthly base."""

    def __init__(
        self,
        inss_brackets: list[TaxBracket] | None = None,
        irrf_bands: list[IncomeTaxBand] | None = None,
        simplified_deduction: Decimal = IRRF_SIMPLIFIED_DEDUCTION,
        fgts_rate: Decimal = FGTS_RATE,
    ):
        self.inss_brackets = sorted(
            inss_brackets or INSS_BRACKETS_2026, key=lambda b: b.min_amount
        )
        self.irrf_bands = list(irrf_bands or IRRF_BANDS_2026)
        self.simplified_deduction = simplified_deduction
        self.fgts_rate = fgts_rate

    @property
    def inss_ceiling(self) -> Decimal:
        return self.inss_brackets[-1].max_amount

    def inss(self, base: Decimal) -> Decimal:
        """Social security contribution as the sum of slice width x slice rate."""
        if base <= 0:
            return ZERO

        capped = min(base, self.inss_ceiling)
        total = ZERO
        for bracket in self.inss_brackets:
            if capped <= bracket.min_amount:
                break
            slice_top = min(capped, bracket.max_amount)
            total += (slice_top - bracket.min_amount) * bracket.rate

        return round_to_cents(total)

    def irrf(self, base: Decimal) -> Decimal:
        """Income tax withheld at source for an already-deducted base."""
        if base <= 0:
            return ZERO

        band = self._band_for(base)
        return round_to_cents(non_negative(base * band.rate - band.deduction))

    def fgts(self, base: Decimal) -> Decimal:
        if base <= 0:
            return ZERO
        return round_to_cents(base * self.fgts_rate)

    def irrf_base(self, gross: Decimal) -> Decimal:
        """Gross minus the simplified deduction, floored at zero."""
        return non_negative(gross - self.simplified_deduction)

    def _band_for(self, base: Decimal) -> IncomeTaxBand:
        for band in self.irrf_bands:
            if band.max_amount is None or base <= band.max_amount:
                return band
        return self.irrf_bands[-1]
