"""Unit tests for TaxCalculator.

Covers the progressive INSS slices, the IRRF band table and FGTS.
"""

from decimal import Decimal

import pytest

from payroll_remittance.calculators.tax_calculator import (
    IRRF_BANDS_2026,
    TaxCalculator,
    derive_deductions,
)
from payroll_remittance.calculators.types import IncomeTaxBand, TaxBracket


class TestInss:
    """Progressive social security contribution."""

    def test_zero_and_negative_base(self):
        calc = TaxCalculator()
        assert calc.inss(Decimal("0")) == Decimal("0")
        assert calc.inss(Decimal("-10")) == Decimal("0")

    def test_first_bracket_only(self):
        """1621.00 x 7.5% = 121.575, rounded half up."""
        calc = TaxCalculator()
        assert calc.inss(Decimal("1621.00")) == Decimal("121.58")

    def test_two_brackets(self):
        """121.575 + (2800 - 1621) x 9% = 227.685."""
        calc = TaxCalculator()
        assert calc.inss(Decimal("2800.00")) == Decimal("227.69")

    def test_ceiling_value(self):
        calc = TaxCalculator()
        assert calc.inss(Decimal("8475.55")) == Decimal("988.09")

    def test_base_above_ceiling_is_capped(self):
        calc = TaxCalculator()
        assert calc.inss(Decimal("20000")) == calc.inss(calc.inss_ceiling)

    def test_injected_brackets(self):
        """A different year's table can be passed in."""
        calc = TaxCalculator(
            inss_brackets=[
                TaxBracket(Decimal("1000"), Decimal("2000"), Decimal("0.10")),
                TaxBracket(Decimal("0"), Decimal("1000"), Decimal("0.05")),
            ]
        )
        # Brackets are sorted by lower limit
        assert calc.inss(Decimal("1500")) == Decimal("100.00")
        assert calc.inss_ceiling == Decimal("2000")


class TestIrrf:
    """Income tax withholding bands."""

    @pytest.mark.parametrize(
        "base,expected",
        [
            ("0", "0"),
            ("4999.99", "0"),
            ("5000.00", "0"),
            ("6000.00", "75.00"),
            ("7500.00", "187.50"),
            ("10000.00", "562.50"),
            ("12500.00", "1125.00"),
            ("15000.00", "1812.50"),
        ],
    )
    def test_band_values(self, base, expected):
        calc = TaxCalculator()
        assert calc.irrf(Decimal(base)) == Decimal(expected)

    def test_continuous_at_thresholds(self):
        """Crossing a band limit by one cent moves the tax by at most cents."""
        calc = TaxCalculator()
        for band in IRRF_BANDS_2026[:-1]:
            below = calc.irrf(band.max_amount)
            above = calc.irrf(band.max_amount + Decimal("0.01"))
            assert Decimal("0") <= above - below <= Decimal("0.01")

    def test_simplified_deduction_floored_at_zero(self):
        calc = TaxCalculator()
        assert calc.irrf_base(Decimal("3000.00")) == Decimal("2392.80")
        assert calc.irrf_base(Decimal("500.00")) == Decimal("0")


class TestDeriveDeductions:
    """Deductions recomputed from band limits."""

    def test_matches_published_table(self):
        derived = derive_deductions(IRRF_BANDS_2026)
        assert derived == [band.deduction for band in IRRF_BANDS_2026]

    def test_custom_table(self):
        bands = [
            IncomeTaxBand(Decimal("1000"), Decimal("0"), Decimal("0")),
            IncomeTaxBand(None, Decimal("0.10"), Decimal("0")),
        ]
        assert derive_deductions(bands) == [Decimal("0"), Decimal("100.00")]


class TestFgts:
    def test_eight_percent(self):
        calc = TaxCalculator()
        assert calc.fgts(Decimal("2800.00")) == Decimal("224.00")

    def test_zero_base(self):
        calc = TaxCalculator()
        assert calc.fgts(Decimal("0")) == Decimal("0")
