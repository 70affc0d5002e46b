"""Monthly payroll computation and CNAB400 bank remittance generation."""

__version__ = "1.0.0"
