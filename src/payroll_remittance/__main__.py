"""Entry point for ``python -m payroll_remittance``."""

import sys

from payroll_remittance.cli import main

if __name__ == "__main__":
    sys.exit(main())
