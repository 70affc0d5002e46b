"""Pytest fixtures for payroll remittance tests."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable
from zoneinfo import ZoneInfo

import pytest

from payroll_remittance.calculators.types import EmployeeProfile
from payroll_remittance.config import Settings
from payroll_remittance.repositories.memory import build_memory_repositories

SAO_PAULO = ZoneInfo("America/Sao_Paulo")


@pytest.fixture
def settings() -> Settings:
    """Deterministic settings independent of the environment."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        timezone="America/Sao_Paulo",
        minimum_wage=Decimal("1621.00"),
        max_concurrency=4,
        log_level="DEBUG",
        company_code="12345678",
        company_agency="1234",
        company_account="56789",
        company_digit="0",
    )


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Wall clock pinned to 2026-10-19 noon in Sao Paulo."""
    now = datetime(2026, 10, 19, 12, 0, tzinfo=SAO_PAULO)
    return lambda: now


@pytest.fixture
def make_profile() -> Callable[..., EmployeeProfile]:
    """Factory for employee profiles with sensible defaults."""

    def _make(**overrides: Any) -> EmployeeProfile:
        values: dict[str, Any] = {
            "id": "emp-1",
            "name": "Ana Souza",
            "cpf": "123.456.789-01",
            "position": "Analista",
            "department": "Financeiro",
            "active_since": date(2024, 1, 15),
            "salary": Decimal("3000.00"),
            "employee_code": "F001",
            "email": "ana@example.com",
            "company": "Matriz",
            "cost_center": "ADM",
            "bank": "Itau",
            "account_type": "Corrente",
            "agency": "1234",
            "account": "56789",
            "digit": "1",
        }
        values.update(overrides)
        return EmployeeProfile(**values)

    return _make


@pytest.fixture
def repositories():
    """Empty in-memory repository bundle."""
    return build_memory_repositories()
