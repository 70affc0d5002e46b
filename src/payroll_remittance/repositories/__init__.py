"""Repository interfaces and implementations."""

from payroll_remittance.repositories.base import Repositories
from payroll_remittance.repositories.memory import build_memory_repositories
from payroll_remittance.repositories.sql import build_sql_repositories

__all__ = [
    "Repositories",
    "build_memory_repositories",
    "build_sql_repositories",
]
