"""Pydantic schemas for validated inputs at the core boundary."""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from payroll_remittance.calculators.types import EmployeeProfile, fold_text
from payroll_remittance.config import Settings
from payroll_remittance.errors import ValidationError

MIN_YEAR = 2020
MAX_YEAR = 2030


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _contains(haystack: str | None, needle: str | None) -> bool:
    if needle is None:
        return True
    if haystack is None:
        return False
    return fold_text(needle) in fold_text(haystack)


class PayrollFilters(BaseModel):
    """Period plus optional employee filters for a payroll run."""

    model_config = ConfigDict(frozen=True)

    month: int = Field(ge=1, le=12)
    year: int = Field(ge=MIN_YEAR, le=MAX_YEAR)
    search: str | None = None
    company: str | None = None
    department: str | None = None
    position: str | None = None
    cost_center: str | None = None
    client: str | None = None
    modality: str | None = None
    bank: str | None = None
    account_type: str | None = None
    polo: str | None = None
    for_allocation: bool = False

    @field_validator(
        "search",
        "company",
        "department",
        "position",
        "cost_center",
        "client",
        "modality",
        "bank",
        "account_type",
        "polo",
        mode="before",
    )
    @classmethod
    def empty_is_none(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @property
    def period_start(self) -> date:
        return date(self.year, self.month, 1)

    def matches(self, profile: EmployeeProfile) -> bool:
        """Apply the search text and attribute filters to one profile."""
        if self.search is not None and not self._matches_search(profile):
            return False

        checks = [
            (profile.company, self.company),
            (profile.department, self.department),
            (profile.position, self.position),
            (profile.cost_center, self.cost_center),
            (profile.client, self.client),
            (profile.modality.value, self.modality),
            (profile.bank, self.bank),
            (profile.account_type, self.account_type),
            (profile.polo, self.polo),
        ]
        if not all(_contains(value, needle) for value, needle in checks):
            return False

        if self.for_allocation and not profile.requires_attendance_tracking:
            return False
        return True

    def _matches_search(self, profile: EmployeeProfile) -> bool:
        search = self.search or ""
        digits = re.sub(r"\D", "", search)
        if digits and digits in re.sub(r"\D", "", profile.cpf or ""):
            return True
        searchable = (
            profile.name,
            profile.email,
            profile.employee_code,
            profile.department,
            profile.position,
            profile.company,
            profile.cost_center,
            profile.client,
            profile.modality.value,
            profile.bank,
            profile.account_type,
            profile.agency,
            profile.account,
            profile.pix_key_type,
            profile.pix_key,
        )
        return any(_contains(value, search) for value in searchable)


def parse_filters(raw: Mapping[str, Any]) -> PayrollFilters:
    """Build filters from loosely typed input (e.g. query-string values)."""
    if raw.get("month") in (None, "") or raw.get("year") in (None, ""):
        raise ValidationError("Month and year are required", field="month/year")
    try:
        return PayrollFilters.model_validate(dict(raw))
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ValidationError(
            f"Invalid payroll filter '{field}': {first['msg']}",
            field=field,
            details=e.errors(),
        ) from e


class Cnab400Config(BaseModel):
    """Originating company data and dates for one remittance file."""

    model_config = ConfigDict(frozen=True)

    company_code: str = Field(min_length=1)
    company_name: str = Field(min_length=1)
    company_cnpj: str = ""
    agency: str = ""
    account: str = ""
    digit: str = "0"
    sequence: int = Field(default=1, ge=1)
    generation_date: date | None = None
    payment_date: date | None = None

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> Cnab400Config:
        """Config seeded from the ITAU_EMPRESA_* and PAYROLL_COMPANY_NAME settings."""
        values: dict[str, Any] = {
            "company_code": settings.company_code,
            "company_name": settings.company_name,
            "agency": settings.company_agency,
            "account": settings.company_account,
            "digit": settings.company_digit,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls.model_validate(values)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid CNAB400 configuration: {e.errors()[0]['msg']}",
                field="cnab400",
                details=e.errors(),
            ) from e


class ManualOverrideInput(BaseModel):
    """Upsert payload for a manual override."""

    employee_id: str = Field(min_length=1)
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=MIN_YEAR, le=MAX_YEAR)
    inss_rescisao: Decimal | None = Field(default=None, ge=0)
    inss_13: Decimal | None = Field(default=None, ge=0)
    absence_deduction: Decimal | None = Field(default=None, ge=0)
    rest_day_loss: Decimal | None = Field(default=None, ge=0)
    overtime_value: Decimal | None = Field(default=None, ge=0)
    overtime_rest_value: Decimal | None = Field(default=None, ge=0)
