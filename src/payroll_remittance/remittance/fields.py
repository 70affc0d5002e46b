"""Fixed-width field writer for legacy bank record layouts.

A ``RecordLayout`` is a named sequence of ``Field`` definitions whose widths
must add up to the record length; the check runs when the layout is built,
so a bad layout fails at import time, and again on every rendered line.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from payroll_remittance.errors import FieldOverflowError, RecordLengthInvariantError

RECORD_LENGTH = 400

_NON_DIGITS = re.compile(r"\D")


def ascii_upper(text: str) -> str:
    """Upper-case text folded to printable ASCII (accents stripped)."""
    decomposed = unicodedata.normalize("NFKD", text)
    folded = "".join(c for c in decomposed if not unicodedata.combining(c))
    ascii_only = folded.encode("ascii", "ignore").decode("ascii")
    return "".join(c if c.isprintable() else " " for c in ascii_only).upper()


def only_digits(value: Any) -> str:
    if value is None:
        return ""
    return _NON_DIGITS.sub("", str(value))


class FieldKind(str, Enum):
    ALPHA = "alpha"  # right-padded with spaces
    NUMERIC = "numeric"  # left-padded with zeros
    CONSTANT = "constant"  # literal written as is
    FILLER = "filler"  # blanks


@dataclass(frozen=True)
class Field:
    """One fixed-width field.

    Numeric fields marked ``strict`` raise ``FieldOverflowError`` when the
    value does not fit; other fields are truncated to their width.
    """

    name: str
    width: int
    kind: FieldKind = FieldKind.ALPHA
    strict: bool = False
    constant: str = ""
    default: str = ""

    def __post_init__(self) -> None:
        if self.width <= 0:
            raise ValueError(f"Field {self.name} must have a positive width")
        if self.kind == FieldKind.CONSTANT and len(self.constant) != self.width:
            raise ValueError(
                f"Constant field {self.name} is {len(self.constant)} chars, width {self.width}"
            )

    def render(self, value: Any, record: str) -> str:
        if self.kind == FieldKind.CONSTANT:
            return self.constant
        if self.kind == FieldKind.FILLER:
            return " " * self.width

        if value is None or value == "":
            value = self.default

        if self.kind == FieldKind.NUMERIC:
            digits = only_digits(value)
            if len(digits) > self.width:
                if self.strict:
                    raise FieldOverflowError(record, self.name, self.width, digits)
                digits = digits[: self.width]
            return digits.rjust(self.width, "0")

        text = ascii_upper(str(value))
        return text[: self.width].ljust(self.width, " ")


def alpha(name: str, width: int, default: str = "") -> Field:
    return Field(name, width, FieldKind.ALPHA, default=default)


def numeric(name: str, width: int, strict: bool = False, default: str = "") -> Field:
    return Field(name, width, FieldKind.NUMERIC, strict=strict, default=default)


def constant(name: str, value: str) -> Field:
    return Field(name, len(value), FieldKind.CONSTANT, constant=value)


def filler(name: str, width: int) -> Field:
    return Field(name, width, FieldKind.FILLER)


class RecordLayout:
    """Ordered field list rendering records of an exact length."""

    def __init__(self, name: str, fields: list[Field], length: int = RECORD_LENGTH):
        self.name = name
        self.fields = list(fields)
        self.length = length

        names = [f.name for f in self.fields]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"Layout {name} repeats fields: {sorted(duplicates)}")

        total = sum(f.width for f in self.fields)
        if total != length:
            raise RecordLengthInvariantError(name, length, total)

    def positions(self) -> dict[str, tuple[int, int]]:
        """1-based inclusive (start, end) position of every field."""
        result: dict[str, tuple[int, int]] = {}
        start = 1
        for f in self.fields:
            result[f.name] = (start, start + f.width - 1)
            start += f.width
        return result

    def render(self, values: Mapping[str, Any]) -> str:
        line = "".join(f.render(values.get(f.name), self.name) for f in self.fields)
        if len(line) != self.length:
            raise RecordLengthInvariantError(self.name, self.length, len(line))
        return line
