from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from ..models.config_models import DEFAULT_BIRTH_FORMATS, DEFAULT_REFERENCE_YEAR
from ..models.schema import ADDRESS_GROUP, BIRTH_AGE_GROUP, SALARY_TAX_GROUP, Attr

"""Cross-field (composite) validators.

A composite validator looks at the raw values of one field group and classifies
them as:

- VALID: every field of the group is kept as validated.
- FIELD_INVALID: the listed fields are malformed on their own; the others stay valid.
- HARD_CONFLICT: the fields cannot be reconciled and blame cannot be localized, so
  the whole group is invalidated.

Validators never raise on bad input; malformed values (including None) are
classified, not propagated as exceptions.
"""

__all__ = [
    "Verdict",
    "CompositeResult",
    "CompositeValidator",
    "AddressValidator",
    "BirthAgeValidator",
    "SalaryTaxValidator",
]

PO_BOX_PREFIX = "po box"

_STREET_NUMBER_RE = re.compile(r"[0-9]{1,4}")
_APARTMENT_RE = re.compile(r"[0-9][a-z][0-9]")
_BOX_NUMBER_RE = re.compile(r"[+-]?[0-9]+")
_AGE_RE = re.compile(r"[0-9]{1,3}")
_AMOUNT_RE = re.compile(r"[0-9]{1,12}")
_WS_RE = re.compile(r"\s", re.ASCII)

MAX_AGE = 150
BOX_NUMBER_MIN, BOX_NUMBER_MAX = -(2**31), 2**31 - 1


class Verdict(Enum):
    VALID = "valid"
    FIELD_INVALID = "field_invalid"
    HARD_CONFLICT = "hard_conflict"


@dataclass(frozen=True)
class CompositeResult:
    verdict: Verdict
    fields: frozenset[Attr] = frozenset()

    def __post_init__(self) -> None:
        if self.verdict is Verdict.FIELD_INVALID and not self.fields:
            raise ValueError("FIELD_INVALID requires at least one field")
        if self.verdict is not Verdict.FIELD_INVALID and self.fields:
            raise ValueError(f"{self.verdict.name} cannot name fields")

    @classmethod
    def valid(cls) -> CompositeResult:
        return cls(Verdict.VALID)

    @classmethod
    def field_invalid(cls, *fields: Attr) -> CompositeResult:
        return cls(Verdict.FIELD_INVALID, frozenset(fields))

    @classmethod
    def hard_conflict(cls) -> CompositeResult:
        return cls(Verdict.HARD_CONFLICT)

    @property
    def is_valid(self) -> bool:
        return self.verdict is Verdict.VALID

    def invalidated(self, group: Iterable[Attr]) -> frozenset[Attr]:
        if self.verdict is Verdict.HARD_CONFLICT:
            return frozenset(group)
        return self.fields


class CompositeValidator:
    """Base class for group validators; `fields` is the group in schema order."""

    fields: tuple[Attr, ...] = ()

    def resolve(self, result: CompositeResult, raw: Mapping[Attr, str]) -> dict[Attr, str | None]:
        """Validated value per group field: the raw value, or None when invalidated."""
        invalid = result.invalidated(self.fields)
        stray = invalid - set(self.fields)
        if stray:
            raise ValueError(f"result blames fields outside the group: {sorted(a.name for a in stray)}")
        return {a: (None if a in invalid else raw[a]) for a in self.fields}


def _is_street(value: object) -> bool:
    return isinstance(value, str) and all(c.isalpha() or c in " ,." for c in value)


def _is_street_number(value: object) -> bool:
    return isinstance(value, str) and _STREET_NUMBER_RE.fullmatch(value) is not None


def _is_apartment(value: object) -> bool:
    return isinstance(value, str) and _APARTMENT_RE.fullmatch(value) is not None


def _is_empty(value: object) -> bool:
    return value is None or value == ""


class AddressValidator(CompositeValidator):
    """Street address / street number / apartment.

    Two shapes are accepted:
    - ``po box <integer>`` with empty street number and apartment. Any street
      starting with "po box" takes this branch; it must split on single
      whitespace into exactly three tokens (trailing whitespace ignored) and
      the third must be a signed 32-bit integer, so "po boxes 12" and
      "po box +12" pass while "po  box 12" does not.
    - street text (letters, spaces, commas, periods; may be empty) + 1-4 digit
      number + apartment code ``<digit><lowercase letter><digit>``
    """

    fields = ADDRESS_GROUP

    @staticmethod
    def _is_po_box_address(stadd: str) -> bool:
        tokens = _WS_RE.split(stadd.lower())
        while tokens and not tokens[-1]:
            tokens.pop()
        if len(tokens) != 3 or _BOX_NUMBER_RE.fullmatch(tokens[2]) is None:
            return False
        return BOX_NUMBER_MIN <= int(tokens[2]) <= BOX_NUMBER_MAX

    def validate(self, stadd: str | None, stnum: str | None, apmt: str | None) -> bool:
        """Non-strict combined check: True only for one of the two accepted shapes."""
        if not isinstance(stadd, str):
            return False
        if stadd.lower().startswith(PO_BOX_PREFIX):
            return self._is_po_box_address(stadd) and _is_empty(stnum) and _is_empty(apmt)
        return _is_street(stadd) and _is_street_number(stnum) and _is_apartment(apmt)

    def strict_validate(self, stadd: str | None, stnum: str | None, apmt: str | None) -> CompositeResult:
        if isinstance(stadd, str) and stadd.lower().startswith(PO_BOX_PREFIX):
            extras = [a for a, v in ((Attr.STNUM, stnum), (Attr.APMT, apmt)) if not _is_empty(v)]
            if self._is_po_box_address(stadd):
                return CompositeResult.field_invalid(*extras) if extras else CompositeResult.valid()
            if not extras:
                return CompositeResult.field_invalid(Attr.STADD)
            # 私書箱か番地か判別不能
            return CompositeResult.hard_conflict()

        bad = [
            attr
            for attr, ok in (
                (Attr.STADD, _is_street(stadd)),
                (Attr.STNUM, _is_street_number(stnum)),
                (Attr.APMT, _is_apartment(apmt)),
            )
            if not ok
        ]
        if not bad:
            return CompositeResult.valid()
        if len(bad) == 1:
            return CompositeResult.field_invalid(bad[0])
        return CompositeResult.hard_conflict()


class BirthAgeValidator(CompositeValidator):
    """Birth date and age must each parse and agree with the reference year."""

    fields = BIRTH_AGE_GROUP

    def __init__(
        self,
        reference_year: int = DEFAULT_REFERENCE_YEAR,
        birth_formats: Iterable[str] = DEFAULT_BIRTH_FORMATS,
    ) -> None:
        self.reference_year = reference_year
        self.birth_formats = tuple(birth_formats)

    def parse_birth(self, birth: object) -> date | None:
        if not isinstance(birth, str) or not birth:
            return None
        for fmt in self.birth_formats:
            try:
                parsed = datetime.strptime(birth, fmt).date()
            except ValueError:
                continue
            if parsed.year > self.reference_year:
                return None
            return parsed
        return None

    @staticmethod
    def parse_age(age: object) -> int | None:
        if not isinstance(age, str) or _AGE_RE.fullmatch(age) is None:
            return None
        value = int(age)
        return value if value <= MAX_AGE else None

    def expected_ages(self, birth: date) -> tuple[int, int]:
        """Ages consistent with a birth date (birthday passed / not yet passed)."""
        age = self.reference_year - birth.year
        return (age, age - 1)

    def consistent(self, birth: date, age: int) -> bool:
        return age in self.expected_ages(birth)

    def validate(self, birth: str | None, age: str | None) -> bool:
        return self.strict_validate(birth, age).is_valid

    def strict_validate(self, birth: str | None, age: str | None) -> CompositeResult:
        b = self.parse_birth(birth)
        a = self.parse_age(age)
        flagged = [attr for attr, v in ((Attr.BIRTH, b), (Attr.AGE, a)) if v is None]
        if flagged:
            return CompositeResult.field_invalid(*flagged)
        if not self.consistent(b, a):  # type: ignore[arg-type]
            return CompositeResult.hard_conflict()
        return CompositeResult.valid()


class SalaryTaxValidator(CompositeValidator):
    """Salary and tax amounts, checked against each other and the row's ssn.

    `ssn` is the row's atomically validated ssn or None. A person with a valid ssn
    is expected to earn a salary, so a zero salary next to a valid ssn is blamed on
    the salary.
    """

    fields = SALARY_TAX_GROUP

    @staticmethod
    def parse_amount(value: object) -> int | None:
        if not isinstance(value, str) or _AMOUNT_RE.fullmatch(value) is None:
            return None
        return int(value)

    def validate(self, salary: str | None, tax: str | None, ssn: str | None = None) -> bool:
        return self.strict_validate(salary, tax, ssn).is_valid

    def strict_validate(self, salary: str | None, tax: str | None, ssn: str | None) -> CompositeResult:
        s = self.parse_amount(salary)
        t = self.parse_amount(tax)
        flagged = [attr for attr, v in ((Attr.SALARY, s), (Attr.TAX, t)) if v is None]
        if flagged:
            return CompositeResult.field_invalid(*flagged)
        if t > s:  # type: ignore[operator]
            return CompositeResult.hard_conflict()
        if s == 0 and ssn is not None:
            return CompositeResult.field_invalid(Attr.SALARY)
        return CompositeResult.valid()
