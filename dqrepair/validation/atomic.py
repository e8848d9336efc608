from __future__ import annotations

import logging
from enum import Enum

from ..models.schema import Attr

"""Single-field format validators.

Every validator is pure and total: `check()` never raises. A value that is
well-formed but not acceptable is REJECTED; a value that could not be examined
at all (non-string input, internal parse failure) is UNPARSEABLE. Callers that
only need accept/reject use `validate()`, where both mean invalid.
"""

__all__ = [
    "ValidationOutcome",
    "AtomicValidator",
    "NameValidator",
    "MiddleInitialValidator",
    "CityValidator",
    "StateValidator",
    "ZipValidator",
    "SSNValidator",
    "US_STATE_CODES",
    "default_atomic_validators",
]

logger = logging.getLogger(__name__)

US_STATE_CODES = frozenset(
    {
        "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "DC", "FL", "GA", "HI", "ID",
        "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD", "MA", "MI", "MN", "MS", "MO",
        "MT", "NE", "NV", "NH", "NJ", "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA",
        "RI", "SC", "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
        "AS", "GU", "MP", "PR", "VI",
    }
)


class ValidationOutcome(Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    UNPARSEABLE = "unparseable"

    @property
    def ok(self) -> bool:
        return self is ValidationOutcome.ACCEPTED


class AtomicValidator:
    """Base class: subclasses implement `_accepts` and may raise freely inside it."""

    name = "atomic"

    def check(self, value: object) -> ValidationOutcome:
        if not isinstance(value, str):
            return ValidationOutcome.UNPARSEABLE
        try:
            accepted = self._accepts(value)
        except Exception as e:  # total: any failure is a rejection
            logger.debug(f"{self.name}: unparseable value {value!r}: {e}")
            return ValidationOutcome.UNPARSEABLE
        return ValidationOutcome.ACCEPTED if accepted else ValidationOutcome.REJECTED

    def validate(self, value: object) -> bool:
        return self.check(value).ok

    def _accepts(self, value: str) -> bool:  # pragma: no cover - abstract
        raise NotImplementedError


class NameValidator(AtomicValidator):
    """First/last name: capitalised letters, inner apostrophe, hyphen or space allowed."""

    name = "name"
    _inner = frozenset("'- ")

    def _accepts(self, value: str) -> bool:
        if not value or not value[0].isalpha() or not value[0].isupper():
            return False
        if not value[-1].isalpha():
            return False
        return all(c.isalpha() or c in self._inner for c in value)


class MiddleInitialValidator(AtomicValidator):
    name = "minit"

    def _accepts(self, value: str) -> bool:
        if value == "":
            return True
        return len(value) == 1 and value.isalpha() and value.isupper()


class CityValidator(AtomicValidator):
    name = "city"
    _extra = frozenset(" .-'")

    def _accepts(self, value: str) -> bool:
        if not value or not value[0].isalpha():
            return False
        return all(c.isalpha() or c in self._extra for c in value)


class StateValidator(AtomicValidator):
    name = "state"

    def _accepts(self, value: str) -> bool:
        return value in US_STATE_CODES


class ZipValidator(AtomicValidator):
    name = "zip"

    def _accepts(self, value: str) -> bool:
        return len(value) == 5 and value.isascii() and value.isdigit()


class SSNValidator(AtomicValidator):
    name = "ssn"

    def _accepts(self, value: str) -> bool:
        if len(value) != 9 or not value.isascii() or not value.isdigit():
            return False
        return int(value) != 0


def default_atomic_validators() -> dict[Attr, AtomicValidator]:
    """Fresh validator registry for one run (attributes with a format rule only)."""
    name = NameValidator()
    return {
        Attr.FNAME: name,
        Attr.MINIT: MiddleInitialValidator(),
        Attr.LNAME: name,
        Attr.CITY: CityValidator(),
        Attr.STATE: StateValidator(),
        Attr.ZIP: ZipValidator(),
        Attr.SSN: SSNValidator(),
    }
