"""Atomic (single-field) and composite (field-group) validators."""

from .atomic import AtomicValidator, ValidationOutcome, default_atomic_validators
from .composite import (
    AddressValidator,
    BirthAgeValidator,
    CompositeResult,
    SalaryTaxValidator,
    Verdict,
)

__all__ = [
    "AtomicValidator",
    "ValidationOutcome",
    "default_atomic_validators",
    "AddressValidator",
    "BirthAgeValidator",
    "CompositeResult",
    "SalaryTaxValidator",
    "Verdict",
]
