"""Repairers: dedicated per field group, plus the generic majority vote."""

from .address import AddressRepairer
from .birth_age import BirthAgeRepairer
from .salary_tax import SalaryTaxRepairer
from .ssn import SSNRepairer
from .voting import majority_vote, plurality

__all__ = [
    "AddressRepairer",
    "BirthAgeRepairer",
    "SalaryTaxRepairer",
    "SSNRepairer",
    "majority_vote",
    "plurality",
]
