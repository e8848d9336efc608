from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .schema import Attr

if TYPE_CHECKING:
    from ..validation.atomic import AtomicValidator

"""Per-run repair configuration.

Built once per run and handed to the engine. Holds the atomic validator registry,
the auto-repair eligibility set and the birth/age parameters, so differently
configured runs never share state.
"""

DEFAULT_REFERENCE_YEAR = 2015
DEFAULT_BIRTH_FORMATS: tuple[str, ...] = ("%m-%d-%Y", "%m/%d/%Y")

# Attributes with a dedicated repairer (or unsafe to guess) are not auto-repaired.
DEFAULT_AUTO_REPAIR: frozenset[Attr] = frozenset(
    {Attr.FNAME, Attr.MINIT, Attr.LNAME, Attr.CITY, Attr.STATE, Attr.ZIP}
)


@dataclass(frozen=True)
class RepairConfig:
    """Validation/repair settings for one run."""
    atomic_validators: Mapping[Attr, AtomicValidator]
    auto_repair: frozenset[Attr] = DEFAULT_AUTO_REPAIR
    reference_year: int = DEFAULT_REFERENCE_YEAR
    birth_formats: tuple[str, ...] = DEFAULT_BIRTH_FORMATS
    separator: str = ":"

    @classmethod
    def default(cls, **overrides: object) -> RepairConfig:
        from ..validation.atomic import default_atomic_validators

        return cls(atomic_validators=default_atomic_validators(), **overrides)  # type: ignore[arg-type]

    def is_auto_repair(self, attr: Attr) -> bool:
        return attr in self.auto_repair
