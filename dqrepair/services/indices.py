from __future__ import annotations

import bisect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from ..models.invalid_attrs import InvalidAttrSet
from ..models.schema import Attr

"""Dataset-wide evidence indices.

Both indices are populated during ingestion from jointly valid field combinations
only and are read by the repair pass.

- SSNIndex: ssn -> cuid. The first entity registering an ssn owns it; a second
  entity registering the same ssn makes it ambiguous (no owner) but is kept as a
  link for cross-entity evidence.
- StateSalaryTaxIndex: state -> (salary, tax, cuid) entries. It must be finalized
  after the whole feed is ingested; reads before finalize() raise, and so do
  writes after it.
"""

__all__ = [
    "IndexNotFinalizedError",
    "IndexFinalizedError",
    "SSNIndex",
    "SalaryTaxEntry",
    "StateSalaryTaxIndex",
]

logger = logging.getLogger(__name__)


class IndexNotFinalizedError(Exception):
    """Raised when the state index is read before finalize()."""


class IndexFinalizedError(Exception):
    """Raised when the state index is written after finalize()."""


class SSNIndex:
    def __init__(self) -> None:
        self._cuids: dict[str, list[str]] = {}

    def add(self, ssn: str, cuid: str) -> None:
        cuids = self._cuids.setdefault(ssn, [])
        if cuid not in cuids:
            if cuids:
                logger.debug(f"ssn index: {ssn} shared by {cuids[0]} and {cuid}")
            cuids.append(cuid)

    def owner(self, ssn: str) -> str | None:
        """The single entity registered for `ssn`, None when absent or ambiguous."""
        cuids = self._cuids.get(ssn)
        if cuids and len(cuids) == 1:
            return cuids[0]
        return None

    def linked(self, ssn: str) -> tuple[str, ...]:
        """Every entity that registered `ssn`, in registration order."""
        return tuple(self._cuids.get(ssn, ()))

    def is_ambiguous(self, ssn: str) -> bool:
        return len(self._cuids.get(ssn, ())) > 1

    def __contains__(self, ssn: object) -> bool:
        return ssn in self._cuids

    def __len__(self) -> int:
        return len(self._cuids)


@dataclass(frozen=True, order=True)
class SalaryTaxEntry:
    salary: int
    tax: int
    cuid: str

    @property
    def rate(self) -> float | None:
        if self.salary <= 0:
            return None
        return self.tax / self.salary


class StateSalaryTaxIndex:
    """Per-state salary/tax evidence, ranked by salary once finalized."""

    def __init__(self) -> None:
        self._pending: dict[str, list[SalaryTaxEntry]] = {}
        self._by_salary: dict[str, tuple[SalaryTaxEntry, ...]] | None = None
        self._by_tax: dict[str, tuple[SalaryTaxEntry, ...]] | None = None

    @property
    def finalized(self) -> bool:
        return self._by_salary is not None

    def add(self, state: str, salary: str, tax: str, cuid: str) -> None:
        if self.finalized:
            raise IndexFinalizedError("state salary/tax index is finalized; no more entries accepted")
        entry = SalaryTaxEntry(int(salary), int(tax), cuid)
        self._pending.setdefault(state, []).append(entry)

    def finalize(self, invalid: Mapping[str, InvalidAttrSet] | None = None) -> None:
        """Rank entries per state; drop entities whose state/salary/tax ended up invalid.

        Each entity contributes at most once per state (its first entry). Calling
        finalize() again rebuilds the same ranking from the ingested entries.
        """
        by_salary: dict[str, tuple[SalaryTaxEntry, ...]] = {}
        by_tax: dict[str, tuple[SalaryTaxEntry, ...]] = {}
        dropped = 0
        for state, entries in self._pending.items():
            seen: set[str] = set()
            kept: list[SalaryTaxEntry] = []
            for e in entries:
                if e.cuid in seen:
                    continue
                seen.add(e.cuid)
                flags = invalid.get(e.cuid) if invalid is not None else None
                if flags is not None and flags.any_of((Attr.STATE, Attr.SALARY, Attr.TAX)):
                    dropped += 1
                    continue
                kept.append(e)
            if kept:
                by_salary[state] = tuple(sorted(kept))
                by_tax[state] = tuple(sorted(kept, key=lambda e: (e.tax, e.salary, e.cuid)))
        self._by_salary = by_salary
        self._by_tax = by_tax
        logger.debug(
            f"state index finalized: states={len(by_salary)} "
            f"entries={sum(len(v) for v in by_salary.values())} dropped={dropped}"
        )

    def _require_finalized(self) -> None:
        if not self.finalized:
            raise IndexNotFinalizedError("state salary/tax index read before finalize()")

    def states(self) -> list[str]:
        self._require_finalized()
        return list(self._by_salary)  # type: ignore[arg-type]

    def entries(self, state: str) -> tuple[SalaryTaxEntry, ...]:
        self._require_finalized()
        return self._by_salary.get(state, ())  # type: ignore[union-attr]

    @staticmethod
    def _nearest(keys: list[int], key: int) -> int | None:
        if not keys:
            return None
        i = bisect.bisect_left(keys, key)
        candidates = [j for j in (i - 1, i) if 0 <= j < len(keys)]
        # 同距離なら下位ランク優先
        return min(candidates, key=lambda j: abs(keys[j] - key))

    def _rate_near(
        self, entries: tuple[SalaryTaxEntry, ...], key_of: Callable[[SalaryTaxEntry], int], key: int
    ) -> float | None:
        usable = [e for e in entries if e.rate is not None]
        j = self._nearest([key_of(e) for e in usable], key)
        return usable[j].rate if j is not None else None

    def estimate_tax(self, state: str, salary: int) -> int | None:
        """Tax for `salary` using the rate of the nearest-ranked salary in `state`."""
        rate = self._rate_near(self.entries(state), lambda e: e.salary, salary)
        if rate is None:
            return None
        return round(salary * rate)

    def estimate_salary(self, state: str, tax: int) -> int | None:
        """Salary for `tax` using the rate of the nearest-ranked tax in `state`."""
        self._require_finalized()
        entries = self._by_tax.get(state, ())  # type: ignore[union-attr]
        rate = self._rate_near(entries, lambda e: e.tax, tax)
        if not rate:
            return None
        return round(tax / rate)

    def __len__(self) -> int:
        return sum(len(v) for v in self._pending.values())
