from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from ..models.repaired_cell import RepairedCell
from ..models.schema import Attr

"""Repair output writer.

Writes corrections as CSV with columns ruid, attribute, value, sorted by ruid and
then schema attribute order. Values are written verbatim (no NA conversion).
"""

__all__ = [
    "OUTPUT_COLUMNS",
    "repairs_to_frame",
    "write_repairs",
]

OUTPUT_COLUMNS = ["ruid", "attribute", "value"]

_ATTR_ORDER = {a.column_name: int(a) for a in Attr}


def repairs_to_frame(cells: Iterable[RepairedCell]) -> pd.DataFrame:
    ordered = sorted(cells, key=lambda c: (c.ruid, _ATTR_ORDER.get(c.column_name, len(_ATTR_ORDER)), c.column_name))
    return pd.DataFrame(
        [(c.ruid, c.column_name, c.value) for c in ordered],
        columns=OUTPUT_COLUMNS,
    )


def write_repairs(path: Path, cells: Iterable[RepairedCell]) -> int:
    """Write corrections to `path` (parent directories created). Returns rows written."""
    frame = repairs_to_frame(cells)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(path, index=False, encoding="utf-8")
    return int(frame.shape[0])
