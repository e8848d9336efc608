from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from ..models.error_record import ErrorRecord
from ..models.record import RawRecord
from ..models.schema import (
    ATTR_COUNT,
    COLUMN_NAMES,
    CUID_COLUMN,
    OFFSET,
    RUID_COLUMN,
    ColumnNames,
    FeedHeaderError,
)

"""Record feed reader.

The feed is a separator-delimited text file. Line 1 is the header declaring the
column order; every other non-blank line is one raw record. Values are kept as
plain strings: no NA conversion, no quote handling, no trimming. Lines end at
LF, CR or CRLF only; other control characters stay inside the value. Bytes
that are not valid UTF-8 are decoded to U+FFFD, which no validator accepts, so
the field is flagged instead of the read failing.

Structural problems are reported, never raised:
- a line with too few or too many fields is kept and marked malformed (short
  lines are padded with empty strings, long ones truncated)
- a line whose ruid is not a plain decimal integer or whose cuid is empty is
  dropped and reported as an ErrorRecord
Only I/O failures and a missing/invalid header abort the read.
"""

__all__ = [
    "FeedReadError",
    "FeedHeaderError",
    "FeedLine",
    "FeedData",
    "read_feed",
    "iter_records",
]


class FeedReadError(Exception):
    """Raised when the feed file cannot be read."""


@dataclass(frozen=True)
class FeedLine:
    line_number: int  # 1-based, header = 1
    fields: tuple[str, ...]  # padded/truncated to header width
    malformed: bool


@dataclass
class FeedData:
    path: Path
    column_names: ColumnNames
    lines: list[FeedLine] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.lines)

    @property
    def malformed_count(self) -> int:
        return sum(1 for line in self.lines if line.malformed)

    def to_frame(self, limit: int | None = None) -> pd.DataFrame:
        """Data lines as a string DataFrame in schema column order, indexed by line number."""
        lines = self.lines if limit is None else self.lines[:limit]
        return pd.DataFrame(
            [self.column_names.to_schema_order(line.fields) for line in lines],
            columns=list(COLUMN_NAMES),
            index=[line.line_number for line in lines],
            dtype=str,
        )


_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def _split(line: str, separator: str, width: int) -> tuple[tuple[str, ...], bool]:
    parts = line.split(separator)
    if len(parts) == width:
        return tuple(parts), False
    if len(parts) < width:
        return tuple(parts + [""] * (width - len(parts))), True
    return tuple(parts[:width]), True


def read_feed(path: Path, separator: str = ":") -> FeedData:
    """Read the whole feed. Raises FeedReadError on I/O failure, FeedHeaderError on a bad header."""
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8", errors="replace", newline="") as f:
            text = f.read()
    except OSError as e:
        raise FeedReadError(f"cannot read feed '{path}': {e}") from e

    # str.splitlines() would also break on \x0b, \x0c, \x1c-\x1e, \x85, U+2028/U+2029
    text_lines = _LINE_BREAK_RE.split(text) if text else []
    if not text_lines:
        raise FeedHeaderError(f"feed '{path}' has no header line")
    column_names = ColumnNames.from_header(text_lines[0].split(separator))
    width = column_names.width

    feed = FeedData(path=path, column_names=column_names)
    for number, line_text in enumerate(text_lines[1:], start=2):
        if not line_text.strip():
            continue
        fields, malformed = _split(line_text, separator, width)
        feed.lines.append(FeedLine(line_number=number, fields=fields, malformed=malformed))
    return feed


def iter_records(feed: FeedData, errors: list[ErrorRecord] | None = None) -> Iterator[RawRecord]:
    """Yield RawRecords in feed order; unusable lines are appended to `errors`."""
    names = feed.column_names
    ruid_pos = names.position_of(RUID_COLUMN)
    cuid_pos = names.position_of(CUID_COLUMN)
    file_name = feed.path.name

    def _report(line: FeedLine, ruid_text: str | None, error_type: str, message: str) -> None:
        if errors is not None:
            errors.append(ErrorRecord.create(file_name, line.line_number, ruid_text, error_type, message))

    for line in feed.lines:
        ruid_text = line.fields[ruid_pos]
        # int() alone would accept " 7", "+7", "1_0" and non-ASCII digits
        if not (ruid_text.isascii() and ruid_text.isdigit()):
            _report(line, ruid_text, "UNPARSEABLE_RUID", f"ruid {ruid_text!r} is not an integer")
            continue
        ruid = int(ruid_text)
        cuid = line.fields[cuid_pos]
        if not cuid:
            _report(line, ruid_text, "MISSING_CUID", "cuid is empty")
            continue
        if line.malformed:
            _report(
                line, ruid_text, "COLUMN_COUNT_MISMATCH",
                f"expected {names.width} fields; every attribute marked invalid",
            )
        schema_row = names.to_schema_order(line.fields)
        yield RawRecord(
            ruid=ruid,
            cuid=cuid,
            values=tuple(schema_row[OFFSET : OFFSET + ATTR_COUNT]),
            malformed=line.malformed,
            line_number=line.line_number,
        )
