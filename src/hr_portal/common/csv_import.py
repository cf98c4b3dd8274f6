"""CSV reading and error reporting shared by the two-phase importers."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..core.exceptions import ImportFormatError

# First data row is spreadsheet line 2 (line 1 is the header).
FIRST_DATA_ROW = 2


@dataclass(frozen=True)
class RowError:
    row_number: int
    message: str

    def __str__(self) -> str:
        return f"Row {self.row_number}: {self.message}"


def read_csv_rows(text, *, required: Sequence[str]) -> list[tuple[int, dict[str, str]]]:
    """Parse CSV text into ``(row_number, cells)`` pairs.

    Headers are trimmed and lowercased, cells trimmed, blank lines skipped.
    Structural problems raise :class:`ImportFormatError` before any row is
    returned.
    """

    if not isinstance(text, str) or not text.strip():
        raise ImportFormatError("CSV data is required")

    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    header: list[str] | None = None
    rows: list[tuple[int, dict[str, str]]] = []

    for raw in reader:
        cells = [(c or "").strip() for c in raw]
        if not any(cells):
            continue
        if header is None:
            header = [c.lower() for c in cells]
            missing = [h for h in required if h not in header]
            if missing:
                raise ImportFormatError(f"Missing required columns in CSV: {', '.join(missing)}")
            continue

        values: dict[str, str] = {}
        for name, value in zip(header, cells):
            if name and name not in values:
                values[name] = value
        rows.append((FIRST_DATA_ROW + len(rows), values))

    if header is None or not rows:
        raise ImportFormatError("CSV file contains no data rows")
    return rows


def merge_row_errors(*groups: Iterable[RowError]) -> list[RowError]:
    """At most one error per row; the first occurrence wins, in group order."""

    seen: set[int] = set()
    merged: list[RowError] = []
    for group in groups:
        for err in group:
            if err.row_number in seen:
                continue
            seen.add(err.row_number)
            merged.append(err)
    return merged
