from __future__ import annotations

import csv
import io
from typing import Iterable, Iterator, List


def iter_rows(text: str) -> Iterator[List[str]]:
    """Yield trimmed fields for each non-blank record of a CSV export.

    Quoted fields may contain commas and newlines; a doubled quote inside a
    quoted field is a literal quote.
    """

    reader = csv.reader(io.StringIO(text), skipinitialspace=True)
    for row in reader:
        if not any(field.strip() for field in row):
            continue
        yield [field.strip() for field in row]


def split_names(field: str) -> List[str]:
    if not field or not field.strip():
        return []
    reader = csv.reader(io.StringIO(field), skipinitialspace=True)
    return [token.strip() for row in reader for token in row if token.strip()]


def join_names(names: Iterable[str]) -> str:
    parts = []
    for name in names:
        if "," in name or '"' in name:
            name = '"' + name.replace('"', '""') + '"'
        parts.append(name)
    return ", ".join(parts)
