from __future__ import annotations

import io
from dataclasses import dataclass

import pandas as pd

from ..models.student import RawRow
from .template import missing_columns

"""Student CSV reader.

Reads the uploaded bytes with pandas, keeping every cell as text: no NA
conversion, no numeric inference (ID numbers and phone numbers would lose
their leading zeros otherwise). The first line is the header; header names are
stripped of surrounding whitespace. Rows in which every cell is blank are
dropped.
"""

__all__ = [
    "CsvParseError",
    "MissingColumnsError",
    "StudentSheet",
    "read_student_csv",
]


class CsvParseError(Exception):
    """Raised when the bytes cannot be read as delimited text."""


class MissingColumnsError(Exception):
    """Raised when required columns are missing from the header."""

    def __init__(self, missing: list[str], columns: list[str]) -> None:
        super().__init__(f"Missing required columns: {', '.join(missing)}")
        self.missing = missing
        self.columns = columns


@dataclass
class StudentSheet:
    columns: list[str]
    rows: list[RawRow]


def read_student_csv(data: bytes, check_columns: bool = True) -> StudentSheet:
    """Parse CSV bytes into header + text rows.

    Raises:
        CsvParseError: empty input or malformed delimited text
        MissingColumnsError: a required column is absent (when ``check_columns``)
    """
    if not data or not data.strip():
        raise CsvParseError("Failed to parse CSV: file is empty")
    try:
        df = pd.read_csv(
            io.BytesIO(data),
            dtype=str,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=True,
            encoding="utf-8-sig",
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise CsvParseError(f"Failed to parse CSV: {e}") from e

    columns = [str(c).strip() for c in df.columns]
    df.columns = columns

    if check_columns:
        missing = missing_columns(columns)
        if missing:
            raise MissingColumnsError(missing, columns)

    rows: list[RawRow] = []
    for record in df.to_dict(orient="records"):
        values = {k: ("" if v is None else str(v)) for k, v in record.items()}
        if all(v.strip() == "" for v in values.values()):
            continue
        rows.append(values)
    return StudentSheet(columns=columns, rows=rows)
