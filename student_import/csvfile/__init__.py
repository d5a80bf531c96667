"""Student CSV reading and the downloadable template."""

from .reader import CsvParseError, MissingColumnsError, StudentSheet, read_student_csv
from .template import REQUIRED_COLUMNS, SAMPLE_ROW, Column, missing_columns, render_template, write_template

__all__ = [
    "Column",
    "CsvParseError",
    "MissingColumnsError",
    "REQUIRED_COLUMNS",
    "SAMPLE_ROW",
    "StudentSheet",
    "missing_columns",
    "read_student_csv",
    "render_template",
    "write_template",
]
