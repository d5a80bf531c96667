from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord
from ..models.import_result import ImportResult
from ..models.validation import ParseResult

"""Error log buffering.

Records are kept in memory for the run and written as JSON Lines on flush to
``logs/errors-YYYYMMDD-HHMMSS.log`` (UTC). The file is created on the first
flush that has something to write.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """In-memory buffer for error records. Single-threaded use only."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir or LOGS_DIR

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def record_parse_result(self, file: str, parsed: ParseResult) -> None:
        """Buffer the structural error or every row diagnostic of a validated file."""
        if parsed.structural_error is not None:
            error_type = "MISSING_COLUMNS" if parsed.missing_columns else "FILE_UNREADABLE"
            self.append(ErrorRecord.create(file, -1, "", error_type, parsed.structural_error))
            return
        for err in parsed.iter_errors():
            self.append(ErrorRecord.create(file, err.row, err.field, "VALIDATION_ERROR", err.message))

    def record_import_result(self, file: str, result: ImportResult) -> None:
        for dup in result.duplicate_students:
            self.append(
                ErrorRecord.create(file, -1, "idNumber", "DUPLICATE", f"{dup.id_number} {dup.name}: {dup.reason}")
            )
        for err in result.errors:
            self.append(
                ErrorRecord.create(file, -1, "idNumber", "COMMIT_ERROR", f"{err.id_number} {err.name}: {err.error}")
            )

    def flush(self) -> Path | None:
        """Append buffered records to the log file; None when nothing was buffered."""
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
