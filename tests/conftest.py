# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from datetime import date
from pathlib import Path

import pandas as pd
import pytest

from student_import.csvfile.template import REQUIRED_COLUMNS, SAMPLE_ROW
from student_import.models.student import HomeAddress, ValidatedStudent
from student_import.validation.sa_id import luhn_check_digit

# Fixed reference date so age checks do not drift
TODAY = date(2026, 10, 19)

# Hand-checked valid ID numbers
VALID_IDS = ["8001015009087", "9202204720083", "0503125123086", "0001155800087"]


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """store:
  backend: memory
  group_size: 2
  duplicate_query_chunk_size: 10
  max_write_operations: 500
  max_query_values: 10
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
crm:
  queue_size: 10
  workers: 1
timezone: UTC
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def make_id() -> Callable[[int], str]:
    """Deterministic valid ID numbers: 1980-01-01 births, sequence 5000 + n."""
    def _make(n: int) -> str:
        payload = f"800101{5000 + n:04d}08"
        return payload + str(luhn_check_digit(payload))
    return _make


@pytest.fixture()
def make_row() -> Callable[..., dict[str, str]]:
    def _make(**overrides: str) -> dict[str, str]:
        row = dict(SAMPLE_ROW)
        row.update(overrides)
        return row
    return _make


@pytest.fixture()
def csv_bytes() -> Callable[..., bytes]:
    def _build(rows: list[dict[str, str]], columns: list[str] | None = None) -> bytes:
        cols = list(columns or REQUIRED_COLUMNS)
        df = pd.DataFrame([{c: r.get(c, "") for c in cols} for r in rows], columns=cols)
        return df.to_csv(index=False).encode("utf-8")
    return _build


@pytest.fixture()
def make_student() -> Callable[..., ValidatedStudent]:
    def _make(id_number: str, first_names: str = "Thandi", surname: str = "Nkosi", **kw) -> ValidatedStudent:
        address = HomeAddress(street="1 Long Street", town_city="Cape Town", province="Western Cape")
        return ValidatedStudent(
            id_number=id_number,
            first_names=first_names,
            surname=surname,
            funded=kw.pop("funded", True),
            home_address=address,
            **kw,
        )
    return _make
