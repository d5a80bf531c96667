from __future__ import annotations

from student_import.models.import_result import BatchProgress
from student_import.services import progress as progress_mod
from student_import.services.progress import GroupProgressBar


def _snap(i: int, n: int = 3) -> BatchProgress:
    return BatchProgress(current_group=i, total_groups=n, imported_count=i * 2, total_count=n * 2,
                         percentage=round(i / n * 100))


def test_non_tty_draws_nothing(monkeypatch):
    monkeypatch.setattr(progress_mod, "is_tty_enabled", lambda: False)
    with GroupProgressBar() as bar:
        bar(_snap(1))
        bar(_snap(2))
        assert bar.pbar is None
    assert bar.last.current_group == 2


def test_tty_updates_bar(monkeypatch):
    monkeypatch.setattr(progress_mod, "is_tty_enabled", lambda: True)
    bar = GroupProgressBar(description="test")
    bar(_snap(1))
    bar(_snap(3))
    assert bar.pbar is not None
    assert bar.pbar.n == 3
    assert bar.pbar.total == 3
    bar.close()
    assert bar.pbar is None
