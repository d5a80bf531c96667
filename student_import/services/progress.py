from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.import_result import BatchProgress

"""Progress display for commit groups with tqdm (TTY only).

``GroupProgressBar`` is a BatchCommitter progress callback. In non-TTY
environments (CI, redirected output) no bar is drawn; snapshots are still
remembered so the caller can report the last one.
"""

__all__ = [
    "GroupProgressBar",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class GroupProgressBar:
    """Progress callback drawing one tick per committed group."""

    def __init__(self, *, description: str = "Importing students") -> None:
        self.description = description
        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None = None
        self.last: BatchProgress | None = None

    def __call__(self, progress: BatchProgress) -> None:
        self.last = progress
        if not self.enabled:
            return
        if self.pbar is None:
            self.pbar = tqdm(
                total=progress.total_groups,
                desc=self.description,
                unit="group",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        self.pbar.update(progress.current_group - self.pbar.n)
        self.pbar.set_postfix(imported=f"{progress.imported_count}/{progress.total_count}")

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> GroupProgressBar:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
