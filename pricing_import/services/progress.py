from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.import_result import ImportProgress, ImportStatus

"""Import progress display with tqdm (TTY only).

ImportProgressBar is passed to import_rows() / replay_queue() as the progress
callback. In non-TTY environments (CI, piped output) no bar is created so the
log stays free of control sequences.
"""

__all__ = [
    "ImportProgressBar",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ImportProgressBar:
    """Row-level progress bar fed by ImportProgress snapshots."""

    def __init__(self, *, description: str = "Importing rows") -> None:
        self.description = description
        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None = None
        self.last: ImportProgress | None = None

    def __call__(self, progress: ImportProgress) -> None:
        self.last = progress
        if not self.enabled:
            return
        if self.pbar is None and progress.total > 0:
            self.pbar = tqdm(
                total=progress.total,
                desc=self.description,
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        if self.pbar is None:
            return
        # current は単調増加 (チャンクは順次処理)
        delta = progress.current - self.pbar.n
        if delta > 0:
            self.pbar.update(delta)
        self.pbar.set_postfix_str(progress.message)
        if progress.status in (ImportStatus.COMPLETE, ImportStatus.ERROR, ImportStatus.QUEUED):
            self.close()

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ImportProgressBar:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
