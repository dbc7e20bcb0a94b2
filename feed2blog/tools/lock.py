from __future__ import annotations

from pathlib import Path
import os
import time


class LockHeldError(RuntimeError):
    pass


class RunLock:
    """
    Single-owner guard for the pipeline's database. A lock file older than
    `timeout_seconds` is treated as left behind by a dead process.
    """

    def __init__(self, path: str | Path, timeout_seconds: int = 60 * 60):
        self.path = Path(path)
        self.timeout_seconds = timeout_seconds

    def __enter__(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)

        if self.path.exists():
            age = time.time() - self.path.stat().st_mtime
            if age < self.timeout_seconds:
                raise LockHeldError(f"Another run is already in progress (lock exists: {self.path}).")
            # stale lock
            self.path.unlink(missing_ok=True)

        self.path.write_text(str(os.getpid()), encoding="utf-8")
        return self

    def refresh(self) -> None:
        """Bump the lock's mtime so long-running loops don't look stale."""
        self.path.touch(exist_ok=True)

    def __exit__(self, exc_type, exc, tb):
        self.path.unlink(missing_ok=True)
