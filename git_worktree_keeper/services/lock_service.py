"""Marker-file locks that protect worktrees from deletion."""

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from git_worktree_keeper.exceptions import WorktreeLockedError
from git_worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)

LOCKS_DIR_NAME = "locks"


class LockService:
    """One empty marker file per worktree name; presence means locked.

    Locks live on disk because no process outlives a single command. They
    gate deletion and garbage collection only.
    """

    def __init__(self, gw_dir: Path):
        self.locks_dir = Path(gw_dir) / LOCKS_DIR_NAME

    def lock_path(self, name: str) -> Path:
        return self.locks_dir / f"{name}.lock"

    def is_locked(self, name: str) -> bool:
        return self.lock_path(name).exists()

    def acquire(self, name: str) -> None:
        """Create the marker exclusively.

        Raises:
            WorktreeLockedError: If the marker already exists
        """
        path = self.lock_path(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            raise WorktreeLockedError(name)
        os.close(fd)
        logger.debug(f"Acquired lock {path}")

    def release(self, name: str) -> None:
        """Remove the marker; releasing an unlocked name is a no-op."""
        try:
            self.lock_path(name).unlink()
            logger.debug(f"Released lock for {name}")
        except FileNotFoundError:
            pass

    def lock(self, name: str) -> None:
        """Mark a worktree as locked; locking twice is a no-op."""
        path = self.lock_path(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch(exist_ok=True)

    @contextmanager
    def held(self, name: str) -> Iterator[None]:
        """Hold the lock for name for the duration of the block.

        Raises:
            WorktreeLockedError: If someone else holds it
        """
        self.acquire(name)
        try:
            yield
        finally:
            self.release(name)
