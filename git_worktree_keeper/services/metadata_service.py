"""Metadata store for per-worktree bookkeeping (.gw/meta.json)."""
import json
import os
import socket
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, Optional

from git_worktree_keeper.models.metadata import WorktreeMetadata
from git_worktree_keeper.utils.logging import get_logger

# Import fcntl for POSIX file locking (Unix/Linux/macOS)
try:
    import fcntl
    HAS_FCNTL = True
except ImportError:
    HAS_FCNTL = False

logger = get_logger(__name__)

META_FILE_NAME = "meta.json"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def created_by() -> str:
    """user@host of whoever creates a worktree."""
    user = os.environ.get("USER") or os.environ.get("USERNAME") or "unknown"
    host = os.environ.get("HOSTNAME") or os.environ.get("COMPUTERNAME") or socket.gethostname() or "unknown"
    return f"{user}@{host}"


class MetadataStore:
    """Whole-document store mapping worktree names to WorktreeMetadata.

    A command loads a snapshot, mutates it in memory, and writes the whole
    document back with save(). Separate invocations are last-writer-wins.
    """

    def __init__(self, gw_dir: Path):
        """
        Args:
            gw_dir: The repository's .gw directory
        """
        self.gw_dir = Path(gw_dir)
        self.path = self.gw_dir / META_FILE_NAME
        self._worktrees: Dict[str, WorktreeMetadata] = {}

    @classmethod
    def open(cls, gw_dir: Path) -> "MetadataStore":
        store = cls(gw_dir)
        store.load()
        return store

    @contextmanager
    def _acquire_lock(self, file_handle, operation: str = "read"):
        """Acquire a file lock around a read or write of the document."""
        if not HAS_FCNTL:
            logger.debug("File locking not available on this platform")
            yield
            return

        lock_type = fcntl.LOCK_EX if operation == "write" else fcntl.LOCK_SH
        fcntl.flock(file_handle.fileno(), lock_type)
        try:
            yield
        finally:
            fcntl.flock(file_handle.fileno(), fcntl.LOCK_UN)

    def load(self) -> None:
        """Load the document from disk. A missing or invalid file loads as empty."""
        self._worktrees = {}
        if not self.path.exists():
            logger.debug("No metadata file found")
            return

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                with self._acquire_lock(f, operation="read"):
                    data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"ignoring unreadable metadata file {self.path}: {e}")
            return

        worktrees = data.get("worktrees") if isinstance(data, dict) else None
        if not isinstance(worktrees, dict):
            logger.debug("Metadata has no 'worktrees' mapping")
            return
        for name, record in worktrees.items():
            if isinstance(record, dict):
                self._worktrees[name] = WorktreeMetadata.from_dict(record)
        logger.debug(f"Loaded metadata for {len(self._worktrees)} worktrees")

    def to_dict(self) -> dict:
        return {"worktrees": {name: meta.to_dict() for name, meta in self._worktrees.items()}}

    def save(self) -> None:
        """Write the whole document atomically."""
        self.gw_dir.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(self.to_dict(), indent=2)

        fd, tmp_path = tempfile.mkstemp(prefix=".meta-", suffix=".json", dir=self.gw_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(payload)
                tmp.write("\n")
            with open(self.path, "a", encoding="utf-8") as target:
                with self._acquire_lock(target, operation="write"):
                    os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logger.debug(f"Saved metadata for {len(self._worktrees)} worktrees")

    def get(self, name: str) -> Optional[WorktreeMetadata]:
        return self._worktrees.get(name)

    def upsert(self, name: str) -> WorktreeMetadata:
        """Return the record for name, inserting an empty one if absent."""
        meta = self._worktrees.get(name)
        if meta is None:
            meta = WorktreeMetadata()
            self._worktrees[name] = meta
        return meta

    def set_created(self, name: str) -> None:
        """Record creation time and creator; existing values are kept."""
        meta = self.upsert(name)
        if meta.created_at is None:
            meta.created_at = utc_now()
        if meta.created_by is None:
            meta.created_by = created_by()

    def touch(self, name: str) -> None:
        """Record activity on a worktree now."""
        self.upsert(name).last_activity_at = utc_now()

    def add_note(self, name: str, text: str) -> None:
        self.upsert(name).notes.append(text)

    def set_subdir(self, name: str, subdir: Optional[str]) -> None:
        self.upsert(name).subdir = subdir

    def remove(self, name: str) -> None:
        self._worktrees.pop(name, None)

    def items(self) -> Iterator:
        return iter(sorted(self._worktrees.items()))
