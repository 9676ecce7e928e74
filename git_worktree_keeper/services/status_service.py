"""Parsing of 'git status --porcelain -z' into dirty counts and recent changes."""

import os
from pathlib import Path
from typing import Iterator, List, TYPE_CHECKING, Tuple, Union

from git_worktree_keeper.exceptions import PlumbingError
from git_worktree_keeper.models.worktree import DirtyStatus, RecentChange
from git_worktree_keeper.utils.logging import get_logger

if TYPE_CHECKING:
    from git_worktree_keeper.services.git.operations import GitOperations

logger = get_logger(__name__)

UNTRACKED_PREFIX = "??"


def iter_status_entries(status_output: str) -> Iterator[Tuple[str, str]]:
    """Yield (XY, path) for each entry of NUL-separated porcelain output.

    Renames and copies carry their source path as an extra field after the
    entry; it is consumed and the destination path is reported.
    """
    fields = status_output.split("\0")
    i = 0
    while i < len(fields):
        record = fields[i]
        i += 1
        if len(record) < 4:
            continue
        xy = record[:2]
        if "R" in xy or "C" in xy:
            i += 1
        yield xy, record[3:]


def parse_dirty_status(status_output: str) -> DirtyStatus:
    """Count staged, unstaged and untracked entries.

    Porcelain format: XY path (X = index status, Y = working tree status).
    A line may be both staged and unstaged ("MM"); untracked ("??") lines
    are neither.
    """
    dirty = DirtyStatus()
    for xy, _path in iter_status_entries(status_output):
        if xy == UNTRACKED_PREFIX:
            dirty.untracked += 1
            continue
        if xy[0] != " ":
            dirty.staged += 1
        if xy[1] != " ":
            dirty.unstaged += 1
    return dirty


def status_char(xy: str) -> str:
    """Single status letter for display; an unstaged change wins over a staged one."""
    if xy == UNTRACKED_PREFIX:
        return "?"
    index_status = xy[0] if xy else " "
    worktree_status = xy[1] if len(xy) > 1 else " "
    if worktree_status != " ":
        return worktree_status
    if index_status != " ":
        return index_status
    return "?"


def file_mtime(root: Union[str, Path], rel: str) -> int:
    """Modification time in whole seconds, 0 if it cannot be read."""
    try:
        return int(os.stat(Path(root) / rel).st_mtime)
    except OSError:
        return 0


def recent_changes(status_output: str, worktree_path: Union[str, Path], limit: int) -> List[RecentChange]:
    """Most recently modified uncommitted files, newest first, at most limit."""
    changes: List[RecentChange] = []
    for xy, path in iter_status_entries(status_output):
        changes.append(RecentChange(
            file=path,
            status=status_char(xy),
            modified_at=file_mtime(worktree_path, path),
        ))

    changes.sort(key=lambda change: change.modified_at, reverse=True)
    return changes[:max(limit, 0)]


class StatusAnalyzer:
    """Reads worktree status through git and analyzes it."""

    def __init__(self, git_ops: "GitOperations"):
        self.git_ops = git_ops

    def dirty(self, worktree_path: Union[str, Path]) -> DirtyStatus:
        """Dirty counts for one worktree.

        Raises:
            PlumbingError: If git status fails
        """
        return parse_dirty_status(self.git_ops.status_porcelain(worktree_path))

    def recent(self, worktree_path: Union[str, Path], limit: int) -> List[RecentChange]:
        """Recent uncommitted files; empty if git status fails."""
        try:
            output = self.git_ops.status_porcelain(worktree_path)
        except PlumbingError as e:
            logger.debug(f"Could not read status for {worktree_path}: {e}")
            return []
        return recent_changes(output, worktree_path, limit)
