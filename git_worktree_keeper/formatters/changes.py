"""Formatting of dirty counts and table cells."""

from rich.cells import cell_len

from git_worktree_keeper.models.worktree import DirtyStatus, RecentChange
from git_worktree_keeper.formatters.date import format_relative_time


def format_changes(dirty: DirtyStatus, detail: bool = False) -> str:
    """Total change count, optionally with the staged/unstaged/untracked split."""
    if detail:
        return f"{dirty.total} ({dirty.staged}/{dirty.unstaged}/{dirty.untracked})"
    return str(dirty.total)


def format_recent_change(change: RecentChange) -> str:
    return f"{change.status} {change.file} ({format_relative_time(change.modified_at)})"


def truncate_text(text: str, max_width: int) -> str:
    """Cut text to max_width terminal cells, appending '...' when shortened."""
    width = 0
    out = []
    for ch in text:
        ch_width = cell_len(ch)
        if width + ch_width > max_width:
            return "".join(out) + "..."
        out.append(ch)
        width += ch_width
    return text
