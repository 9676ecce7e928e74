"""Formatting utilities for git-worktree-keeper.

- date: Relative time formatting
- changes: Dirty counts, recent files and cell truncation
"""

from .date import format_relative_time
from .changes import format_changes, format_recent_change, truncate_text

__all__ = [
    "format_relative_time",
    "format_changes",
    "format_recent_change",
    "truncate_text",
]
