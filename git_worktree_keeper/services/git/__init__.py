"""Git-related services for git-worktree-keeper."""

from .operations import GitOperations
from .worktrees import WorktreeRegistry, parse_worktree_list

__all__ = [
    "GitOperations",
    "WorktreeRegistry",
    "parse_worktree_list",
]
