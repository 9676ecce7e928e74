"""Worktree listing service for git-worktree-keeper."""

from typing import List, Optional, TYPE_CHECKING

from git_worktree_keeper.models.worktree import Worktree
from git_worktree_keeper.utils.logging import get_logger

if TYPE_CHECKING:
    from git_worktree_keeper.services.git.operations import GitOperations
    from git_worktree_keeper.services.name_resolver import NameResolver

logger = get_logger(__name__)


def parse_worktree_list(output: str) -> List[Worktree]:
    """Parse 'git worktree list --porcelain' output.

    Format:
        worktree /path/to/worktree
        HEAD commit_sha
        branch refs/heads/branch-name
        (blank line between worktrees)

    Each 'worktree' line starts a new record. 'HEAD' and 'branch' lines
    attach to the record being built; anything else (bare, detached, locked,
    prunable, stray text) is ignored. A record without a 'branch' line is a
    detached HEAD.
    """
    worktrees: List[Worktree] = []
    current: Optional[Worktree] = None

    for line in output.splitlines():
        if line.startswith("worktree "):
            if current is not None:
                worktrees.append(current)
            current = Worktree(path=line[len("worktree "):])
        elif current is None:
            continue
        elif line.startswith("branch "):
            current.branch = line[len("branch "):].strip()
        elif line.startswith("HEAD "):
            current.head = line[len("HEAD "):].strip()

    # Handle last entry
    if current is not None:
        worktrees.append(current)

    return worktrees


class WorktreeRegistry:
    """Service for listing and looking up git worktrees."""

    def __init__(self, git_ops: "GitOperations", names: "NameResolver"):
        """Initialize the registry.

        Args:
            git_ops: Git plumbing used to produce the listing
            names: Resolver mapping worktree paths to logical names
        """
        self.git_ops = git_ops
        self.names = names

    def list(self) -> List[Worktree]:
        """Get all worktrees in listing order.

        Raises:
            PlumbingError: If 'git worktree list' fails
        """
        worktrees = parse_worktree_list(self.git_ops.worktree_list())
        logger.debug(f"Found {len(worktrees)} worktrees")
        for wt in worktrees:
            logger.debug(f"  {wt}")
        return worktrees

    def named(self) -> List[tuple]:
        """(name, worktree) pairs for worktrees under the worktrees root."""
        result = []
        for wt in self.list():
            name = self.names.short_name(wt.path)
            if name is not None:
                result.append((name, wt))
        return result

    def find(self, name: str) -> Optional[Worktree]:
        """Find a worktree by its logical name."""
        for wt_name, wt in self.named():
            if wt_name == name:
                return wt
        return None
