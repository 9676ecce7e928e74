"""Mapping between worktree paths and short logical names."""

import os
from pathlib import Path
from typing import Optional, Union

ROOT_NAME = "root"


def canonicalize(path: Union[str, Path]) -> Path:
    """Resolve symlinks; paths that do not exist are resolved as far as possible."""
    return Path(os.path.realpath(os.path.expanduser(str(path))))


class NameResolver:
    """Derives logical worktree names relative to the worktrees root."""

    def __init__(self, repo_root: Union[str, Path], worktrees_dir: Union[str, Path]):
        """
        Args:
            repo_root: Primary checkout of the repository
            worktrees_dir: Directory new worktrees are created in; relative
                values are taken relative to repo_root
        """
        self.repo_root = Path(repo_root)
        worktrees_root = Path(worktrees_dir).expanduser()
        if not worktrees_root.is_absolute():
            worktrees_root = self.repo_root / worktrees_root
        self.worktrees_root = worktrees_root

    def short_name(self, path: Union[str, Path]) -> Optional[str]:
        """Name of a worktree under the worktrees root, or None if it lives elsewhere."""
        candidate = canonicalize(path)
        root = canonicalize(self.worktrees_root)
        try:
            rel = candidate.relative_to(root)
        except ValueError:
            return None
        name = rel.as_posix()
        return None if name == "." else name

    def name_for(self, path: Union[str, Path]) -> str:
        """Display name: 'root' for the primary checkout, the short name, or the raw path."""
        if canonicalize(path) == canonicalize(self.repo_root):
            return ROOT_NAME
        name = self.short_name(path)
        return name if name is not None else str(path)

    def path_for(self, name: str) -> Path:
        """Where a worktree called name is created."""
        return self.worktrees_root / name
