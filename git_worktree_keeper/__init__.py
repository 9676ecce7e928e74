"""
git-worktree-keeper - A git worktree helper with notes, subdirectories, cleanup and bulk exec
"""

from .__version__ import __version__
from .core import WorktreeKeeper
from .cli.main import main

__all__ = ["WorktreeKeeper", "main", "__version__"]
