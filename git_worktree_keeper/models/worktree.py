"""Worktree data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

BRANCH_REF_PREFIX = "refs/heads/"


def short_branch(ref: Optional[str]) -> str:
    """Strip the refs/heads/ prefix from a symbolic ref."""
    if not ref:
        return ""
    if ref.startswith(BRANCH_REF_PREFIX):
        return ref[len(BRANCH_REF_PREFIX):]
    return ref


@dataclass
class Worktree:
    """One entry of the git worktree listing."""

    path: str
    branch: Optional[str] = None  # None = detached HEAD
    head: Optional[str] = None

    @property
    def short_branch(self) -> str:
        return short_branch(self.branch)

    @property
    def is_detached(self) -> bool:
        return self.branch is None

    def __str__(self) -> str:
        branch = self.short_branch or "(detached)"
        return f"{branch} @ {self.path}"


@dataclass
class DirtyStatus:
    """Counts of uncommitted changes in one worktree.

    A file with both an index and a working tree change counts toward
    staged and unstaged. Untracked files count toward neither.
    """

    staged: int = 0
    unstaged: int = 0
    untracked: int = 0

    @property
    def total(self) -> int:
        return self.staged + self.unstaged + self.untracked

    @property
    def is_clean(self) -> bool:
        return self.total == 0

    def to_dict(self) -> dict:
        return {
            "staged": self.staged,
            "unstaged": self.unstaged,
            "untracked": self.untracked,
            "total": self.total,
        }


@dataclass
class RecentChange:
    """An uncommitted file with its modification time (0 = unknown)."""

    file: str
    status: str
    modified_at: int


class GcReason(Enum):
    """Why a worktree is a garbage-collection candidate."""
    STALE = "stale"
    MERGED_CLEAN = "merged-clean"


@dataclass
class GcCandidate:
    """A worktree eligible for removal."""

    name: str
    path: str
    reason: GcReason


@dataclass
class WorktreeReport:
    """Everything 'gw status' shows for one worktree."""

    name: str
    worktree: Worktree
    dirty: DirtyStatus
    last_commit_time: int = 0
    last_commit_subject: str = ""
    recent: List[RecentChange] = field(default_factory=list)

    @property
    def last_change_time(self) -> int:
        return self.recent[0].modified_at if self.recent else 0
