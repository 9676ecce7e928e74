"""Garbage-collection policy for worktrees."""

import time
from datetime import datetime
from typing import Iterable, Optional, TYPE_CHECKING

from git_worktree_keeper.models.worktree import GcCandidate, GcReason, short_branch
from git_worktree_keeper.utils.logging import get_logger

if TYPE_CHECKING:
    from git_worktree_keeper.models.metadata import WorktreeMetadata

logger = get_logger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def parse_timestamp(value: Optional[str]) -> Optional[int]:
    """Unix seconds for an RFC 3339 timestamp, None if absent or unparseable."""
    if not value:
        return None
    try:
        # fromisoformat handles offsets; 'Z' needs spelling out on older parsers
        return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp())
    except ValueError:
        logger.debug(f"Unparseable timestamp: {value!r}")
        return None


def is_branch_merged(branch: Optional[str], merged: Iterable[str]) -> bool:
    """Whether branch (full ref or short name) is in the merged-branch list."""
    name = short_branch(branch)
    if not name:
        return False
    return name in set(merged)


class StalenessPolicy:
    """Decides which worktrees are candidates for removal. Side-effect free."""

    def __init__(self, stale_days: int, now: Optional[int] = None):
        """
        Args:
            stale_days: Days of inactivity after which a worktree is stale
            now: Reference unix time (defaults to the current time)
        """
        self.stale_days = stale_days
        self.now = int(time.time()) if now is None else now

    @property
    def threshold_seconds(self) -> int:
        return self.stale_days * SECONDS_PER_DAY

    def last_activity(
        self, meta: Optional["WorktreeMetadata"], last_commit_ts: Optional[int]
    ) -> Optional[int]:
        """Recorded activity if any, else the last commit time, else None."""
        if meta is not None:
            recorded = parse_timestamp(meta.last_activity_at)
            if recorded is not None:
                return recorded
        return last_commit_ts

    def is_stale(self, last_activity: Optional[int]) -> bool:
        """Inactive for at least stale_days; unknown activity counts as stale."""
        if last_activity is None:
            return True
        return self.now - last_activity >= self.threshold_seconds

    def classify(
        self,
        name: str,
        path: str,
        *,
        locked: bool,
        last_activity: Optional[int],
        dirty_total: int,
        merged: bool,
    ) -> Optional[GcCandidate]:
        """Return a candidate for the worktree, or None if it should be kept."""
        if locked:
            logger.debug(f"{name}: locked, skipping")
            return None
        if self.is_stale(last_activity):
            logger.debug(f"{name}: stale (last activity {last_activity})")
            return GcCandidate(name=name, path=path, reason=GcReason.STALE)
        if dirty_total == 0 and merged:
            logger.debug(f"{name}: clean and merged")
            return GcCandidate(name=name, path=path, reason=GcReason.MERGED_CLEAN)
        return None
