"""Tests for the garbage-collection policy"""
import pytest

from git_worktree_keeper.models.metadata import WorktreeMetadata
from git_worktree_keeper.models.worktree import GcReason
from git_worktree_keeper.services.staleness_service import (
    SECONDS_PER_DAY,
    StalenessPolicy,
    is_branch_merged,
    parse_timestamp,
)

NOW = 1_700_000_000


@pytest.fixture
def policy():
    return StalenessPolicy(stale_days=7, now=NOW)


def classify(policy, **overrides):
    kwargs = dict(locked=False, last_activity=NOW, dirty_total=0, merged=False)
    kwargs.update(overrides)
    return policy.classify("feat", "/repo/.worktrees/feat", **kwargs)


class TestIsStale:
    """Test the staleness boundary."""

    def test_exact_threshold_is_stale(self, policy):
        assert policy.is_stale(NOW - 7 * SECONDS_PER_DAY)

    def test_one_second_short_is_not_stale(self, policy):
        assert not policy.is_stale(NOW - 7 * SECONDS_PER_DAY + 1)

    def test_unknown_activity_is_stale(self, policy):
        assert policy.is_stale(None)


class TestClassify:
    """Test candidate classification."""

    def test_locked_is_never_a_candidate(self, policy):
        assert classify(policy, locked=True, last_activity=None, merged=True) is None

    def test_stale(self, policy):
        candidate = classify(policy, last_activity=NOW - 30 * SECONDS_PER_DAY, dirty_total=4)

        assert candidate.reason == GcReason.STALE
        assert candidate.name == "feat"

    def test_stale_wins_over_merged(self, policy):
        candidate = classify(policy, last_activity=None, merged=True)
        assert candidate.reason == GcReason.STALE

    def test_merged_and_clean(self, policy):
        candidate = classify(policy, merged=True)
        assert candidate.reason == GcReason.MERGED_CLEAN
        assert candidate.reason.value == "merged-clean"

    def test_merged_but_dirty_is_kept(self, policy):
        assert classify(policy, merged=True, dirty_total=1) is None

    def test_active_unmerged_is_kept(self, policy):
        assert classify(policy) is None


class TestLastActivity:
    """Test which timestamp counts as last activity."""

    def test_recorded_activity_wins(self, policy):
        meta = WorktreeMetadata(last_activity_at="2023-11-14T22:13:20+00:00")
        assert policy.last_activity(meta, last_commit_ts=5) == 1_700_000_000

    def test_falls_back_to_commit_time(self, policy):
        assert policy.last_activity(WorktreeMetadata(), last_commit_ts=123) == 123
        assert policy.last_activity(None, last_commit_ts=123) == 123

    def test_nothing_known(self, policy):
        assert policy.last_activity(None, None) is None

    def test_parse_timestamp(self):
        assert parse_timestamp("2023-11-14T22:13:20Z") == 1_700_000_000
        assert parse_timestamp("not a date") is None
        assert parse_timestamp(None) is None


class TestIsBranchMerged:
    """Test merged-branch matching."""

    def test_full_ref_matches_short_name(self):
        assert is_branch_merged("refs/heads/wt/feat", ["main", "wt/feat"])

    def test_not_merged(self):
        assert not is_branch_merged("refs/heads/wt/feat", ["main"])

    def test_detached(self):
        assert not is_branch_merged(None, ["main"])
