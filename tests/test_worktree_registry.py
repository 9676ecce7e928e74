"""Tests for worktree listing and lookup"""
from pathlib import Path

from git_worktree_keeper.services.git import WorktreeRegistry, parse_worktree_list
from git_worktree_keeper.services.name_resolver import NameResolver


class TestParseWorktreeList:
    """Test parsing of porcelain worktree listings."""

    def test_parses_records_in_order(self):
        """Each 'worktree' line starts a record with its HEAD and branch."""
        output = (
            "worktree /repo\n"
            "HEAD aaaa\n"
            "branch refs/heads/main\n"
            "\n"
            "worktree /repo/.worktrees/feat\n"
            "HEAD bbbb\n"
            "branch refs/heads/wt/feat\n"
        )
        worktrees = parse_worktree_list(output)

        assert [wt.path for wt in worktrees] == ["/repo", "/repo/.worktrees/feat"]
        assert worktrees[0].branch == "refs/heads/main"
        assert worktrees[1].head == "bbbb"
        assert worktrees[1].short_branch == "wt/feat"

    def test_detached_head_has_no_branch(self):
        output = "worktree /repo/.worktrees/tmp\nHEAD cccc\ndetached\n"
        worktrees = parse_worktree_list(output)

        assert len(worktrees) == 1
        assert worktrees[0].branch is None
        assert worktrees[0].is_detached
        assert worktrees[0].short_branch == ""

    def test_ignores_unknown_and_leading_lines(self):
        """Stray lines before the first record and unknown keys are skipped."""
        output = (
            "garbage before anything\n"
            "branch refs/heads/orphan\n"
            "worktree /repo\n"
            "bare\n"
            "locked reason here\n"
            "prunable gitdir file points to non-existent location\n"
        )
        worktrees = parse_worktree_list(output)

        assert len(worktrees) == 1
        assert worktrees[0].path == "/repo"
        assert worktrees[0].branch is None
        assert worktrees[0].head is None

    def test_empty_output(self):
        assert parse_worktree_list("") == []

    def test_path_with_spaces(self):
        worktrees = parse_worktree_list("worktree /tmp/my repo/wt\nHEAD dddd\n")
        assert worktrees[0].path == "/tmp/my repo/wt"


class TestWorktreeRegistry:
    """Test registry lookups over a mocked listing."""

    def test_named_skips_root(self, mock_git_ops):
        registry = WorktreeRegistry(mock_git_ops, NameResolver("/repo", ".worktrees"))

        named = registry.named()

        assert [name for name, _ in named] == ["feat"]

    def test_find(self, mock_git_ops):
        registry = WorktreeRegistry(mock_git_ops, NameResolver("/repo", ".worktrees"))

        assert registry.find("feat").branch == "refs/heads/wt/feat"
        assert registry.find("missing") is None

    def test_list_against_real_repo(self, keeper_with_worktrees, repo_root):
        """The primary checkout is listed first, followed by linked worktrees."""
        worktrees = keeper_with_worktrees.registry.list()

        assert Path(worktrees[0].path).resolve() == repo_root
        names = sorted(name for name, _ in keeper_with_worktrees.registry.named())
        assert names == ["feat", "fix/bug"]
