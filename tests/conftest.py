"""Pytest fixtures for git-worktree-keeper tests"""
import io
import tempfile
from pathlib import Path
from unittest.mock import Mock

import git
import pytest
from rich.console import Console

from git_worktree_keeper.config import Config
from git_worktree_keeper.core.worktree_keeper import WorktreeKeeper
from git_worktree_keeper.services.display_service import DisplayService
from git_worktree_keeper.services.git import GitOperations


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        # realpath so comparisons with git's resolved paths hold on macOS
        yield Path(tmpdir).resolve()


@pytest.fixture
def isolated_env(temp_dir, monkeypatch):
    """Keep the user's global config and GW_* variables out of the test."""
    home = temp_dir / "gw_home"
    monkeypatch.setenv("GW_HOME", str(home))
    for var in ("GW_WORKTREES_DIR", "GW_BRANCH_PREFIX", "GW_DEFAULT_BASE", "GW_SUBDIR", "GW_STALE_DAYS"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(temp_dir))
    return home


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository on 'main' that ignores the tool's own directories."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    (repo_path / "README.md").write_text("# Test Repository\n")
    (repo_path / ".gitignore").write_text(".gw/\n.worktrees/\n")
    repo.index.add(["README.md", ".gitignore"])
    repo.index.commit("Initial commit")
    repo.git.branch("-M", "main")

    yield repo

    repo.close()


@pytest.fixture
def repo_root(git_repo):
    return Path(git_repo.working_dir)


@pytest.fixture
def output():
    """Console that records what a DisplayService prints."""
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def make_keeper(repo_root, output):
    """Factory for a WorktreeKeeper over the test repository."""
    def _make(config=None, json_output=False, **kwargs):
        display = DisplayService(json_output=json_output, out=output)
        return WorktreeKeeper(
            repo_root,
            config or Config(),
            git_ops=GitOperations(repo_root),
            display=display,
            **kwargs,
        )
    return _make


@pytest.fixture
def keeper(make_keeper):
    return make_keeper()


@pytest.fixture
def keeper_with_worktrees(keeper):
    """Keeper whose repository has worktrees 'feat' and 'fix/bug'."""
    keeper.add("feat")
    keeper.add("fix/bug")
    return keeper


@pytest.fixture
def mock_git_ops():
    """GitOperations stand-in with a two-worktree listing."""
    ops = Mock(spec=GitOperations)
    ops.worktree_list.return_value = (
        "worktree /repo\n"
        "HEAD 1111111111111111111111111111111111111111\n"
        "branch refs/heads/main\n"
        "\n"
        "worktree /repo/.worktrees/feat\n"
        "HEAD 2222222222222222222222222222222222222222\n"
        "branch refs/heads/wt/feat\n"
    )
    ops.status_porcelain.return_value = ""
    return ops


@pytest.fixture
def commit_file():
    """Write and commit one file inside a worktree."""
    def _commit(worktree_path, name, content="content\n", message=None):
        (Path(worktree_path) / name).write_text(content)
        g = git.Git(str(worktree_path))
        g.add(name)
        g.commit("-m", message or f"Add {name}")
    return _commit
