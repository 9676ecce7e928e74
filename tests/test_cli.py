"""Tests for the command-line entry point"""
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from git_worktree_keeper.cli.args import exec_command, parse_args
from git_worktree_keeper.cli.main import main
from git_worktree_keeper.exceptions import (
    EXIT_INTERRUPTED,
    EXIT_MERGE,
    EXIT_OK,
    EXIT_PLUMBING,
    EXIT_USAGE,
)


@pytest.fixture
def in_repo(repo_root, isolated_env, monkeypatch):
    """Run the CLI from inside the test repository."""
    monkeypatch.chdir(repo_root)
    return repo_root


class TestParseArgs:
    """Test argument parsing."""

    @pytest.mark.parametrize("alias,command", [
        ("new", "add"), ("a", "add"), ("rm", "del"), ("d", "del"),
        ("merge", "apply"), ("ap", "apply"), ("show", "info"), ("i", "info"),
    ])
    def test_aliases_map_to_commands(self, alias, command):
        assert parse_args([alias, "feat"]).command == command

    def test_global_flags(self):
        args = parse_args(["-v", "-q", "--json", "--debug", "list"])
        assert args.verbose and args.quiet and args.json and args.debug
        assert args.command == "list"

    def test_apply_mode_defaults_to_merge(self):
        assert parse_args(["apply", "feat"]).mode == "merge"
        assert parse_args(["apply", "feat", "--squash"]).mode == "squash"

    def test_sync_mode_defaults_to_rebase(self):
        assert parse_args(["sync", "--all"]).mode == "rebase"
        assert parse_args(["sync", "feat", "--merge"]).mode == "merge"

    def test_conflicting_modes_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["apply", "feat", "--merge", "--rebase"])

    def test_exec_command_after_separator(self):
        args = parse_args(["x", "-w", "a", "-w", "b", "--parallel", "--", "npm", "test", "-s"])

        assert args.worktrees == ["a", "b"]
        assert args.parallel
        assert exec_command(args.cmd) == "npm test -s"

    def test_exec_command_keeps_quoted_words(self):
        assert exec_command(["--", "echo", "a b"]) == "echo 'a b'"

    def test_exec_single_word_is_a_command_line(self):
        assert exec_command(["--", "make && make test"]) == "make && make test"

    def test_missing_command_is_usage_error(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestMain:
    """Test end-to-end command dispatch and exit codes."""

    def test_add_list_and_delete(self, in_repo, capsys):
        assert main(["add", "feat"]) == EXIT_OK
        assert (in_repo / ".worktrees" / "feat").is_dir()
        capsys.readouterr()

        assert main(["--json", "list"]) == EXIT_OK
        out = capsys.readouterr().out
        rows = json.loads(out)
        assert [row["name"] for row in rows] == ["root", "feat"]
        assert rows[0]["current"] is True

        assert main(["rm", "feat"]) == EXIT_OK
        assert not (in_repo / ".worktrees" / "feat").exists()

    def test_not_found_exit_code(self, in_repo, capsys):
        assert main(["del", "nope"]) == EXIT_USAGE
        assert "worktree not found" in capsys.readouterr().err

    def test_info_without_metadata(self, in_repo, capsys):
        assert main(["info", "nope"]) == EXIT_USAGE
        assert "no meta for worktree" in capsys.readouterr().err

    def test_sync_fetch_failure_exit_code(self, in_repo):
        main(["add", "feat"])
        assert main(["sync", "--all"]) == EXIT_MERGE

    def test_outside_repository(self, temp_dir, isolated_env, monkeypatch):
        outside = temp_dir / "elsewhere"
        outside.mkdir()
        monkeypatch.chdir(outside)

        assert main(["list"]) == EXIT_PLUMBING

    def test_cd_prints_directory(self, in_repo, capsys):
        main(["add", "feat", "--subdir", "app"])
        capsys.readouterr()

        assert main(["cd", "feat", "--root"]) == EXIT_OK
        assert Path(capsys.readouterr().out.strip()) == in_repo / ".worktrees" / "feat"

        assert main(["cd", "feat", "--shell"]) == EXIT_OK
        assert capsys.readouterr().out.strip() == f'cd "{in_repo / ".worktrees" / "feat" / "app"}"'

    def test_cd_without_name_is_repo_root(self, in_repo, capsys, monkeypatch):
        sub = in_repo / "src"
        sub.mkdir()
        monkeypatch.chdir(sub)

        assert main(["cd"]) == EXIT_OK
        assert Path(capsys.readouterr().out.strip()) == in_repo

    def test_lock_blocks_delete(self, in_repo, capsys):
        main(["add", "feat"])
        assert main(["lk", "feat"]) == EXIT_OK

        assert main(["del", "feat", "-f"]) == EXIT_USAGE
        assert "worktree is locked" in capsys.readouterr().err

        assert main(["ul", "feat"]) == EXIT_OK
        assert main(["del", "feat", "-f"]) == EXIT_OK

    def test_note_and_info_json(self, in_repo, capsys):
        main(["add", "feat"])
        main(["note", "feat", "remember the migration"])
        capsys.readouterr()

        assert main(["--json", "info", "feat"]) == EXIT_OK
        record = json.loads(capsys.readouterr().out)
        assert record["notes"] == ["remember the migration"]

    def test_config_uses_project_file(self, in_repo, capsys):
        (in_repo / ".gw").mkdir()
        (in_repo / ".gw" / "config.toml").write_text("[gc]\nstale_days = 14\n")

        assert main(["--json", "config"]) == EXIT_OK
        assert json.loads(capsys.readouterr().out)["gc"]["stale_days"] == 14

    def test_config_parse_error(self, in_repo, capsys):
        (in_repo / ".gw").mkdir()
        (in_repo / ".gw" / "config.toml").write_text("[gc\n")

        assert main(["config"]) == EXIT_USAGE
        assert "config.toml" in capsys.readouterr().err

    def test_config_edit_creates_default_file(self, in_repo, monkeypatch):
        monkeypatch.setenv("EDITOR", "true")

        assert main(["config", "--edit"]) == EXIT_OK
        text = (in_repo / ".gw" / "config.toml").read_text()
        assert 'worktrees_dir = ".worktrees"' in text
        assert "stale_days = 7" in text

    def test_config_edit_editor_failure(self, in_repo, monkeypatch, capsys):
        monkeypatch.setenv("EDITOR", "false")

        assert main(["config", "--edit"]) == EXIT_USAGE
        assert "editor exited with error" in capsys.readouterr().err

    def test_exec_failure_exit_code(self, in_repo, capsys):
        main(["add", "feat"])
        assert main(["x", "--", "exit", "1"]) == EXIT_USAGE
        assert "exec failed" in capsys.readouterr().err

    def test_shell_init_needs_no_repository(self, temp_dir, isolated_env, monkeypatch, capsys):
        monkeypatch.chdir(temp_dir)

        assert main(["shell-init", "bash"]) == EXIT_OK
        assert "command gw cd" in capsys.readouterr().out

    def test_keyboard_interrupt(self, in_repo):
        with patch("git_worktree_keeper.cli.main.run_command", side_effect=KeyboardInterrupt):
            assert main(["list"]) == EXIT_INTERRUPTED

    def test_unexpected_error(self, in_repo, capsys):
        with patch("git_worktree_keeper.cli.main.run_command", side_effect=RuntimeError("kaboom")):
            assert main(["list"]) == EXIT_USAGE
        assert "kaboom" in capsys.readouterr().err
