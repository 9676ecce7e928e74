"""Tests for shell integration scripts"""
import pytest

from git_worktree_keeper.exceptions import ValidationError
from git_worktree_keeper.shell_init import detect_shell, shell_init_script


class TestShellInit:
    """Test wrapper generation and shell detection."""

    @pytest.mark.parametrize("shell_path,expected", [
        ("/bin/bash", "bash"),
        ("/usr/local/bin/zsh", "zsh"),
        ("/opt/homebrew/bin/fish", "fish"),
        ("/bin/tcsh", None),
    ])
    def test_detect_shell(self, shell_path, expected):
        assert detect_shell({"SHELL": shell_path}) == expected

    def test_detect_without_shell_variable(self):
        assert detect_shell({}) is None

    def test_bash_and_zsh_share_a_wrapper(self):
        assert shell_init_script("bash") == shell_init_script("zsh")
        assert shell_init_script("bash").startswith("gw() {")

    def test_fish_wrapper(self):
        script = shell_init_script("fish")
        assert script.startswith("function gw")
        assert "command gw cd $argv" in script

    def test_detected_from_environment(self):
        assert shell_init_script(environ={"SHELL": "/usr/bin/fish"}) == shell_init_script("fish")

    def test_undetectable_shell(self):
        with pytest.raises(ValidationError, match="could not detect shell"):
            shell_init_script(environ={"SHELL": "/bin/tcsh"})
