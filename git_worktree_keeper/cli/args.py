"""Command-line argument parsing for git-worktree-keeper."""

import argparse
import shlex
from typing import List, Optional

from git_worktree_keeper.__version__ import __version__
from git_worktree_keeper.constants import DEFAULT_RECENT_FILES
from git_worktree_keeper.services.git.operations import (
    MERGE_MODE_MERGE,
    MERGE_MODE_REBASE,
    MERGE_MODE_SQUASH,
)
from git_worktree_keeper.shell_init import SHELLS

ALIASES = {
    "new": "add",
    "a": "add",
    "rm": "del",
    "d": "del",
    "ls": "list",
    "st": "status",
    "merge": "apply",
    "ap": "apply",
    "sy": "sync",
    "v": "verify",
    "n": "note",
    "show": "info",
    "i": "info",
    "lk": "lock",
    "ul": "unlock",
    "g": "gc",
    "c": "cd",
    "x": "exec",
}


def _add_dir_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--subdir", help="Run in this subdirectory of the worktree")
    parser.add_argument("--root", action="store_true", help="Ignore any configured subdirectory")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gw",
        description="Manage git worktrees with notes, subdirectories, cleanup and bulk exec",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print essential output")
    parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON where supported")
    parser.add_argument("--debug", action="store_true", help="Show debug information for troubleshooting")
    parser.add_argument("--version", action="version", version=f"git-worktree-keeper {__version__}")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    p = sub.add_parser("add", aliases=["new", "a"], help="Create a worktree")
    p.add_argument("name")
    p.add_argument("-b", "--base", help="Base branch (default: resolved base)")
    p.add_argument("-B", "--branch", help="Branch name (default: prefix + NAME)")
    p.add_argument("--path", help="Worktree path (default: <worktrees_dir>/NAME)")
    p.add_argument("--subdir", help="Default subdirectory for this worktree")

    p = sub.add_parser("del", aliases=["rm", "d"], help="Remove a worktree")
    p.add_argument("name")
    p.add_argument("-f", "--force", action="store_true", help="Remove even with uncommitted changes")
    p.add_argument("-D", "--delete-branch", action="store_true", help="Also delete the branch")

    sub.add_parser("list", aliases=["ls"], help="List worktrees")

    p = sub.add_parser("status", aliases=["st"], help="Show worktree status")
    p.add_argument("--changes-detail", action="store_true", help="Break changes down by kind")
    p.add_argument("--recent", type=int, default=DEFAULT_RECENT_FILES, metavar="N", help="Recent files to show")

    p = sub.add_parser("apply", aliases=["merge", "ap"], help="Bring a worktree's branch into the root checkout")
    p.add_argument("name")
    p.add_argument("-t", "--target", help="Target branch (default: the root's current branch)")
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--merge", dest="mode", action="store_const", const=MERGE_MODE_MERGE)
    mode.add_argument("--squash", dest="mode", action="store_const", const=MERGE_MODE_SQUASH)
    mode.add_argument("--rebase", dest="mode", action="store_const", const=MERGE_MODE_REBASE)
    p.add_argument("-c", "--cleanup", action="store_true", help="Delete the worktree and branch afterwards")
    p.set_defaults(mode=MERGE_MODE_MERGE)

    p = sub.add_parser("sync", aliases=["sy"], help="Fetch and update worktrees from the base")
    p.add_argument("name", nargs="?")
    p.add_argument("--all", action="store_true", dest="all_worktrees", help="Sync every worktree")
    p.add_argument("--base", help="Base branch (default: resolved base)")
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--merge", dest="mode", action="store_const", const=MERGE_MODE_MERGE)
    mode.add_argument("--rebase", dest="mode", action="store_const", const=MERGE_MODE_REBASE)
    p.set_defaults(mode=MERGE_MODE_REBASE)

    p = sub.add_parser("verify", aliases=["v"], help="Run the project's tests in a worktree")
    p.add_argument("name")
    _add_dir_options(p)

    p = sub.add_parser("note", aliases=["n"], help="Attach a note to a worktree")
    p.add_argument("name")
    p.add_argument("text")

    p = sub.add_parser("info", aliases=["show", "i"], help="Show a worktree's metadata")
    p.add_argument("name")

    p = sub.add_parser("lock", aliases=["lk"], help="Protect a worktree from removal")
    p.add_argument("name")

    p = sub.add_parser("unlock", aliases=["ul"], help="Remove a worktree's lock")
    p.add_argument("name")

    p = sub.add_parser("gc", aliases=["g"], help="Find stale or merged worktrees")
    p.add_argument("--prune", action="store_true", help="Remove the candidates")

    p = sub.add_parser("cd", aliases=["c"], help="Print a worktree's directory")
    p.add_argument("name", nargs="?")
    _add_dir_options(p)
    p.add_argument("--shell", action="store_true", help='Print as a cd "<dir>" command')

    p = sub.add_parser("exec", aliases=["x"], help="Run a command in worktrees")
    p.add_argument("-A", "--all", action="store_true", dest="all_worktrees", help="Every worktree (default)")
    p.add_argument("-w", "--worktree", action="append", dest="worktrees", metavar="NAME", help="Target worktree (repeatable)")
    p.add_argument("--parallel", action="store_true", help="Run in all targets at once")
    p.add_argument("--fail-fast", action="store_true", help="Stop at the first failure (sequential)")
    _add_dir_options(p)
    p.add_argument("cmd", nargs=argparse.REMAINDER, metavar="-- CMD", help="Command to run")

    p = sub.add_parser("subdir", help="Set, clear or show a worktree's subdirectory")
    p.add_argument("name")
    p.add_argument("path", nargs="?")
    p.add_argument("--unset", action="store_true", help="Clear the subdirectory")

    p = sub.add_parser("config", help="Show the effective configuration")
    p.add_argument("--edit", action="store_true", help="Open the project config in $EDITOR")

    p = sub.add_parser("shell-init", help="Print the shell wrapper for 'gw cd'")
    p.add_argument("shell", nargs="?", choices=SHELLS)

    return parser


def exec_command(cmd: List[str]) -> str:
    """Shell command line for the words after '--'.

    Several words are quoted so the shell sees them as typed; a single word
    is taken as a complete command line.
    """
    if cmd and cmd[0] == "--":
        cmd = cmd[1:]
    if len(cmd) == 1:
        return cmd[0]
    return shlex.join(cmd)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments; args.command is always the canonical name."""
    args = build_parser().parse_args(argv)
    args.command = ALIASES.get(args.command, args.command)
    return args
