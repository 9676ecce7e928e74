"""Command-line interface for git-worktree-keeper"""

import sys
from typing import List, Optional

from rich.console import Console
from rich.text import Text

from git_worktree_keeper.cli.args import exec_command, parse_args
from git_worktree_keeper.core.worktree_keeper import WorktreeKeeper
from git_worktree_keeper.exceptions import (
    EXIT_INTERRUPTED,
    EXIT_OK,
    EXIT_USAGE,
    ValidationError,
    WorktreeKeeperError,
)
from git_worktree_keeper.services.display_service import DisplayService
from git_worktree_keeper.shell_init import shell_init_script
from git_worktree_keeper.utils.logging import get_logger, setup_logging

err_console = Console(stderr=True)
logger = get_logger(__name__)


def run_command(args, keeper: WorktreeKeeper) -> None:
    """Dispatch one parsed command to the keeper."""
    command = args.command
    if command == "add":
        keeper.add(args.name, base=args.base, branch=args.branch, path=args.path, subdir=args.subdir)
    elif command == "del":
        keeper.delete(args.name, force=args.force, delete_branch=args.delete_branch)
    elif command == "list":
        keeper.list()
    elif command == "status":
        keeper.status(changes_detail=args.changes_detail, recent=args.recent)
    elif command == "apply":
        keeper.apply(args.name, target=args.target, mode=args.mode, cleanup=args.cleanup)
    elif command == "sync":
        keeper.sync(args.name, all_worktrees=args.all_worktrees, base=args.base, mode=args.mode)
    elif command == "verify":
        keeper.verify(args.name, subdir=args.subdir, root=args.root)
    elif command == "note":
        keeper.note(args.name, args.text)
    elif command == "info":
        keeper.info(args.name)
    elif command == "lock":
        keeper.lock(args.name)
    elif command == "unlock":
        keeper.unlock(args.name)
    elif command == "gc":
        keeper.gc(prune=args.prune)
    elif command == "cd":
        target = keeper.cd(args.name, subdir=args.subdir, root=args.root)
        keeper.display.line(f'cd "{target}"' if args.shell else str(target), important=True)
    elif command == "exec":
        cmd = exec_command(args.cmd)
        # -A is the default; listed names only matter without it
        names = None if args.all_worktrees else args.worktrees
        keeper.exec(
            cmd,
            names=names,
            parallel=args.parallel,
            fail_fast=args.fail_fast,
            subdir=args.subdir,
            root=args.root,
        )
    elif command == "subdir":
        if args.unset and args.path is not None:
            raise ValidationError("subdir takes a PATH or --unset, not both")
        keeper.subdir(args.name, path=args.path, unset=args.unset)
    elif command == "config":
        if args.edit:
            keeper.edit_config()
        else:
            keeper.show_config()
    else:
        raise ValidationError(f"unknown command: {command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose, debug=args.debug)
    display = DisplayService(quiet=args.quiet, json_output=args.json)
    logger.debug(f"Command: {args.command}")

    try:
        if args.command == "shell-init":
            display.line(shell_init_script(args.shell).rstrip("\n"), important=True)
            return EXIT_OK

        keeper = WorktreeKeeper.open(display=display)
        run_command(args, keeper)
        return EXIT_OK
    except WorktreeKeeperError as e:
        if e.message:
            err_console.print(Text(e.message, style="red"), soft_wrap=True)
        return e.exit_code
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return EXIT_INTERRUPTED
    except Exception as e:
        err_console.print(Text(f"Error: {e}", style="red"), soft_wrap=True)
        if args.debug:
            err_console.print_exception()
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
