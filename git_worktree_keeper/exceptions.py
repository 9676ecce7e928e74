"""Custom exceptions for git-worktree-keeper"""

from typing import Iterable, Optional

# Exit codes surfaced to the invoking shell
EXIT_OK = 0
EXIT_USAGE = 1
EXIT_PLUMBING = 2
EXIT_VERIFY = 3
EXIT_MERGE = 4
EXIT_INTERRUPTED = 130


class WorktreeKeeperError(Exception):
    """Base exception for all git-worktree-keeper errors."""

    exit_code = EXIT_USAGE

    def __init__(self, message: str, exit_code: Optional[int] = None):
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code
        super().__init__(message)


class ValidationError(WorktreeKeeperError):
    """Exception raised for bad or missing user input."""


class ConfigError(WorktreeKeeperError):
    """Exception raised when a configuration document cannot be loaded."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


class WorktreeNotFoundError(WorktreeKeeperError):
    """Exception raised when a worktree name does not resolve."""

    def __init__(self, name: str):
        self.name = name
        super().__init__("worktree not found")


class WorktreeLockedError(WorktreeKeeperError):
    """Exception raised when a locked worktree would be removed."""

    def __init__(self, name: str):
        self.name = name
        super().__init__("worktree is locked")


class WorktreeDirtyError(WorktreeKeeperError):
    """Exception raised when a worktree has uncommitted changes."""

    def __init__(self, message: str = "worktree is dirty (use --force)"):
        super().__init__(message)


class PathExistsError(WorktreeKeeperError):
    """Exception raised when the path for a new worktree is taken."""

    def __init__(self, path: str):
        self.path = path
        super().__init__("worktree path already exists")


class PlumbingError(WorktreeKeeperError):
    """Exception raised when the underlying git invocation fails.

    The message is git's own error text, passed through verbatim.
    """

    exit_code = EXIT_PLUMBING

    def __init__(self, operation: str, message: Optional[str] = None):
        self.operation = operation
        self.stderr = message or ""
        super().__init__(message or f"git {operation} failed")


class VerificationError(WorktreeKeeperError):
    """Exception raised when a verification command exits non-zero."""

    exit_code = EXIT_VERIFY

    def __init__(self, command: str, message: Optional[str] = None):
        self.command = command
        super().__init__(message or f"verify failed: {command}")


class MergeError(WorktreeKeeperError):
    """Exception raised when an apply, sync or fetch step fails."""

    exit_code = EXIT_MERGE

    def __init__(self, context: str, message: str):
        self.context = context
        super().__init__(f"{context} failed: {message}")


class ExecError(WorktreeKeeperError):
    """Exception raised when at least one bulk exec target failed."""

    def __init__(self, failed: Iterable[str]):
        self.failed = list(failed)
        super().__init__("exec failed")
