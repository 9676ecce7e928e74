"""Git operations service"""

import os
import re
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import git

from git_worktree_keeper.exceptions import PlumbingError
from git_worktree_keeper.models.worktree import short_branch
from git_worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)

MERGE_MODE_MERGE = "merge"
MERGE_MODE_SQUASH = "squash"
MERGE_MODE_REBASE = "rebase"
MERGE_MODES = (MERGE_MODE_MERGE, MERGE_MODE_SQUASH, MERGE_MODE_REBASE)

_STDERR_RE = re.compile(r"^\s*stderr: '(.*)'\s*$", re.DOTALL)

PathLike = Union[str, Path]


def error_text(e: git.exc.GitError) -> str:
    """Extract git's own error text from a GitPython exception."""
    stderr = getattr(e, "stderr", "") or ""
    match = _STDERR_RE.match(stderr)
    if match:
        stderr = match.group(1)
    stderr = stderr.strip()
    if stderr:
        return stderr
    status = getattr(e, "status", "unknown")
    return f"git failed with exit code {status}"


def root_from_common_dir(common: Path) -> Optional[Path]:
    """Return the parent of the nearest '.git' directory in common's ancestry."""
    for candidate in (common, *common.parents):
        if candidate.name == ".git":
            return candidate.parent
    return None


class GitOperations:
    """Service for Git operations.

    Every call runs a fresh git process through GitPython; nothing is cached,
    so instances are safe to share between threads.
    """

    def __init__(self, repo_path: Optional[PathLike] = None, remote_name: str = "origin"):
        """Initialize the service.

        Args:
            repo_path: Directory commands run in by default (None = current directory)
            remote_name: Remote used for fetch and base resolution
        """
        self.repo_path = str(repo_path) if repo_path is not None else None
        self.remote_name = remote_name

    def _git(self, cwd: Optional[PathLike] = None) -> git.Git:
        working_dir = cwd if cwd is not None else (self.repo_path or os.getcwd())
        return git.Git(str(working_dir))

    def run(self, args: Sequence[str], cwd: Optional[PathLike] = None) -> str:
        """Run a git command and return its stdout.

        Raises:
            PlumbingError: If git exits non-zero or cannot be started
        """
        command = ["git", *args]
        logger.debug(f"Running {' '.join(command)} in {cwd or self.repo_path or '.'}")
        try:
            return self._git(cwd).execute(command)
        except git.exc.GitError as e:
            raise PlumbingError(args[0] if args else "git", error_text(e))

    def succeeds(self, args: Sequence[str], cwd: Optional[PathLike] = None) -> bool:
        """Run a git command only for its exit status."""
        try:
            self.run(args, cwd)
            return True
        except PlumbingError:
            return False

    def repo_root(self, cwd: Optional[PathLike] = None) -> Path:
        """Find the primary checkout of the repository containing cwd.

        --git-common-dir may be relative, and is relative to the directory git
        ran in, not to --show-toplevel.
        """
        cwd = Path(cwd) if cwd is not None else Path(self.repo_path or os.getcwd())
        toplevel = Path(self.run(["rev-parse", "--show-toplevel"], cwd).strip())
        common = Path(self.run(["rev-parse", "--git-common-dir"], cwd).strip())
        if not common.is_absolute():
            common = cwd / common
        try:
            common = common.resolve(strict=True)
        except OSError:
            pass
        root = root_from_common_dir(common)
        return root if root is not None else toplevel

    def current_toplevel(self, cwd: Optional[PathLike] = None) -> Path:
        return Path(self.run(["rev-parse", "--show-toplevel"], cwd).strip())

    def worktree_list(self) -> str:
        """Raw 'git worktree list --porcelain' output."""
        return self.run(["worktree", "list", "--porcelain"])

    def status_porcelain(self, path: PathLike) -> str:
        """Raw 'git status --porcelain -z' output for one worktree.

        Entries are NUL-terminated and paths are not C-quoted.
        """
        return self.run(["status", "--porcelain", "-z"], path)

    def branch_exists(self, branch: str) -> bool:
        return self.succeeds(["show-ref", "--verify", "--quiet", f"refs/heads/{branch}"])

    def current_branch(self, path: PathLike) -> str:
        return self.run(["rev-parse", "--abbrev-ref", "HEAD"], path).strip()

    def resolve_base(self, repo_root: PathLike, default_base: Optional[str] = None) -> str:
        """Resolve the merge base branch.

        Order: configured base, origin/HEAD, main, master, current branch.
        """
        if default_base:
            return default_base
        try:
            ref = self.run(["symbolic-ref", f"refs/remotes/{self.remote_name}/HEAD"]).strip()
            branch = ref[len(f"refs/remotes/{self.remote_name}/"):] if ref.startswith("refs/remotes/") else ""
            if branch:
                logger.debug(f"Base from {self.remote_name}/HEAD: {branch}")
                return branch
        except PlumbingError:
            pass
        for candidate in ("main", "master"):
            if self.succeeds(["show-ref", "--verify", "--quiet", f"refs/heads/{candidate}"]) or self.succeeds(
                ["show-ref", "--verify", "--quiet", f"refs/remotes/{self.remote_name}/{candidate}"]
            ):
                return candidate
        return self.current_branch(repo_root)

    def merged_branches(self, base: str) -> List[str]:
        """Short names of branches fully merged into base."""
        out = self.run(["branch", "--merged", base])
        names = []
        for line in out.splitlines():
            # '* ' marks the current branch, '+ ' one checked out in another worktree
            name = line.strip().lstrip("*+").strip()
            if name:
                names.append(name)
        return names

    def last_commit_info(self, path: PathLike) -> Optional[Tuple[int, str]]:
        """(unix timestamp, subject) of HEAD in a worktree, None if unavailable."""
        try:
            out = self.run(["log", "-1", "--format=%ct|%s"], path).strip()
        except PlumbingError as e:
            logger.debug(f"No commit info for {path}: {e}")
            return None
        ts, _, subject = out.partition("|")
        try:
            return int(ts.strip()), subject.strip()
        except ValueError:
            return 0, subject.strip()

    def add_worktree(self, path: PathLike, branch: str, base: str) -> None:
        """Create a worktree, creating the branch from base if it does not exist."""
        if self.branch_exists(branch):
            self.run(["worktree", "add", str(path), branch])
        else:
            self.run(["worktree", "add", "-b", branch, str(path), base])
        logger.info(f"Added worktree at {path} for branch {branch}")

    def remove_worktree(self, path: PathLike, force: bool = False) -> None:
        args = ["worktree", "remove"]
        if force:
            args.append("--force")
        args.append(str(path))
        self.run(args)
        logger.info(f"Removed worktree at {path}")

    def delete_branch(self, branch: str) -> None:
        self.run(["branch", "-D", short_branch(branch)])
        logger.info(f"Deleted branch {short_branch(branch)}")

    def fetch(self) -> None:
        self.run(["fetch", self.remote_name, "--prune"])

    def checkout(self, path: PathLike, target: str) -> None:
        self.run(["checkout", target], path)

    def integrate(self, path: PathLike, branch: str, mode: str = MERGE_MODE_MERGE) -> None:
        """Bring branch into the checkout at path using merge, squash or rebase."""
        if mode == MERGE_MODE_SQUASH:
            self.run(["merge", "--squash", branch], path)
        elif mode == MERGE_MODE_REBASE:
            self.run(["rebase", branch], path)
        else:
            self.run(["merge", "--no-ff", "--no-edit", branch], path)

    def sync(self, path: PathLike, base: str, mode: str = MERGE_MODE_REBASE) -> None:
        """Update the worktree at path from base."""
        if mode == MERGE_MODE_MERGE:
            self.run(["merge", base], path)
        else:
            self.run(["rebase", base], path)
