"""Core functionality for git-worktree-keeper"""

import os
import shlex
import subprocess
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Tuple, Union

from git_worktree_keeper.config import GW_DIR_NAME, Config, default_config_document, load_config, project_config_path
from git_worktree_keeper.constants import DEFAULT_RECENT_FILES
from git_worktree_keeper.exceptions import (
    ExecError,
    MergeError,
    PathExistsError,
    PlumbingError,
    ValidationError,
    VerificationError,
    WorktreeDirtyError,
    WorktreeKeeperError,
    WorktreeLockedError,
    WorktreeNotFoundError,
)
from git_worktree_keeper.models.worktree import GcCandidate, Worktree, WorktreeReport
from git_worktree_keeper.services.config_resolver import ConfigResolver
from git_worktree_keeper.services.display_service import DisplayService
from git_worktree_keeper.services.git import GitOperations, WorktreeRegistry
from git_worktree_keeper.services.git.operations import (
    MERGE_MODE_MERGE,
    MERGE_MODE_REBASE,
)
from git_worktree_keeper.services.lock_service import LockService
from git_worktree_keeper.services.metadata_service import MetadataStore
from git_worktree_keeper.services.name_resolver import ROOT_NAME, NameResolver, canonicalize
from git_worktree_keeper.services.staleness_service import StalenessPolicy, is_branch_merged
from git_worktree_keeper.services.status_service import StatusAnalyzer
from git_worktree_keeper.services.task_runner import RunReport, TaskRunner, run_shell
from git_worktree_keeper.services.verify_service import verify_commands
from git_worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)


class WorktreeKeeper:
    """Main class for managing the worktrees of one repository.

    One method per user command. The Config is loaded once and shared by
    reference; metadata is a snapshot saved back after each mutation.
    """

    def __init__(
        self,
        repo_root: Union[str, Path],
        config: Config,
        git_ops: Optional[GitOperations] = None,
        metadata: Optional[MetadataStore] = None,
        display: Optional[DisplayService] = None,
        task_runner: Optional[TaskRunner] = None,
    ):
        """Initialize WorktreeKeeper.

        Args:
            repo_root: Primary checkout of the repository
            config: Effective configuration for this invocation
            git_ops: Git plumbing (defaults to one rooted at repo_root)
            metadata: Metadata snapshot (defaults to <repo_root>/.gw/meta.json)
            display: Output renderer
            task_runner: Runner for bulk exec
        """
        self.repo_root = Path(repo_root)
        self.config = config
        self.gw_dir = self.repo_root / GW_DIR_NAME
        self.git_ops = git_ops or GitOperations(self.repo_root)
        self.metadata = metadata if metadata is not None else MetadataStore.open(self.gw_dir)
        self.display = display or DisplayService()
        self.task_runner = task_runner or TaskRunner()

        self.names = NameResolver(self.repo_root, config.worktrees_dir)
        self.registry = WorktreeRegistry(self.git_ops, self.names)
        self.resolver = ConfigResolver(config, self.metadata, self.repo_root)
        self.status_analyzer = StatusAnalyzer(self.git_ops)
        self.locks = LockService(self.gw_dir)

    @classmethod
    def open(
        cls,
        cwd: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
        display: Optional[DisplayService] = None,
    ) -> "WorktreeKeeper":
        """Discover the repository around cwd and load its configuration."""
        cwd = Path(cwd) if cwd is not None else Path(os.getcwd())
        repo_root = GitOperations(cwd).repo_root(cwd)
        logger.debug(f"Repository root: {repo_root}")
        config = load_config(repo_root, environ)
        return cls(repo_root, config, GitOperations(repo_root), display=display)

    def _require(self, name: str) -> Worktree:
        worktree = self.registry.find(name)
        if worktree is None:
            raise WorktreeNotFoundError(name)
        return worktree

    def _resolve_base(self, base: Optional[str] = None) -> str:
        return base or self.git_ops.resolve_base(self.repo_root, self.config.base)

    def add(
        self,
        name: str,
        base: Optional[str] = None,
        branch: Optional[str] = None,
        path: Optional[str] = None,
        subdir: Optional[str] = None,
    ) -> Path:
        """Create a worktree called name and record who created it."""
        if not name:
            raise ValidationError("worktree name is required")
        target = Path(path) if path else self.names.path_for(name)
        if target.exists():
            raise PathExistsError(str(target))

        branch = branch or f"{self.config.branch_prefix}{name}"
        base = self._resolve_base(base)
        self.git_ops.add_worktree(target, branch, base)

        self.metadata.set_created(name)
        self.metadata.touch(name)
        if subdir is not None:
            subdir = subdir.lstrip("/")
            self.metadata.set_subdir(name, subdir)
        self.metadata.save()

        message = f"created: {target} (branch: {branch}, base: {base}"
        if subdir is not None:
            message += f", subdir: {subdir}"
        self.display.line(message + ")")
        return target

    def delete(self, name: str, force: bool = False, delete_branch: bool = False) -> None:
        """Remove a worktree, optionally with its branch."""
        if self.locks.is_locked(name):
            raise WorktreeLockedError(name)
        worktree = self._require(name)

        if not force and self.status_analyzer.dirty(worktree.path).total > 0:
            raise WorktreeDirtyError()

        with self.locks.held(name):
            self.git_ops.remove_worktree(worktree.path, force=force)

        if delete_branch and worktree.branch:
            try:
                self.git_ops.delete_branch(worktree.branch)
            except PlumbingError as e:
                logger.warning(f"could not delete branch {worktree.short_branch}: {e}")

        self.metadata.remove(name)
        self.metadata.save()
        self.display.line(f"deleted: {name}")

    def list(self) -> List[Tuple[str, Worktree, bool]]:
        worktrees = self.registry.list()
        try:
            current = canonicalize(self.git_ops.current_toplevel(Path.cwd()))
        except (PlumbingError, OSError):
            current = canonicalize(self.repo_root)
        rows = [
            (self.names.name_for(wt.path), wt, canonicalize(wt.path) == current)
            for wt in worktrees
        ]
        self.display.display_worktree_list(rows)
        return rows

    def report(self, worktree: Worktree, recent: int) -> WorktreeReport:
        """Gather status for one worktree.

        Raises:
            PlumbingError: If git status fails in the worktree
        """
        dirty = self.status_analyzer.dirty(worktree.path)
        commit_time, commit_subject = self.git_ops.last_commit_info(worktree.path) or (0, "")
        return WorktreeReport(
            name=self.names.name_for(worktree.path),
            worktree=worktree,
            dirty=dirty,
            last_commit_time=commit_time,
            last_commit_subject=commit_subject,
            recent=self.status_analyzer.recent(worktree.path, recent),
        )

    def status(self, changes_detail: bool = False, recent: int = DEFAULT_RECENT_FILES) -> List[WorktreeReport]:
        reports = [self.report(wt, recent) for wt in self.registry.list()]
        self.display.display_status(reports, changes_detail)
        return reports

    def apply(
        self,
        name: str,
        target: Optional[str] = None,
        mode: str = MERGE_MODE_MERGE,
        cleanup: bool = False,
    ) -> None:
        """Merge, squash or rebase a worktree's branch into target in the root checkout."""
        worktree = self._require(name)
        source_branch = worktree.short_branch or name
        target = target or self.git_ops.current_branch(self.repo_root)

        if self.status_analyzer.dirty(self.repo_root).total > 0:
            raise WorktreeDirtyError("target worktree is dirty")

        self.git_ops.checkout(self.repo_root, target)
        try:
            self.git_ops.integrate(self.repo_root, source_branch, mode)
        except PlumbingError as e:
            raise MergeError("apply", e.message)

        self.metadata.touch(name)
        self.metadata.save()
        self.display.line(f"applied: {source_branch} -> {target} ({mode})")

        if cleanup:
            self.delete(name, force=True, delete_branch=True)

    def sync(
        self,
        name: Optional[str] = None,
        all_worktrees: bool = False,
        base: Optional[str] = None,
        mode: str = MERGE_MODE_REBASE,
    ) -> List[str]:
        """Fetch, then rebase or merge each target worktree onto the base.

        With --all every worktree is attempted and failures are reported
        together; a single target fails immediately.
        """
        if all_worktrees:
            targets = self.registry.named()
        elif name:
            targets = [(name, self._require(name))]
        else:
            raise ValidationError("sync requires <name> or --all")

        try:
            self.git_ops.fetch()
        except PlumbingError as e:
            raise MergeError("sync", e.message)

        base = self._resolve_base(base)
        failed: List[str] = []
        for wt_name, worktree in targets:
            try:
                self.git_ops.sync(worktree.path, base, mode)
            except PlumbingError as e:
                if not all_worktrees:
                    raise MergeError("sync", e.message)
                logger.error(f"sync failed: {wt_name}: {e.message}")
                failed.append(wt_name)
                continue
            self.metadata.touch(wt_name)
            self.display.line(f"synced: {wt_name} ({mode} onto {base})")

        self.metadata.save()
        if failed:
            raise MergeError("sync", ", ".join(failed))
        return [wt_name for wt_name, _ in targets]

    def verify(self, name: str, subdir: Optional[str] = None, root: bool = False) -> List[str]:
        """Run the verification commands matching the project files found."""
        worktree = self._require(name)
        run_dir = self.resolver.resolve_dir(worktree.path, name, root=root, subdir=subdir)
        commands = verify_commands(self.config, worktree.path, run_dir)
        if not commands:
            self.display.line("verify: no commands to run")
            return []

        for command in commands:
            logger.info(f"verify: running '{command}' in {run_dir}")
            try:
                ok = run_shell(command, run_dir)
            except OSError as e:
                raise VerificationError(command, f"command failed: {e}")
            if not ok:
                raise VerificationError(command)

        self.metadata.touch(name)
        self.metadata.save()
        return commands

    def note(self, name: str, text: str) -> None:
        self.metadata.add_note(name, text)
        self.metadata.save()

    def info(self, name: str) -> None:
        meta = self.metadata.get(name)
        if meta is None:
            raise WorktreeKeeperError("no meta for worktree")
        subdir, source = self.resolver.subdir_source(name)
        self.display.display_info(name, meta, subdir, source)

    def lock(self, name: str) -> None:
        self.locks.lock(name)

    def unlock(self, name: str) -> None:
        self.locks.release(name)

    def gc_candidates(self, now: Optional[int] = None) -> List[GcCandidate]:
        """Classify every named worktree; nothing is removed here."""
        policy = StalenessPolicy(self.config.stale_days, now=now)
        try:
            merged = self.git_ops.merged_branches(self._resolve_base())
        except PlumbingError as e:
            logger.warning(f"could not list merged branches: {e}")
            merged = []

        candidates = []
        for name, worktree in self.registry.named():
            locked = self.locks.is_locked(name)
            if locked:
                logger.debug(f"{name}: locked")
                continue
            try:
                dirty = self.status_analyzer.dirty(worktree.path)
            except PlumbingError as e:
                logger.warning(f"skipping {name}: {e}")
                continue
            commit = self.git_ops.last_commit_info(worktree.path)
            last_activity = policy.last_activity(self.metadata.get(name), commit[0] if commit else None)
            candidate = policy.classify(
                name,
                worktree.path,
                locked=locked,
                last_activity=last_activity,
                dirty_total=dirty.total,
                merged=is_branch_merged(worktree.branch, merged),
            )
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    def gc(self, prune: bool = False, now: Optional[int] = None) -> List[GcCandidate]:
        """List garbage-collection candidates, or remove them with prune."""
        candidates = self.gc_candidates(now=now)
        if not candidates:
            self.display.line("gc: no candidates")
            return []
        if not prune:
            self.display.display_gc(candidates, pruned=False)
            return candidates

        pruned: List[GcCandidate] = []
        failed: List[str] = []
        for candidate in candidates:
            try:
                with self.locks.held(candidate.name):
                    self.git_ops.remove_worktree(candidate.path, force=True)
            except WorktreeLockedError:
                logger.warning(f"skipping {candidate.name}: locked")
                continue
            except PlumbingError as e:
                logger.error(f"could not remove {candidate.name}: {e}")
                failed.append(candidate.name)
                continue
            self.metadata.remove(candidate.name)
            pruned.append(candidate)

        self.metadata.save()
        self.display.display_gc(pruned, pruned=True)
        if failed:
            raise PlumbingError("worktree remove", f"gc failed: {', '.join(failed)}")
        return pruned

    def cd(self, name: Optional[str] = None, subdir: Optional[str] = None, root: bool = False) -> Path:
        """Directory a shell should change into for name."""
        if name is None or name == ROOT_NAME:
            return self.repo_root
        worktree = self._require(name)
        return self.resolver.resolve_dir(worktree.path, name, root=root, subdir=subdir)

    def exec_targets(
        self,
        names: Optional[Sequence[str]] = None,
        subdir: Optional[str] = None,
        root: bool = False,
    ) -> List[Tuple[str, Path]]:
        """(name, directory) for each target; every named worktree when names is empty."""
        if not names:
            return [
                (name, self.resolver.resolve_dir(wt.path, name, root=root, subdir=subdir))
                for name, wt in self.registry.named()
            ]
        targets = []
        for name in names:
            worktree = self._require(name)
            targets.append((name, self.resolver.resolve_dir(worktree.path, name, root=root, subdir=subdir)))
        return targets

    def exec(
        self,
        command: str,
        names: Optional[Sequence[str]] = None,
        parallel: bool = False,
        fail_fast: bool = False,
        subdir: Optional[str] = None,
        root: bool = False,
    ) -> RunReport:
        """Run a shell command in each target worktree."""
        if not command.strip():
            raise ValidationError("exec requires a command")
        targets = self.exec_targets(names, subdir=subdir, root=root)
        report = self.task_runner.run(targets, command, parallel=parallel, fail_fast=fail_fast)
        if not report.ok:
            raise ExecError(report.failed)
        return report

    def subdir(self, name: str, path: Optional[str] = None, unset: bool = False) -> Optional[str]:
        """Set, clear or show the per-worktree subdirectory."""
        if unset:
            self.metadata.set_subdir(name, None)
            self.metadata.save()
            self.display.line(f"unset subdir for '{name}'")
            return None
        if path is not None:
            path = path.lstrip("/")
            self.metadata.set_subdir(name, path)
            self.metadata.save()
            self.display.line(f"set subdir for '{name}': {path}")
            return path

        value, source = self.resolver.subdir_source(name)
        if value is None:
            self.display.line("(none)", important=True)
        else:
            self.display.line(f"{value} (from: {source})", important=True)
        return value

    def show_config(self) -> List[str]:
        """Print the effective configuration; returns validation warnings."""
        warnings = self.resolver.validate()
        subdirs = [(name, meta.subdir) for name, meta in self.metadata.items() if meta.subdir is not None]
        self.display.display_config(self.config.to_dict(), subdirs, warnings)
        return warnings

    def edit_config(self, environ: Optional[Mapping[str, str]] = None) -> Path:
        """Open the project config in $EDITOR, writing a starter file first if missing.

        Raises:
            WorktreeKeeperError: If the editor cannot be started or exits non-zero
        """
        environ = os.environ if environ is None else environ
        path = project_config_path(self.repo_root)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if not path.exists():
                path.write_text(default_config_document(self.config))
                logger.info(f"Wrote default config to {path}")
        except OSError as e:
            raise WorktreeKeeperError(f"failed to write {path}: {e}")

        editor = environ.get("EDITOR") or "vi"
        try:
            result = subprocess.run([*shlex.split(editor), str(path)])
        except (OSError, ValueError) as e:
            raise WorktreeKeeperError(f"failed to open editor '{editor}': {e}")
        if result.returncode != 0:
            raise WorktreeKeeperError("editor exited with error")
        return path
