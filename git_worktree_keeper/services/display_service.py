"""Display and formatting service for worktree information"""
import json
from typing import Any, Iterable, List, Optional, Tuple

from rich.console import Console
from rich.table import Table
from rich.text import Text

from git_worktree_keeper.constants import (
    CHANGES_DETAIL_LABEL,
    COMMIT_SUBJECT_WIDTH,
    LIST_COLUMNS,
    STATUS_COLUMNS,
    SYMBOL_CURRENT,
)
from git_worktree_keeper.formatters import (
    format_changes,
    format_recent_change,
    format_relative_time,
    truncate_text,
)
from git_worktree_keeper.models.metadata import WorktreeMetadata
from git_worktree_keeper.models.worktree import GcCandidate, Worktree, WorktreeReport

console = Console()


class DisplayService:
    """Renders command results as rich tables, plain lines or JSON."""

    def __init__(self, quiet: bool = False, json_output: bool = False, out: Optional[Console] = None):
        self.quiet = quiet
        self.json_output = json_output
        self.console = out or console

    def line(self, message: str, important: bool = False) -> None:
        """Print a plain line; informational lines are dropped with --quiet."""
        if self.quiet and not important:
            return
        # Text keeps rich from interpreting [brackets] in paths and notes
        self.console.print(Text(message), soft_wrap=True)

    def dump_json(self, data: Any) -> None:
        self.console.print_json(json.dumps(data), indent=2, highlight=False)

    def display_worktree_list(self, rows: List[Tuple[str, Worktree, bool]]) -> None:
        """rows: (name, worktree, is_current)"""
        if self.json_output:
            self.dump_json([
                {
                    "name": name,
                    "branch": wt.short_branch or None,
                    "path": wt.path,
                    "head": wt.head,
                    "current": is_current,
                }
                for name, wt, is_current in rows
            ])
            return

        table = Table(box=None, pad_edge=False)
        for col in LIST_COLUMNS:
            table.add_column(col.label, width=col.width or None, no_wrap=True)
        for name, wt, is_current in rows:
            table.add_row(
                SYMBOL_CURRENT if is_current else "",
                name,
                wt.short_branch,
                wt.path,
                style="bold" if is_current else None,
            )
        self.console.print(table)

    def display_status(self, reports: List[WorktreeReport], changes_detail: bool = False) -> None:
        if self.json_output:
            self.dump_json([
                {
                    "name": r.name,
                    "branch": r.worktree.short_branch or None,
                    "changes": format_changes(r.dirty, changes_detail),
                    "dirty": r.dirty.to_dict(),
                    "last_commit_time": format_relative_time(r.last_commit_time),
                    "last_commit_subject": r.last_commit_subject,
                    "last_change_time": format_relative_time(r.last_change_time),
                    "recent_files": [
                        {
                            "file": change.file,
                            "status": change.status,
                            "time": format_relative_time(change.modified_at),
                        }
                        for change in r.recent
                    ],
                }
                for r in reports
            ])
            return

        table = Table(show_lines=True)
        for col in STATUS_COLUMNS:
            label = CHANGES_DETAIL_LABEL if col.key == "changes" and changes_detail else col.label
            table.add_column(label)

        for r in reports:
            if r.last_commit_time:
                subject = truncate_text(r.last_commit_subject, COMMIT_SUBJECT_WIDTH)
                commit = f"{subject} ({format_relative_time(r.last_commit_time)})"
            else:
                commit = ""
            recent = "\n".join(format_recent_change(c) for c in r.recent) or "-"
            table.add_row(
                r.name,
                r.worktree.short_branch,
                format_changes(r.dirty, changes_detail),
                format_relative_time(r.last_change_time),
                commit,
                Text(recent),
            )
        self.console.print(table)

    def display_info(self, name: str, meta: WorktreeMetadata, subdir: Optional[str], subdir_source: Optional[str]) -> None:
        if self.json_output:
            self.dump_json(meta.to_dict())
            return
        self.line(f"name: {name}", important=True)
        self.line(f"created_at: {meta.created_at or ''}", important=True)
        self.line(f"created_by: {meta.created_by or ''}", important=True)
        self.line(f"last_activity_at: {meta.last_activity_at or ''}", important=True)
        if subdir is not None:
            self.line(f"subdir: {subdir} (from: {subdir_source})", important=True)
        if meta.notes:
            self.line("notes:", important=True)
            for note in meta.notes:
                self.line(f"- {note}", important=True)
        if meta.tags:
            self.line(f"tags: {', '.join(sorted(meta.tags))}", important=True)

    def display_gc(self, candidates: Iterable[GcCandidate], pruned: bool) -> None:
        for candidate in candidates:
            verb = "pruned" if pruned else "candidate"
            self.line(f"{verb}: {candidate.name} ({candidate.reason.value})", important=True)

    def display_config(self, effective: dict, subdirs: List[Tuple[str, str]], warnings: List[str]) -> None:
        if self.json_output:
            self.dump_json({
                **effective,
                "worktree_subdirs": dict(subdirs),
                "warnings": warnings,
            })
            return

        defaults = effective["defaults"]
        self.line("[defaults]", important=True)
        self.line(f"worktrees_dir = {defaults['worktrees_dir']}", important=True)
        self.line(f"branch_prefix = {defaults['branch_prefix']}", important=True)
        if defaults.get("base") is not None:
            self.line(f"base = {defaults['base']}", important=True)
        if defaults.get("subdir") is not None:
            self.line(f"subdir = {defaults['subdir']}", important=True)

        self.line("", important=True)
        self.line("[gc]", important=True)
        self.line(f"stale_days = {effective['gc']['stale_days']}", important=True)

        self.line("", important=True)
        self.line("[verify]", important=True)
        for key, value in effective["verify"].items():
            self.line(f"{key} = {value}", important=True)

        if subdirs:
            self.line("", important=True)
            self.line("[worktree subdirs]", important=True)
            for name, subdir in subdirs:
                self.line(f"{name} = {subdir}", important=True)

        if warnings:
            self.line("", important=True)
            self.line("warnings:", important=True)
            for warning in warnings:
                self.console.print(Text(f"  {warning}", style="yellow"), soft_wrap=True)
