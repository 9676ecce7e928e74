"""Shared constants for git-worktree-keeper."""

from dataclasses import dataclass
from typing import List


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    key: str
    label: str
    width: int = 0  # 0 means auto-width


LIST_COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("current", "CUR", 3),
    ColumnDefinition("name", "NAME"),
    ColumnDefinition("branch", "BRANCH"),
    ColumnDefinition("path", "PATH"),
]

STATUS_COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("name", "NAME"),
    ColumnDefinition("branch", "BRANCH"),
    ColumnDefinition("changes", "CHANGES"),
    ColumnDefinition("last_change", "LAST CHANGE"),
    ColumnDefinition("last_commit", "LAST COMMIT"),
    ColumnDefinition("recent", "RECENT FILES"),
]

CHANGES_DETAIL_LABEL = "CHANGES (ST/UN/??)"
COMMIT_SUBJECT_WIDTH = 20
DEFAULT_RECENT_FILES = 3

SYMBOL_CURRENT = "*"
