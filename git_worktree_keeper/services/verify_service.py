"""Project-type detection for 'gw verify'."""

from pathlib import Path
from typing import List, Union

from git_worktree_keeper.config import Config

RUST_MARKERS = ("Cargo.toml",)
NODE_MARKERS = ("package.json",)
PYTHON_MARKERS = ("pyproject.toml", "requirements.txt")


def _has_marker(dirs: List[Path], markers) -> bool:
    return any((d / marker).exists() for d in dirs for marker in markers)


def verify_commands(config: Config, worktree_path: Union[str, Path], run_dir: Union[str, Path]) -> List[str]:
    """Commands to run, in rust/node/python order.

    Markers are looked for in both the worktree root and the run directory.
    """
    dirs = [Path(worktree_path), Path(run_dir)]
    commands = []
    if _has_marker(dirs, RUST_MARKERS):
        commands.append(config.verify_rust)
    if _has_marker(dirs, NODE_MARKERS):
        commands.append(config.verify_node)
    if _has_marker(dirs, PYTHON_MARKERS):
        commands.append(config.verify_python)
    return commands
