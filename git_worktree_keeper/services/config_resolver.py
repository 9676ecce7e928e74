"""Resolution of the directory a command runs in for a worktree."""

from pathlib import Path
from typing import List, Optional, Tuple, TYPE_CHECKING, Union

from git_worktree_keeper.config import Config, project_config_path, validate_config_file
from git_worktree_keeper.utils.logging import get_logger

if TYPE_CHECKING:
    from git_worktree_keeper.services.metadata_service import MetadataStore

logger = get_logger(__name__)

SOURCE_META = "meta.json"
SOURCE_CONFIG = "config default"


def resolve_subdir(
    worktree_path: Union[str, Path],
    root: bool = False,
    cli_subdir: Optional[str] = None,
    meta_subdir: Optional[str] = None,
    config_subdir: Optional[str] = None,
) -> Path:
    """Pick the effective working directory for a worktree.

    The root flag short-circuits everything. Otherwise the first value that is
    not None wins, in the order CLI argument, worktree metadata, config
    default. An empty value resolves to the worktree itself and a leading '/'
    is stripped so the result always stays inside the worktree.
    """
    worktree_path = Path(worktree_path)
    if root:
        return worktree_path

    subdir = next((s for s in (cli_subdir, meta_subdir, config_subdir) if s is not None), None)
    if not subdir:
        return worktree_path

    subdir = subdir.lstrip("/")
    if not subdir:
        return worktree_path
    target = worktree_path / subdir
    if not target.exists():
        logger.warning(f"subdir '{subdir}' does not exist in {worktree_path}")
    return target


class ConfigResolver:
    """Combines the loaded Config with per-worktree metadata."""

    def __init__(self, config: Config, metadata: "MetadataStore", repo_root: Union[str, Path]):
        self.config = config
        self.metadata = metadata
        self.repo_root = Path(repo_root)

    def resolve_dir(
        self,
        worktree_path: Union[str, Path],
        name: str,
        root: bool = False,
        subdir: Optional[str] = None,
    ) -> Path:
        meta = self.metadata.get(name)
        return resolve_subdir(
            worktree_path,
            root=root,
            cli_subdir=subdir,
            meta_subdir=meta.subdir if meta else None,
            config_subdir=self.config.subdir,
        )

    def subdir_source(self, name: str) -> Tuple[Optional[str], Optional[str]]:
        """(subdir, where it came from) for a worktree, or (None, None)."""
        meta = self.metadata.get(name)
        if meta is not None and meta.subdir is not None:
            return meta.subdir, SOURCE_META
        if self.config.subdir is not None:
            return self.config.subdir, SOURCE_CONFIG
        return None, None

    def validate(self) -> List[str]:
        """Advisory warnings for the project config file."""
        return validate_config_file(project_config_path(self.repo_root))
