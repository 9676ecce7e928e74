"""Tests for working-directory resolution"""
import logging

import pytest

from git_worktree_keeper.config import Config
from git_worktree_keeper.services.config_resolver import (
    SOURCE_CONFIG,
    SOURCE_META,
    ConfigResolver,
    resolve_subdir,
)
from git_worktree_keeper.services.metadata_service import MetadataStore


@pytest.fixture
def worktree(temp_dir):
    path = temp_dir / "wt"
    for sub in ("cli", "meta", "conf"):
        (path / sub).mkdir(parents=True)
    return path


class TestResolveSubdir:
    """Test precedence between flag, metadata and config default."""

    @pytest.mark.parametrize("cli,meta,conf,expected", [
        ("cli", "meta", "conf", "cli"),
        (None, "meta", "conf", "meta"),
        (None, None, "conf", "conf"),
        ("cli", None, "conf", "cli"),
        ("cli", "meta", None, "cli"),
        (None, "meta", None, "meta"),
        (None, None, None, None),
    ])
    def test_first_present_source_wins(self, worktree, cli, meta, conf, expected):
        result = resolve_subdir(worktree, cli_subdir=cli, meta_subdir=meta, config_subdir=conf)
        assert result == (worktree / expected if expected else worktree)

    def test_root_flag_overrides_everything(self, worktree):
        assert resolve_subdir(worktree, root=True, cli_subdir="cli", meta_subdir="meta", config_subdir="conf") == worktree

    def test_empty_value_means_worktree_root(self, worktree):
        """An empty metadata value is still selected and shadows the config default."""
        assert resolve_subdir(worktree, meta_subdir="", config_subdir="conf") == worktree

    def test_leading_slash_is_stripped(self, worktree):
        assert resolve_subdir(worktree, cli_subdir="/cli") == worktree / "cli"
        assert resolve_subdir(worktree, cli_subdir="/") == worktree

    def test_missing_subdir_warns_but_resolves(self, worktree, caplog):
        with caplog.at_level(logging.WARNING):
            result = resolve_subdir(worktree, cli_subdir="nope")

        assert result == worktree / "nope"
        assert "does not exist" in caplog.text


class TestConfigResolver:
    """Test resolution against stored metadata and configuration."""

    def test_resolve_dir_uses_metadata(self, temp_dir, worktree):
        store = MetadataStore(temp_dir / ".gw")
        store.set_subdir("feat", "meta")
        resolver = ConfigResolver(Config(subdir="conf"), store, temp_dir)

        assert resolver.resolve_dir(worktree, "feat") == worktree / "meta"
        assert resolver.resolve_dir(worktree, "other") == worktree / "conf"
        assert resolver.resolve_dir(worktree, "feat", subdir="cli") == worktree / "cli"

    def test_subdir_source(self, temp_dir):
        store = MetadataStore(temp_dir / ".gw")
        store.set_subdir("feat", "meta")

        assert ConfigResolver(Config(subdir="conf"), store, temp_dir).subdir_source("feat") == ("meta", SOURCE_META)
        assert ConfigResolver(Config(subdir="conf"), store, temp_dir).subdir_source("x") == ("conf", SOURCE_CONFIG)
        assert ConfigResolver(Config(), store, temp_dir).subdir_source("x") == (None, None)

    def test_validate_reads_project_config(self, temp_dir):
        (temp_dir / ".gw").mkdir()
        (temp_dir / ".gw" / "config.toml").write_text("[gc]\nstale_days = -1\n")
        resolver = ConfigResolver(Config(), MetadataStore(temp_dir / ".gw"), temp_dir)

        assert resolver.validate() == [".gw/config.toml: 'gc.stale_days' should be positive"]
