"""Configuration handling for git-worktree-keeper

Settings come from two TOML documents with the same schema, the global one
($GW_HOME/config.toml, default ~/.gw/config.toml) and the project one
(<repo>/.gw/config.toml). They are merged key by key with the project file
winning, then environment overrides are applied on top.
"""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from rapidfuzz.distance import Levenshtein

from git_worktree_keeper.exceptions import ConfigError
from git_worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)

GW_DIR_NAME = ".gw"
CONFIG_FILE_NAME = "config.toml"

DEFAULT_WORKTREES_DIR = ".worktrees"
DEFAULT_BRANCH_PREFIX = "wt/"
DEFAULT_STALE_DAYS = 7
DEFAULT_VERIFY_RUST = "cargo test"
DEFAULT_VERIFY_NODE = "npm test"
DEFAULT_VERIFY_PYTHON = "pytest"

# section -> key -> expected type
SCHEMA: Dict[str, Dict[str, type]] = {
    "defaults": {
        "base": str,
        "worktrees_dir": str,
        "branch_prefix": str,
        "subdir": str,
    },
    "gc": {
        "stale_days": int,
    },
    "verify": {
        "rust": str,
        "node": str,
        "python": str,
    },
}

ENV_OVERRIDES = {
    ("defaults", "worktrees_dir"): "GW_WORKTREES_DIR",
    ("defaults", "branch_prefix"): "GW_BRANCH_PREFIX",
    ("defaults", "base"): "GW_DEFAULT_BASE",
    ("defaults", "subdir"): "GW_SUBDIR",
    ("gc", "stale_days"): "GW_STALE_DAYS",
}


@dataclass(frozen=True)
class Config:
    """Effective configuration for one invocation. Never mutated after load."""

    worktrees_dir: str = DEFAULT_WORKTREES_DIR
    branch_prefix: str = DEFAULT_BRANCH_PREFIX
    base: Optional[str] = None
    subdir: Optional[str] = None
    stale_days: int = DEFAULT_STALE_DAYS
    verify_rust: str = DEFAULT_VERIFY_RUST
    verify_node: str = DEFAULT_VERIFY_NODE
    verify_python: str = DEFAULT_VERIFY_PYTHON

    def to_dict(self) -> dict:
        return {
            "defaults": {
                "worktrees_dir": self.worktrees_dir,
                "branch_prefix": self.branch_prefix,
                "base": self.base,
                "subdir": self.subdir,
            },
            "gc": {"stale_days": self.stale_days},
            "verify": {
                "rust": self.verify_rust,
                "node": self.verify_node,
                "python": self.verify_python,
            },
        }

    @classmethod
    def from_layers(cls, layers: Dict[str, Dict[str, Any]]) -> "Config":
        """Create Config from a merged {section: {key: value}} mapping."""
        defaults = layers.get("defaults", {})
        gc = layers.get("gc", {})
        verify = layers.get("verify", {})
        return cls(
            worktrees_dir=defaults.get("worktrees_dir", DEFAULT_WORKTREES_DIR),
            branch_prefix=defaults.get("branch_prefix", DEFAULT_BRANCH_PREFIX),
            base=defaults.get("base"),
            subdir=defaults.get("subdir"),
            stale_days=gc.get("stale_days", DEFAULT_STALE_DAYS),
            verify_rust=verify.get("rust", DEFAULT_VERIFY_RUST),
            verify_node=verify.get("node", DEFAULT_VERIFY_NODE),
            verify_python=verify.get("python", DEFAULT_VERIFY_PYTHON),
        )


def gw_home(environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    """Directory holding the global config: $GW_HOME or ~/.gw."""
    environ = os.environ if environ is None else environ
    if environ.get("GW_HOME"):
        return Path(environ["GW_HOME"])
    home = environ.get("HOME") or environ.get("USERPROFILE")
    if not home:
        return None
    return Path(home) / GW_DIR_NAME


def global_config_path(environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    home = gw_home(environ)
    return home / CONFIG_FILE_NAME if home else None


def project_config_path(repo_root: Path) -> Path:
    return Path(repo_root) / GW_DIR_NAME / CONFIG_FILE_NAME


def default_config_document(config: Config) -> str:
    """Starter project config seeded from the effective settings."""
    return (
        "[defaults]\n"
        f"worktrees_dir = \"{config.worktrees_dir}\"\n"
        f"branch_prefix = \"{config.branch_prefix}\"\n"
        "# subdir = \"services/app\"\n"
        "\n"
        "[gc]\n"
        f"stale_days = {config.stale_days}\n"
    )


def read_config_document(path: Path) -> Dict[str, Dict[str, Any]]:
    """Parse one TOML document down to the known, well-typed keys.

    Unknown sections, unknown keys and wrongly typed values are dropped here;
    validate_config_file() reports them separately.

    Raises:
        ConfigError: If the file exists but cannot be read or parsed
    """
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(str(path), str(e))

    parsed: Dict[str, Dict[str, Any]] = {}
    for section, keys in SCHEMA.items():
        table = raw.get(section)
        if not isinstance(table, dict):
            continue
        for key, expected in keys.items():
            if key not in table:
                continue
            value = table[key]
            # bool is an int subclass, reject it for integer keys
            if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
                logger.debug(f"Ignoring {path}: {section}.{key} has type {type(value).__name__}")
                continue
            parsed.setdefault(section, {})[key] = value
    return parsed


def merge_layers(
    base: Dict[str, Dict[str, Any]], override: Dict[str, Dict[str, Any]]
) -> Dict[str, Dict[str, Any]]:
    """Merge two parsed documents key by key; values in override win."""
    merged: Dict[str, Dict[str, Any]] = {}
    for section in SCHEMA:
        combined = dict(base.get(section, {}))
        combined.update(override.get(section, {}))
        if combined:
            merged[section] = combined
    return merged


def apply_env_overrides(
    layers: Dict[str, Dict[str, Any]], environ: Mapping[str, str]
) -> Dict[str, Dict[str, Any]]:
    """Apply GW_* environment variables on top of the merged documents."""
    result = {section: dict(values) for section, values in layers.items()}
    for (section, key), var in ENV_OVERRIDES.items():
        if var not in environ:
            continue
        value: Any = environ[var]
        if SCHEMA[section][key] is int:
            try:
                value = int(value)
            except ValueError:
                logger.warning(f"ignoring {var}={environ[var]!r}: not an integer")
                continue
        result.setdefault(section, {})[key] = value
    return result


def load_config(repo_root: Path, environ: Optional[Mapping[str, str]] = None) -> Config:
    """Load the effective configuration for a repository.

    Precedence per key: environment, project file, global file, built-in default.
    """
    environ = os.environ if environ is None else environ

    layers: Dict[str, Dict[str, Any]] = {}
    global_path = global_config_path(environ)
    if global_path is not None:
        layers = merge_layers(layers, read_config_document(global_path))
        logger.debug(f"Global config: {global_path}")

    project_path = project_config_path(repo_root)
    layers = merge_layers(layers, read_config_document(project_path))
    logger.debug(f"Project config: {project_path}")

    layers = apply_env_overrides(layers, environ)
    return Config.from_layers(layers)


def suggest_key(key: str, candidates: List[str], max_distance: int = 2) -> Optional[str]:
    """Return the closest candidate within max_distance edits, if any."""
    best: Optional[str] = None
    best_distance = max_distance + 1
    for candidate in candidates:
        distance = Levenshtein.distance(key, candidate)
        if distance < best_distance:
            best, best_distance = candidate, distance
    return best


def validate_config_file(path: Path) -> List[str]:
    """Report problems in a config document as warnings.

    Never raises and never affects loading.
    """
    path = Path(path)
    label = f"{path.parent.name}/{path.name}" if path.parent.name == GW_DIR_NAME else str(path)
    warnings: List[str] = []

    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except FileNotFoundError:
        return warnings
    except tomllib.TOMLDecodeError as e:
        warnings.append(f"{label}: parse error: {e}")
        return warnings
    except OSError as e:
        logger.debug(f"Could not read {path}: {e}")
        return warnings

    all_key_names = sorted({key for keys in SCHEMA.values() for key in keys})

    for section, value in raw.items():
        if section not in SCHEMA:
            warnings.append(f"{label}: unknown section '{section}'")
            continue
        if not isinstance(value, dict):
            continue
        for key in value:
            if key in SCHEMA[section]:
                continue
            full = f"{section}.{key}"
            suggestion = suggest_key(key, all_key_names)
            if suggestion:
                warnings.append(f"{label}: unknown key '{full}' (did you mean '{suggestion}'?)")
            else:
                warnings.append(f"{label}: unknown key '{full}'")

    gc = raw.get("gc")
    if isinstance(gc, dict):
        days = gc.get("stale_days")
        if isinstance(days, int) and not isinstance(days, bool) and days <= 0:
            warnings.append(f"{label}: 'gc.stale_days' should be positive")

    defaults = raw.get("defaults")
    if isinstance(defaults, dict):
        subdir = defaults.get("subdir")
        if isinstance(subdir, str) and subdir.startswith("/"):
            warnings.append(f"{label}: 'defaults.subdir' should not start with '/'")

    return warnings
