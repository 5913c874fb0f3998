"""Resolver configuration and project configuration loading.

This module provides the immutable ResolverConfig and helpers that read the
include search directories of a Pawn project from its opencli.toml:

    [build.includes]
    paths = ["qawno/include", "dependencies/include"]
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from pawn_lsp.exceptions import ConfigError
from pawn_lsp.path_model import HOST
from pawn_lsp.resolution_cache import DEFAULT_CACHE_CAPACITY

logger = logging.getLogger(__name__)

DEFAULT_TOML_FILE = "opencli.toml"
DEFAULT_AUTO_EXTENSIONS = (".inc",)


@dataclass(frozen=True)
class ResolverConfig:
    """Configuration of one include resolver, fixed for its lifetime.

    Attributes:
        base_dir: Directory of the file being scanned; used for quote includes only
        search_dirs: Search directories in precedence order
        cache_enabled: Whether resolution outcomes are memoized
        auto_append_enabled: Whether auto-extensions are tried as a fallback
        auto_extensions: Suffixes tried in order by the fallback
        cache_capacity: Maximum number of memoized outcomes
    """

    base_dir: str | None = None
    search_dirs: tuple[str, ...] = ()
    cache_enabled: bool = True
    auto_append_enabled: bool = True
    auto_extensions: tuple[str, ...] = DEFAULT_AUTO_EXTENSIONS
    cache_capacity: int = DEFAULT_CACHE_CAPACITY

    def __post_init__(self) -> None:
        # A lone string would be split into one-character entries
        for name in ("search_dirs", "auto_extensions"):
            if isinstance(getattr(self, name), str):
                raise TypeError(f"{name} must be a sequence of strings, not a string")
        # Sequences given as lists are stored as tuples
        object.__setattr__(self, "search_dirs", tuple(self.search_dirs))
        object.__setattr__(self, "auto_extensions", tuple(self.auto_extensions))


def load_include_paths(toml_path: str | os.PathLike[str]) -> list[str]:
    """Read the [build.includes] paths array from a project file.

    Args:
        toml_path: Path to the opencli.toml file.

    Returns:
        The configured include paths in file order. Empty when the file or
        any of the tables is missing.

    Raises:
        ConfigError: The file is not valid TOML or the paths are not strings.
    """
    try:
        with open(toml_path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        logger.debug(f"No project file at {toml_path}, using no configured include paths")
        return []
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {toml_path}: {e}") from e

    build = data.get("build", {})
    if not isinstance(build, dict):
        raise ConfigError(f"[build] in {toml_path} must be a table")

    includes = build.get("includes", {})
    if not isinstance(includes, dict):
        raise ConfigError(f"[build.includes] in {toml_path} must be a table")

    paths = includes.get("paths", [])
    if not isinstance(paths, list):
        raise ConfigError(f"build.includes.paths in {toml_path} must be an array")

    for entry in paths:
        if not isinstance(entry, str):
            raise ConfigError(
                f"build.includes.paths in {toml_path} must contain only strings, got {entry!r}"
            )

    return [entry for entry in paths if entry]


def project_search_dirs(
    project_root: str | os.PathLike[str],
    extra_dirs: Iterable[str] = (),
    toml_file: str = DEFAULT_TOML_FILE,
) -> list[str]:
    """Build the ordered search directories for a project.

    Extra directories (e.g. given on the command line) come first, followed
    by the paths configured in the project file. Relative configured paths are
    taken relative to the project root. Directories are not checked for
    existence.

    Args:
        project_root: The project root directory.
        extra_dirs: Additional directories that take precedence.
        toml_file: Name of the project file inside the root.

    Returns:
        The search directories in precedence order.
    """
    root = str(Path(project_root))
    search_dirs = [HOST.normalize(d) for d in extra_dirs if d]

    for configured in load_include_paths(Path(root) / toml_file):
        search_dirs.append(HOST.join(root, configured))

    logger.debug(f"Search directories for {root}: {search_dirs}")
    return search_dirs
