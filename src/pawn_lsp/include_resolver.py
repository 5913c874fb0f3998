"""Include Resolver for Pawn include directives.

This module provides the IncludeResolver class that answers, for one parsed
IncludeDirective, which file on disk satisfies it. Quote includes search the
including file's directory before the configured search directories; angle
includes search only the configured search directories.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterator, Sequence

from pawn_lsp.config import DEFAULT_AUTO_EXTENSIONS, ResolverConfig
from pawn_lsp.include_directive import IncludeDirective
from pawn_lsp.path_model import HOST, PathModel
from pawn_lsp.resolution_cache import ResolutionCache

logger = logging.getLogger(__name__)

# Extensions that already name a Pawn source or include file
RECOGNIZED_EXTENSIONS = (".inc", ".pwn", ".p")

# Never treated as carrying a recognized extension
UNRESOLVABLE_SENTINEL = "open.mp"


def has_recognized_extension(raw_path: str, path_model: PathModel = HOST) -> bool:
    """Check whether the final path segment ends in a recognized extension.

    A dot inside a directory name does not count, and the literal name
    "open.mp" is never considered to have a recognized extension.

    Args:
        raw_path: The raw include path.
        path_model: Path model used to find the final segment.

    Returns:
        True if the auto-extension fallback should be skipped.
    """
    if raw_path == UNRESOLVABLE_SENTINEL:
        return False

    segment = path_model.final_segment(raw_path)
    dot = segment.rfind(".")
    if dot == -1:
        return False
    return segment[dot:] in RECOGNIZED_EXTENSIONS


class IncludeResolver:
    """Resolves include directives against the filesystem.

    A resolver owns its configuration and its cache exclusively and is meant
    to be created once per scanned source file. It is not safe for concurrent
    use from several threads.
    """

    def __init__(
        self,
        config: ResolverConfig,
        file_exists: Callable[[str], bool] = os.path.isfile,
        path_model: PathModel | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            config: The resolver configuration.
            file_exists: Existence check for candidate paths.
            path_model: Path model used to build candidates. Defaults to the
                        host path model.
        """
        self._config = config
        self._file_exists = file_exists
        self._path_model = path_model or HOST
        self._cache = ResolutionCache(
            capacity=config.cache_capacity,
            enabled=config.cache_enabled,
        )

    @property
    def config(self) -> ResolverConfig:
        return self._config

    @property
    def cache(self) -> ResolutionCache:
        return self._cache

    def resolve(self, directive: IncludeDirective) -> str | None:
        """Resolve a directive to the path of an existing file.

        A previously recorded outcome for the same raw path is returned
        without touching the filesystem, even if the filesystem has changed
        since.

        Args:
            directive: The parsed include directive.

        Returns:
            The resolved path, or None if no candidate exists.
        """
        cached = self._cache.lookup(directive.raw_path)
        if cached is not None:
            logger.debug(f"Include cache hit for {directive.raw_path!r}: found={cached.found}")
            return cached.resolved_path if cached.found else None

        resolved = self._search(directive)

        self._cache.record(directive.raw_path, resolved, resolved is not None)

        if resolved is None:
            logger.debug(f"Cannot resolve {directive}")
        else:
            logger.debug(f"Resolved {directive} to {resolved}")
        return resolved

    def clear_cache(self) -> None:
        """Forget every recorded resolution outcome."""
        self._cache.clear()

    def _search(self, directive: IncludeDirective) -> str | None:
        """Search the filesystem for a directive, ignoring the cache."""
        if directive.is_rooted:
            if self._file_exists(directive.raw_path):
                return directive.raw_path
            return None

        for directory in self._candidate_directories(directive):
            resolved = self._try_directory(directory, directive.raw_path)
            if resolved is not None:
                return resolved
        return None

    def _candidate_directories(self, directive: IncludeDirective) -> Iterator[str]:
        """Yield the directories to search for a directive, in precedence order."""
        if directive.kind == "quote" and self._config.base_dir:
            yield self._config.base_dir

        for directory in self._config.search_dirs:
            if directory:
                yield directory

    def _try_directory(self, directory: str, raw_path: str) -> str | None:
        """Try the literal path in a directory, then the auto-extensions.

        Args:
            directory: The directory to search.
            raw_path: The raw include path.

        Returns:
            The first existing candidate, or None.
        """
        candidate = self._path_model.join(directory, raw_path)
        if self._file_exists(candidate):
            return candidate

        if not self._config.auto_append_enabled:
            return None
        if has_recognized_extension(raw_path, self._path_model):
            return None

        for extension in self._config.auto_extensions:
            if not extension:
                continue
            with_extension = f"{candidate}{extension}"
            if self._file_exists(with_extension):
                return with_extension
        return None


def find_include_file(
    directive: IncludeDirective,
    base_dir: str | None,
    search_dirs: Sequence[str],
    auto_extensions: Sequence[str] = DEFAULT_AUTO_EXTENSIONS,
) -> str | None:
    """Resolve a single directive once, without caching.

    Args:
        directive: The parsed include directive.
        base_dir: Directory of the including file.
        search_dirs: Search directories in precedence order.
        auto_extensions: Suffixes tried by the auto-extension fallback.

    Returns:
        The resolved path, or None if no candidate exists.
    """
    resolver = IncludeResolver(
        ResolverConfig(
            base_dir=base_dir,
            search_dirs=search_dirs,
            cache_enabled=False,
            auto_extensions=auto_extensions,
        )
    )
    return resolver.resolve(directive)
