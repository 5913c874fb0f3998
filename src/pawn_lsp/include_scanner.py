"""Include Scanner for Pawn source files.

This module checks every include directive of one or more Pawn source files
before compilation. Each file gets its own IncludeResolver rooted at the
file's directory; unresolved includes are collected per file and per build
rather than raised, so that every missing include is reported at once.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from pawn_lsp.config import DEFAULT_AUTO_EXTENSIONS, ResolverConfig
from pawn_lsp.include_directive import IncludeDirective
from pawn_lsp.include_directive_parser import IncludeDirectiveParser
from pawn_lsp.include_resolver import IncludeResolver

logger = logging.getLogger(__name__)

# Physical line breaks as counted by editors: \r\n, \r or \n
LINE_BREAK_PATTERN = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class IncludeOccurrence:
    """An include directive found in a source file, with its outcome.

    Attributes:
        source_file: Path of the file containing the directive
        line_number: Line of the directive (1-indexed)
        character: Column of the "#" starting the directive (0-indexed)
        end_character: Column just past the end of the line content
        directive: The parsed include directive
        resolved_path: The resolved path, or None if not found
    """

    source_file: str
    line_number: int
    character: int
    end_character: int
    directive: IncludeDirective
    resolved_path: str | None

    @property
    def found(self) -> bool:
        return self.resolved_path is not None

    @property
    def message(self) -> str:
        """Human readable report line for an unresolved include."""
        name = Path(self.source_file).name
        return f"{name}:{self.line_number}: cannot find include '{self.directive.raw_path}'"


@dataclass
class ScanReport:
    """Include check result for a single source file."""

    source_file: str
    occurrences: list[IncludeOccurrence] = field(default_factory=list)

    @property
    def unresolved(self) -> list[IncludeOccurrence]:
        return [o for o in self.occurrences if not o.found]

    @property
    def ok(self) -> bool:
        return not self.unresolved

    def messages(self) -> list[str]:
        return [o.message for o in self.unresolved]


@dataclass
class BuildCheck:
    """Include check result across every source file of a build."""

    reports: list[ScanReport] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """False if at least one include in any file is unresolved."""
        return all(report.ok for report in self.reports)

    @property
    def failed_files(self) -> list[str]:
        return [report.source_file for report in self.reports if not report.ok]

    def messages(self) -> list[str]:
        return [message for report in self.reports for message in report.messages()]


class IncludeScanner:
    """Scans Pawn sources and resolves their include directives.

    The scanner holds only configuration; every scanned file gets a fresh
    resolver so that caches are never shared between files.
    """

    def __init__(
        self,
        search_dirs: Sequence[str] = (),
        auto_append_enabled: bool = True,
        auto_extensions: Sequence[str] = DEFAULT_AUTO_EXTENSIONS,
        cache_enabled: bool = True,
        parser: IncludeDirectiveParser | None = None,
    ) -> None:
        if isinstance(search_dirs, str) or isinstance(auto_extensions, str):
            raise TypeError("search_dirs and auto_extensions must be sequences of strings")
        self._search_dirs = tuple(search_dirs)
        self._auto_append_enabled = auto_append_enabled
        self._auto_extensions = tuple(auto_extensions)
        self._cache_enabled = cache_enabled
        self._parser = parser or IncludeDirectiveParser()

    def resolver_for(self, source_file: str) -> IncludeResolver:
        """Create a resolver rooted at the source file's directory.

        The source directory is both the base directory of quote includes and
        the first search directory, so angle includes next to the source
        resolve as they do for the compiler.
        """
        base_dir = os.path.dirname(os.path.abspath(source_file))
        search_dirs = (base_dir,) + tuple(d for d in self._search_dirs if d != base_dir)
        config = ResolverConfig(
            base_dir=base_dir,
            search_dirs=search_dirs,
            cache_enabled=self._cache_enabled,
            auto_append_enabled=self._auto_append_enabled,
            auto_extensions=self._auto_extensions,
        )
        return IncludeResolver(config)

    def scan_text(self, source_file: str, text: str) -> ScanReport:
        """Check every include directive in the given source text.

        Args:
            source_file: Path of the source file, used for the base directory
                         and for reporting.
            text: The source text.

        Returns:
            A ScanReport listing every directive and its outcome.
        """
        resolver = self.resolver_for(source_file)
        report = ScanReport(source_file=source_file)

        for index, line in enumerate(LINE_BREAK_PATTERN.split(text)):
            if "include" not in line:
                continue

            directive = self._parser.parse(line)
            if directive is None:
                continue

            occurrence = IncludeOccurrence(
                source_file=source_file,
                line_number=index + 1,
                character=len(line) - len(line.lstrip()),
                end_character=len(line.rstrip()),
                directive=directive,
                resolved_path=resolver.resolve(directive),
            )
            if not occurrence.found:
                logger.error(
                    f"Cannot find include file '{directive.raw_path}' "
                    f"at {source_file}:{occurrence.line_number}"
                )
            report.occurrences.append(occurrence)

        logger.info(
            f"Checked {len(report.occurrences)} includes in {source_file}, "
            f"{len(report.unresolved)} unresolved"
        )
        return report

    def scan_file(self, source_file: str | os.PathLike[str]) -> ScanReport:
        """Read a source file and check its include directives.

        Undecodable bytes are replaced rather than failing the scan.

        Raises:
            OSError: The file cannot be read.
        """
        path = str(source_file)
        with open(path, encoding="utf-8", errors="replace") as f:
            text = f.read()
        return self.scan_text(path, text)


def check_sources(
    source_files: Iterable[str | os.PathLike[str]],
    search_dirs: Sequence[str] = (),
    auto_append_enabled: bool = True,
    auto_extensions: Sequence[str] = DEFAULT_AUTO_EXTENSIONS,
) -> BuildCheck:
    """Check the includes of every source file of a build.

    Args:
        source_files: The source files to check.
        search_dirs: Search directories in precedence order.
        auto_append_enabled: Whether auto-extensions are tried as a fallback.
        auto_extensions: Suffixes tried by the fallback.

    Returns:
        A BuildCheck whose ok property decides whether the build may proceed.
    """
    scanner = IncludeScanner(
        search_dirs=search_dirs,
        auto_append_enabled=auto_append_enabled,
        auto_extensions=auto_extensions,
    )
    check = BuildCheck()
    for source_file in source_files:
        check.reports.append(scanner.scan_file(source_file))

    if not check.ok:
        logger.error("Some include files could not be found. Compilation aborted.")
    return check
