"""Include Directive Parser for Pawn source files.

This module provides the IncludeDirectiveParser class for turning a single
line of Pawn source into an IncludeDirective (#include <...> or #include "...").
Quoted include paths are validated here so that traversal sequences never
reach the filesystem.
"""

from __future__ import annotations

import logging
import re

from pawn_lsp.exceptions import IncludeParseError
from pawn_lsp.include_directive import IncludeDirective, IncludeKind, validate_quote_path
from pawn_lsp.path_model import HOST, PathModel

logger = logging.getLogger(__name__)

MAX_INCLUDE_PATH_LEN = 1024

# Leading whitespace, "#", optional whitespace, then the literal token "include"
INCLUDE_HEAD_PATTERN = re.compile(r"\s*#\s*include")

# Opening delimiter -> (kind, closing delimiter)
DELIMITERS: dict[str, tuple[IncludeKind, str]] = {
    "<": ("angle", ">"),
    '"': ("quote", '"'),
}


class IncludeDirectiveParser:
    """Parser for extracting an include directive from one line of source.

    Parsing is a pure function of the input line. Lines that are not include
    directives at all yield None; lines that look like a directive but are
    malformed raise from parse_strict and yield None from parse.
    """

    def __init__(self, path_model: PathModel | None = None) -> None:
        """Initialize the parser.

        Args:
            path_model: Path model used to decide whether a path is rooted.
                        Defaults to the host path model.
        """
        self._path_model = path_model or HOST

    def parse(self, line: str) -> IncludeDirective | None:
        """Parse a line, treating malformed directives as plain text.

        Args:
            line: One line of source text.

        Returns:
            The parsed IncludeDirective, or None if the line is not a valid
            include directive.
        """
        try:
            return self.parse_strict(line)
        except IncludeParseError as e:
            logger.debug(f"Ignoring malformed include directive {line.strip()!r}: {e}")
            return None

    def parse_strict(self, line: str) -> IncludeDirective | None:
        """Parse a line, raising on malformed directives.

        Args:
            line: One line of source text.

        Returns:
            The parsed IncludeDirective, or None if the line does not start
            with an include directive.

        Raises:
            IncludeParseError: The directive has a bad or missing delimiter,
                or its path is empty or too long.
            InvalidIncludePath: A quoted path contains "..", a doubled
                separator, or is rooted.
        """
        match = INCLUDE_HEAD_PATTERN.match(line)
        if match is None:
            return None

        rest = line[match.end() :].lstrip()
        if not rest or rest[0] not in DELIMITERS:
            raise IncludeParseError("expected '<' or '\"' after #include", line)

        kind, closing = DELIMITERS[rest[0]]
        raw_path = self._extract_enclosed(rest, closing, line)

        if kind == "quote":
            validate_quote_path(raw_path, line)

        return IncludeDirective(
            raw_path=raw_path,
            kind=kind,
            is_rooted=self._path_model.is_rooted(raw_path),
        )

    def _extract_enclosed(self, rest: str, closing: str, line: str) -> str:
        """Extract the text between the opening and closing delimiter.

        Args:
            rest: The line remainder starting at the opening delimiter.
            closing: The closing delimiter character.
            line: The full line, for error reporting.

        Returns:
            The enclosed path text.
        """
        end = rest.find(closing, 1)
        # The closing delimiter must be on the same physical line
        line_break = min(
            (pos for pos in (rest.find("\n", 1), rest.find("\r", 1)) if pos != -1),
            default=-1,
        )
        if end == -1 or (line_break != -1 and line_break < end):
            raise IncludeParseError(f"unterminated include, missing {closing!r}", line)

        raw_path = rest[1:end]
        if not raw_path:
            raise IncludeParseError("empty include path", line)
        if len(raw_path) > MAX_INCLUDE_PATH_LEN:
            raise IncludeParseError(
                f"include path longer than {MAX_INCLUDE_PATH_LEN} characters", line
            )
        return raw_path

