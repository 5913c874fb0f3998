"""Include Directive data model for Pawn include directives.

This module provides the IncludeDirective dataclass that represents a parsed
Pawn include directive (#include <...> and #include "..."), and the quoted
path check shared by the parser and the dataclass itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pawn_lsp.exceptions import IncludeParseError, InvalidIncludePath
from pawn_lsp.path_model import HOST

IncludeKind = Literal["angle", "quote"]

# Sequences that must never appear in a quoted include path
FORBIDDEN_QUOTE_SEQUENCES = ("..", "//", "\\\\")


def validate_quote_path(raw_path: str, line: str) -> None:
    """Reject quoted paths that could escape the including directory.

    Args:
        raw_path: The text between the quotes.
        line: The source line, for error reporting.

    Raises:
        InvalidIncludePath: The path contains "..", a doubled separator, or
            is rooted.
    """
    for sequence in FORBIDDEN_QUOTE_SEQUENCES:
        if sequence in raw_path:
            raise InvalidIncludePath(
                f"quoted include path {raw_path!r} contains {sequence!r}", line
            )
    if HOST.is_rooted(raw_path):
        raise InvalidIncludePath(f"quoted include path {raw_path!r} is rooted", line)


@dataclass(frozen=True)
class IncludeDirective:
    """Represents a Pawn include directive.

    Construction enforces the same rules as parsing: the path is never empty,
    is_rooted agrees with the path, and a quote directive never holds "..",
    a doubled separator or a rooted path.

    Attributes:
        raw_path: The exact text between the delimiters, never empty
        kind: "angle" for <...> or "quote" for "..."
        is_rooted: Whether raw_path is absolute or drive-letter rooted
    """

    raw_path: str
    kind: IncludeKind
    is_rooted: bool

    def __post_init__(self) -> None:
        if self.kind not in ("angle", "quote"):
            raise ValueError(f"unknown include kind {self.kind!r}")
        if not self.raw_path:
            raise IncludeParseError("empty include path", str(self))
        if self.kind == "quote":
            validate_quote_path(self.raw_path, str(self))
        if self.is_rooted != HOST.is_rooted(self.raw_path):
            raise ValueError(
                f"is_rooted={self.is_rooted} does not match include path {self.raw_path!r}"
            )

    @property
    def is_quote(self) -> bool:
        return self.kind == "quote"

    def __str__(self) -> str:
        if self.kind == "angle":
            return f"#include <{self.raw_path}>"
        return f'#include "{self.raw_path}"'
