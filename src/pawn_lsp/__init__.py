"""Pawn include resolution package.

This package parses Pawn include directives and resolves them against the
including file's directory and an ordered list of search directories.
"""

__version__ = "0.1.0"

from pawn_lsp.include_directive import IncludeDirective
from pawn_lsp.include_directive_parser import IncludeDirectiveParser
from pawn_lsp.include_resolver import IncludeResolver

__all__ = ["IncludeDirective", "IncludeDirectiveParser", "IncludeResolver", "__version__"]
