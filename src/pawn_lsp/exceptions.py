"""Exceptions raised while parsing include directives and loading configuration."""

from __future__ import annotations


class IncludeError(Exception):
    """Base class for include resolution errors."""


class IncludeParseError(IncludeError):
    """A line starts like an include directive but is malformed.

    Attributes:
        line: The offending source line.
    """

    def __init__(self, message: str, line: str) -> None:
        super().__init__(message)
        self.line = line


class InvalidIncludePath(IncludeParseError):
    """A quoted include path escapes the including file's directory."""


class ConfigError(IncludeError):
    """The project configuration file cannot be used."""
