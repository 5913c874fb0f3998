"""Platform-neutral path model for include resolution.

This module provides the PathModel class that normalizes and joins include
paths using a single configurable separator, so that forward and backward
slashes written in Pawn sources behave the same on every host.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

# Both separators are accepted on input regardless of the host platform
SEPARATORS = "/\\"

# Drive-letter rooted Windows path, e.g. C:\pawno\include or C:/pawno
DRIVE_ROOT_PATTERN = re.compile(r"^[A-Za-z]:.")


@dataclass(frozen=True)
class PathModel:
    """Pure string transformations over filesystem paths.

    Attributes:
        sep: The separator every normalized path is rewritten to.
    """

    sep: str = os.sep

    def normalize(self, path: str) -> str:
        """Rewrite every separator in a path to this model's separator.

        Args:
            path: The path to normalize.

        Returns:
            The normalized path. Normalizing twice yields the same result.
        """
        other = "\\" if self.sep == "/" else "/"
        return path.replace(other, self.sep)

    def join(self, directory: str, relative: str) -> str:
        """Join a directory and a relative path with exactly one separator.

        Args:
            directory: The directory part.
            relative: The path to append. Returned unchanged when rooted.

        Returns:
            The joined, normalized path.
        """
        if self.is_rooted(relative):
            return relative

        head = directory.rstrip(SEPARATORS)
        tail = relative.lstrip(SEPARATORS)
        return self.normalize(f"{head}{self.sep}{tail}")

    def is_rooted(self, path: str) -> bool:
        """Check whether a path is POSIX absolute or drive-letter rooted."""
        if path.startswith("/"):
            return True
        return DRIVE_ROOT_PATTERN.match(path) is not None

    def final_segment(self, path: str) -> str:
        """Return the text after the last separator of either kind."""
        cut = max(path.rfind("/"), path.rfind("\\"))
        return path[cut + 1 :]


HOST = PathModel()


def normalize(path: str) -> str:
    return HOST.normalize(path)


def join(directory: str, relative: str) -> str:
    return HOST.join(directory, relative)


def is_rooted(path: str) -> bool:
    return HOST.is_rooted(path)
