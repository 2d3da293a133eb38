"""Linker flag parsing.

Turns the extra-library flag strings recorded by the native build
(``-L<path>`` and ``-l<name>``) into canonical search paths and library
names.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict

from blasprobe.lib.errors import PathCanonicalizationError

logger = logging.getLogger(__name__)

SEARCH_PATH_PREFIX = "-L"
LIBRARY_PREFIX = "-l"

T = TypeVar("T")


def as_sorted_tuple(items: Iterable[T]) -> Tuple[T, ...]:
    """Deduplicate and sort."""
    return tuple(sorted(set(items)))


class LinkInfo(BaseModel):
    """Search paths and library names from one linker flag string.

    Search paths that do not exist at parse time are dropped, and the
    remaining ones are canonicalized. Both tuples are sorted and free of
    duplicates.

    Example:
        >>> info = LinkInfo.parse("-L/lib/../lib -L/no/such/dir -lgfortran -lm -lm")
        >>> info.libs
        ('gfortran', 'm')
    """
    model_config = ConfigDict(frozen=True)

    search_paths: Tuple[Path, ...] = ()
    libs: Tuple[str, ...] = ()

    @classmethod
    def parse(cls, flags: str) -> 'LinkInfo':
        """Parse a space-separated linker flag string.

        Args:
            flags: Flag string, e.g. ``"-L/usr/lib -lgfortran -lm"``

        Returns:
            Parsed link information

        Raises:
            PathCanonicalizationError: If an existing search path cannot be
                resolved
        """
        search_paths = set()
        libs = set()

        for token in flags.split(" "):
            if token.startswith(SEARCH_PATH_PREFIX):
                raw_path = token[len(SEARCH_PATH_PREFIX):]
                # Path("") would silently mean the working directory; any stat
                # error (ENAMETOOLONG, EACCES) counts as missing
                if not raw_path or not os.path.exists(raw_path):
                    logger.debug(f"Dropping missing search path: {raw_path!r}")
                    continue
                search_paths.add(_canonicalize(Path(raw_path)))
            elif token.startswith(LIBRARY_PREFIX):
                libs.add(token[len(LIBRARY_PREFIX):])
            elif token:
                logger.debug(f"Ignoring linker flag: {token}")

        return cls(
            search_paths=as_sorted_tuple(search_paths),
            libs=as_sorted_tuple(libs),
        )

    def is_empty(self) -> bool:
        """Check if no search path and no library were found."""
        return not self.search_paths and not self.libs


def _canonicalize(path: Path) -> Path:
    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise PathCanonicalizationError(str(path), reason=str(e)) from e


def parse_link_flags(flags: str) -> LinkInfo:
    """Parse a linker flag string.

    Args:
        flags: Space-separated ``-L``/``-l`` flags

    Returns:
        Parsed link information
    """
    return LinkInfo.parse(flags)


__all__ = ["LIBRARY_PREFIX", "LinkInfo", "SEARCH_PATH_PREFIX", "parse_link_flags"]
