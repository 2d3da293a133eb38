"""Build configuration reader.

Parses the ``Makefile.conf`` generated by the native build system. The
file holds one ``KEY=VALUE`` declaration per line; the generator also
emits comments, make directives and stale entries, which are skipped.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from blasprobe.lib.errors import MalformedConfigLineError
from blasprobe.lib.link_flags import LinkInfo

logger = logging.getLogger(__name__)

OSNAME_KEY = "OSNAME"
NOFORTRAN_KEY = "NOFORTRAN"
C_EXTRA_LIB_KEY = "CEXTRALIB"
F_EXTRA_LIB_KEY = "FEXTRALIB"


class BuildConfig(BaseModel):
    """Options chosen by the native build."""
    model_config = ConfigDict(frozen=True)

    os_name: str = ""
    fortran_enabled: bool = True
    c_link_info: LinkInfo = Field(default_factory=LinkInfo)
    f_link_info: LinkInfo = Field(default_factory=LinkInfo)
    # (key, value) pairs in first-seen key order, last value wins
    entries: Tuple[Tuple[str, str], ...] = ()

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Look up a raw declaration, e.g. ``CORE`` or ``NUM_CORES``."""
        for entry_key, value in self.entries:
            if entry_key == key:
                return value
        return default


class BuildConfigReader:
    """Read a generated build configuration file."""

    def __init__(self, config_path: Union[str, Path]):
        """Initialize reader with config file path.

        Args:
            config_path: Path to Makefile.conf
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Build configuration not found: {config_path}")

        self.skipped_lines: List[Tuple[int, str]] = []

    def read(self) -> BuildConfig:
        """Parse the configuration file.

        Lines that cannot be decoded or do not have the ``KEY=VALUE``
        shape are skipped and recorded in :attr:`skipped_lines`.

        Returns:
            Parsed build configuration

        Raises:
            OSError: If the file cannot be opened or read
        """
        skipped_lines: List[Tuple[int, str]] = []
        values: Dict[str, object] = {}
        entries: Dict[str, str] = {}

        with open(self.config_path, 'rb') as f:
            for line_number, raw_line in enumerate(f, 1):
                try:
                    line = raw_line.decode('utf-8')
                except UnicodeDecodeError as e:
                    logger.warning(
                        f"{self.config_path}:{line_number}: skipping undecodable line: {e}"
                    )
                    skipped_lines.append((line_number, "undecodable"))
                    continue

                line = line.rstrip('\r\n')
                if not line:
                    continue

                try:
                    key, value = split_declaration(line_number, line)
                except MalformedConfigLineError as e:
                    logger.debug(f"{self.config_path}:{line_number}: {e}")
                    skipped_lines.append((line_number, "malformed"))
                    continue

                entries[key] = value
                if key == OSNAME_KEY:
                    values['os_name'] = value
                elif key == NOFORTRAN_KEY:
                    values['fortran_enabled'] = False
                elif key == C_EXTRA_LIB_KEY:
                    values['c_link_info'] = LinkInfo.parse(value)
                elif key == F_EXTRA_LIB_KEY:
                    values['f_link_info'] = LinkInfo.parse(value)

        self.skipped_lines = skipped_lines
        return BuildConfig(entries=tuple(entries.items()), **values)


def split_declaration(line_number: int, line: str) -> Tuple[str, str]:
    """Split a ``KEY=VALUE`` line.

    Args:
        line_number: 1-based line number, for diagnostics
        line: Line without its terminator

    Returns:
        Tuple of (key, value)

    Raises:
        MalformedConfigLineError: If the line does not contain exactly one ``=``
    """
    parts = line.split('=')
    if len(parts) != 2:
        raise MalformedConfigLineError(line_number, line)
    return parts[0], parts[1]


def read_build_config(config_path: Union[str, Path]) -> BuildConfig:
    """Read a build configuration file.

    Args:
        config_path: Path to Makefile.conf

    Returns:
        Parsed build configuration

    Example:
        >>> conf = read_build_config("Makefile.conf")
        >>> conf.fortran_enabled
        True
    """
    return BuildConfigReader(config_path).read()


__all__ = [
    "BuildConfig",
    "BuildConfigReader",
    "C_EXTRA_LIB_KEY",
    "F_EXTRA_LIB_KEY",
    "NOFORTRAN_KEY",
    "OSNAME_KEY",
    "read_build_config",
    "split_declaration",
]
