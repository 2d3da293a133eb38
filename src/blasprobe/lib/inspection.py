"""Symbol and dependency extraction from binary artifacts.

Wraps the binutils inspection tools. ``nm -g`` lists the global symbols of
a static archive or shared object, ``objdump -p`` (or ``readelf -d``)
lists the shared libraries a dynamically linked object needs.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

from blasprobe.lib.errors import ExternalToolFailedError, ExternalToolUnavailableError
from blasprobe.lib.settings import ProbeSettings, tool_name

logger = logging.getLogger(__name__)

TEXT_SYMBOL_TYPE = "T"
NEEDED_MARKER = "NEEDED"
READELF_NEEDED_PATTERN = re.compile(r"\(NEEDED\)\s+Shared library: \[(.*)\]\s*$")


def parse_nm_output(output: str) -> List[str]:
    """Collect global text symbols from ``nm`` output.

    Assumes lines like::

        0000000000909b30 T zupmtr_

    Undefined references (``U name``, two fields), archive member headers
    and non-text symbols are ignored.

    Args:
        output: Standard output of ``nm -g``

    Returns:
        Symbol names, sorted
    """
    symbols = []
    for line in output.splitlines():
        fields = line.split()
        if len(fields) == 3 and fields[1] == TEXT_SYMBOL_TYPE:
            symbols.append(fields[2])
    symbols.sort()
    return symbols


def parse_objdump_needed(output: str) -> List[str]:
    """Collect ``NEEDED`` entries from ``objdump -p`` output.

    Assumes lines like::

          NEEDED               libgfortran.so.5

    Args:
        output: Standard output of ``objdump -p``

    Returns:
        Shared library file names, sorted (empty for static archives)
    """
    libs = []
    for line in output.splitlines():
        line = line.strip()
        if line.startswith(NEEDED_MARKER):
            libs.append(line[len(NEEDED_MARKER):].strip())
    libs.sort()
    return libs


def parse_readelf_needed(output: str) -> List[str]:
    """Collect ``NEEDED`` entries from ``readelf -d`` output.

    Assumes lines like::

         0x0000000000000001 (NEEDED)             Shared library: [libm.so.6]

    Args:
        output: Standard output of ``readelf -d``

    Returns:
        Shared library file names, sorted
    """
    libs = []
    for line in output.splitlines():
        match = READELF_NEEDED_PATTERN.search(line)
        if match:
            libs.append(match.group(1))
    libs.sort()
    return libs


DEPENDENCY_PARSERS = {
    "objdump": parse_objdump_needed,
    "readelf": parse_readelf_needed,
}


def run_tool(cmd: Sequence[str], artifact: Path, timeout: float) -> str:
    """Run an inspection tool and return its standard output.

    Args:
        cmd: Command line, tool first
        artifact: Artifact being inspected, for error reporting
        timeout: Timeout in seconds

    Returns:
        Captured standard output

    Raises:
        ExternalToolUnavailableError: If the tool cannot be started
        ExternalToolFailedError: If the tool exits non-zero or times out
    """
    tool = cmd[0]
    logger.debug(f"Running: {' '.join(cmd)}")

    try:
        result = subprocess.run(
            list(cmd),
            capture_output=True,
            text=True,
            errors='replace',
            check=False,
            timeout=timeout
        )
    except subprocess.TimeoutExpired as e:
        raise ExternalToolFailedError(
            tool,
            str(artifact),
            reason=f"timed out after {timeout}s"
        ) from e
    except OSError as e:
        # missing binary, no execute permission, bad executable format
        raise ExternalToolUnavailableError(tool, reason=str(e)) from e

    if result.returncode != 0:
        raise ExternalToolFailedError(
            tool,
            str(artifact),
            returncode=result.returncode,
            stderr=result.stderr
        )

    return result.stdout


class ArtifactInspector(ABC):
    """Abstract source of symbols and dependencies for an artifact."""

    @abstractmethod
    def extract_symbols(self, artifact: Path) -> List[str]:
        """Global text symbols defined by the artifact, sorted."""
        pass

    @abstractmethod
    def extract_dependencies(self, artifact: Path) -> List[str]:
        """Shared libraries the artifact needs at load time, sorted."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the backing tools are installed."""
        pass


class BinutilsInspector(ArtifactInspector):
    """Inspector backed by ``nm`` and ``objdump`` (or ``readelf``)."""

    def __init__(self, settings: Optional[ProbeSettings] = None):
        """Initialize inspector.

        Args:
            settings: Tool names, arguments and timeout

        Raises:
            ValueError: If the dependency tool has no known output format
        """
        self.settings = settings or ProbeSettings()

        dependency_kind = tool_name(self.settings.dependency_tool)
        if dependency_kind not in DEPENDENCY_PARSERS:
            raise ValueError(
                f"Unknown dependency tool: {self.settings.dependency_tool}. "
                f"Use one of {sorted(DEPENDENCY_PARSERS)}."
            )
        self._parse_dependencies = DEPENDENCY_PARSERS[dependency_kind]

    def is_available(self) -> bool:
        """Check if both tools resolve on PATH."""
        for tool in (self.settings.symbol_tool, self.settings.dependency_tool):
            if shutil.which(tool) is None:
                logger.debug(f"Inspection tool not found: {tool}")
                return False
        return True

    def extract_symbols(self, artifact: Path) -> List[str]:
        cmd = [self.settings.symbol_tool, *self.settings.symbol_args, str(artifact)]
        return parse_nm_output(run_tool(cmd, artifact, self.settings.timeout))

    def extract_dependencies(self, artifact: Path) -> List[str]:
        cmd = [self.settings.dependency_tool, *self.settings.dependency_args, str(artifact)]
        return self._parse_dependencies(run_tool(cmd, artifact, self.settings.timeout))


def create_inspector(settings: Optional[ProbeSettings] = None) -> ArtifactInspector:
    """Factory function to create the default inspector.

    Args:
        settings: Inspection settings

    Returns:
        Inspector instance
    """
    return BinutilsInspector(settings)


__all__ = [
    "ArtifactInspector",
    "BinutilsInspector",
    "DEPENDENCY_PARSERS",
    "create_inspector",
    "parse_nm_output",
    "parse_objdump_needed",
    "parse_readelf_needed",
    "run_tool",
]
