"""Error types raised by the inspection and parsing modules.

Missing files are reported with the built-in ``FileNotFoundError`` and
unreadable files with ``OSError``; everything specific to probing a build
derives from :class:`BlasProbeError`.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


class BlasProbeError(Exception):
    """Base error carrying an optional context mapping."""

    def __init__(self, message: str, context: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.context: Dict[str, Any] = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        for key, value in self.context.items():
            if value not in (None, ""):
                parts.append(f"  {key}: {value}")
        return "\n".join(parts)


class ExternalToolUnavailableError(BlasProbeError):
    """An inspection tool could not be launched (missing or not executable)."""

    def __init__(self, tool: str, reason: str = ""):
        super().__init__(
            f"Inspection tool '{tool}' is not available",
            context={"tool": tool, "reason": reason},
        )
        self.tool = tool


class ExternalToolFailedError(BlasProbeError):
    """An inspection tool ran but exited abnormally or timed out."""

    def __init__(
        self,
        tool: str,
        artifact: str,
        returncode: Optional[int] = None,
        stderr: str = "",
        reason: str = "",
    ):
        super().__init__(
            f"Inspection tool '{tool}' failed on {artifact}",
            context={
                "returncode": returncode,
                "reason": reason,
                "stderr": stderr.strip(),
            },
        )
        self.tool = tool
        self.artifact = artifact
        self.returncode = returncode
        self.stderr = stderr


class MalformedConfigLineError(BlasProbeError, ValueError):
    """A build-configuration line does not have the ``KEY=VALUE`` shape."""

    def __init__(self, line_number: int, line: str):
        super().__init__(
            f"Line {line_number} is not a KEY=VALUE declaration",
            context={"line": line},
        )
        self.line_number = line_number
        self.line = line


class PathCanonicalizationError(BlasProbeError, OSError):
    """A search path that exists could not be resolved to its canonical form."""

    def __init__(self, path: str, reason: str = ""):
        super().__init__(
            f"Failed to canonicalize search path: {path}",
            context={"reason": reason},
        )
        self.path = path


__all__ = [
    "BlasProbeError",
    "ExternalToolFailedError",
    "ExternalToolUnavailableError",
    "MalformedConfigLineError",
    "PathCanonicalizationError",
]
