"""Settings for the binary inspection tools.

Settings are plain pydantic models so that an orchestrator can build them
in code, or keep them in a YAML file next to its own build configuration.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from pydantic import BaseModel, field_validator, model_validator

DEFAULT_TOOL_ARGS = {
    "nm": ["-g"],
    "objdump": ["-p"],
    "readelf": ["-d"],
}


class ProbeSettings(BaseModel):
    """Inspection tool configuration."""
    symbol_tool: str = "nm"
    symbol_args: Optional[List[str]] = None
    dependency_tool: str = "objdump"
    dependency_args: Optional[List[str]] = None
    timeout: float = 60.0
    max_workers: Optional[int] = None

    @field_validator('timeout')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Ensure tool timeout is positive."""
        if v <= 0:
            raise ValueError(f"timeout must be positive, got {v}")
        return v

    @field_validator('max_workers')
    @classmethod
    def validate_max_workers(cls, v: Optional[int]) -> Optional[int]:
        """Ensure worker cap is positive when given."""
        if v is not None and v < 1:
            raise ValueError(f"max_workers must be at least 1, got {v}")
        return v

    @model_validator(mode='after')
    def fill_default_args(self) -> 'ProbeSettings':
        """Use the conventional flags for known tools when none are given."""
        if self.symbol_args is None:
            self.symbol_args = list(DEFAULT_TOOL_ARGS.get(tool_name(self.symbol_tool), []))
        if self.dependency_args is None:
            self.dependency_args = list(DEFAULT_TOOL_ARGS.get(tool_name(self.dependency_tool), []))
        return self

    def get_max_workers(self) -> int:
        """Worker cap for concurrent inspections.

        Defaults to (CPU count - 1) or 1 when not configured.
        """
        if self.max_workers is not None:
            return self.max_workers
        cpu_count = os.cpu_count() or 2
        return max(1, cpu_count - 1)


def tool_name(tool: str) -> str:
    """Bare name of a tool given as a name or a path.

    Example:
        >>> tool_name("/usr/bin/x86_64-linux-gnu-objdump")
        'objdump'
    """
    name = Path(tool).name
    for known in DEFAULT_TOOL_ARGS:
        if name == known or name.endswith(f"-{known}"):
            return known
    return name


def load_settings(settings_path: Union[str, Path]) -> ProbeSettings:
    """Load inspection settings from a YAML file.

    The settings may sit at the top level of the file or under a
    ``blasprobe`` section.

    Args:
        settings_path: Path to YAML file

    Returns:
        Validated settings

    Raises:
        FileNotFoundError: If the file does not exist
        yaml.YAMLError: If YAML parsing fails
        pydantic.ValidationError: If validation fails
    """
    settings_path = Path(settings_path)
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with open(settings_path) as f:
        raw: Any = yaml.safe_load(f)

    if raw is None:
        return ProbeSettings()
    if isinstance(raw, dict) and isinstance(raw.get('blasprobe'), dict):
        raw = raw['blasprobe']
    return ProbeSettings.model_validate(raw)


__all__ = ["DEFAULT_TOOL_ARGS", "ProbeSettings", "load_settings", "tool_name"]
