"""Capability introspection of built BLAS/LAPACK libraries.

Classifies a produced static archive or shared object by the symbols it
exports and the shared libraries it links against.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from blasprobe.lib.inspection import ArtifactInspector, create_inspector
from blasprobe.lib.settings import ProbeSettings

logger = logging.getLogger(__name__)

CBLAS_PREFIX = "cblas_"
LAPACKE_PREFIX = "LAPACKE_"
# A single routine stands in for the full LAPACK set
LAPACK_MARKER = "dsyev_"


@dataclass(frozen=True)
class LibraryArtifact:
    """Symbols and dependencies of one built library.

    Neither list is deduplicated; an archive that defines a symbol in two
    members lists it twice.
    """

    path: Path
    dependencies: Tuple[str, ...] = field(default_factory=tuple)
    exported_symbols: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_static(self) -> bool:
        """True when no shared library is needed (static archive)."""
        return not self.dependencies

    def has_cblas(self) -> bool:
        """Check if the CBLAS interface is exported."""
        return any(sym.startswith(CBLAS_PREFIX) for sym in self.exported_symbols)

    def has_lapack(self) -> bool:
        """Check if LAPACK is exported."""
        return LAPACK_MARKER in self.exported_symbols

    def has_lapacke(self) -> bool:
        """Check if the LAPACKE C interface is exported."""
        return any(sym.startswith(LAPACKE_PREFIX) for sym in self.exported_symbols)

    def has_dependency(self, name: str) -> bool:
        """Check if the artifact links against ``lib<name>``.

        Example:
            >>> artifact = LibraryArtifact(Path("libopenblas.so"), ("libm.so.6",))
            >>> artifact.has_dependency("m")
            True
        """
        stem = f"lib{name}"
        return any(dep.split('.', 1)[0] == stem for dep in self.dependencies)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "path": str(self.path),
            "dependencies": list(self.dependencies),
            "exported_symbols": list(self.exported_symbols),
            "has_cblas": self.has_cblas(),
            "has_lapack": self.has_lapack(),
            "has_lapacke": self.has_lapacke(),
            "is_static": self.is_static,
        }


class BinaryIntrospector:
    """Inspect built libraries through an :class:`ArtifactInspector`."""

    def __init__(
        self,
        inspector: Optional[ArtifactInspector] = None,
        settings: Optional[ProbeSettings] = None
    ):
        """Initialize introspector.

        Args:
            inspector: Symbol/dependency source. Defaults to binutils.
            settings: Inspection settings, used for the default inspector
                and the worker cap of :meth:`inspect_many`
        """
        self.settings = settings or ProbeSettings()
        self.inspector = inspector or create_inspector(self.settings)

    def inspect(self, path: Union[str, Path]) -> LibraryArtifact:
        """Inspect a single library.

        Args:
            path: Path to a static archive or shared object

        Returns:
            Inspected artifact

        Raises:
            FileNotFoundError: If the path does not exist
            ExternalToolUnavailableError: If an inspection tool is missing
            ExternalToolFailedError: If an inspection tool fails
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Library not found: {path}")

        symbols = sorted(self.inspector.extract_symbols(path))
        dependencies = sorted(self.inspector.extract_dependencies(path))

        logger.info(
            f"Inspected {path}: {len(symbols)} symbols, "
            f"{len(dependencies)} dependencies"
        )
        return LibraryArtifact(
            path=path,
            dependencies=tuple(dependencies),
            exported_symbols=tuple(symbols),
        )

    def inspect_many(self, paths: Iterable[Union[str, Path]]) -> List[LibraryArtifact]:
        """Inspect several libraries concurrently.

        At most ``settings.max_workers`` tool pairs run at once.

        Args:
            paths: Library paths

        Returns:
            Inspected artifacts, in input order

        Raises:
            The first error raised by :meth:`inspect`, in input order
        """
        paths = list(paths)
        if not paths:
            return []

        max_workers = min(self.settings.get_max_workers(), len(paths))
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(self.inspect, paths))


def inspect_artifact(
    path: Union[str, Path],
    settings: Optional[ProbeSettings] = None
) -> LibraryArtifact:
    """Inspect a library with the default inspection tools.

    Args:
        path: Path to a static archive or shared object
        settings: Inspection settings

    Returns:
        Inspected artifact

    Example:
        >>> lib = inspect_artifact("libopenblas.a")
        >>> lib.has_cblas(), lib.is_static
        (True, True)
    """
    return BinaryIntrospector(settings=settings).inspect(path)


__all__ = [
    "BinaryIntrospector",
    "CBLAS_PREFIX",
    "LAPACKE_PREFIX",
    "LAPACK_MARKER",
    "LibraryArtifact",
    "inspect_artifact",
]
