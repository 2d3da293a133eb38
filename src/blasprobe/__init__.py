"""blasprobe - introspection of native BLAS/LAPACK builds.

Answers the questions a build orchestrator asks after running an
OpenBLAS-style native build:

- Which linker flags does the build require (from ``Makefile.conf``)
- Which interfaces does a produced library export (CBLAS, LAPACK, LAPACKE)
- Which shared libraries does it link against
"""

__version__ = "1.0.0"
__license__ = "MIT"

from blasprobe.lib.build_config import BuildConfig, BuildConfigReader, read_build_config
from blasprobe.lib.errors import (
    BlasProbeError,
    ExternalToolFailedError,
    ExternalToolUnavailableError,
    MalformedConfigLineError,
    PathCanonicalizationError,
)
from blasprobe.lib.introspector import BinaryIntrospector, LibraryArtifact, inspect_artifact
from blasprobe.lib.link_flags import LinkInfo, parse_link_flags
from blasprobe.lib.settings import ProbeSettings, load_settings

__all__ = [
    "BinaryIntrospector",
    "BlasProbeError",
    "BuildConfig",
    "BuildConfigReader",
    "ExternalToolFailedError",
    "ExternalToolUnavailableError",
    "LibraryArtifact",
    "LinkInfo",
    "MalformedConfigLineError",
    "PathCanonicalizationError",
    "ProbeSettings",
    "__version__",
    "inspect_artifact",
    "load_settings",
    "parse_link_flags",
    "read_build_config",
]
