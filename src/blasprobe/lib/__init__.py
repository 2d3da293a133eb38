"""blasprobe library modules.

Linker flag parsing, build configuration reading, and library introspection.
"""

__all__ = [
    "build_config",
    "errors",
    "inspection",
    "introspector",
    "link_flags",
    "settings",
]
