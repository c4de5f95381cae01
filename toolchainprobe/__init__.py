"""
toolchainprobe - native toolchain discovery and compiler capability probing.
"""

from toolchainprobe.toolchain import ToolchainDescriptor, find_toolchains
from toolchainprobe.probe import BuildEnvironment, Language

__version__ = "0.1.0"

__all__ = [
    "BuildEnvironment",
    "Language",
    "ToolchainDescriptor",
    "find_toolchains",
    "__version__",
]
