"""
Core functionality for toolchainprobe.

This package contains the foundational modules that other components depend on.
"""

from .exceptions import (
    ToolchainProbeError,
    ConfigError,
    ProbeError,
    InvalidProbeArgumentError,
    CompilerIdentityError,
    FeatureNotFoundError,
    CompilationError,
)

from .platform import (
    PlatformInfo,
    detect_platform,
    clear_platform_cache,
)

from .version import (
    compare_versions,
    sort_versions,
    version_sort_key,
)

__all__ = [
    "ToolchainProbeError",
    "ConfigError",
    "ProbeError",
    "InvalidProbeArgumentError",
    "CompilerIdentityError",
    "FeatureNotFoundError",
    "CompilationError",
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
    "compare_versions",
    "sort_versions",
    "version_sort_key",
]
