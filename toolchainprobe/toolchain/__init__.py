"""
Toolchain discovery for toolchainprobe.

This module provides functionality for:
- Registry lookups
- Installer-based (Visual Studio 2017+) toolchain location
- Registry-based (Visual Studio 2013/2015) toolchain location
- Ranking discovered toolchains newest first
"""

from toolchainprobe.toolchain.descriptor import ToolchainDescriptor, ToolchainVersion
from toolchainprobe.toolchain.registry import RegistryLookup, parse_reg_output
from toolchainprobe.toolchain.legacy import (
    LEGACY_GENERATIONS,
    LegacyToolchainLocator,
)
from toolchainprobe.toolchain.modern import (
    MODERN_GENERATIONS,
    ModernToolchainLocator,
    Packages,
    has_required_packages,
    parse_sdk_versions,
)
from toolchainprobe.toolchain.discovery import ToolchainDiscovery, find_toolchains

__all__ = [
    # Descriptor
    "ToolchainDescriptor",
    "ToolchainVersion",
    # Registry
    "RegistryLookup",
    "parse_reg_output",
    # Locators
    "LEGACY_GENERATIONS",
    "LegacyToolchainLocator",
    "MODERN_GENERATIONS",
    "ModernToolchainLocator",
    "Packages",
    "has_required_packages",
    "parse_sdk_versions",
    # Discovery
    "ToolchainDiscovery",
    "find_toolchains",
]
