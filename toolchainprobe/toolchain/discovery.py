"""
toolchainprobe/toolchain/discovery.py

Toolchain discovery - ranks every Visual Studio installation on the host.
"""

import logging
from typing import List, Optional

from ..core.platform import PlatformInfo, detect_platform
from ..core.version import version_sort_key
from .descriptor import ToolchainDescriptor
from .legacy import LegacyToolchainLocator
from .modern import ModernToolchainLocator
from .registry import RegistryLookup

logger = logging.getLogger(__name__)


class ToolchainDiscovery:
    """
    Detects Visual Studio toolchains installed on the system.

    Orchestrates the installer-based (2017 and newer) and registry-based
    (2013, 2015) locators and ranks the combined result newest first.
    Nothing is cached between calls.
    """

    def __init__(
        self,
        platform: Optional[PlatformInfo] = None,
        registry: Optional[RegistryLookup] = None,
        locators: Optional[list] = None,
    ):
        """
        Initialize discovery.

        Args:
            platform: Host platform (defaults to the detected one)
            registry: Registry lookup shared by the default locators
            locators: Explicit locator list, each exposing ``search()``
        """
        self.platform = platform or detect_platform()
        if locators is None:
            registry = registry or RegistryLookup()
            locators = [
                ModernToolchainLocator(registry=registry, platform=self.platform),
                LegacyToolchainLocator(registry=registry, platform=self.platform),
            ]
        self.locators = locators

    def discover(self) -> List[ToolchainDescriptor]:
        """
        Detect all available toolchains.

        Returns:
            Toolchains sorted newest first; empty if none were found or the
            host is not Windows
        """
        toolchains: List[ToolchainDescriptor] = []

        if not self.platform.is_windows:
            logger.debug(f"No Visual Studio discovery on {self.platform}")
            return toolchains

        logger.info("Starting toolchain discovery")

        for locator in self.locators:
            try:
                logger.debug(f"Running {locator.__class__.__name__}")
                found = locator.search()
                logger.debug(f"{locator.__class__.__name__} found {len(found)} toolchains")
                toolchains.extend(found)
            except Exception as e:
                logger.warning(f"Locator {locator.__class__.__name__} failed: {e}")

        toolchains.sort(key=lambda tc: version_sort_key(tc.version.full))

        logger.info(f"Discovered {len(toolchains)} toolchains")
        return toolchains

    def discover_best(self) -> Optional[ToolchainDescriptor]:
        """
        Return the newest toolchain that has a usable Windows SDK.

        Returns:
            Best toolchain or None if no toolchain qualifies
        """
        for toolchain in self.discover():
            if toolchain.sdk_versions:
                logger.info(f"Best toolchain: {toolchain}")
                return toolchain
        logger.info("No toolchain with a Windows SDK found")
        return None


def find_toolchains(platform: Optional[PlatformInfo] = None) -> List[ToolchainDescriptor]:
    """
    Discover installed toolchains, newest first.

    Example:
        >>> for tc in find_toolchains():
        ...     print(tc.year, tc.compiler_path)
    """
    return ToolchainDiscovery(platform=platform).discover()
