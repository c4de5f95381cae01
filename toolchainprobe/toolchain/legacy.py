"""
toolchainprobe/toolchain/legacy.py

Locate pre-2017 Visual Studio installations from the registry alone.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..core.platform import PlatformInfo, detect_platform
from .descriptor import ToolchainDescriptor, ToolchainVersion
from .registry import HKLM_SOFTWARE, HKLM_SOFTWARE_WOW64, RegistryLookup

logger = logging.getLogger(__name__)

VC7_KEY = "Microsoft\\VisualStudio\\SxS\\VC7"
MSBUILD_TOOLS_KEY = f"{HKLM_SOFTWARE}\\Microsoft\\MSBuild\\ToolsVersions"


@dataclass(frozen=True)
class LegacyGeneration:
    version: ToolchainVersion
    year: int
    toolset: str


LEGACY_GENERATIONS = (
    LegacyGeneration(ToolchainVersion("12.0", 12, 0), 2013, "v120"),
    LegacyGeneration(ToolchainVersion("14.0", 14, 0), 2015, "v140"),
)


class LegacyToolchainLocator:
    """
    Search the registry for Visual Studio 2013 and 2015.

    The install directory comes from the SxS\\VC7 key (native view, then
    Wow6432Node) and MSBuild from its ToolsVersions key. Legacy
    installations carry no SDK information.
    """

    def __init__(
        self,
        registry: Optional[RegistryLookup] = None,
        platform: Optional[PlatformInfo] = None,
    ):
        """
        Initialize locator.

        Args:
            registry: Registry lookup to use
            platform: Host platform (defaults to the detected one)
        """
        self.registry = registry or RegistryLookup()
        self.platform = platform or detect_platform()

    def search(self) -> List[ToolchainDescriptor]:
        """
        Search for legacy installations.

        Returns:
            List of discovered toolchains, in generation order
        """
        toolchains = []

        for generation in LEGACY_GENERATIONS:
            try:
                toolchain = self._resolve(generation)
            except Exception as e:
                logger.debug(f"Error resolving Visual Studio {generation.year}: {e}")
                continue

            if toolchain:
                toolchains.append(toolchain)
                logger.info(f"Found Visual Studio {toolchain.year} at {toolchain.install_path}")

        return toolchains

    def _resolve(self, generation: LegacyGeneration) -> Optional[ToolchainDescriptor]:
        version = generation.version.full

        vc_dir = self.registry.query(f"{HKLM_SOFTWARE}\\{VC7_KEY}", version)
        if not vc_dir:
            vc_dir = self.registry.query(f"{HKLM_SOFTWARE_WOW64}\\{VC7_KEY}", version)
        if not vc_dir:
            logger.debug(f"Visual Studio {generation.year} not registered")
            return None
        install_path = Path(vc_dir).parent

        msbuild_dir = self.registry.query(
            f"{MSBUILD_TOOLS_KEY}\\{version}",
            "MSBuildToolsPath",
            use_32bit_view=self.platform.is_32bit,
        )
        if not msbuild_dir:
            logger.debug(f"MSBuild {version} not registered")
            return None

        build_tool = Path(msbuild_dir) / "MSBuild.exe"
        compiler = install_path / "VC" / "bin" / "cl.exe"
        include_dir = install_path / "VC" / "include"
        lib_dir = install_path / "VC" / "lib"
        for required in (build_tool, compiler, include_dir, lib_dir):
            if not required.exists():
                logger.debug(f"Visual Studio {generation.year}: missing {required}")
                return None

        return ToolchainDescriptor(
            install_path=install_path,
            version=generation.version,
            year=generation.year,
            toolset=generation.toolset,
            build_tool_path=build_tool,
            compiler_path=compiler,
            include_paths=(include_dir,),
            library_paths=(lib_dir,),
            sdk_versions=(),
        )
