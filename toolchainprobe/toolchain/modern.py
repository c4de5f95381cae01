"""
toolchainprobe/toolchain/modern.py

Locate Visual Studio 2017 and newer through the installer's instance list.
"""

import json
import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.platform import PlatformInfo, detect_platform
from ..core.version import sort_versions
from .descriptor import ToolchainDescriptor, ToolchainVersion
from .registry import HKLM_SOFTWARE, HKLM_SOFTWARE_WOW64, RegistryLookup

logger = logging.getLogger(__name__)

HELPER_SCRIPT = Path(__file__).parent.parent / "data" / "find_visual_studio.ps1"

SDK_KEY = "Microsoft\\Microsoft SDKs\\Windows"


class Packages:
    """Installer package ids that matter for C/C++ builds."""

    MSBUILD = "Microsoft.VisualStudio.VC.MSBuild.Base"
    VC_TOOLS = "Microsoft.VisualStudio.Component.VC.Tools.x86.x64"
    EXPRESS = "Microsoft.VisualStudio.WDExpress"
    WIN81_SDK = "Microsoft.VisualStudio.Component.Windows81SDK"
    WIN10_SDK_PREFIX = "Microsoft.VisualStudio.Component.Windows10SDK."


@dataclass(frozen=True)
class ModernGeneration:
    year: int
    msbuild: Tuple[str, ...]
    toolset: str


MODERN_GENERATIONS: Dict[int, ModernGeneration] = {
    15: ModernGeneration(2017, ("MSBuild", "15.0", "Bin", "MSBuild.exe"), "v141"),
    16: ModernGeneration(2019, ("MSBuild", "Current", "Bin", "MSBuild.exe"), "v142"),
    17: ModernGeneration(2022, ("MSBuild", "Current", "Bin", "MSBuild.exe"), "v143"),
}


def has_required_packages(packages: Sequence[str]) -> bool:
    """
    Check that an instance can build C/C++ code.

    MSBuild is mandatory, plus either the VC tools component or the
    Express edition.
    """
    if Packages.MSBUILD not in packages:
        return False
    return Packages.VC_TOOLS in packages or Packages.EXPRESS in packages


def parse_sdk_versions(packages: Sequence[str]) -> List[str]:
    """
    Collect Windows SDK versions from installer package ids.

    Returns:
        SDK versions in package order (e.g. ['8.1', '10.0.19041.0'])
    """
    sdks = []
    for package in packages:
        if package == Packages.WIN81_SDK:
            sdks.append("8.1")
            continue
        if not package.startswith(Packages.WIN10_SDK_PREFIX):
            continue

        # Microsoft.VisualStudio.Component.Windows10SDK.<build>[.<variant>]
        parts = package.split(".")
        if len(parts) > 5 and parts[5] != "Desktop":
            continue
        if len(parts) < 5:
            continue
        try:
            build = int(parts[4])
        except ValueError:
            logger.debug(f"Malformed SDK package id: {package}")
            continue
        if build < 0:
            continue
        sdks.append(f"10.0.{build}.0")
    return sdks


def sdk_short_version(full_version: str) -> Optional[str]:
    """Registry key name for an SDK ('10.0.19041.0' -> 'v10.0')."""
    parts = full_version.split(".")
    if len(parts) < 2 or not parts[0].isdigit() or not parts[1].isdigit():
        return None
    return f"v{parts[0]}.{parts[1]}"


def _existing(path: Path) -> Optional[Path]:
    if path.exists():
        return path
    logger.debug(f"Missing path: {path}")
    return None


class ModernToolchainLocator:
    """
    Search installer-registered Visual Studio instances.

    An external helper prints the installed instances as JSON. Each
    instance is filtered by version and packages, then its compiler,
    toolset and Windows SDK directories are resolved on disk and through
    the registry. An instance that fails any step is skipped.
    """

    def __init__(
        self,
        registry: Optional[RegistryLookup] = None,
        platform: Optional[PlatformInfo] = None,
        helper_command: Optional[List[str]] = None,
    ):
        """
        Initialize locator.

        Args:
            registry: Registry lookup to use
            platform: Host platform (defaults to the detected one)
            helper_command: Command printing the instance JSON (defaults
                to Windows PowerShell running the bundled script)
        """
        self.registry = registry or RegistryLookup()
        self.platform = platform or detect_platform()
        self.helper_command = helper_command

    def search(self) -> List[ToolchainDescriptor]:
        """
        Search installer-registered instances.

        Returns:
            List of discovered toolchains, in enumeration order
        """
        toolchains = []

        for instance in self.enumerate_instances():
            try:
                toolchain = self._resolve(instance)
            except Exception as e:
                logger.debug(f"Error resolving instance {instance!r}: {e}")
                continue

            if toolchain:
                toolchains.append(toolchain)
                logger.info(
                    f"Found Visual Studio {toolchain.year} {toolchain.version} "
                    f"at {toolchain.install_path}"
                )

        return toolchains

    def enumerate_instances(self) -> List[Dict[str, Any]]:
        """
        Run the enumeration helper.

        Returns:
            Parsed instance records, or an empty list if the helper is
            unavailable, fails or prints something other than a JSON array
        """
        command = self.helper_command or self._default_helper_command()
        if not command:
            logger.debug("SystemRoot is not set, skipping Visual Studio enumeration")
            return []

        try:
            result = subprocess.run(
                command,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"Visual Studio enumeration failed: {e}")
            return []

        if result.returncode != 0:
            logger.debug(f"Visual Studio enumeration returned {result.returncode}")
            return []

        try:
            instances = json.loads(result.stdout)
        except ValueError as e:
            logger.debug(f"Invalid enumeration output: {e}")
            return []

        if not isinstance(instances, list):
            logger.debug("Enumeration output is not a JSON array")
            return []

        return [i for i in instances if isinstance(i, dict)]

    def _default_helper_command(self) -> Optional[List[str]]:
        system_root = os.environ.get("SystemRoot")
        if not system_root:
            return None
        powershell = os.path.join(
            system_root, "System32", "WindowsPowerShell", "v1.0", "powershell.exe"
        )
        return [
            powershell,
            "-ExecutionPolicy",
            "Unrestricted",
            "-NoProfile",
            "-File",
            str(HELPER_SCRIPT),
        ]

    def _resolve(self, instance: Dict[str, Any]) -> Optional[ToolchainDescriptor]:
        """Turn one instance record into a descriptor, or None."""
        path = instance.get("path")
        if not isinstance(path, str) or not path:
            return None
        install_path = Path(path).resolve()

        version = ToolchainVersion.parse(instance.get("version"))
        if version is None:
            logger.debug(f"Unparseable version for {install_path}")
            return None
        generation = MODERN_GENERATIONS.get(version.major)
        if generation is None:
            logger.debug(f"Unknown Visual Studio generation {version} at {install_path}")
            return None

        packages = instance.get("packages")
        if not isinstance(packages, list):
            return None
        packages = [p for p in packages if isinstance(p, str)]
        if not has_required_packages(packages):
            logger.debug(f"{install_path} lacks MSBuild or VC tools packages")
            return None

        sdks = sort_versions(parse_sdk_versions(packages))
        if not sdks:
            logger.debug(f"{install_path} has no Windows SDK")
            return None

        arch = self.platform.msvc_arch()

        toolset_dir = self._toolset_dir(install_path, generation.toolset)
        if toolset_dir is None:
            return None

        build_tool = _existing(install_path.joinpath(*generation.msbuild))
        compiler = _existing(toolset_dir / "bin" / f"Host{arch}" / arch / "cl.exe")
        vc_include = _existing(toolset_dir / "include")
        vc_lib = _existing(toolset_dir / "lib" / arch)
        if build_tool is None or compiler is None or vc_include is None or vc_lib is None:
            return None

        sdk_dirs = self._sdk_dirs(sdks[0], arch)
        if sdk_dirs is None:
            return None
        sdk_include, sdk_libs = sdk_dirs

        return ToolchainDescriptor(
            install_path=install_path,
            version=version,
            year=generation.year,
            toolset=generation.toolset,
            build_tool_path=build_tool,
            compiler_path=compiler,
            include_paths=(vc_include, sdk_include),
            library_paths=(vc_lib,) + sdk_libs,
            sdk_versions=tuple(sdks),
        )

    def _toolset_dir(self, install_path: Path, toolset: str) -> Optional[Path]:
        """Read the default toolset version and return its MSVC directory."""
        marker = (
            install_path
            / "VC"
            / "Auxiliary"
            / "Build"
            / f"Microsoft.VCToolsVersion.{toolset}.default.txt"
        )
        try:
            toolset_version = marker.read_text(encoding="utf-8").strip()
        except OSError as e:
            logger.debug(f"Cannot read toolset marker {marker}: {e}")
            return None
        if not toolset_version:
            return None
        return install_path / "VC" / "Tools" / "MSVC" / toolset_version

    def _sdk_root(self, sdk_version: str) -> Optional[Path]:
        short = sdk_short_version(sdk_version)
        if short is None:
            return None
        for root in (HKLM_SOFTWARE, HKLM_SOFTWARE_WOW64):
            folder = self.registry.query(
                f"{root}\\{SDK_KEY}\\{short}", "InstallationFolder"
            )
            if folder:
                return Path(folder).resolve()
        logger.debug(f"Windows SDK {short} not registered")
        return None

    def _sdk_dirs(
        self, sdk_version: str, arch: str
    ) -> Optional[Tuple[Path, Tuple[Path, Path]]]:
        """Resolve the SDK ucrt include directory and um/ucrt library directories."""
        sdk_root = self._sdk_root(sdk_version)
        if sdk_root is None:
            return None

        include = _existing(sdk_root / "Include" / sdk_version / "ucrt")
        lib_um = _existing(sdk_root / "Lib" / sdk_version / "um" / arch)
        lib_ucrt = _existing(sdk_root / "Lib" / sdk_version / "ucrt" / arch)
        if include is None or lib_um is None or lib_ucrt is None:
            return None
        return include, (lib_um, lib_ucrt)
