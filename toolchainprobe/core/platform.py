"""
Host platform detection for toolchainprobe.

Toolchain discovery needs two facts about the host: whether it is Windows
(the only platform with registry and installer enumeration) and which
architecture directory (``x86`` or ``x64``) its compilers and libraries live
under.

Usage:
    from toolchainprobe.core.platform import detect_platform

    info = detect_platform()
    print(info.os, info.arch, info.msvc_arch())
"""

import functools
import platform
import sys
from dataclasses import dataclass


@dataclass(frozen=True)
class PlatformInfo:
    """
    Host platform information.

    Attributes:
        os: Operating system ('windows', 'linux', 'macos')
        arch: Architecture of the running interpreter ('x64', 'arm64', 'x86', 'arm')
    """

    os: str
    arch: str

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    @property
    def is_32bit(self) -> bool:
        return self.arch == "x86"

    def msvc_arch(self) -> str:
        """
        Get the Visual C++ directory name for this host.

        Every architecture other than 32-bit x86 maps to ``x64``.
        """
        return "x86" if self.is_32bit else "x64"

    def __str__(self) -> str:
        return f"{self.os}-{self.arch}"


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.
    """
    return PlatformInfo(os=_detect_os(), arch=_detect_architecture())


def _detect_os() -> str:
    """
    Detect operating system.

    Returns:
        Normalized OS name: 'windows', 'linux', 'macos', or the raw
        lower-cased system name
    """
    system = platform.system().lower()

    if system == "windows":
        return "windows"
    elif system == "darwin":
        return "macos"
    return system


def _detect_architecture() -> str:
    """
    Detect the architecture the interpreter runs as.

    A 32-bit interpreter on a 64-bit OS reports ``x86``, matching the
    registry view and tool directories it will see.

    Returns:
        Normalized architecture: 'x64', 'arm64', 'x86', 'arm'
    """
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        arch = "x64"
    elif machine in ("aarch64", "arm64"):
        arch = "arm64"
    elif machine in ("i386", "i686", "x86"):
        arch = "x86"
    elif machine.startswith("arm"):
        arch = "arm"
    else:
        arch = machine

    if arch == "x64" and sys.maxsize <= 2**32:
        return "x86"
    return arch


def clear_platform_cache():
    """
    Clear the platform detection cache.

    Useful for testing.
    """
    detect_platform.cache_clear()


__all__ = [
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
]
