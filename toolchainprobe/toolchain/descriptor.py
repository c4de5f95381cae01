"""
toolchainprobe/toolchain/descriptor.py

Normalized description of one discovered Visual Studio installation.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

_MAJOR_MINOR = re.compile(r"^(\d+)[.](\d+)[.]")


@dataclass(frozen=True)
class ToolchainVersion:
    """
    Installation version, used for ranking only.

    Attributes:
        full: Version string as reported (e.g. '16.11.34729.46')
        major: Major version (e.g. 16)
        minor: Minor version (e.g. 11)
    """

    full: str
    major: int
    minor: int

    @classmethod
    def parse(cls, version: str) -> Optional["ToolchainVersion"]:
        """
        Parse an installer-reported version.

        The string must start with ``<major>.<minor>.``; anything else
        yields None.
        """
        if not isinstance(version, str):
            return None
        match = _MAJOR_MINOR.match(version)
        if match is None:
            return None
        return cls(full=version, major=int(match.group(1)), minor=int(match.group(2)))

    def __str__(self) -> str:
        return self.full


@dataclass(frozen=True)
class ToolchainDescriptor:
    """
    Represents a toolchain found on the system.

    Attributes:
        install_path: Installation root directory
        version: Installation version
        year: Product year (e.g. 2019)
        toolset: Platform toolset tag (e.g. 'v142')
        build_tool_path: Path to MSBuild.exe
        compiler_path: Path to cl.exe
        include_paths: Include directories, in compiler search order
        library_paths: Library directories, in linker search order
        sdk_versions: Windows SDK versions, newest first. Empty means no
            usable SDK was found for this installation.
    """

    install_path: Path
    version: ToolchainVersion
    year: int
    toolset: str
    build_tool_path: Path
    compiler_path: Path
    include_paths: Tuple[Path, ...] = ()
    library_paths: Tuple[Path, ...] = ()
    sdk_versions: Tuple[str, ...] = ()

    def __str__(self) -> str:
        """String representation."""
        return f"Visual Studio {self.year} ({self.version}) at {self.install_path}"

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary for build-file generators.

        Returns:
            Dictionary representation suitable for serialization
        """
        return {
            "install_path": str(self.install_path),
            "version": {
                "full": self.version.full,
                "major": self.version.major,
                "minor": self.version.minor,
            },
            "year": self.year,
            "toolset": self.toolset,
            "build_tool_path": str(self.build_tool_path),
            "compiler_path": str(self.compiler_path),
            "include_paths": [str(p) for p in self.include_paths],
            "library_paths": [str(p) for p in self.library_paths],
            "sdk_versions": list(self.sdk_versions),
        }
